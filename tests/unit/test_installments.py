"""Unit tests for installment schedule generation"""

import pytest
from datetime import date
from budget_ledger.domain.exceptions import InvalidAmountError, InvalidInstallmentCountError
from budget_ledger.domain.installments import generate_installment_schedule, validate_installment_count


def test_generate_schedule_equal_split():
    """Test schedule with evenly divisible amount"""
    schedule = generate_installment_schedule(12000, 4, date(2025, 3, 10))

    assert len(schedule) == 4
    assert all(payment.amount_cents == 3000 for payment in schedule)
    assert [payment.payment_number for payment in schedule] == [1, 2, 3, 4]


def test_generate_schedule_rounding():
    """Test last payment absorbs remainder"""
    schedule = generate_installment_schedule(10000, 3, date(2025, 1, 15))

    assert [payment.amount_cents for payment in schedule] == [3333, 3333, 3334]
    assert sum(payment.amount_cents for payment in schedule) == 10000


@pytest.mark.parametrize("total,count", [(10001, 2), (99999, 7), (60, 60), (123457, 12)])
def test_generate_schedule_sums_to_total(total, count):
    schedule = generate_installment_schedule(total, count, date(2025, 6, 1))

    assert sum(payment.amount_cents for payment in schedule) == total
    assert all(payment.amount_cents == total // count for payment in schedule[:-1])


def test_generate_schedule_month_end_clamp():
    """Test Jan 31 start clamps to Feb 28 and returns to Mar 31"""
    schedule = generate_installment_schedule(10000, 3, date(2025, 1, 31))

    assert [payment.due_date for payment in schedule] == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
    ]


def test_generate_schedule_crosses_year():
    schedule = generate_installment_schedule(4000, 4, date(2024, 11, 30))

    assert [payment.due_date for payment in schedule] == [
        date(2024, 11, 30),
        date(2024, 12, 30),
        date(2025, 1, 30),
        date(2025, 2, 28),
    ]


@pytest.mark.parametrize("count", [0, 1, 61, -3])
def test_generate_schedule_rejects_count_out_of_range(count):
    with pytest.raises(InvalidInstallmentCountError):
        generate_installment_schedule(10000, count, date(2025, 1, 1))


def test_validate_installment_count_bounds():
    validate_installment_count(2)
    validate_installment_count(60)
    with pytest.raises(InvalidInstallmentCountError):
        validate_installment_count(13, max_installments=12)


def test_generate_schedule_rejects_amount_smaller_than_count():
    """Test every payment must be at least one cent"""
    with pytest.raises(InvalidAmountError):
        generate_installment_schedule(2, 3, date(2025, 1, 1))


def test_generate_schedule_rejects_fractional_amount():
    with pytest.raises(InvalidAmountError):
        generate_installment_schedule(100.5, 2, date(2025, 1, 1))
