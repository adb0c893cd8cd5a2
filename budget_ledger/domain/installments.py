"""Installment schedule generation for split purchases"""

from datetime import date
from typing import List
from budget_ledger.config import settings
from budget_ledger.domain.exceptions import InvalidAmountError, InvalidInstallmentCountError
from budget_ledger.domain.models import ScheduledPayment
from budget_ledger.utils.date_utils import add_months

MIN_INSTALLMENTS = 2


def validate_installment_count(total_installments: int, max_installments: int | None = None) -> None:
    max_installments = max_installments or settings.max_installments
    if isinstance(total_installments, bool) or not isinstance(total_installments, int):
        raise InvalidInstallmentCountError(f"Installment count must be an integer, got {total_installments!r}")
    if not MIN_INSTALLMENTS <= total_installments <= max_installments:
        raise InvalidInstallmentCountError(
            f"Installment count must be between {MIN_INSTALLMENTS} and {max_installments}, "
            f"got {total_installments}"
        )


def generate_installment_schedule(
    total_amount_cents: int,
    total_installments: int,
    start_date: date,
) -> List[ScheduledPayment]:
    """
    Split a purchase into monthly payments.

    Requirements:
    - Payments 1..N-1 get total // N, payment N absorbs the remainder,
      so the schedule always sums to the total exactly
    - Payment k is due start_date + (k - 1) calendar months, each computed
      from start_date; missing days clamp to the end of the month

    Args:
        total_amount_cents: Total purchase amount
        total_installments: Number of payments (2..max_installments)
        start_date: Due date of the first payment

    Returns:
        List of ScheduledPayment ordered by payment number

    Example:
        10000 cents / 3 starting 2025-01-31 →
        [3333 @ 2025-01-31, 3333 @ 2025-02-28, 3334 @ 2025-03-31]
    """
    validate_installment_count(total_installments)

    if isinstance(total_amount_cents, bool) or not isinstance(total_amount_cents, int):
        raise InvalidAmountError(f"Total amount must be an integer number of cents, got {total_amount_cents!r}")
    if total_amount_cents < total_installments:
        raise InvalidAmountError(
            f"Total amount {total_amount_cents} cents cannot be split into {total_installments} payments"
        )

    base_amount = total_amount_cents // total_installments
    remainder = total_amount_cents % total_installments

    schedule = []
    for number in range(1, total_installments + 1):
        amount = base_amount + (remainder if number == total_installments else 0)
        schedule.append(
            ScheduledPayment(
                payment_number=number,
                due_date=add_months(start_date, number - 1),
                amount_cents=amount,
            )
        )

    return schedule
