"""Unit tests for calendar month arithmetic"""

import pytest
from datetime import date
from budget_ledger.utils.date_utils import add_months, horizon


@pytest.mark.parametrize(
    "start,months,expected",
    [
        (date(2025, 1, 31), 0, date(2025, 1, 31)),
        (date(2025, 1, 31), 1, date(2025, 2, 28)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2025, 1, 31), 2, date(2025, 3, 31)),
        (date(2025, 3, 31), 1, date(2025, 4, 30)),
        (date(2025, 12, 15), 1, date(2026, 1, 15)),
        (date(2025, 5, 10), 25, date(2027, 6, 10)),
    ],
)
def test_add_months(start, months, expected):
    assert add_months(start, months) == expected


def test_horizon():
    assert horizon(date(2025, 1, 1), 30) == date(2025, 1, 31)
    assert horizon(date(2025, 1, 1), 0) == date(2025, 1, 1)
