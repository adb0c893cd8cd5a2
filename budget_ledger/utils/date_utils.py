"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return from_date.replace(year=year, month=month, day=min(from_date.day, last_day))


def horizon(from_date: date, days: int) -> date:
    """Exclusive upper bound for "due within N days" lookups"""
    return from_date + timedelta(days=days)
