from datetime import date, datetime
from typing import Iterator
from zoneinfo import ZoneInfo

from config import get_settings


def local_today() -> date:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).date()


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def months_between(start: date, year: int, month: int) -> int:
    """Whole calendar months from ``start``'s month to (year, month)."""
    return (year - start.year) * 12 + (month - start.month)


def occurs_in_month(txn, year: int, month: int) -> bool:
    start = txn.date
    if not txn.is_fixed:
        return start.year == year and start.month == month

    elapsed = months_between(start, year, month)
    if elapsed < 0:
        return False
    if txn.recurrence_months and txn.recurrence_months > 0:
        return elapsed < txn.recurrence_months
    return True


def occurrence_date(txn, year: int, month: int) -> date:
    """Concrete date of ``txn`` within (year, month).

    Fixed days past the end of a short month snap to its last day.
    """
    if not txn.is_fixed:
        return txn.date
    desired_day = txn.fixed_day or txn.date.day
    dim = days_in_month(year, month)
    return date(year, month, min(desired_day, dim))


def iter_occurrences(txn, until: date) -> Iterator[date]:
    if not txn.is_fixed:
        if txn.date <= until:
            yield txn.date
        return

    year, month = txn.date.year, txn.date.month
    count = 0
    while (year, month) <= (until.year, until.month):
        if txn.recurrence_months and count >= txn.recurrence_months:
            break
        occurred = occurrence_date(txn, year, month)
        if occurred <= until:
            yield occurred
        count += 1
        if month == 12:
            year, month = year + 1, 1
        else:
            month += 1
