from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class MonthView:
    year: int
    month: int
    start: date
    end: date


def month_end(year: int, month: int) -> date:
    if month == 12:
        return date(year + 1, 1, 1) - date.resolution
    return date(year, month + 1, 1) - date.resolution


def _view(year: int, month: int) -> MonthView:
    return MonthView(year, month, date(year, month, 1), month_end(year, month))


def resolve_month(
    year: Optional[int],
    month: Optional[int],
    *,
    today: Optional[date] = None,
) -> MonthView:
    today = today or date.today()
    if year is None and month is None:
        return _view(today.year, today.month)
    if year is None or month is None:
        raise ValueError("Year and month must be given together")
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    if not 1970 <= year <= 3000:
        raise ValueError("Year out of range")
    return _view(year, month)


def shift_month(view: MonthView, delta: int) -> MonthView:
    total_months = view.month - 1 + delta
    year = view.year + total_months // 12
    month = total_months % 12 + 1
    return _view(year, month)
