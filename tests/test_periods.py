from datetime import date

import pytest

from formatting import format_currency, format_date, format_percent
from periods import month_end, resolve_month, shift_month


def test_resolve_month_defaults_to_today():
    view = resolve_month(None, None, today=date(2024, 2, 10))
    assert (view.year, view.month) == (2024, 2)
    assert view.start == date(2024, 2, 1)
    assert view.end == date(2024, 2, 29)


@pytest.mark.parametrize(
    "year,month",
    [(2025, None), (None, 3), (2025, 0), (2025, 13), (1969, 5), (3001, 1)],
)
def test_resolve_month_rejects_bad_input(year, month):
    with pytest.raises(ValueError):
        resolve_month(year, month, today=date(2025, 1, 1))


def test_shift_month_crosses_year_boundaries():
    view = resolve_month(2025, 1, today=date(2025, 1, 1))
    assert (shift_month(view, -1).year, shift_month(view, -1).month) == (2024, 12)
    assert shift_month(view, 11).end == date(2025, 12, 31)
    assert shift_month(view, 25).start == date(2027, 2, 1)


def test_month_end():
    assert month_end(2025, 12) == date(2025, 12, 31)
    assert month_end(2023, 2) == date(2023, 2, 28)


def test_brazilian_formatting():
    assert format_currency(123_456) == "R$ 1.234,56"
    assert format_currency(-5) == "-R$ 0,05"
    assert format_currency(100_000_000) == "R$ 1.000.000,00"
    assert format_date(date(2025, 3, 7)) == "07/03/2025"
    assert format_percent(74.6) == "75%"
