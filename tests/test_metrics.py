from datetime import date
from itertools import count

import pytest

from metrics import (
    balance_as_of,
    category_totals,
    daily_breakdown,
    first_weekday,
    forecast,
    health_score,
    summarize,
)
from models import FIXED_COST_CATEGORY, TransactionType
from schemas import Transaction


_ids = count(1)


def _txn(
    txn_type: TransactionType,
    amount_cents: int,
    when: date,
    *,
    category: str = "Food",
    is_fixed: bool = False,
    recurrence_months: int = 0,
) -> Transaction:
    return Transaction(
        id=f"t{next(_ids)}",
        description="Entry",
        amount_cents=amount_cents,
        type=txn_type,
        date=when,
        category=FIXED_COST_CATEGORY if is_fixed else category,
        is_fixed=is_fixed,
        fixed_day=when.day if is_fixed else None,
        recurrence_months=recurrence_months,
    )


def test_scenario_single_month_income_and_expense():
    transactions = [
        _txn(TransactionType.income, 100_000, date(2025, 1, 5)),
        _txn(TransactionType.expense, 30_000, date(2025, 1, 20)),
    ]
    summary = summarize(transactions, 2025, 1, today=date(2025, 1, 31))
    assert summary.monthly_income == 100_000
    assert summary.monthly_expenses == 30_000
    assert summary.health_score == pytest.approx(70.0)
    assert summary.projected_total == 70_000
    assert summary.on_hand == 70_000


def test_scenario_indefinite_fixed_expense_balance():
    rent = _txn(
        TransactionType.expense, 5_000, date(2025, 1, 1), is_fixed=True
    )
    assert balance_as_of([rent], date(2025, 6, 1)) == -30_000
    assert balance_as_of([rent], date(2025, 5, 31)) == -25_000


def test_scenario_prospective_income_only_moves_forecast():
    bonus = _txn(TransactionType.prospect_income, 50_000, date(2025, 3, 12))
    summary = summarize([bonus], 2025, 3, today=date(2025, 3, 1))
    assert summary.monthly_income == 0
    assert summary.category_totals == {}
    assert forecast(summary, [bonus], 2025, 3) == summary.projected_total + 50_000


def test_balance_never_counts_prospective_by_default():
    transactions = [
        _txn(TransactionType.prospect_income, 10_000, date(2020, 1, 1)),
        _txn(TransactionType.prospect_expense, 4_000, date(2020, 1, 1), is_fixed=True),
    ]
    assert balance_as_of(transactions, date(2030, 1, 1)) == 0
    assert balance_as_of(transactions, date(2020, 2, 1), include_prospective=True) == (
        10_000 - 2 * 4_000
    )


def test_balance_is_monotonic_in_cutoff_for_income():
    transactions = [
        _txn(TransactionType.income, 1_000, date(2025, 1, 31), is_fixed=True),
        _txn(TransactionType.income, 700, date(2025, 3, 3)),
        _txn(TransactionType.income, 500, date(2025, 2, 10), is_fixed=True, recurrence_months=2),
    ]
    cutoffs = [
        date(2024, 12, 31),
        date(2025, 2, 27),
        date(2025, 2, 28),
        date(2025, 4, 30),
        date(2026, 1, 1),
    ]
    balances = [balance_as_of(transactions, cutoff) for cutoff in cutoffs]
    assert balances == sorted(balances)
    assert balances[0] == 0
    # Jan 31 and Feb 28 (snapped) plus the first 500 instalment
    assert balances[2] == 2_000 + 500


def test_balance_counts_finite_fixed_only_within_window():
    loan = _txn(
        TransactionType.expense, 20_000, date(2025, 1, 10), is_fixed=True, recurrence_months=3
    )
    assert balance_as_of([loan], date(2025, 12, 31)) == -60_000


def test_health_score_boundaries():
    assert health_score(100_000, 100_000) == 0
    assert health_score(0, 50_000) == 0
    assert health_score(100_000, 250_000) == 0
    assert health_score(100_000, 0) == 100
    assert health_score(80_000, 20_000) == pytest.approx(75.0)


def test_so_far_and_future_split_on_today():
    transactions = [
        _txn(TransactionType.income, 300_000, date(2025, 4, 5)),
        _txn(TransactionType.income, 50_000, date(2025, 4, 25)),
        _txn(TransactionType.expense, 10_000, date(2025, 4, 10)),
        _txn(TransactionType.expense, 80_000, date(2025, 1, 20), is_fixed=True),
        _txn(TransactionType.prospect_expense, 5_000, date(2025, 4, 1)),
    ]
    summary = summarize(transactions, 2025, 4, today=date(2025, 4, 15))
    assert summary.monthly_income == 350_000
    assert summary.monthly_expenses == 90_000
    assert summary.earned_so_far == 300_000
    assert summary.spent_so_far == 10_000
    assert summary.future_expenses == 80_000


def test_future_month_is_entirely_pending():
    transactions = [
        _txn(TransactionType.expense, 12_000, date(2025, 1, 3), is_fixed=True),
    ]
    summary = summarize(transactions, 2025, 8, today=date(2025, 5, 1))
    assert summary.spent_so_far == 0
    assert summary.future_expenses == 12_000
    assert summary.on_hand == -4 * 12_000
    assert summary.projected_total == -8 * 12_000


def test_category_totals_label_fixed_and_include_prospective_expense():
    transactions = [
        _txn(TransactionType.expense, 2_000, date(2025, 2, 3), category="Food"),
        _txn(TransactionType.expense, 1_500, date(2025, 2, 9), category="Food"),
        _txn(TransactionType.prospect_expense, 7_000, date(2025, 2, 20), category="Leisure"),
        _txn(TransactionType.expense, 90_000, date(2025, 1, 5), is_fixed=True),
        _txn(TransactionType.income, 500_000, date(2025, 2, 5), category="Salary"),
        _txn(TransactionType.expense, 4_000, date(2025, 3, 1), category="Food"),
    ]
    assert category_totals(transactions, 2025, 2) == {
        "Food": 3_500,
        "Leisure": 7_000,
        FIXED_COST_CATEGORY: 90_000,
    }


def test_prospective_never_leaks_into_real_fields():
    transactions = [
        _txn(TransactionType.prospect_income, 40_000, date(2025, 6, 2)),
        _txn(TransactionType.prospect_expense, 15_000, date(2025, 6, 3)),
    ]
    summary = summarize(transactions, 2025, 6, today=date(2025, 6, 30))
    assert summary.monthly_income == 0
    assert summary.monthly_expenses == 0
    assert summary.earned_so_far == 0
    assert summary.spent_so_far == 0
    assert summary.on_hand == 0
    assert summary.projected_total == 0
    assert summary.category_totals == {"Food": 15_000}
    assert forecast(summary, transactions, 2025, 6) == 25_000


def test_forecast_equals_projection_without_prospective_entries():
    transactions = [
        _txn(TransactionType.income, 10_000, date(2025, 6, 2)),
        _txn(TransactionType.prospect_income, 40_000, date(2025, 7, 2)),
    ]
    summary = summarize(transactions, 2025, 6, today=date(2025, 6, 30))
    assert forecast(summary, transactions, 2025, 6) == summary.projected_total


def test_summarize_is_deterministic():
    transactions = (
        _txn(TransactionType.income, 10_000, date(2025, 6, 2)),
        _txn(TransactionType.expense, 3_000, date(2025, 1, 9), is_fixed=True),
    )
    first = summarize(transactions, 2025, 6, today=date(2025, 6, 10))
    second = summarize(transactions, 2025, 6, today=date(2025, 6, 10))
    assert first == second


def test_daily_breakdown_running_total():
    transactions = [
        _txn(TransactionType.income, 10_000, date(2025, 2, 1)),
        _txn(TransactionType.expense, 2_500, date(2025, 1, 31), is_fixed=True),
        _txn(TransactionType.prospect_expense, 500, date(2025, 2, 14)),
    ]
    cells = daily_breakdown(transactions, 2025, 2)
    assert len(cells) == 28
    assert cells[0].net == 10_000
    assert cells[13].net == -500
    assert cells[27].day == date(2025, 2, 28)
    assert cells[27].net == -2_500
    assert cells[27].running_total == 7_000


def test_first_weekday_is_sunday_based():
    # 2025-06-01 is a Sunday, 2025-01-01 a Wednesday
    assert first_weekday(2025, 6) == 0
    assert first_weekday(2025, 1) == 3
