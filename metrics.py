"""Financial projection engine.

Pure functions over a snapshot of transactions: cumulative balances, monthly
aggregates and forecast totals as of a reference date. Nothing here touches
storage; callers pass an immutable sequence and get derived values back.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from models import FIXED_COST_CATEGORY, TransactionType
from periods import month_end
from recurrence import iter_occurrences, local_today, occurrence_date, occurs_in_month
from schemas import Transaction


@dataclass(frozen=True)
class MonthlySummary:
    year: int
    month: int
    on_hand: int
    projected_total: int
    monthly_income: int
    monthly_expenses: int
    earned_so_far: int
    spent_so_far: int
    future_expenses: int
    health_score: float
    category_totals: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class DayCell:
    day: date
    transactions: tuple[Transaction, ...]
    net: int
    running_total: int


def balance_as_of(
    transactions: Sequence[Transaction], cutoff: date, include_prospective: bool = False
) -> int:
    total = 0
    for txn in transactions:
        if txn.type.is_prospective and not include_prospective:
            continue
        occurrences = sum(1 for _ in iter_occurrences(txn, cutoff))
        total += txn.type.sign * txn.amount_cents * occurrences
    return total


def health_score(income: int, expenses: int) -> float:
    if income <= 0:
        return 0.0
    ratio = (income - expenses) * 100 / income
    return max(0.0, min(100.0, ratio))


def category_totals(
    transactions: Sequence[Transaction], year: int, month: int
) -> dict[str, int]:
    totals: dict[str, int] = {}
    for txn in transactions:
        if txn.type not in (TransactionType.expense, TransactionType.prospect_expense):
            continue
        if not occurs_in_month(txn, year, month):
            continue
        name = FIXED_COST_CATEGORY if txn.is_fixed else txn.category
        totals[name] = totals.get(name, 0) + txn.amount_cents
    return totals


def summarize(
    transactions: Sequence[Transaction],
    year: int,
    month: int,
    *,
    today: Optional[date] = None,
) -> MonthlySummary:
    today = today or local_today()
    income = expenses = 0
    earned = spent = 0
    future = 0
    for txn in transactions:
        if txn.type.is_prospective or not occurs_in_month(txn, year, month):
            continue
        occurred = occurrence_date(txn, year, month)
        if txn.type == TransactionType.income:
            income += txn.amount_cents
            if occurred <= today:
                earned += txn.amount_cents
        else:
            expenses += txn.amount_cents
            if occurred <= today:
                spent += txn.amount_cents
            else:
                future += txn.amount_cents

    return MonthlySummary(
        year=year,
        month=month,
        on_hand=balance_as_of(transactions, today),
        projected_total=balance_as_of(transactions, month_end(year, month)),
        monthly_income=income,
        monthly_expenses=expenses,
        earned_so_far=earned,
        spent_so_far=spent,
        future_expenses=future,
        health_score=health_score(income, expenses),
        category_totals=category_totals(transactions, year, month),
    )


def prospective_delta(
    transactions: Sequence[Transaction], year: int, month: int
) -> int:
    delta = 0
    for txn in transactions:
        if txn.type.is_prospective and occurs_in_month(txn, year, month):
            delta += txn.type.sign * txn.amount_cents
    return delta


def forecast(
    summary: MonthlySummary,
    transactions: Sequence[Transaction],
    year: int,
    month: int,
) -> int:
    return summary.projected_total + prospective_delta(transactions, year, month)


def first_weekday(year: int, month: int) -> int:
    """Column of day 1 in a Sunday-first calendar grid (0 = Sunday)."""
    return (calendar.weekday(year, month, 1) + 1) % 7


def daily_breakdown(
    transactions: Sequence[Transaction], year: int, month: int
) -> list[DayCell]:
    by_day: dict[date, list[Transaction]] = {}
    for txn in transactions:
        if occurs_in_month(txn, year, month):
            by_day.setdefault(occurrence_date(txn, year, month), []).append(txn)

    cells: list[DayCell] = []
    running = 0
    for day_number in range(1, month_end(year, month).day + 1):
        day = date(year, month, day_number)
        day_txns = tuple(by_day.get(day, ()))
        net = sum(t.type.sign * t.amount_cents for t in day_txns)
        running += net
        cells.append(DayCell(day=day, transactions=day_txns, net=net, running_total=running))
    return cells
