"""Aggregation, budget comparison and summary calculations.

Every function here is a pure fold over its inputs; nothing is cached and
nothing is kept between calls.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .data_loader import EXPENSE, INCOME, Budget, Transaction

ZERO = Decimal("0")
HUNDRED = Decimal("100")

MonthKey = Tuple[int, int]  # (year, month)


@dataclass(frozen=True)
class Aggregates:
    expense_by_category: Dict[str, Decimal] = field(default_factory=dict)
    income_by_category: Dict[str, Decimal] = field(default_factory=dict)
    expense_by_category_id: Dict[str, Decimal] = field(default_factory=dict)
    by_month: Dict[MonthKey, Dict[str, Decimal]] = field(default_factory=dict)


@dataclass(frozen=True)
class ComparisonRow:
    category: str
    budgeted: Decimal
    actual: Decimal
    remaining: Decimal

    @property
    def overspent(self) -> Decimal:
        return max(ZERO, self.actual - self.budgeted)

    @property
    def percent_used(self) -> Optional[Decimal]:
        if self.budgeted <= 0:
            return None
        return self.actual / self.budgeted * HUNDRED


@dataclass(frozen=True)
class Summary:
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    transaction_count: int

    @property
    def savings_rate(self) -> Optional[Decimal]:
        if self.total_income <= 0:
            return None
        return (self.total_income - self.total_expenses) / self.total_income * HUNDRED


@dataclass(frozen=True)
class CategorySlice:
    name: str
    value: Decimal
    color: str


@dataclass(frozen=True)
class MonthlyPoint:
    label: str
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


def month_key(d) -> MonthKey:
    return (d.year, d.month)


def aggregate(txns: Iterable[Transaction]) -> Aggregates:
    """Sum transactions by category name, category id and calendar month.

    Categories that share a display name are merged under that name.
    """
    expense: Dict[str, Decimal] = defaultdict(Decimal)
    income: Dict[str, Decimal] = defaultdict(Decimal)
    expense_ids: Dict[str, Decimal] = defaultdict(Decimal)
    months: Dict[MonthKey, Dict[str, Decimal]] = {}
    for t in txns:
        bucket = months.setdefault(month_key(t.date), {"income": ZERO, "expense": ZERO})
        if t.kind == EXPENSE:
            expense[t.category.name] += t.amount
            expense_ids[t.category.id] += t.amount
            bucket["expense"] += t.amount
        elif t.kind == INCOME:
            income[t.category.name] += t.amount
            bucket["income"] += t.amount
    return Aggregates(
        expense_by_category=dict(expense),
        income_by_category=dict(income),
        expense_by_category_id=dict(expense_ids),
        by_month=months,
    )


def monthly_series(
    by_month: Mapping[MonthKey, Mapping[str, Decimal]],
    merge_years: bool = True,
) -> List[MonthlyPoint]:
    """Render month-keyed sums in chronological order.

    With ``merge_years`` the label is the short month name only and the same
    month of different years is summed into one point.
    """
    if not merge_years:
        return [
            MonthlyPoint(
                label=f"{calendar.month_abbr[month]} {year}",
                income=vals["income"],
                expense=vals["expense"],
            )
            for (year, month), vals in sorted(by_month.items())
        ]

    merged: Dict[int, Dict[str, Decimal]] = {}
    for (_, month), vals in by_month.items():
        bucket = merged.setdefault(month, {"income": ZERO, "expense": ZERO})
        bucket["income"] += vals["income"]
        bucket["expense"] += vals["expense"]
    return [
        MonthlyPoint(label=calendar.month_abbr[month], income=vals["income"], expense=vals["expense"])
        for month, vals in sorted(merged.items())
    ]


def category_breakdown(txns: Iterable[Transaction]) -> List[CategorySlice]:
    """Expense totals per category name, in first-seen order."""
    totals: Dict[str, Decimal] = {}
    colors: Dict[str, str] = {}
    for t in txns:
        if t.kind != EXPENSE:
            continue
        name = t.category.name
        if name not in totals:
            totals[name] = ZERO
            colors[name] = t.category.color
        totals[name] += t.amount
    return [CategorySlice(name=name, value=value, color=colors[name]) for name, value in totals.items()]


def compare_budgets(
    budgets: Sequence[Budget],
    expense_by_category: Mapping[str, Decimal],
    match_on: str = "name",
) -> List[ComparisonRow]:
    """One row per budget, in budget order.

    ``match_on="id"`` expects ``expense_by_category`` keyed by category id
    (``Aggregates.expense_by_category_id``).
    """
    if match_on not in ("name", "id"):
        raise ValueError(f"match_on must be 'name' or 'id', got {match_on!r}")
    rows: List[ComparisonRow] = []
    for b in budgets:
        key = b.category.name if match_on == "name" else b.category.id
        actual = expense_by_category.get(key, ZERO)
        rows.append(
            ComparisonRow(
                category=b.category.name,
                budgeted=b.amount,
                actual=actual,
                remaining=max(ZERO, b.amount - actual),
            )
        )
    return rows


def summarize(txns: Iterable[Transaction]) -> Summary:
    income = ZERO
    expense = ZERO
    count = 0
    for t in txns:
        if t.kind == INCOME:
            income += t.amount
        elif t.kind == EXPENSE:
            expense += t.amount
        count += 1
    return Summary(
        total_income=income,
        total_expenses=expense,
        balance=income - expense,
        transaction_count=count,
    )
