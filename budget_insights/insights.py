"""Insight rules over budget comparisons and period totals.

Rules run in a fixed order and the resulting list is the display order:

1. over budget, one warning per category spending more than its budget
2. approaching limit, one info per remaining category above the near-limit
   percentage
3. top spending category, a single info
4. savings rate, at most one success or warning, skipped without income
"""

from __future__ import annotations

import enum
import logging
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .analytics import Aggregates, ComparisonRow, Summary
from .config import DEFAULT_CURRENCY_SYMBOL, InsightThresholds

logger = logging.getLogger(__name__)

WARNING = "warning"
INFO = "info"
SUCCESS = "success"

RULE_OVER_BUDGET = "over_budget"
RULE_APPROACHING_LIMIT = "approaching_limit"
RULE_TOP_CATEGORY = "top_category"
RULE_SAVINGS_RATE = "savings_rate"


class BudgetStatus(enum.Enum):
    OK = "ok"
    NEAR = "near"
    OVER = "over"


@dataclass(frozen=True)
class Insight:
    kind: str
    title: str
    description: str
    rule: str
    category: Optional[str] = None
    value: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _fmt(value: Decimal, places: str) -> str:
    return str(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def classify(row: ComparisonRow, near_limit_percent: Decimal) -> BudgetStatus:
    """Place a row in exactly one budget state.

    A non-positive budget has no usable percentage: any spend counts as over.
    """
    if row.budgeted <= 0:
        return BudgetStatus.OVER if row.actual > 0 else BudgetStatus.OK
    if row.actual > row.budgeted:
        return BudgetStatus.OVER
    if row.actual / row.budgeted * 100 > near_limit_percent:
        return BudgetStatus.NEAR
    return BudgetStatus.OK


def top_category(expense_by_category: Dict[str, Decimal]) -> Optional[Tuple[str, Decimal]]:
    """Largest expense total; equal totals resolve to the first name alphabetically."""
    if not expense_by_category:
        return None
    return min(expense_by_category.items(), key=lambda kv: (-kv[1], kv[0]))


def _over_budget(row: ComparisonRow, currency: str) -> Insight:
    pct = row.percent_used
    description = f"You've spent {currency}{_fmt(row.actual, '0.01')} out of {currency}{_fmt(row.budgeted, '0.01')}"
    if pct is not None:
        description += f" ({_fmt(pct, '1')}%)"
    return Insight(
        kind=WARNING,
        title=f"Over Budget: {row.category}",
        description=description,
        rule=RULE_OVER_BUDGET,
        category=row.category,
        value=pct,
    )


def _approaching_limit(row: ComparisonRow) -> Insight:
    pct = row.percent_used
    return Insight(
        kind=INFO,
        title=f"Approaching Budget Limit: {row.category}",
        description=f"You've spent {_fmt(pct, '1')}% of your budget for {row.category}",
        rule=RULE_APPROACHING_LIMIT,
        category=row.category,
        value=pct,
    )


def _savings(rate: Decimal, thresholds: InsightThresholds) -> Optional[Insight]:
    if rate > thresholds.high_savings_percent:
        return Insight(
            kind=SUCCESS,
            title="Great Savings Rate!",
            description=f"You're saving {_fmt(rate, '0.1')}% of your income this month",
            rule=RULE_SAVINGS_RATE,
            value=rate,
        )
    if rate < thresholds.low_savings_percent:
        return Insight(
            kind=WARNING,
            title="Low Savings Rate",
            description=f"Your savings rate is just {_fmt(rate, '0.1')}%. Consider reviewing expenses.",
            rule=RULE_SAVINGS_RATE,
            value=rate,
        )
    return None


def generate_insights(
    rows: Sequence[ComparisonRow],
    aggregates: Aggregates,
    summary: Summary,
    thresholds: Optional[InsightThresholds] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> List[Insight]:
    thresholds = thresholds or InsightThresholds()
    statuses = []
    for row in rows:
        if row.budgeted <= 0:
            logger.warning("Budget for %s is %s; skipping percentage", row.category, row.budgeted)
        statuses.append((row, classify(row, thresholds.near_limit_percent)))

    insights: List[Insight] = [_over_budget(row, currency_symbol) for row, s in statuses if s is BudgetStatus.OVER]
    insights.extend(_approaching_limit(row) for row, s in statuses if s is BudgetStatus.NEAR)

    top = top_category(aggregates.expense_by_category)
    if top:
        name, total = top
        insights.append(
            Insight(
                kind=INFO,
                title="Top Spending Category",
                description=f"{name} is your highest expense this month ({currency_symbol}{_fmt(total, '0.01')})",
                rule=RULE_TOP_CATEGORY,
                category=name,
                value=total,
            )
        )

    rate = summary.savings_rate
    if rate is not None:
        savings = _savings(rate, thresholds)
        if savings:
            insights.append(savings)

    logger.debug("Generated %d insights from %d budget rows", len(insights), len(rows))
    return insights
