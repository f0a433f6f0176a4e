"""Reporting utilities.

Runs the analytics pipeline for one period and formats the result into
human-readable text, CSV and JSON-serializable dicts.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, IO, List, Optional

from . import analytics as an
from .config import AppConfig
from .data_loader import Facts
from .insights import Insight, generate_insights
from .periods import Period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodReport:
    period: Period
    summary: an.Summary
    comparison: List[an.ComparisonRow]
    breakdown: List[an.CategorySlice]
    monthly: List[an.MonthlyPoint]
    insights: List[Insight]


def build_report(
    period: Period,
    facts: Facts,
    config: Optional[AppConfig] = None,
    history: Optional[Facts] = None,
    merge_years: bool = True,
) -> PeriodReport:
    """Derive every analytic for ``period``.

    ``facts`` must already be narrowed to the period. ``history`` feeds the
    breakdown and monthly series; it defaults to ``facts``.
    """
    config = config or AppConfig()
    history = history or facts
    aggregates = an.aggregate(facts.transactions)
    summary = an.summarize(facts.transactions)
    comparison = an.compare_budgets(facts.budgets, aggregates.expense_by_category)
    insights = generate_insights(
        comparison,
        aggregates,
        summary,
        thresholds=config.thresholds,
        currency_symbol=config.currency_symbol,
    )
    logger.debug(
        "Report for %s: %d transactions, %d budgets, %d insights",
        period.label,
        summary.transaction_count,
        len(comparison),
        len(insights),
    )
    return PeriodReport(
        period=period,
        summary=summary,
        comparison=comparison,
        breakdown=an.category_breakdown(history.transactions),
        monthly=an.monthly_series(an.aggregate(history.transactions).by_month, merge_years=merge_years),
        insights=insights,
    )


def summary_to_dict(summary: an.Summary) -> Dict[str, Any]:
    return {
        "total_income": summary.total_income,
        "total_expenses": summary.total_expenses,
        "balance": summary.balance,
        "transaction_count": summary.transaction_count,
        "savings_rate": summary.savings_rate,
    }


def comparison_to_dicts(rows: List[an.ComparisonRow]) -> List[Dict[str, Any]]:
    return [
        {
            "category": r.category,
            "budgeted": r.budgeted,
            "actual": r.actual,
            "remaining": r.remaining,
            "overspent": r.overspent,
        }
        for r in rows
    ]


def breakdown_to_dicts(slices: List[an.CategorySlice]) -> List[Dict[str, Any]]:
    return [{"name": s.name, "value": s.value, "color": s.color} for s in slices]


def monthly_to_dicts(points: List[an.MonthlyPoint]) -> List[Dict[str, Any]]:
    return [{"month": p.label, "income": p.income, "expense": p.expense, "net": p.net} for p in points]


def report_to_dict(report: PeriodReport) -> Dict[str, Any]:
    return {
        "period": {"month": report.period.month, "year": report.period.year, "label": report.period.label},
        "summary": summary_to_dict(report.summary),
        "budget_comparison": comparison_to_dicts(report.comparison),
        "category_breakdown": breakdown_to_dicts(report.breakdown),
        "monthly": monthly_to_dicts(report.monthly),
        "insights": [i.to_dict() for i in report.insights],
    }


def _money(value: Decimal, currency: str) -> str:
    return f"{currency}{value:.2f}"


def format_text_report(report: PeriodReport, currency: str = "₹") -> str:
    lines: List[str] = []
    s = report.summary
    lines.append(f"=== Budget Insights: {report.period.label} ===")
    lines.append(f"Income:       {_money(s.total_income, currency)}")
    lines.append(f"Expenses:     {_money(s.total_expenses, currency)}")
    lines.append(f"Balance:      {_money(s.balance, currency)}")
    lines.append(f"Transactions: {s.transaction_count}")
    if s.savings_rate is not None:
        lines.append(f"Savings rate: {s.savings_rate:.1f}%")
    lines.append("")

    if report.comparison:
        lines.append("-- Budget vs Actual --")
        for r in report.comparison:
            status = f"Over {_money(r.overspent, currency)}" if r.overspent else f"Left {_money(r.remaining, currency)}"
            lines.append(
                f"{r.category[:20]:20} Budget {_money(r.budgeted, currency)}  Actual {_money(r.actual, currency)}  {status}"
            )
        lines.append("")

    lines.append("-- Spend by Category --")
    for sl in report.breakdown:
        lines.append(f"{sl.name[:20]:20} {_money(sl.value, currency)}")
    lines.append("")

    lines.append("-- Monthly Totals --")
    for p in report.monthly:
        lines.append(
            f"{p.label:8} | Inc {_money(p.income, currency)}  Exp {_money(p.expense, currency)}  Net {_money(p.net, currency)}"
        )
    lines.append("")

    lines.append("-- Insights --")
    if not report.insights:
        lines.append("Add more transactions and budgets to see insights")
    for i in report.insights:
        lines.append(f"[{i.kind.upper()}] {i.title}: {i.description}")
    return "\n".join(lines)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def save_json(summary: Dict, path: str | Path | IO[str]) -> None:
    if hasattr(path, "write"):
        json.dump(summary, path, indent=2, default=_json_default, ensure_ascii=False)
        path.write("\n")
        return
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, default=_json_default, ensure_ascii=False)


def _ensure_text_writer(target: str | Path | IO[str]):
    if hasattr(target, "write"):
        return target, None
    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = path.open("w", newline="", encoding="utf-8")
    return handle, handle


def export_report_csv(report: PeriodReport, path: str | Path | IO[str]) -> None:
    def fmt_amount(value) -> str:
        if value is None:
            return ""
        return f"{value:.2f}"

    rows: List[List[str]] = [["Section", "Item", "Metric", "Value"]]

    s = report.summary
    rows.append(["Summary", "", "Income", fmt_amount(s.total_income)])
    rows.append(["Summary", "", "Expenses", fmt_amount(s.total_expenses)])
    rows.append(["Summary", "", "Balance", fmt_amount(s.balance)])
    rows.append(["Summary", "", "Transaction Count", str(s.transaction_count)])
    rows.append(["Summary", "", "Savings Rate", fmt_amount(s.savings_rate)])

    for r in report.comparison:
        rows.append(["Budget Comparison", r.category, "Budgeted", fmt_amount(r.budgeted)])
        rows.append(["Budget Comparison", r.category, "Actual", fmt_amount(r.actual)])
        rows.append(["Budget Comparison", r.category, "Remaining", fmt_amount(r.remaining)])

    for sl in report.breakdown:
        rows.append(["Category Spend", sl.name, "Amount", fmt_amount(sl.value)])

    for p in report.monthly:
        rows.append(["Monthly Totals", p.label, "Income", fmt_amount(p.income)])
        rows.append(["Monthly Totals", p.label, "Expense", fmt_amount(p.expense)])

    for i in report.insights:
        rows.append(["Insights", i.title, i.kind, i.description])

    rows.append(["Metadata", "Period", "", report.period.label])

    writer_target, to_close = _ensure_text_writer(path)
    try:
        writer = csv.writer(writer_target, lineterminator="\n")
        writer.writerows(rows)
    finally:
        if to_close is not None:
            to_close.close()
