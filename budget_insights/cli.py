"""Command-line interface for Budget Insights.

Usage:
  budget-insights --input transactions.csv --budgets budgets.json --month 3 --year 2025

Options allow multiple CSVs, a JSON config (thresholds, categories, currency)
and JSON/CSV export of the report.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .config import AppConfig
from .data_loader import CategoryRegistry, filter_facts, load_budgets_json, load_csv_files
from .errors import BudgetInsightsError
from .log import setup_logging
from .periods import resolve_period
from .reports import build_report, export_report_csv, format_text_report, report_to_dict, save_json

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Budget analytics and spending insights")
    p.add_argument("--input", "-i", nargs="+", required=True, help="Transaction CSV file(s) to load")
    p.add_argument("--budgets", "-b", help="JSON file with monthly budgets")
    p.add_argument("--config", "-c", help="Path to JSON config with thresholds/categories")
    p.add_argument("--month", type=int, help="Report month (1-12), defaults to the current month")
    p.add_argument("--year", type=int, help="Report year, defaults to the current year")
    p.add_argument("--separate-years", action="store_true", help="Keep the same month of different years apart")
    p.add_argument("--json", dest="json_out", help="Write report JSON to path")
    p.add_argument("--csv", dest="csv_out", help="Write report CSV to path")
    p.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        cfg = AppConfig.load(args.config)
        setup_logging(args.log_level or cfg.log_level)
        period = resolve_period(args.month, args.year)

        registry = CategoryRegistry(cfg.categories)
        txns = load_csv_files(args.input, registry)
        budgets = load_budgets_json(args.budgets, registry) if args.budgets else []
    except BudgetInsightsError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logger.debug("Loaded %d transactions and %d budgets", len(txns), len(budgets))
    report = build_report(
        period,
        filter_facts(txns, budgets, period),
        config=cfg,
        history=filter_facts(txns, budgets, period, filter_transactions=False),
        merge_years=not args.separate_years,
    )
    print(format_text_report(report, currency=cfg.currency_symbol))

    if args.json_out:
        save_json(report_to_dict(report), args.json_out)
        print(f"\nSaved JSON report to: {args.json_out}")
    if args.csv_out:
        export_report_csv(report, args.csv_out)
        print(f"\nSaved CSV report to: {args.csv_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
