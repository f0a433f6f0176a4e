"""Flask JSON API exposing the budget analytics for a period."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from flask import Flask, current_app, jsonify, request

from . import analytics as an
from .config import PROJECT_ROOT, AppConfig
from .errors import BudgetInsightsError
from .fact_store import FactStore
from .insights import generate_insights
from .log import setup_logging
from .models import db
from .periods import resolve_period
from .reports import (
    breakdown_to_dicts,
    build_report,
    comparison_to_dicts,
    monthly_to_dicts,
    report_to_dict,
    summary_to_dict,
)

logger = logging.getLogger(__name__)

_FALSY = {"0", "false", "no", "off"}


def _config() -> AppConfig:
    return current_app.config["BUDGET_INSIGHTS"]


def _period_from_args():
    return resolve_period(request.args.get("month"), request.args.get("year"))


def _period_payload(period) -> dict:
    return {"month": period.month, "year": period.year, "label": period.label}


def create_app(
    config_path: Optional[str] = None,
    database_uri: Optional[str] = None,
    seed_categories: bool = True,
) -> Flask:
    cfg = AppConfig.load(_resolve_config_path(config_path))
    if database_uri:
        cfg.database_uri = database_uri
    setup_logging(cfg.log_level)

    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = cfg.database_uri
    app.config["BUDGET_INSIGHTS"] = cfg

    db.init_app(app)
    with app.app_context():
        db.create_all()
        if seed_categories:
            FactStore().seed_categories(cfg.categories)

    @app.errorhandler(BudgetInsightsError)
    def handle_domain_error(exc: BudgetInsightsError):
        logger.info("Rejected request %s: %s", request.path, exc)
        return jsonify({"error": str(exc)}), 400

    @app.route("/api/summary")
    def api_summary():
        period = _period_from_args()
        facts = FactStore().facts(period)
        return jsonify({"period": _period_payload(period), **summary_to_dict(an.summarize(facts.transactions))})

    @app.route("/api/budget-comparison")
    def api_budget_comparison():
        period = _period_from_args()
        facts = FactStore().facts(period)
        aggregates = an.aggregate(facts.transactions)
        rows = an.compare_budgets(facts.budgets, aggregates.expense_by_category)
        return jsonify({"period": _period_payload(period), "rows": comparison_to_dicts(rows)})

    @app.route("/api/insights")
    def api_insights():
        cfg = _config()
        period = _period_from_args()
        facts = FactStore().facts(period)
        aggregates = an.aggregate(facts.transactions)
        rows = an.compare_budgets(facts.budgets, aggregates.expense_by_category)
        insights = generate_insights(
            rows,
            aggregates,
            an.summarize(facts.transactions),
            thresholds=cfg.thresholds,
            currency_symbol=cfg.currency_symbol,
        )
        return jsonify({"period": _period_payload(period), "insights": [i.to_dict() for i in insights]})

    @app.route("/api/category-breakdown")
    def api_category_breakdown():
        store = FactStore()
        if request.args.get("month") or request.args.get("year"):
            txns = store.transactions(_period_from_args())
        else:
            txns = store.transactions()
        return jsonify({"categories": breakdown_to_dicts(an.category_breakdown(txns))})

    @app.route("/api/monthly")
    def api_monthly():
        merge_years = request.args.get("merge_years", "1").lower() not in _FALSY
        txns = FactStore().transactions()
        points = an.monthly_series(an.aggregate(txns).by_month, merge_years=merge_years)
        return jsonify({"months": monthly_to_dicts(points)})

    @app.route("/api/report")
    def api_report():
        period = _period_from_args()
        store = FactStore()
        report = build_report(
            period,
            store.facts(period),
            config=_config(),
            history=store.facts(period, filter_transactions=False),
        )
        return jsonify(report_to_dict(report))

    @app.route("/api/stats")
    def api_stats():
        return jsonify(FactStore().stats())

    return app


def _resolve_config_path(config_path: Optional[str]) -> Optional[Path]:
    if not config_path:
        return None
    path = Path(config_path)
    if path.is_absolute():
        return path
    return PROJECT_ROOT / path


if __name__ == "__main__":
    create_app().run(debug=True)
