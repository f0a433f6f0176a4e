"""Configuration utilities for Budget Insights.

Provides the default category palette, insight thresholds and helpers to load
user-defined configuration from a JSON file, with environment overrides for
the database location and log level.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from .errors import DataLoadError

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent

DEFAULT_DATABASE_URI = f"sqlite:///{PROJECT_ROOT / 'budget_insights.db'}"
DEFAULT_CURRENCY_SYMBOL = "₹"
FALLBACK_CATEGORY = "Miscellaneous"

# Seeded categories: name, display color, icon tag.
DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"name": "Food & Dining", "color": "#EF4444", "icon": "Utensils"},
    {"name": "Transportation", "color": "#3B82F6", "icon": "Car"},
    {"name": "Shopping", "color": "#10B981", "icon": "ShoppingBag"},
    {"name": "Entertainment", "color": "#F59E0B", "icon": "Film"},
    {"name": "Bills & Utilities", "color": "#8B5CF6", "icon": "Receipt"},
    {"name": "Healthcare", "color": "#EC4899", "icon": "Heart"},
    {"name": "Income", "color": "#06B6D4", "icon": "TrendingUp"},
    {"name": "Education", "color": "#F97316", "icon": "BookOpen"},
    {"name": "Travel", "color": "#84CC16", "icon": "Plane"},
    {"name": "Fitness", "color": "#22D3EE", "icon": "Dumbbell"},
    {"name": "Investment", "color": "#A855F7", "icon": "TrendingUp"},
    {"name": "Insurance", "color": "#EF4444", "icon": "Shield"},
    {"name": "Gifts", "color": "#F59E0B", "icon": "Gift"},
    {"name": "Personal Care", "color": "#EC4899", "icon": "Sparkles"},
    {"name": "Home & Garden", "color": "#10B981", "icon": "Home"},
    {"name": "Technology", "color": "#6366F1", "icon": "Smartphone"},
    {"name": "Clothing", "color": "#8B5CF6", "icon": "Shirt"},
    {"name": "Pets", "color": "#F59E0B", "icon": "Heart"},
    {"name": "Charity", "color": "#10B981", "icon": "Heart"},
    {"name": "Business", "color": "#3B82F6", "icon": "Briefcase"},
    {"name": "Taxes", "color": "#EF4444", "icon": "Calculator"},
    {"name": "Subscriptions", "color": "#8B5CF6", "icon": "CreditCard"},
    {"name": "Savings", "color": "#10B981", "icon": "PiggyBank"},
    {"name": "Emergency Fund", "color": "#EF4444", "icon": "AlertTriangle"},
    {"name": "Miscellaneous", "color": "#6B7280", "icon": "MoreHorizontal"},
]


@dataclass(frozen=True)
class InsightThresholds:
    near_limit_percent: Decimal = Decimal("80")
    high_savings_percent: Decimal = Decimal("20")
    low_savings_percent: Decimal = Decimal("5")


@dataclass
class AppConfig:
    categories: List[Dict[str, str]] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    thresholds: InsightThresholds = field(default_factory=InsightThresholds)
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    database_uri: str = DEFAULT_DATABASE_URI
    log_level: str = "INFO"

    def category_colors(self) -> Dict[str, str]:
        return {c["name"]: c.get("color", "") for c in self.categories}

    @staticmethod
    def load(config_path: Optional[str | Path] = None) -> "AppConfig":
        """Load config from JSON if provided, else use defaults.

        JSON format:
        {
          "currency_symbol": "₹",
          "thresholds": {"near_limit_percent": 80, "high_savings_percent": 20,
                         "low_savings_percent": 5},
          "categories": [{"name": "Food & Dining", "color": "#EF4444", "icon": "Utensils"}],
          "database_uri": "sqlite:///budget_insights.db",
          "log_level": "INFO"
        }

        ``BUDGET_INSIGHTS_DATABASE_URI`` and ``BUDGET_INSIGHTS_LOG_LEVEL``
        override the file.
        """

        cfg = AppConfig()

        if config_path:
            p = Path(config_path)
            if p.exists():
                try:
                    with p.open("r", encoding="utf-8") as f:
                        raw = json.load(f)
                except json.JSONDecodeError as exc:
                    raise DataLoadError(f"{p.name}: invalid JSON config ({exc})") from exc
                if isinstance(raw, dict):
                    _apply_raw(cfg, raw)

        cfg.database_uri = os.getenv("BUDGET_INSIGHTS_DATABASE_URI", cfg.database_uri)
        cfg.log_level = os.getenv("BUDGET_INSIGHTS_LOG_LEVEL", cfg.log_level)
        return cfg


def _apply_raw(cfg: AppConfig, raw: dict) -> None:
    if isinstance(raw.get("categories"), list):
        cfg.categories = [
            {
                "name": str(c["name"]),
                "color": str(c.get("color") or "#6B7280"),
                "icon": str(c.get("icon") or "MoreHorizontal"),
            }
            for c in raw["categories"]
            if isinstance(c, dict) and c.get("name")
        ]
    if isinstance(raw.get("thresholds"), dict):
        t = raw["thresholds"]
        defaults = InsightThresholds()
        cfg.thresholds = InsightThresholds(
            near_limit_percent=Decimal(str(t.get("near_limit_percent", defaults.near_limit_percent))),
            high_savings_percent=Decimal(str(t.get("high_savings_percent", defaults.high_savings_percent))),
            low_savings_percent=Decimal(str(t.get("low_savings_percent", defaults.low_savings_percent))),
        )
    if raw.get("currency_symbol") is not None:
        cfg.currency_symbol = str(raw["currency_symbol"])
    if raw.get("database_uri"):
        cfg.database_uri = str(raw["database_uri"])
    if raw.get("log_level"):
        cfg.log_level = str(raw["log_level"])
