import datetime as dt
from decimal import Decimal

import pytest

from budget_insights.errors import InvalidBudgetError, InvalidPeriodError, UnknownCategoryError
from budget_insights.fact_store import FactStore
from budget_insights.models import Category, Transaction, db
from budget_insights.periods import Period


def _seed(app) -> dict:
    with app.app_context():
        store = FactStore()
        store.seed_categories(
            [
                {"name": "Food", "color": "#EF4444", "icon": "Utensils"},
                {"name": "Rent", "color": "#3B82F6", "icon": "Home"},
                {"name": "Salary", "color": "#06B6D4", "icon": "TrendingUp"},
            ]
        )
        ids = {c.name: c.id for c in store.categories()}
        rows = [
            ("5000", "income", "Salary", dt.date(2025, 3, 1)),
            ("1200", "expense", "Food", dt.date(2025, 3, 5)),
            ("450", "expense", "Rent", dt.date(2025, 3, 7)),
            ("99", "expense", "Food", dt.date(2025, 2, 20)),
        ]
        for amount, kind, name, date in rows:
            db.session.add(
                Transaction(
                    amount=Decimal(amount),
                    description=f"{name} {amount}",
                    date=date,
                    type=kind,
                    category_id=ids[name],
                )
            )
        db.session.commit()
        store.upsert_budget(ids["Rent"], 3, 2025, Decimal("500"))
        store.upsert_budget(ids["Food"], 3, 2025, Decimal("1000"))
        return ids


def test_seed_categories_is_idempotent(app) -> None:
    with app.app_context():
        store = FactStore()
        specs = [{"name": "Food", "color": "#EF4444", "icon": "Utensils"}]
        assert store.seed_categories(specs) == 1
        assert store.seed_categories(specs) == 0
        assert [c.name for c in store.categories()] == ["Food"]


def test_upsert_budget_updates_existing_row(app) -> None:
    ids = _seed(app)
    with app.app_context():
        store = FactStore()
        updated = store.upsert_budget(ids["Food"], 3, 2025, Decimal("1500"))
        assert updated.amount == Decimal("1500")
        budgets = store.budgets(Period(3, 2025))
        assert [(b.category.name, b.amount) for b in budgets] == [
            ("Food", Decimal("1500")),
            ("Rent", Decimal("500")),
        ]


def test_upsert_budget_rejects_unknown_category_and_bad_period(app) -> None:
    with app.app_context():
        store = FactStore()
        with pytest.raises(UnknownCategoryError):
            store.upsert_budget("missing", 3, 2025, Decimal("10"))
        with pytest.raises(InvalidPeriodError):
            store.upsert_budget("missing", 3, 2019, Decimal("10"))


def test_facts_filter_transactions_by_period(app) -> None:
    _seed(app)
    with app.app_context():
        store = FactStore()
        scoped = store.facts(Period(3, 2025))
        assert len(scoped.transactions) == 3
        assert scoped.transactions[0].date == dt.date(2025, 3, 7)
        assert len(store.facts(Period(3, 2025), filter_transactions=False).transactions) == 4
        assert store.facts(Period(4, 2025)).budgets == []


def test_api_summary(app) -> None:
    _seed(app)
    resp = app.test_client().get("/api/summary?month=3&year=2025")
    assert resp.status_code == 200
    data = resp.get_json()
    assert Decimal(data["total_income"]) == Decimal("5000")
    assert Decimal(data["total_expenses"]) == Decimal("1650")
    assert Decimal(data["balance"]) == Decimal("3350")
    assert data["transaction_count"] == 3
    assert Decimal(data["savings_rate"]) == Decimal("67")


def test_api_budget_comparison_sorted_by_category(app) -> None:
    _seed(app)
    data = app.test_client().get("/api/budget-comparison?month=3&year=2025").get_json()
    rows = [(r["category"], Decimal(r["actual"]), Decimal(r["remaining"])) for r in data["rows"]]
    assert rows == [("Food", Decimal("1200"), Decimal("0")), ("Rent", Decimal("450"), Decimal("50"))]


def test_api_insights(app) -> None:
    _seed(app)
    data = app.test_client().get("/api/insights?month=3&year=2025").get_json()
    assert [(i["kind"], i["title"]) for i in data["insights"]] == [
        ("warning", "Over Budget: Food"),
        ("info", "Approaching Budget Limit: Rent"),
        ("info", "Top Spending Category"),
        ("success", "Great Savings Rate!"),
    ]


def test_api_charts_are_unfiltered_by_default(app) -> None:
    _seed(app)
    client = app.test_client()
    breakdown = client.get("/api/category-breakdown").get_json()["categories"]
    assert {c["name"]: Decimal(c["value"]) for c in breakdown} == {"Food": Decimal("1299"), "Rent": Decimal("450")}

    march_only = client.get("/api/category-breakdown?month=3&year=2025").get_json()["categories"]
    assert {c["name"]: Decimal(c["value"]) for c in march_only}["Food"] == Decimal("1200")

    months = client.get("/api/monthly").get_json()["months"]
    assert [m["month"] for m in months] == ["Feb", "Mar"]
    separate = client.get("/api/monthly?merge_years=0").get_json()["months"]
    assert [m["month"] for m in separate] == ["Feb 2025", "Mar 2025"]


def test_api_report_and_stats(app) -> None:
    _seed(app)
    client = app.test_client()
    report = client.get("/api/report?month=3&year=2025").get_json()
    assert report["period"]["label"] == "March 2025"
    assert len(report["budget_comparison"]) == 2
    assert [m["month"] for m in report["monthly"]] == ["Feb", "Mar"]

    stats = client.get("/api/stats").get_json()
    assert stats["transactions"] == 4
    assert stats["categories"] == 3
    assert Decimal(stats["money_saved"]) == Decimal("3251")


def test_api_rejects_invalid_period(app) -> None:
    resp = app.test_client().get("/api/insights?month=13&year=2025")
    assert resp.status_code == 400
    assert "Month must be between 1 and 12" in resp.get_json()["error"]


def test_empty_store_gives_empty_insights(app) -> None:
    data = app.test_client().get("/api/insights?month=1&year=2025").get_json()
    assert data["insights"] == []


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
def test_upsert_budget_rejects_non_positive_amount_and_keeps_session_usable(app, amount) -> None:
    ids = _seed(app)
    with app.app_context():
        store = FactStore()
        with pytest.raises(InvalidBudgetError):
            store.upsert_budget(ids["Food"], 3, 2025, amount)
        assert [c.name for c in store.categories()] == ["Food", "Rent", "Salary"]
        assert [b.amount for b in store.budgets(Period(3, 2025))] == [Decimal("1000"), Decimal("500")]
