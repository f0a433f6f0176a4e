import datetime as dt
from decimal import Decimal

import pytest

from budget_insights.data_loader import Budget, Category, Transaction

FOOD = Category(id="c-food", name="Food", color="#EF4444", icon="Utensils")
RENT = Category(id="c-rent", name="Rent", color="#3B82F6", icon="Home")
SALARY = Category(id="c-salary", name="Salary", color="#06B6D4", icon="TrendingUp")

_counter = {"n": 0}


def txn(amount, kind="expense", category=FOOD, date=dt.date(2025, 3, 10), description="") -> Transaction:
    _counter["n"] += 1
    return Transaction(
        id=f"t{_counter['n']}",
        amount=Decimal(str(amount)),
        description=description or f"{kind} {amount}",
        date=date,
        kind=kind,
        category=category,
    )


def budget(amount, category=FOOD, month=3, year=2025) -> Budget:
    return Budget(
        id=f"b-{category.id}-{year}-{month}",
        amount=Decimal(str(amount)),
        month=month,
        year=year,
        category=category,
    )


@pytest.fixture
def app():
    from budget_insights.webapp import create_app

    return create_app(database_uri="sqlite:///:memory:", seed_categories=False)
