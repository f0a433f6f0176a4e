"""Database-backed supplier of transactions and budgets for a period."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from . import data_loader as dl
from .errors import InvalidBudgetError, UnknownCategoryError
from .models import Budget, Category, Transaction, db
from .periods import Period

logger = logging.getLogger(__name__)


def _to_category(row: Category) -> dl.Category:
    return dl.Category(id=row.id, name=row.name, color=row.color, icon=row.icon)


def _to_transaction(row: Transaction) -> dl.Transaction:
    return dl.Transaction(
        id=row.id,
        amount=Decimal(row.amount),
        description=row.description,
        date=row.date,
        kind=row.type,
        category=_to_category(row.category),
    )


def _to_budget(row: Budget) -> dl.Budget:
    return dl.Budget(
        id=row.id,
        amount=Decimal(row.amount),
        month=row.month,
        year=row.year,
        category=_to_category(row.category),
    )


class FactStore:
    """Reads facts through a SQLAlchemy session (the app's by default)."""

    def __init__(self, session: Optional[Session] = None) -> None:
        self.session = session or db.session

    def transactions(self, period: Optional[Period] = None) -> List[dl.Transaction]:
        stmt = select(Transaction).options(joinedload(Transaction.category)).order_by(
            Transaction.date.desc(), Transaction.id
        )
        if period is not None:
            stmt = stmt.where(Transaction.date.between(period.start, period.end))
        return [_to_transaction(r) for r in self.session.scalars(stmt).all()]

    def budgets(self, period: Period) -> List[dl.Budget]:
        stmt = (
            select(Budget)
            .join(Budget.category)
            .options(joinedload(Budget.category))
            .where(Budget.month == period.month, Budget.year == period.year)
            .order_by(Category.name.asc())
        )
        return [_to_budget(r) for r in self.session.scalars(stmt).all()]

    def facts(self, period: Period, filter_transactions: bool = True) -> dl.Facts:
        """Budgets for ``period`` plus transactions for it (or all of them)."""
        return dl.Facts(
            transactions=self.transactions(period if filter_transactions else None),
            budgets=self.budgets(period),
        )

    def categories(self) -> List[dl.Category]:
        stmt = select(Category).order_by(Category.name.asc())
        return [_to_category(r) for r in self.session.scalars(stmt).all()]

    def seed_categories(self, categories: Iterable[Dict[str, str]]) -> int:
        """Insert categories whose name is not present yet; returns how many were added."""
        existing = set(self.session.scalars(select(Category.name)).all())
        added = 0
        for entry in categories:
            if entry["name"] in existing:
                continue
            self.session.add(Category(name=entry["name"], color=entry["color"], icon=entry["icon"]))
            existing.add(entry["name"])
            added += 1
        self.session.commit()
        if added:
            logger.info("Seeded %d categories", added)
        return added

    def upsert_budget(self, category_id: str, month: int, year: int, amount: Decimal) -> dl.Budget:
        """Create the budget for (category, month, year) or update its amount."""
        Period(month=month, year=year)
        if amount <= 0:
            raise InvalidBudgetError(f"Budget amount must be positive, got {amount}")
        category = self.session.get(Category, category_id)
        if category is None:
            raise UnknownCategoryError(f"Category not found: {category_id}")

        existing = self.session.scalar(
            select(Budget).where(
                Budget.category_id == category_id,
                Budget.month == month,
                Budget.year == year,
            )
        )
        if existing:
            existing.amount = amount
            budget = existing
        else:
            budget = Budget(category_id=category_id, month=month, year=year, amount=amount)
            self.session.add(budget)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        logger.info(
            "%s budget %s/%s for %s: %s",
            "Updated" if existing else "Created",
            month,
            year,
            category.name,
            amount,
        )
        self.session.refresh(budget)
        return _to_budget(budget)

    def stats(self) -> Dict[str, object]:
        """Raw totals across every stored fact."""
        transaction_count = self.session.scalar(select(func.count(Transaction.id))) or 0
        category_count = self.session.scalar(select(func.count(Category.id))) or 0
        totals = dict(
            self.session.execute(
                select(Transaction.type, func.coalesce(func.sum(Transaction.amount), 0)).group_by(Transaction.type)
            ).all()
        )
        income = Decimal(str(totals.get(dl.INCOME, 0)))
        expense = Decimal(str(totals.get(dl.EXPENSE, 0)))
        return {
            "transactions": int(transaction_count),
            "categories": int(category_count),
            "money_saved": max(Decimal("0"), income - expense),
        }
