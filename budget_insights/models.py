"""SQLAlchemy models backing the fact store."""

from __future__ import annotations

import datetime as dt
import uuid

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def _new_id() -> str:
    return uuid.uuid4().hex


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    name = db.Column(db.String(120), unique=True, nullable=False)
    color = db.Column(db.String(9), nullable=False)
    icon = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime, default=dt.datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow, nullable=False)

    transactions = db.relationship("Transaction", back_populates="category")
    budgets = db.relationship("Budget", back_populates="category")


class Transaction(db.Model):
    __tablename__ = "transactions"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        db.CheckConstraint("type IN ('income', 'expense')", name="ck_transactions_type"),
    )

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False)
    category_id = db.Column(db.String(32), db.ForeignKey("categories.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=dt.datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow, nullable=False)

    category = db.relationship("Category", back_populates="transactions")


class Budget(db.Model):
    __tablename__ = "budgets"
    __table_args__ = (
        db.UniqueConstraint("category_id", "month", "year", name="uq_budgets_category_month_year"),
        db.CheckConstraint("amount > 0", name="ck_budgets_amount_positive"),
        db.CheckConstraint("month BETWEEN 1 AND 12", name="ck_budgets_month"),
        db.CheckConstraint("year >= 2020", name="ck_budgets_year"),
    )

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    category_id = db.Column(db.String(32), db.ForeignKey("categories.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=dt.datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow, nullable=False)

    category = db.relationship("Category", back_populates="budgets")
