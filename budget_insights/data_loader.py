"""Domain types and file-based data loading.

Transactions are read from one or more CSV files and normalized into the
common schema used by the analytics engine:
    date (datetime.date), description (str), amount (Decimal, positive),
    kind ("income" | "expense"), category (Category)

CSV columns are auto-detected case-insensitively among common variants.
Budgets are read from a JSON list of {"category", "amount", "month", "year"}.
"""

from __future__ import annotations

import csv
import datetime as dt
import json
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import FALLBACK_CATEGORY
from .errors import DataLoadError, InvalidPeriodError
from .periods import Period

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_KINDS = (INCOME, EXPENSE)

_DEFAULT_COLOR = "#6B7280"
_DEFAULT_ICON = "MoreHorizontal"


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str = _DEFAULT_COLOR
    icon: str = _DEFAULT_ICON


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: Decimal
    description: str
    date: dt.date
    kind: str
    category: Category


@dataclass(frozen=True)
class Budget:
    id: str
    amount: Decimal
    month: int
    year: int
    category: Category


@dataclass(frozen=True)
class Facts:
    transactions: List[Transaction]
    budgets: List[Budget]


def filter_facts(
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
    period: Period,
    filter_transactions: bool = True,
) -> Facts:
    """Narrow loaded facts to a period.

    Budgets are always narrowed to the period and ordered by category name;
    transactions only when ``filter_transactions`` is set. Transactions come
    back newest first.
    """
    txns = [t for t in transactions if not filter_transactions or period.contains(t.date)]
    txns.sort(key=lambda t: t.date, reverse=True)
    period_budgets = [b for b in budgets if b.month == period.month and b.year == period.year]
    period_budgets.sort(key=lambda b: b.category.name)
    return Facts(transactions=txns, budgets=period_budgets)


def category_id_for(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return f"cat-{slug or 'unnamed'}"


class CategoryRegistry:
    """Resolves category names from files into shared Category instances."""

    def __init__(self, palette: Optional[Sequence[Dict[str, str]]] = None) -> None:
        self._palette = {c["name"]: c for c in (palette or [])}
        self._by_name: Dict[str, Category] = {}

    def get(self, name: Optional[str]) -> Category:
        name = (name or "").strip() or FALLBACK_CATEGORY
        category = self._by_name.get(name)
        if category is None:
            entry = self._palette.get(name, {})
            category = Category(
                id=category_id_for(name),
                name=name,
                color=entry.get("color", _DEFAULT_COLOR),
                icon=entry.get("icon", _DEFAULT_ICON),
            )
            self._by_name[name] = category
        return category


def _parse_date(value: str) -> dt.date:
    value = value.strip()
    # Try multiple common date formats
    for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            return dt.datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError as exc:
        raise DataLoadError(f"Unrecognized date format: {value}") from exc


def _to_decimal(value: str) -> Decimal:
    v = str(value).replace(",", "").strip()
    # Some exports wrap negatives in parentheses, e.g., (12.34)
    if v.startswith("(") and v.endswith(")"):
        v = "-" + v[1:-1]
    try:
        amount = Decimal(v)
    except InvalidOperation as exc:
        raise DataLoadError(f"Invalid amount: {value}") from exc
    if not amount.is_finite():
        raise DataLoadError(f"Invalid amount: {value}")
    return amount


def _parse_kind(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    kind = value.strip().lower()
    if kind in ("credit", "deposit"):
        return INCOME
    if kind in ("debit", "withdrawal"):
        return EXPENSE
    if kind not in TRANSACTION_KINDS:
        raise DataLoadError(f"Unknown transaction type: {value}")
    return kind


def _find_column(row_keys: Iterable[str], candidates: Iterable[str]) -> Optional[str]:
    low = {k.lower(): k for k in row_keys}
    for cand in candidates:
        if cand.lower() in low:
            return low[cand.lower()]
    return None


_DATE_COLS = ("date", "posted date", "posting date", "transaction date")
_DESC_COLS = ("description", "details", "memo", "name")
_AMT_COLS = ("amount", "amt", "value")
_DEBIT_COLS = ("debit", "withdrawal")
_CREDIT_COLS = ("credit", "deposit")
_TYPE_COLS = ("type", "kind", "transaction type")
_CATEGORY_COLS = ("category", "category name")
_ID_COLS = ("id", "transaction id")


def load_csv_file(path: str | Path, registry: Optional[CategoryRegistry] = None) -> List[Transaction]:
    p = Path(path)
    registry = registry or CategoryRegistry()
    try:
        f = p.open("r", encoding="utf-8-sig", newline="")
    except OSError as exc:
        raise DataLoadError(f"{p}: cannot open ({exc.strerror})") from exc
    with f:
        try:
            return _read_transactions(p, f, registry)
        except UnicodeDecodeError as exc:
            raise DataLoadError(f"{p.name}: not valid UTF-8 text ({exc.reason})") from exc


def _read_transactions(p: Path, f, registry: CategoryRegistry) -> List[Transaction]:
    reader = csv.DictReader(f)
    fieldnames = reader.fieldnames or []
    date_col = _find_column(fieldnames, _DATE_COLS)
    desc_col = _find_column(fieldnames, _DESC_COLS)
    amt_col = _find_column(fieldnames, _AMT_COLS)
    debit_col = _find_column(fieldnames, _DEBIT_COLS)
    credit_col = _find_column(fieldnames, _CREDIT_COLS)
    type_col = _find_column(fieldnames, _TYPE_COLS)
    category_col = _find_column(fieldnames, _CATEGORY_COLS)
    id_col = _find_column(fieldnames, _ID_COLS)

    if not date_col or not desc_col or (not amt_col and not (debit_col or credit_col)):
        raise DataLoadError(
            f"{p.name}: Missing required columns. Need date+description and amount OR debit/credit."
        )

    txns: List[Transaction] = []
    for line_no, row in enumerate(reader, start=2):
        try:
            date = _parse_date(row[date_col] or "")
            if amt_col:
                signed = _to_decimal(row[amt_col] or "0")
            else:
                debit = row.get(debit_col) if debit_col else None
                credit = row.get(credit_col) if credit_col else None
                d = _to_decimal(debit) if debit not in (None, "") else Decimal("0")
                c = _to_decimal(credit) if credit not in (None, "") else Decimal("0")
                signed = c - d  # credit positive, debit negative
            kind = _parse_kind(row.get(type_col) if type_col else None)
        except DataLoadError as exc:
            raise DataLoadError(f"{p.name}:{line_no}: {exc}") from exc
        if kind is None:
            kind = INCOME if signed > 0 else EXPENSE
        txn_id = (row.get(id_col) or "").strip() if id_col else ""
        txns.append(
            Transaction(
                id=txn_id or f"{p.stem}-{line_no}",
                amount=abs(signed),
                description=(row[desc_col] or "").strip(),
                date=date,
                kind=kind,
                category=registry.get(row.get(category_col) if category_col else None),
            )
        )
    return txns


def load_csv_files(paths: Iterable[str | Path], registry: Optional[CategoryRegistry] = None) -> List[Transaction]:
    registry = registry or CategoryRegistry()
    all_txns: List[Transaction] = []
    for p in paths:
        all_txns.extend(load_csv_file(p, registry))
    # Sort by date ascending
    all_txns.sort(key=lambda t: (t.date, t.description, t.amount))
    return all_txns


def load_budgets_json(path: str | Path, registry: Optional[CategoryRegistry] = None) -> List[Budget]:
    """Load budgets, keeping the last entry per (category, month, year)."""
    p = Path(path)
    registry = registry or CategoryRegistry()
    try:
        with p.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise DataLoadError(f"{p}: cannot read budgets ({exc})") from exc
    if isinstance(raw, dict):
        raw = raw.get("budgets", [])
    if not isinstance(raw, list):
        raise DataLoadError(f"{p.name}: expected a list of budgets")

    budgets: Dict[tuple, Budget] = {}
    for idx, item in enumerate(raw):
        if not isinstance(item, dict) or not {"category", "amount", "month", "year"} <= item.keys():
            raise DataLoadError(f"{p.name}: budget #{idx} needs category, amount, month and year")
        category = registry.get(str(item["category"]))
        try:
            month, year = int(item["month"]), int(item["year"])
        except (TypeError, ValueError) as exc:
            raise DataLoadError(f"{p.name}: budget #{idx} has an invalid month/year") from exc
        try:
            Period(month=month, year=year)
        except InvalidPeriodError as exc:
            raise DataLoadError(f"{p.name}: budget #{idx}: {exc}") from exc
        amount = _to_decimal(str(item["amount"]))
        if amount <= 0:
            raise DataLoadError(f"{p.name}: budget #{idx} amount must be positive, got {amount}")
        key = (category.id, month, year)
        budgets[key] = Budget(
            id=str(item.get("id") or f"budget-{category.id}-{year:04d}-{month:02d}"),
            amount=amount,
            month=month,
            year=year,
            category=category,
        )
    return list(budgets.values())
