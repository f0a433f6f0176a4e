"""Exception types raised at the edges of the analytics engine."""

from __future__ import annotations


class BudgetInsightsError(Exception):
    """Base class for errors the web and CLI layers report to the user."""


class InvalidPeriodError(BudgetInsightsError, ValueError):
    pass


class DataLoadError(BudgetInsightsError, ValueError):
    pass


class UnknownCategoryError(BudgetInsightsError, LookupError):
    pass


class InvalidBudgetError(BudgetInsightsError, ValueError):
    pass
