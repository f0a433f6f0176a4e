"""Month/year reporting periods."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidPeriodError

MIN_YEAR = 2020


@dataclass(frozen=True)
class Period:
    month: int
    year: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidPeriodError(f"Month must be between 1 and 12, got {self.month}")
        if self.year < MIN_YEAR:
            raise InvalidPeriodError(f"Year must be {MIN_YEAR} or later, got {self.year}")

    @property
    def start(self) -> dt.date:
        return dt.date(self.year, self.month, 1)

    @property
    def end(self) -> dt.date:
        if self.month == 12:
            return dt.date(self.year + 1, 1, 1) - dt.date.resolution
        return dt.date(self.year, self.month + 1, 1) - dt.date.resolution

    @property
    def label(self) -> str:
        return self.start.strftime("%B %Y")

    def contains(self, value: dt.date) -> bool:
        return self.start <= value <= self.end

    @classmethod
    def current(cls, today: Optional[dt.date] = None) -> "Period":
        today = today or dt.date.today()
        return cls(month=today.month, year=today.year)


def resolve_period(
    month: Optional[str | int],
    year: Optional[str | int],
    *,
    today: Optional[dt.date] = None,
) -> Period:
    """Build a Period from loosely typed input, defaulting to the current month.

    Both values must be given together; passing only one is an error.
    """
    if month in (None, "") and year in (None, ""):
        return Period.current(today)
    if month in (None, "") or year in (None, ""):
        raise InvalidPeriodError("Month and year must be given together")
    try:
        return Period(month=int(month), year=int(year))
    except (TypeError, ValueError) as exc:
        if isinstance(exc, InvalidPeriodError):
            raise
        raise InvalidPeriodError(f"Invalid period: month={month!r} year={year!r}") from exc
