import datetime as dt

import pytest

from budget_insights.errors import InvalidPeriodError
from budget_insights.periods import Period, resolve_period


def test_period_bounds_cover_the_whole_month() -> None:
    feb = Period(month=2, year=2024)
    assert feb.start == dt.date(2024, 2, 1)
    assert feb.end == dt.date(2024, 2, 29)
    assert Period(month=12, year=2025).end == dt.date(2025, 12, 31)
    assert feb.contains(dt.date(2024, 2, 29))
    assert not feb.contains(dt.date(2024, 3, 1))
    assert feb.label == "February 2024"


@pytest.mark.parametrize("month,year", [(0, 2025), (13, 2025), (5, 2019)])
def test_invalid_period_is_rejected(month: int, year: int) -> None:
    with pytest.raises(InvalidPeriodError):
        Period(month=month, year=year)


def test_resolve_period_defaults_to_current_month() -> None:
    assert resolve_period(None, None, today=dt.date(2025, 7, 14)) == Period(7, 2025)
    assert resolve_period("3", "2025") == Period(3, 2025)


def test_resolve_period_rejects_partial_or_garbage_input() -> None:
    with pytest.raises(InvalidPeriodError):
        resolve_period("3", None)
    with pytest.raises(InvalidPeriodError):
        resolve_period("march", "2025")
