# portfolio_core/utils/date_utils.py
"""
Date utility functions for the portfolio engine.

Transactions arrive with dates written either as YYYY-MM-DD or YYYY/MM/DD.
Everything downstream works with ``datetime.date``; these helpers do the
normalization and produce the snapshot date grids used for history charts.

Usage:
    from portfolio_core.utils.date_utils import parse_transaction_date

    d = parse_transaction_date("2023/04/01")
"""

from datetime import date, timedelta

from portfolio_core.services.constants import DAYS_PER_YEAR, VALID_INTERVALS
from portfolio_core.services.exceptions import InvalidDateError, InvalidIntervalError


def normalize_date_string(value: str) -> str:
    """
    Normalize a transaction date string to ISO format.

    Args:
        value: Date as "YYYY/MM/DD" or "YYYY-MM-DD"

    Returns:
        The same date as "YYYY-MM-DD"

    Raises:
        InvalidDateError: If the string is not a valid calendar date
    """
    return parse_transaction_date(value).isoformat()


def parse_transaction_date(value: str | date) -> date:
    """
    Parse a transaction date.

    Accepts ``date`` objects unchanged, and strings in either
    "YYYY-MM-DD" or "YYYY/MM/DD" form.

    Raises:
        InvalidDateError: On anything else (including impossible dates)
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(repr(value))

    cleaned = value.strip().replace("/", "-")
    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        raise InvalidDateError(value) from None


def years_between(start: date, end: date) -> float:
    """
    Fractional years between two dates on a 365.25-day basis.

    Negative when ``end`` precedes ``start``.
    """
    return (end - start).days / DAYS_PER_YEAR


# =============================================================================
# SNAPSHOT DATE GRIDS
# =============================================================================

def generate_snapshot_dates(
        start_date: date,
        end_date: date,
        interval: str = "monthly",
) -> list[date]:
    """
    Generate the dates at which the portfolio should be reconstructed.

    Args:
        start_date: First date (typically the earliest transaction)
        end_date: Last date (typically today)
        interval: "daily", "weekly" or "monthly"

    Returns:
        Dates in chronological order. Empty if start_date > end_date.

    Raises:
        InvalidIntervalError: For an unknown interval
    """
    if interval not in VALID_INTERVALS:
        raise InvalidIntervalError(interval)
    if start_date > end_date:
        return []

    if interval == "daily":
        return _generate_daily(start_date, end_date)
    elif interval == "weekly":
        return _generate_weekly(start_date, end_date)
    return _generate_monthly(start_date, end_date)


def _generate_daily(start: date, end: date) -> list[date]:
    """Every calendar day."""
    dates = []
    current = start
    while current <= end:
        dates.append(current)
        current += timedelta(days=1)
    return dates


def _generate_weekly(start: date, end: date) -> list[date]:
    """
    Every Friday in the range, plus the end date when it is not a Friday.
    """
    dates = []
    current = start + timedelta(days=(4 - start.weekday()) % 7)

    while current <= end:
        dates.append(current)
        current += timedelta(days=7)

    if not dates or dates[-1] != end:
        dates.append(end)

    return dates


def _generate_monthly(start: date, end: date) -> list[date]:
    """
    First day of each month, starting with the month of ``start``.

    The first point may precede ``start`` (a position bought on the 15th
    shows up at the following month's snapshot, not the current one).
    """
    dates = []
    current = start.replace(day=1)

    while current <= end:
        dates.append(current)
        if current.month == 12:
            current = current.replace(year=current.year + 1, month=1)
        else:
            current = current.replace(month=current.month + 1)

    return dates
