"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def _to_int(segment: str, date_str: str) -> int:
    if not segment.isdigit():
        raise ValueError(f"Could not parse date '{date_str}'")
    return int(segment)


def _expand_year(year: int, segment: str) -> int:
    # Two-digit years on US-style statements ("03/15/24")
    if len(segment) <= 2:
        return 2000 + year
    return year


def parse_statement_date(date_str: str) -> date:
    """Parse a bank statement date cell.

    Everything except digits, "/" and "-" is dropped first. Supported shapes,
    tried in order:
    - "/" separated: DD/MM/YYYY when the third segment has four digits,
      MM/DD/YY otherwise
    - "-" separated: YYYY-MM-DD when the first segment has four digits,
      DD-MM-YYYY otherwise

    Args:
        date_str: Raw date cell

    Returns:
        Date object

    Raises:
        ValueError: If the cell matches no supported shape or names an
            impossible calendar date
    """
    cleaned = re.sub(r"[^\d/-]", "", date_str or "")

    if "/" in cleaned:
        parts = cleaned.split("/")
        if len(parts) != 3:
            raise ValueError(f"Could not parse date '{date_str}'")
        first, second, third = (_to_int(p, date_str) for p in parts)
        if len(parts[2]) == 4:
            day, month, year = first, second, third
        else:
            month, day, year = first, second, _expand_year(third, parts[2])
    elif "-" in cleaned:
        parts = cleaned.split("-")
        if len(parts) != 3:
            raise ValueError(f"Could not parse date '{date_str}'")
        first, second, third = (_to_int(p, date_str) for p in parts)
        if len(parts[0]) == 4:
            year, month, day = first, second, third
        else:
            day, month, year = first, second, third
    else:
        raise ValueError(f"Unrecognized date format '{date_str}'")

    try:
        return date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_date(date_str: str) -> date:
    """Parse a user-entered date string into a date object.

    Supports absolute dates ("2024-01-15", "15 January 2024") and the
    relative words "today", "yesterday", "tomorrow".

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def default_period(today: date | None = None) -> tuple[date, date]:
    """January 1st of the current year through today."""
    today = today or date.today()
    return (today.replace(month=1, day=1), today)


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Args:
        period: Period string (this-month, this-year, last-month, last-year)

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return (today.replace(day=1), today)

    elif period == "this-year":
        return default_period(today)

    elif period == "last-month":
        # First day of last month
        start_date = (today - relativedelta(months=1)).replace(day=1)
        # Day before first day of current month
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        end_date = today.replace(month=1, day=1) - timedelta(days=1)
        return (start_date, end_date)

    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: this-month, this-year, last-month, last-year"
        )
