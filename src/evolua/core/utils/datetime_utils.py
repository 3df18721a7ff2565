"""
Date and time utility functions for Evolua.

Timestamps are naive UTC datetimes throughout the domain so that values
round-trip unchanged through MongoDB.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Get current UTC timestamp (naive)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utc_now().date()


def to_date(value: Union[str, date, datetime]) -> date:
    """Coerce an ISO string, date or datetime into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            raise ValueError("Invalid date format. Use YYYY-MM-DD")
    raise ValueError(f"Unsupported date value: {value!r}")


def to_datetime(value: Union[str, date, datetime]) -> datetime:
    """Coerce an ISO string, date or datetime into a naive UTC datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return to_datetime(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            raise ValueError(f"Invalid datetime format: {value}")
    raise ValueError(f"Unsupported datetime value: {value!r}")


def add_years(value: Union[date, datetime], years: int) -> Union[date, datetime]:
    """Shift by whole years; 29 February falls back to 28 February."""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)


def get_age_from_birthdate(
    birthdate: Union[str, date, datetime], reference: Optional[date] = None
) -> int:
    """Calculate age in whole years at ``reference`` (defaults to today)."""
    birthdate = to_date(birthdate)
    current = to_date(reference) if reference is not None else today()
    age = current.year - birthdate.year

    # Adjust if birthday hasn't occurred this year
    if current.month < birthdate.month or (
        current.month == birthdate.month and current.day < birthdate.day
    ):
        age -= 1

    return age
