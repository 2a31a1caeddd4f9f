"""
Calendar date helpers.

Dates are exchanged as ISO calendar strings (YYYY-MM-DD) with no time or zone.
Parsing always rebuilds the date from its numeric year/month/day triple so a
date-only value can never shift by a day when read as UTC midnight and shown
in a negative-offset timezone.

Typical usage:
    due = parse_calendar_date("2025-03-15")
    next_due = add_interval(due, "months", 3)
    item["due_date"] = format_calendar_date(next_due)
"""
import re
from datetime import date, datetime
from typing import Union

from dateutil.relativedelta import relativedelta

from src.services.exceptions import ValidationError

CALENDAR_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

INTERVAL_UNITS = ("months", "years")

def parse_calendar_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string into a calendar date.

    Args:
        value: ISO calendar string

    Returns:
        Date built from the year, month and day components

    Raises:
        ValidationError: If the string does not have the YYYY-MM-DD shape
            or names a day that does not exist

    Example:
        >>> parse_calendar_date("2024-02-29")
        datetime.date(2024, 2, 29)
    """
    if not isinstance(value, str):
        raise ValidationError(f"Calendar date must be a string, got {type(value).__name__}")

    match = CALENDAR_DATE_PATTERN.match(value.strip())
    if not match:
        raise ValidationError(f"Invalid calendar date '{value}', expected YYYY-MM-DD")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise ValidationError(f"Invalid calendar date '{value}': {e}")

def format_calendar_date(value: Union[date, datetime]) -> str:
    """Format a date as zero-padded YYYY-MM-DD using its own components."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"

def is_same_calendar_day(first: Union[date, datetime], second: Union[date, datetime]) -> bool:
    """Compare year, month and day only, ignoring any time component."""
    return (first.year, first.month, first.day) == (second.year, second.month, second.day)

def timestamp_to_calendar_date(timestamp: str) -> date:
    """
    Extract the calendar date written in an ISO timestamp.

    The date part before 'T' is taken as-is; the timestamp is never converted
    to another timezone first.

    Example:
        >>> timestamp_to_calendar_date("2024-01-10T23:30:00-05:00")
        datetime.date(2024, 1, 10)
    """
    if not timestamp:
        raise ValidationError("Timestamp is required")
    return parse_calendar_date(timestamp.split("T")[0].split(" ")[0])

def add_interval(start: date, unit: str, amount: int) -> date:
    """
    Add a number of months or years to a date.

    Days past the end of the target month are clamped to its last day,
    so Jan 31 + 1 month is Feb 28 (or 29) and Feb 29 + 1 year is Feb 28.

    Args:
        start: Anchor date
        unit: "months" or "years"
        amount: Number of units to add, may be zero or negative

    Returns:
        Shifted calendar date

    Raises:
        ValidationError: If the unit is not supported
    """
    if unit == "months":
        return start + relativedelta(months=amount)
    if unit == "years":
        return start + relativedelta(years=amount)
    raise ValidationError(f"Unsupported interval unit '{unit}', expected one of {INTERVAL_UNITS}")
