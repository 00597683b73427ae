"""
Date and time utility functions for work entries.

This module provides functions for parsing and validating dates, clock
times and break lengths, computing the current work week, and pulling a
day number out of free-form table text.
"""

from datetime import date, timedelta
from typing import List, Optional, Union
import re


class DateParseError(ValueError):
    """Exception raised when a date, time or break value cannot be parsed."""
    pass


_DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
_TIME_RE = re.compile(r'^(\d{1,2}):(\d{2})$')
_DAY_RE = re.compile(r'\b(\d{1,2})\b')


def parse_date(value: str) -> date:
    """
    Parse a strict ``YYYY-MM-DD`` date.

    Args:
        value: Date string

    Returns:
        Parsed date

    Raises:
        DateParseError: If the format is wrong or the date does not exist

    Examples:
        >>> parse_date("2025-03-14")
        datetime.date(2025, 3, 14)
    """
    if not value or not value.strip():
        raise DateParseError("Date cannot be empty")

    match = _DATE_RE.match(value.strip())
    if not match:
        raise DateParseError(f"Invalid date format: '{value}'. Expected YYYY-MM-DD")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise DateParseError(f"Invalid date '{value}': {e}")


def parse_time(value: str) -> str:
    """
    Parse a 24h ``HH:MM`` clock time and return it normalized.

    Args:
        value: Time string (e.g. "9:00" or "09:00")

    Returns:
        Normalized time string with a two-digit hour (e.g. "09:00")

    Raises:
        DateParseError: If the value is not a valid clock time
    """
    if not value or not value.strip():
        raise DateParseError("Time cannot be empty")

    match = _TIME_RE.match(value.strip())
    if not match:
        raise DateParseError(f"Invalid time format: '{value}'. Expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23):
        raise DateParseError(f"Hour {hours} out of range (must be 0-23)")
    if not (0 <= minutes <= 59):
        raise DateParseError(f"Minute {minutes} out of range (must be 0-59)")

    return f"{hours:02d}:{minutes:02d}"


def parse_break_minutes(value: Union[str, int]) -> int:
    """
    Parse a break length in whole minutes.

    Raises:
        DateParseError: If the value is not a non-negative integer
    """
    if isinstance(value, int):
        minutes = value
    else:
        if not re.match(r'^\s*\d+\s*$', value or ''):
            raise DateParseError(f"Invalid break minutes: '{value}'")
        minutes = int(value)

    if minutes < 0:
        raise DateParseError(f"Break minutes cannot be negative, got: {minutes}")

    return minutes


def time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` time into minutes since midnight."""
    hours, minutes = parse_time(value).split(':')
    return int(hours) * 60 + int(minutes)


def format_break_time(minutes: int) -> str:
    """
    Format a break length as ``HH:MM``.

    Examples:
        >>> format_break_time(90)
        '01:30'
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def current_week_dates(today: Optional[date] = None) -> List[date]:
    """
    Get the Monday to Friday dates of the week containing ``today``.

    Args:
        today: Reference date (defaults to the local current date)

    Returns:
        Five dates, Monday first
    """
    if today is None:
        today = date.today()

    monday = today - timedelta(days=today.weekday())
    return [monday + timedelta(days=offset) for offset in range(5)]


def extract_day_number(text: Optional[str]) -> Optional[int]:
    """
    Extract a day-of-month number from table cell text.

    The first standalone one or two digit number between 1 and 31 is
    returned. Numbers glued to letters (like the "8" in "-8h") do not count.

    Examples:
        >>> extract_day_number("Lun 3")
        3
        >>> extract_day_number("-8h") is None
        True
    """
    if not text:
        return None

    for match in _DAY_RE.finditer(text):
        day = int(match.group(1))
        if 1 <= day <= 31:
            return day

    return None
