"""Shared utilities used across the booking engine."""

import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

from booking_engine.errors import ValidationError

MINUTES_PER_DAY = 24 * 60

# Index matches ``(date.weekday() + 1) % 7``: Sunday first
DAY_KEYS: tuple[str, ...] = (
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
)

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_LEGACY_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

DateInput = Union[date, datetime, str, None]


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("050-123 4567")
        '0501234567'
        >>> normalize_phone("+972 (50) 123-4567")
        '+972501234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def parse_time(value: Union[str, int]) -> int:
    """Convert ``HH:MM`` (or an already-parsed minute count) to minute-of-day.

    Raises:
        ValidationError: If the value is not a valid time of day.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid time of day: {value!r}")
    if isinstance(value, int):
        minutes = value
    else:
        match = _TIME_RE.match(str(value))
        if not match:
            raise ValidationError(f"Invalid time of day: {value!r}")
        hours, mins = int(match.group(1)), int(match.group(2))
        if hours > 23 or mins > 59:
            raise ValidationError(f"Invalid time of day: {value!r}")
        minutes = hours * 60 + mins
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValidationError(f"Minute of day out of range: {minutes}")
    return minutes


def format_time(minutes: int) -> str:
    """Format a minute-of-day as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value: DateInput) -> Optional[date]:
    """Parse a calendar date from any supported representation.

    Accepts ``date``/``datetime`` objects, ISO ``YYYY-MM-DD`` strings (a time
    suffix is ignored) and the legacy ``DD/MM/YYYY`` format still present in
    older rows. Empty input returns ``None``.

    Raises:
        ValidationError: If a non-empty value cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        match = _ISO_DATE_RE.match(text)
        if match:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        match = _LEGACY_DATE_RE.match(text)
        if match:
            return date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
    except ValueError:
        pass
    raise ValidationError(f"Invalid date: {value!r}")


def day_key(day: date) -> str:
    """Return the schedule key (``sunday`` .. ``saturday``) for a date."""
    return DAY_KEYS[(day.weekday() + 1) % 7]


def week_bounds(day: date) -> tuple[date, date]:
    """Return the (Sunday, Saturday) bounds of the calendar week containing ``day``."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def combine(day: date, minutes: int) -> datetime:
    """Build a naive datetime from a date and a minute-of-day."""
    return datetime(day.year, day.month, day.day) + timedelta(minutes=minutes)
