from __future__ import annotations

from datetime import date, datetime, time

from ..core.exceptions import ValidationError


def parse_iso_date(value: str, field_name: str = "date") -> date:
    """Parse a YYYY-MM-DD string (or a full ISO timestamp) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")
    text = value.strip()
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def parse_clock_time(value: str, field_name: str = "time") -> time:
    """Parse HH:MM into a time of day."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a time (HH:MM)")
    text = value.strip()
    try:
        return datetime.strptime(text[:5], "%H:%M").time()
    except ValueError:
        raise ValidationError(f"{field_name} must be a time (HH:MM)")


def format_clock_time(value: time) -> str:
    return value.strftime("%H:%M")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now()
