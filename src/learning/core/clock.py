"""Timestamp helpers.

The backend sends ISO-8601 strings, sometimes without an offset. Naive
values are read as local time, the same way a browser's Date parses them.
"""

from __future__ import annotations

from datetime import datetime


def now_local() -> datetime:
    """Current time as an aware datetime in the local zone."""
    return datetime.now().astimezone()


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a backend timestamp into an aware datetime.

    Returns:
        Aware datetime, or None for empty/unparseable input.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def ensure_aware(moment: datetime | None) -> datetime:
    """Default to now and attach the local zone to naive datetimes."""
    if moment is None:
        return now_local()
    if moment.tzinfo is None:
        return moment.astimezone()
    return moment


def format_timestamp(value: str | None, fmt: str = "%b %d, %Y %H:%M") -> str:
    """Human readable timestamp, or "N/A"."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return "N/A"
    return parsed.astimezone().strftime(fmt)
