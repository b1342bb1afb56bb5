"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Use this instead of datetime.now(timezone.utc) so tests can patch the clock.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite may return timezone-naive datetimes even when stored as timezone-aware.

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_event_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """
    Normalize a client-supplied proctoring timestamp to an aware UTC datetime.

    Browsers report either ISO-8601 strings or epoch milliseconds. Values
    above 1e11 are treated as milliseconds, anything smaller as seconds.

    Args:
        value: ISO string, epoch number, or datetime

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        return ensure_timezone_aware(value).astimezone(timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        seconds = value / 1000.0 if value > 1e11 else float(value)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        return ensure_timezone_aware(parsed).astimezone(timezone.utc)
    raise ValueError(f"Invalid timestamp: {value!r}")
