"""
UTC datetime utilities.

Persisted timestamps and audit records are timezone-aware UTC. Permission
time conditions (weekday, hour window) are evaluated on wall-clock time in
the configured condition timezone; see in_timezone().
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def in_timezone(dt: datetime | None, tz_name: str) -> datetime | None:
    """Wall-clock view of dt in tz_name (IANA name, e.g. "Europe/Berlin"). Naive dt is taken as UTC."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(ZoneInfo(tz_name))


def elapsed_ms(started: float, finished: float) -> int:
    """Convert two perf_counter readings into whole milliseconds (never negative)."""
    return max(0, int(round((finished - started) * 1000)))
