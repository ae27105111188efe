from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def unix_timestamp(dt_value: datetime | None = None) -> int:
    """
    Whole seconds since the epoch for ``dt_value`` (defaults to now).

    Naive datetimes are treated as UTC.
    """
    if dt_value is None:
        dt_value = utc_now()
    elif dt_value.tzinfo is None:
        dt_value = dt_value.replace(tzinfo=timezone.utc)
    return int(dt_value.timestamp())
