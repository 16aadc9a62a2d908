"""Timestamp parsing and storage formatting.

Everything is normalized to timezone-aware UTC. Values without an offset are
read as UTC. Storage uses a fixed-width ISO-8601 string so that SQL text
comparison orders the same way as the instants themselves.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime, or None if it is not a timestamp.

    Accepts ``datetime``/``date`` objects and ISO-8601 strings (date-only,
    naive, ``Z`` suffixed or offset suffixed).
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw[-1] in ("Z", "z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    try:
        return _as_utc(parsed)
    except OverflowError:
        # Offsets that push the instant outside datetime.min/max.
        return None


def to_storage(value: datetime) -> str:
    # isoformat pads years below 1000, strftime("%Y") does not.
    naive = _as_utc(value).replace(tzinfo=None)
    return naive.isoformat(timespec="microseconds") + "Z"


def from_storage(raw: Any) -> datetime:
    """Inverse of ``to_storage``; also reads SQLite ``strftime`` defaults."""
    if isinstance(raw, datetime):
        return _as_utc(raw)
    parsed = parse_timestamp(raw)
    if parsed is None:
        raise ValueError(f"unreadable stored timestamp: {raw!r}")
    return parsed


__all__ = ["utc_now", "parse_timestamp", "to_storage", "from_storage"]
