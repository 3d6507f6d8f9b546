from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_rfc3339_utc(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to RFC3339 in UTC, keeping microseconds."""

    value = ensure_utc(dt)
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def parse_rfc3339(s: Optional[str]) -> Optional[datetime]:
    """Parse an RFC3339 string into an aware UTC datetime, ``None`` if invalid."""

    if not s:
        return None
    value = s.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    return ensure_utc(dt)


def from_epoch_ms(value: float) -> datetime:
    """Convert a JavaScript-style millisecond timestamp."""

    return datetime.fromtimestamp(value / 1000.0, tz=UTC)


__all__ = [
    "UTC",
    "ensure_utc",
    "from_epoch_ms",
    "parse_rfc3339",
    "to_rfc3339_utc",
    "utc_now",
]
