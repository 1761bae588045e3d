from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware UTC now. The default clock for models and services."""
    return datetime.now(timezone.utc)


def epoch_millis(dt: datetime) -> int:
    # naive datetimes are treated as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)
