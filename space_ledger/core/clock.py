"""Time helpers shared by the ledger services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def whole_days_between(start: datetime, end: datetime) -> int:
    """Number of complete days from ``start`` to ``end`` (negative if reversed)."""
    delta = ensure_utc(end) - ensure_utc(start)
    if delta.total_seconds() >= 0:
        return delta.days
    return -((-delta).days)
