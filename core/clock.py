from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def aware(dt: Optional[datetime]) -> Optional[datetime]:
    """UTC-aware copy of dt. Naive values are read as UTC (SQLite drops tzinfo on read)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    # stored values carry no offset
    return dt.astimezone(timezone.utc)


def get_now() -> datetime:
    """Request-scoped "now"; tests override this dependency."""
    return utcnow()
