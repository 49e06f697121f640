"""
Catalog expiry policy.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """
    Parse a stored ISO-8601 timestamp.

    Returns None for absent or unparsable values so the cache reads as expired.
    """
    if not raw:
        return None
    try:
        # Older Python releases reject the trailing "Z"
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


def is_expired(
    last_fetched_at: Optional[datetime],
    ttl: timedelta,
    now: Optional[datetime] = None,
) -> bool:
    """True if the catalog was never fetched or is at least ``ttl`` old."""
    if last_fetched_at is None:
        return True

    now = now or utcnow()
    if last_fetched_at.tzinfo is None:
        last_fetched_at = last_fetched_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    return now - last_fetched_at >= ttl
