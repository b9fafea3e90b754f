"""Expiring in-memory cache shared by competitor research and market signals.

Entries carry their write time and are treated as a miss once older than
the caller-supplied freshness window.  There is no eviction beyond that
expiry-on-read and no cross-process persistence.  Concurrent writers on
the same key are not synchronized: last write wins.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_cache_key(text: str) -> str:
    """Lower-case, trim and collapse whitespace so equivalent ideas share a key."""
    return re.sub(r"\s+", " ", text.strip().lower())


class TTLCache:
    """Key → value map where freshness is decided by the reader."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or _utcnow
        self._entries: Dict[str, Tuple[Any, datetime]] = {}

    def get(self, key: str, max_age: timedelta) -> Optional[Any]:
        """Return the cached value, or ``None`` when absent or older than *max_age*."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at > max_age:
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide stores, replaced by tests or callers that inject their own.
competitor_cache = TTLCache()
market_cache = TTLCache()
