"""Caller-owned result cache. Aggregation code never consults it implicitly."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    """Cached result with the time it was computed."""

    data: Any
    computed_at: datetime


class ResultCache:
    """
    Explicit key -> CacheEntry store. TTL is chosen per lookup by the caller;
    invalidation is manual (after a new snapshot upload, for example).
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str, ttl: timedelta, now: Optional[datetime] = None) -> Optional[Any]:
        """Cached data when present and younger than ttl, else None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = now or self._clock()
        if now - entry.computed_at >= ttl:
            return None
        return entry.data

    def entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: str, data: Any, now: Optional[datetime] = None) -> CacheEntry:
        entry = CacheEntry(data=data, computed_at=now or self._clock())
        self._entries[key] = entry
        return entry

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Any],
        ttl: timedelta,
        now: Optional[datetime] = None,
    ) -> Any:
        """Return a fresh cached value or compute, store and return a new one."""
        now = now or self._clock()
        cached = self.get(key, ttl, now)
        if cached is not None:
            return cached
        data = compute()
        self.put(key, data, now)
        return data

    def __len__(self) -> int:
        return len(self._entries)
