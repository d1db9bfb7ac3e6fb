"""
app/core/cache.py

In-memory TTL cache for upstream payloads.

One `TTLCacheStore` per resource class (calendar weeks, quotes, headline feed),
each with its own time-to-live. An entry is a `(payload, fetched_at)` tuple that
is always written in one assignment. Expired entries are never deleted, they
are refreshed in place on the next access.

Usage:
    store = TTLCacheStore("quotes", ttl=5, maxsize=256)
    data = await store.get_or_refresh("SPY,QQQ", lambda: client.fetch_quotes("SPY,QQQ"))

Whatever `refresh_fn` returns is cached, including empty fallbacks. If it
raises, nothing is stored and the exception reaches the caller.

Note: data is lost on server restart. Concurrent callers on the same key share
a single upstream fetch (per-key asyncio.Lock), so this is only safe inside a
single event loop.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Hashable, Optional

from cachetools import LRUCache


class TTLCacheStore:
    def __init__(
        self,
        name: str,
        ttl: float,
        maxsize: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.ttl = ttl
        self.maxsize = maxsize
        self._clock = clock
        # { key: (payload, fetched_at) }
        self._store: dict | LRUCache = LRUCache(maxsize) if maxsize else {}
        # { key: [lock, tasks using it] }, only keys with a refresh in flight
        self._locks: dict[Hashable, list] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._store

    def _fresh(self, key: Hashable) -> tuple[bool, Any]:
        entry = self._store.get(key)
        if entry is not None and self._clock() - entry[1] < self.ttl:
            return True, entry[0]
        return False, None

    async def get_or_refresh(
        self, key: Hashable, refresh_fn: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Return the cached payload for `key`, refreshing it first if stale."""
        hit, payload = self._fresh(key)
        if hit:
            self.hits += 1
            return payload

        slot = self._locks.get(key)
        if slot is None:
            slot = self._locks[key] = [asyncio.Lock(), 0]
        slot[1] += 1
        try:
            async with slot[0]:
                # another task may have refreshed while we waited
                hit, payload = self._fresh(key)
                if hit:
                    self.hits += 1
                    return payload

                self.misses += 1
                now = self._clock()
                result = await refresh_fn()
                self._store[key] = (result, now)
                return result
        finally:
            slot[1] -= 1
            if slot[1] == 0 and self._locks.get(key) is slot:
                del self._locks[key]

    def fetched_at(self, key: Hashable) -> Optional[float]:
        entry = self._store.get(key)
        return entry[1] if entry is not None else None

    def clear(self) -> None:
        """Drop every entry (useful in tests)."""
        self._store.clear()
        self._locks.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict:
        return {
            "name":    self.name,
            "ttl":     self.ttl,
            "size":    len(self._store),
            "maxsize": self.maxsize,
            "hits":    self.hits,
            "misses":  self.misses,
        }
