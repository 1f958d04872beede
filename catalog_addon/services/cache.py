"""In-memory cache whose entries expire a fixed time after they were stored.

Entries are only checked on read; nothing sweeps the store in the background
and stale entries stay in place until the same key is written again. Each
uvicorn worker owns its own instance.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Hashable

from catalog_addon.services.models import CacheEntry


class ExpiringCache:
    def __init__(
        self,
        ttl_seconds: float = 600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[Hashable, CacheEntry] = {}

    def get(self, key: Hashable) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() - entry.created_at >= self.ttl_seconds:
            return None
        return entry

    def put(self, key: Hashable, payload: Any) -> None:
        self._store[key] = CacheEntry(payload=payload, created_at=self._clock())

    def __len__(self) -> int:
        return len(self._store)
