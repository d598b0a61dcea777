from __future__ import annotations

import threading
import time
from collections.abc import Callable

from marketproxy.config.settings import settings
from marketproxy.schemas.provider import CacheEntry


class CacheStore:
    """In-process store of the last successful upstream body per cache key.

    Entries are only ever overwritten, never expired; freshness is decided at
    read time by ``is_fresh``. Contents are lost on process restart.
    """

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache.ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, payload: str) -> CacheEntry:
        entry = CacheEntry(key=key, payload=payload, captured_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        return entry

    def is_fresh(self, entry: CacheEntry, ttl: float | None = None) -> bool:
        ttl = self.ttl_seconds if ttl is None else ttl
        return self._clock() - entry.captured_at < ttl

    def get_fresh(self, key: str) -> CacheEntry | None:
        entry = self.get(key)
        if entry is not None and self.is_fresh(entry):
            return entry
        return None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_store = CacheStore()


def get_cache_store() -> CacheStore:
    return _store
