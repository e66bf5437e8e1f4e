"""TTL-bounded, key-namespaced cache for serialized catalog responses."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

LISTING_PREFIX = "home-"
PRODUCT_PREFIX = "product-"


def listing_key(page: int, limit: int) -> str:
    return f"{LISTING_PREFIX}page-{page}-limit-{limit}"


def product_key(product_id: int | str) -> str:
    return f"{PRODUCT_PREFIX}{product_id}"


@dataclass(slots=True)
class CacheEntry:
    value: bytes
    inserted_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now > self.inserted_at + self.ttl


class QueryCache:
    """Thread-safe in-memory cache with a fixed per-instance TTL.

    Every invalidation bumps an epoch counter. Readers that fill the cache
    after loading from the store pass the epoch they observed before loading;
    a fill that raced a completed invalidation is dropped instead of
    re-inserting data the invalidation meant to remove.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        check_period_seconds: float = 600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl_seconds
        self.check_period = check_period_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._epoch = 0
        self._last_prune = clock()

    def begin_fill(self) -> int:
        with self._lock:
            return self._epoch

    def get(self, key: str) -> Optional[bytes]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(now):
                del self._entries[key]
                return None
            return entry.value

    def set(
        self,
        key: str,
        value: bytes,
        ttl: Optional[float] = None,
        *,
        fill_epoch: Optional[int] = None,
    ) -> bool:
        now = self._clock()
        with self._lock:
            if fill_epoch is not None and fill_epoch != self._epoch:
                logger.debug("Dropping stale cache fill for %s", key)
                return False
            self._entries[key] = CacheEntry(value=value, inserted_at=now, ttl=self.ttl if ttl is None else ttl)
            if now - self._last_prune >= self.check_period:
                self._prune_locked(now)
        return True

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._epoch += 1
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            self._epoch += 1
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("Invalidated %d cache entries under %s", len(doomed), prefix)
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._entries.clear()

    def prune(self) -> int:
        with self._lock:
            return self._prune_locked(self._clock())

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _prune_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired:
            del self._entries[key]
        self._last_prune = now
        return len(expired)


__all__ = [
    "CacheEntry",
    "LISTING_PREFIX",
    "PRODUCT_PREFIX",
    "QueryCache",
    "listing_key",
    "product_key",
]
