"""
Key-value cache abstraction used by the message history store.

The history store only needs three coroutine operations: ``get``, ``set`` with
a time-to-live, and ``delete``. :class:`MemoryTTLCache` is the in-process
implementation used by the bot; any other backend (e.g. a networked cache)
only has to satisfy :class:`CacheBackend` and report failures as
:class:`~tonecord.errors.CacheUnavailableError`.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Protocol

from tonecord.errors import CacheUnavailableError
from tonecord.util.logger import get_logger

logger = get_logger("cache_backend")


@contextmanager
def translate_cache_errors(operation: str, key: str) -> Iterator[None]:
    try:
        yield
    except CacheUnavailableError:
        raise
    except Exception as exc:
        raise CacheUnavailableError(f"Cache {operation} failed for {key!r}: {exc}") from exc


class CacheBackend(Protocol):
    """Async key-value store with per-key expiry."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryTTLCache:
    """
    In-memory cache where every key expires ``ttl_seconds`` after its last write.

    Expired entries are dropped lazily on access and by :meth:`purge_expired`.

    Attributes:
        max_keys (int): Upper bound on stored keys; the entry closest to
            expiry is evicted when the bound is hit.
    """

    def __init__(self, max_keys: int = 10_000, clock: Callable[[], float] = time.monotonic):
        self.max_keys = max_keys
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    async def get(self, key: str) -> Any | None:
        with translate_cache_errors("get", key):
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with translate_cache_errors("set", key):
            if ttl_seconds <= 0:
                self._entries.pop(key, None)
                return

            if key not in self._entries and len(self._entries) >= self.max_keys:
                self.purge_expired()
                if len(self._entries) >= self.max_keys:
                    oldest = min(self._entries, key=lambda k: self._entries[k][1])
                    del self._entries[oldest]
                    logger.debug("Cache full (%d keys), evicted %s", self.max_keys, oldest)

            self._entries[key] = (value, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        with translate_cache_errors("delete", key):
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
