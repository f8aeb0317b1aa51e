"""Keyed store with per-entry expiry.

Used by the introspector, one entry per target program.

Writes are last-write-wins with no locking: two concurrent misses on the
same key may both fetch and both store. Expired entries are only removed by
a read miss or an explicit `cleanup()` sweep, which the host process
schedules itself.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30.0


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive, got {default_ttl!r}")
        self._entries: dict[Hashable, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._clock = clock

    def get(
        self,
        key: Hashable,
        fetcher: Callable[[], Any],
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the live value for `key`, fetching and storing it on a miss.

        A read at or past the expiry timestamp is a miss. The fetched value
        unconditionally overwrites whatever was stored.
        """
        entry = self._entries.get(key)
        if entry is not None and self._clock() < entry.expires_at:
            logger.debug("Cache hit for %r", key)
            return entry.value

        logger.debug("Cache miss for %r", key)
        value = fetcher()
        self.set(key, value, ttl)
        return value

    def peek(self, key: Hashable) -> Any:
        """Return the live value for `key` without fetching, or None."""
        entry = self._entries.get(key)
        if entry is not None and self._clock() < entry.expires_at:
            return entry.value
        return None

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl!r}")
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def has(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry.expires_at

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one key, or every key when called without one."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def cleanup(self) -> int:
        """Remove expired entries. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Cache sweep removed %d expired entries", len(expired))
        return len(expired)

    def stats(self) -> dict:
        return {
            "size": len(self._entries),
            "keys": list(self._entries.keys()),
        }
