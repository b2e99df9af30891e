from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from .config import CACHE_MAX_ENTRIES, CACHE_TTL_S


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Expiring key/value map with lazy eviction and an insertion-order size bound.

    Entries are replaced wholesale; expired entries are dropped when read.
    Once the map grows past `max_entries`, the oldest inserted key is evicted.
    """

    def __init__(
        self,
        default_ttl: float = CACHE_TTL_S,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
        if len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            self._entries.pop(oldest, None)

    def expires_at(self, key: str) -> float | None:
        entry = self._entries.get(key)
        return entry.expires_at if entry else None

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


HTML_CACHE = TTLCache()
EXTRACT_CACHE = TTLCache()
