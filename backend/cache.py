"""TTL cache memoizing AI responses.

Entries expire lazily: an entry older than the TTL is treated as absent and
dropped when read. The cache is also bounded; once ``max_entries`` is
exceeded the least recently used entry is evicted. Not thread-safe, it is only
touched from the event loop.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

DEFAULT_TTL_SEC = 5 * 60
DEFAULT_MAX_ENTRIES = 1024


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    inserted_at: float


class TTLCache:
    def __init__(
        self,
        ttl_sec: float = DEFAULT_TTL_SEC,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_sec = ttl_sec
        self.max_entries = max(1, int(max_entries))
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self._clock() - entry.inserted_at >= self.ttl_sec:
            self._entries.pop(key, None)
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> Any:
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return value

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() - entry.inserted_at < self.ttl_sec
