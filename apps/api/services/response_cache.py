"""Bounded in-process cache for catalog responses."""

from __future__ import annotations

import json
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple


def make_cache_key(params: Dict[str, Any]) -> str:
    """Serialize request parameters into a stable cache key."""
    return json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)


class ResponseCache:
    """
    LRU mapping of cache key to (value, stored_at).

    Entries older than ``ttl_seconds`` are treated as misses. Once
    ``max_entries`` is reached the least recently used entry is evicted.
    No locking: concurrent misses for one key may both fetch and the last
    writer wins. Values are stored whole and must not be mutated by callers.
    """

    def __init__(
        self,
        ttl_seconds: int,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = max(int(ttl_seconds), 0)
        self.max_entries = max(int(max_entries), 1)
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value or await ``fetch`` and store its result."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await fetch()
        self.set(key, value)
        return value
