"""TTL cache for collaborator-layer reads.

The engine, aggregator and content generator never use this module; only the
HTTP layer caches what it reads from stores.
"""

from __future__ import annotations

import threading
import time
from types import MappingProxyType
from typing import Any, Callable, Dict, Optional, Tuple

# Expiry per key category, in seconds
CACHE_TTLS = MappingProxyType(
    {
        "leaderboard": 300,
        "user_stats": 30,
        "session_data": 60,
        "daily_plan": 3600,
        "achievements": 900,
        "user_preferences": 1800,
        "weakness_profile": 300,
    }
)

_MISSING = object()


# PUBLIC_INTERFACE
class TTLCache:
    """Thread-safe cache whose entries expire after their category's TTL."""

    def __init__(
        self,
        ttls: Optional[Dict[str, int]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttls = dict(CACHE_TTLS if ttls is None else ttls)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[str, str], Tuple[float, Any]] = {}

    def _ttl(self, category: str) -> int:
        try:
            return self.ttls[category]
        except KeyError:
            raise KeyError(f"unknown cache category: {category}") from None

    def get(self, category: str, key: str, default: Any = None) -> Any:
        self._ttl(category)
        with self._lock:
            entry = self._entries.get((category, key))
            if entry is None:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[(category, key)]
                return default
            return value

    def set(self, category: str, key: str, value: Any) -> None:
        expires_at = self._clock() + self._ttl(category)
        with self._lock:
            self._entries[(category, key)] = (expires_at, value)

    def get_or_load(self, category: str, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value or load, cache and return it.

        ``None`` results are cached too, so a missing record is not re-read
        until the entry expires.
        """
        value = self.get(category, key, _MISSING)
        if value is _MISSING:
            value = loader()
            self.set(category, key, value)
        return value

    def invalidate(self, category: str, key: Optional[str] = None) -> None:
        """Drop one entry, or every entry of the category when ``key`` is None."""
        with self._lock:
            if key is not None:
                self._entries.pop((category, key), None)
                return
            for entry_key in [k for k in self._entries if k[0] == category]:
                del self._entries[entry_key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


cache = TTLCache()
