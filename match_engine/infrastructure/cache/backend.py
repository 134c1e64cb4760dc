"""
Cache Backend

Key-value store with per-entry TTL behind an async protocol, so a shared
store can replace the in-process one without touching the match cache.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """Async key-value store with TTL and prefix operations."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        ...

    async def delete(self, *keys: str) -> int:
        ...

    async def delete_prefix(self, prefix: str) -> int:
        ...

    async def keys(self, prefix: str = "") -> List[str]:
        ...


class InMemoryCacheBackend:
    """
    Process-local backend.

    Entries carry an absolute expiry on a monotonic clock; expired entries
    read as misses and are purged lazily.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._store: Dict[str, Tuple[float, Any]] = {}
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            self._store.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._store[key] = (self._clock() + ttl_seconds, value)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._store.pop(key, None) is not None:
                removed += 1
        return removed

    async def delete_prefix(self, prefix: str) -> int:
        doomed = [k for k in self._store if k.startswith(prefix)]
        for key in doomed:
            del self._store[key]
        return len(doomed)

    async def keys(self, prefix: str = "") -> List[str]:
        now = self._clock()
        expired = [k for k, (exp, _) in self._store.items() if exp <= now]
        for key in expired:
            del self._store[key]
        return sorted(k for k in self._store if k.startswith(prefix))
