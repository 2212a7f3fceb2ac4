"""TTL cache helpers for calendar summaries and hall listings."""
from __future__ import annotations

from typing import Callable, Generic, Hashable, Optional, TypeVar

from cachetools import TTLCache

T = TypeVar("T")


class SimpleTTLCache(Generic[T]):
    def __init__(self, ttl: int, maxsize: int = 256) -> None:
        self._cache: TTLCache[Hashable, T] = TTLCache(maxsize=maxsize, ttl=ttl)

    def get(self, key: Hashable) -> Optional[T]:
        return self._cache.get(key)

    def set(self, key: Hashable, value: T) -> None:
        self._cache[key] = value

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        value = compute()
        self._cache[key] = value
        return value

    def pop(self, key: Hashable) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
