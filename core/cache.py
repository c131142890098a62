# core/cache.py

"""
Generation-tracked in-memory caching.

Every write to a permission store bumps a generation counter. Cached values
are stamped with the generation they were built from and are only handed
back while that generation is still current, so a stale permission snapshot
can never be served after a toggle or an override edit.
"""

from typing import Any, Dict, Optional
from threading import Lock
from core.logging_config import logger


GLOBAL_SCOPE = "global"


def user_scope(user_id: str) -> str:
    return f"user:{user_id}"


class GenerationCounter:
    """
    Monotonic counters, one per scope.

    Thread-safe for concurrent access.
    """

    def __init__(self):
        self._counters: Dict[str, int] = {}
        self._lock = Lock()

    def current(self, scope: str) -> int:
        with self._lock:
            return self._counters.get(scope, 0)

    def bump(self, scope: str) -> int:
        """Advance a scope and return its new value."""
        with self._lock:
            value = self._counters.get(scope, 0) + 1
            self._counters[scope] = value
            logger.debug(f"Generation bumped: {scope} -> {value}")
            return value

    def stamp(self, user_id: str) -> tuple:
        """(global, user) pair a session resolved against."""
        with self._lock:
            return (
                self._counters.get(GLOBAL_SCOPE, 0),
                self._counters.get(user_scope(user_id), 0),
            )

    def reset(self):
        with self._lock:
            self._counters.clear()


class CacheEntry:
    """Represents a cached value and the generation it was built from."""

    def __init__(self, value: Any, generation: tuple):
        self.value = value
        self.generation = generation

    def is_current(self, generation: tuple) -> bool:
        return self.generation == generation


class GenerationCache:
    """
    In-memory cache keyed by string, validated by generation instead of TTL.

    Thread-safe for concurrent access.
    """

    def __init__(self):
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = Lock()

    def get(self, key: str, generation: Optional[tuple] = None) -> Optional[Any]:
        """
        Get a value from the cache.

        Args:
            key: Cache key
            generation: When given, the entry must carry exactly this stamp

        Returns:
            Cached value, or None if missing or stale
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if generation is not None and not entry.is_current(generation):
                return None

            return entry.value

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the raw entry (value + stamp) regardless of freshness."""
        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, value: Any, generation: tuple):
        with self._lock:
            self._cache[key] = CacheEntry(value, generation)

    def delete(self, key: str):
        with self._lock:
            self._cache.pop(key, None)

    def values(self) -> list:
        with self._lock:
            return [entry.value for entry in self._cache.values()]

    def clear(self):
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._cache)
