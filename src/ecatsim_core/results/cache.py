# src/ecatsim_core/results/cache.py
"""
Memoization of derived signals for one result set.
"""
import logging
from typing import Any, Dict, Hashable

logger = logging.getLogger(__name__)

SCOPES = ('voltage', 'current', 'power')


class ResultsCache:
    """
    A multi-scope cache of derived signals. It has one scope per sub-database
    ('voltage', 'current' and 'power').

    A cache belongs to exactly one solve. Publishing a new solve creates a new
    cache, which invalidates every derived signal at once; `invalidate()` does the
    same in place.
    """
    def __init__(self):
        self._entries: Dict[str, Dict[Hashable, Any]] = {scope: {} for scope in SCOPES}
        self.clear_stats()
        logger.debug("ResultsCache instance created.")

    def contains(self, key: Hashable, scope: str) -> bool:
        return key in self._get_cache_for_scope(scope)

    def get(self, key: Hashable, scope: str) -> Any:
        """Returns the cached value, or None on a miss. The sentinel is a valid value."""
        cache = self._get_cache_for_scope(scope)
        if key in cache:
            self._stats[scope]['hits'] += 1
            logger.debug(f"Cache HIT in '{scope}' scope for key: {key}")
            return cache[key]

        self._stats[scope]['misses'] += 1
        logger.debug(f"Cache MISS in '{scope}' scope for key: {key}")
        return None

    def put(self, key: Hashable, value: Any, scope: str):
        self._get_cache_for_scope(scope)[key] = value

    def invalidate(self):
        for cache in self._entries.values():
            cache.clear()
        logger.debug("ResultsCache invalidated.")

    def _get_cache_for_scope(self, scope: str) -> Dict[Hashable, Any]:
        try:
            return self._entries[scope]
        except KeyError:
            raise ValueError(f"Invalid cache scope '{scope}'. Must be one of {SCOPES}.") from None

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        """Returns a copy of the hit/miss statistics."""
        return {scope: counts.copy() for scope, counts in self._stats.items()}

    def clear_stats(self):
        self._stats = {scope: {'hits': 0, 'misses': 0} for scope in SCOPES}
