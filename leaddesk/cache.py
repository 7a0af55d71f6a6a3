"""In-process TTL cache used by the entity services.

Each entry carries its own absolute expiry. Expired entries are dropped
lazily, on the read that finds them stale. Invalidation works on substrings
of the key, so services name their keys by group prefix
(``leads_page_1_limit_50``, ``search_acme``) and can drop a whole group
with ``invalidate("leads_page")``.

Single-threaded use only; there is no lock around the dict.
"""

import time

DEFAULT_TTL_MINUTES = 5


class _Miss:
    """Sentinel type for a cache miss."""

    def __repr__(self):
        return "MISS"

    def __bool__(self):
        return False


# Returned by CacheManager.get() when nothing usable is stored. Distinct
# from a cached None / empty result.
MISS = _Miss()


class CacheManager:
    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries = {}  # key -> (value, expires_at)

    def set(self, key, value, ttl_minutes=DEFAULT_TTL_MINUTES):
        """Store value under key, replacing any existing entry."""
        expires_at = self._clock() + ttl_minutes * 60
        self._entries[key] = (value, expires_at)

    def get(self, key):
        """Return the cached value, or MISS if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return MISS

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return MISS

        return value

    def invalidate(self, key_pattern=None):
        """Drop every key containing key_pattern, or everything if no pattern."""
        if not key_pattern:
            self._entries.clear()
            return

        for key in [k for k in self._entries if key_pattern in k]:
            del self._entries[key]

    def keys(self):
        return list(self._entries)

    def __contains__(self, key):
        return key in self._entries

    def __len__(self):
        return len(self._entries)
