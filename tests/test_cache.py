"""Tests for the TTL cache.

Covers:
- Hits before expiry, MISS (and eviction) at and after expiry
- Default TTL
- Overwrite semantics
- Cached None / empty values are hits, not misses
- Substring invalidation and full reset
"""

from leaddesk.cache import MISS, CacheManager
from tests.conftest import FakeClock


class TestExpiry:

    def test_hit_before_ttl(self):
        clock = FakeClock()
        cache = CacheManager(clock=clock)
        cache.set("leads_page_1_limit_50", ["a"], ttl_minutes=2)
        clock.advance(1.5)
        assert cache.get("leads_page_1_limit_50") == ["a"]

    def test_miss_exactly_at_ttl_removes_entry(self):
        clock = FakeClock()
        cache = CacheManager(clock=clock)
        cache.set("k", "v", ttl_minutes=2)
        clock.advance(2)
        assert cache.get("k") is MISS
        assert "k" not in cache

    def test_miss_after_ttl(self):
        clock = FakeClock()
        cache = CacheManager(clock=clock)
        cache.set("k", "v", ttl_minutes=1)
        clock.advance(10)
        assert cache.get("k") is MISS
        assert len(cache) == 0

    def test_default_ttl_is_five_minutes(self):
        clock = FakeClock()
        cache = CacheManager(clock=clock)
        cache.set("k", "v")
        clock.advance(4)
        assert cache.get("k") == "v"
        clock.advance(1)
        assert cache.get("k") is MISS

    def test_expired_entry_stays_until_read(self):
        clock = FakeClock()
        cache = CacheManager(clock=clock)
        cache.set("k", "v", ttl_minutes=1)
        clock.advance(5)
        # Lazy expiry: nothing evicts until someone asks
        assert "k" in cache

    def test_set_overwrites_value_and_expiry(self):
        clock = FakeClock()
        cache = CacheManager(clock=clock)
        cache.set("k", "old", ttl_minutes=1)
        clock.advance(0.5)
        cache.set("k", "new", ttl_minutes=1)
        clock.advance(0.75)
        assert cache.get("k") == "new"

    def test_unknown_key_is_miss(self):
        assert CacheManager().get("nope") is MISS


class TestCachedEmptyValues:

    def test_none_is_a_hit(self):
        cache = CacheManager()
        cache.set("k", None)
        assert cache.get("k") is None
        assert cache.get("k") is not MISS

    def test_empty_list_is_a_hit(self):
        cache = CacheManager()
        cache.set("k", [])
        assert cache.get("k") == []

    def test_miss_is_falsy(self):
        assert not MISS


class TestInvalidate:

    def _filled(self):
        cache = CacheManager()
        for key in (
            "leads_page_1_limit_50",
            "leads_page_2_limit_50",
            "leads_status_maybe",
            "search_acme",
            "stats_leads",
        ):
            cache.set(key, key)
        return cache

    def test_pattern_removes_only_matching_keys(self):
        cache = self._filled()
        cache.invalidate("leads_page")
        assert sorted(cache.keys()) == [
            "leads_status_maybe",
            "search_acme",
            "stats_leads",
        ]

    def test_pattern_matches_anywhere_in_key(self):
        cache = self._filled()
        cache.invalidate("acme")
        assert "search_acme" not in cache
        assert len(cache) == 4

    def test_pattern_without_matches_is_noop(self):
        cache = self._filled()
        cache.invalidate("messages")
        assert len(cache) == 5

    def test_no_pattern_clears_everything(self):
        cache = self._filled()
        cache.invalidate()
        assert len(cache) == 0
