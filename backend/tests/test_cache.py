"""TTL cache tests — freshness windows and key normalization."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta, timezone

from launchlens.services.cache import TTLCache, normalize_cache_key


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class TestTTLCache:
    def test_fresh_hit(self):
        clock = FakeClock()
        cache = TTLCache(clock)
        cache.set("k", "v")

        clock.advance(hours=23)
        assert cache.get("k", timedelta(hours=24)) == "v"

    def test_stale_miss(self):
        clock = FakeClock()
        cache = TTLCache(clock)
        cache.set("k", "v")

        clock.advance(hours=25)
        assert cache.get("k", timedelta(hours=24)) is None

    def test_freshness_decided_by_reader(self):
        clock = FakeClock()
        cache = TTLCache(clock)
        cache.set("k", "v")

        clock.advance(days=2)
        assert cache.get("k", timedelta(days=1)) is None
        assert cache.get("k", timedelta(days=3)) == "v"

    def test_overwrite_resets_age(self):
        clock = FakeClock()
        cache = TTLCache(clock)
        cache.set("k", "old")
        clock.advance(hours=20)
        cache.set("k", "new")
        clock.advance(hours=20)

        assert cache.get("k", timedelta(hours=24)) == "new"

    def test_missing_and_clear(self):
        cache = TTLCache()
        assert cache.get("nope", timedelta(days=1)) is None

        cache.set("a", 1)
        cache.set("b", 2)
        assert len(cache) == 2
        cache.clear()
        assert len(cache) == 0


class TestNormalizeKey:
    def test_equivalent_ideas_share_a_key(self):
        assert normalize_cache_key("  AI   Todo\tApp ") == "ai todo app"
        assert normalize_cache_key("AI todo app") == normalize_cache_key("ai TODO  app")
