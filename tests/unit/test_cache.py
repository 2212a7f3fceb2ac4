"""Unit tests for the TTL cache used by calendar and hall listings."""
import time

from hallbooking.cache import SimpleTTLCache


class TestSimpleTTLCache:
    def test_set_get_and_missing_key(self):
        cache = SimpleTTLCache[str](ttl=60)
        cache.set(("main hall", 2025, 3), "march")

        assert cache.get(("main hall", 2025, 3)) == "march"
        assert cache.get(("main hall", 2025, 4)) is None

    def test_get_or_compute_runs_once(self):
        cache = SimpleTTLCache[list](ttl=60)
        calls = []

        def compute():
            calls.append(1)
            return []

        assert cache.get_or_compute("hall-list:0", compute) == []
        assert cache.get_or_compute("hall-list:0", compute) == []
        assert len(calls) == 1

    def test_entries_expire(self):
        """Values disappear once the TTL has elapsed."""
        cache = SimpleTTLCache[int](ttl=1)
        cache.set("count", 42)

        time.sleep(1.1)

        assert cache.get("count") is None

    def test_pop_and_clear(self):
        cache = SimpleTTLCache[str](ttl=60)
        cache.set("a", "1")
        cache.set("b", "2")

        cache.pop("a")
        cache.pop("missing")
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0

    def test_maxsize_evicts(self):
        cache = SimpleTTLCache[str](ttl=60, maxsize=2)
        for key in ("k1", "k2", "k3"):
            cache.set(key, key)

        assert len(cache) == 2
        assert cache.get("k3") == "k3"
