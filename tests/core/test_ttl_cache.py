"""Tests for the keyed TTL cache, driven by a fake clock."""

from unittest.mock import MagicMock

import pytest

from helpscope.core.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(default_ttl=10.0, clock=clock)


class TestGet:
    def test_miss_invokes_fetcher_once(self, cache) -> None:
        fetcher = MagicMock(return_value="value")
        assert cache.get("k", fetcher) == "value"
        assert cache.get("k", fetcher) == "value"
        fetcher.assert_called_once()

    def test_expiry_refetches(self, cache, clock) -> None:
        fetcher = MagicMock(side_effect=["first", "second"])
        assert cache.get("k", fetcher) == "first"
        clock.now += 10.0
        assert cache.get("k", fetcher) == "second"
        assert fetcher.call_count == 2

    def test_per_call_ttl(self, cache, clock) -> None:
        fetcher = MagicMock(side_effect=["a", "b"])
        cache.get("k", fetcher, ttl=100.0)
        clock.now += 50.0
        assert cache.get("k", fetcher) == "a"

    def test_fetcher_errors_propagate_and_store_nothing(self, cache) -> None:
        with pytest.raises(RuntimeError):
            cache.get("k", MagicMock(side_effect=RuntimeError("boom")))
        assert not cache.has("k")


class TestMaintenance:
    def test_set_has_peek(self, cache, clock) -> None:
        cache.set("k", 1)
        assert cache.has("k")
        assert cache.peek("k") == 1
        clock.now += 11.0
        assert not cache.has("k")
        assert cache.peek("k") is None

    def test_invalidate_one_or_all(self, cache) -> None:
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert not cache.has("a")
        assert cache.has("b")
        cache.invalidate()
        assert cache.stats() == {"size": 0, "keys": []}

    def test_cleanup_removes_only_expired(self, cache, clock) -> None:
        cache.set("short", 1, ttl=1.0)
        cache.set("long", 2, ttl=100.0)
        clock.now += 5.0
        assert cache.cleanup() == 1
        assert cache.stats() == {"size": 1, "keys": ["long"]}

    def test_rejects_non_positive_ttl(self, clock) -> None:
        with pytest.raises(ValueError):
            TTLCache(default_ttl=0, clock=clock)
        with pytest.raises(ValueError):
            TTLCache(clock=clock).set("k", 1, ttl=-1)
