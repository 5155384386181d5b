"""Tests for the AI response TTL cache."""
from cache import DEFAULT_TTL_SEC, TTLCache
from tests.conftest import FakeClock


def test_default_ttl_is_five_minutes():
    assert DEFAULT_TTL_SEC == 300
    assert TTLCache().ttl_sec == 300


def test_set_returns_value_and_get_hits(cache):
    assert cache.set("k", ["a", "b"]) == ["a", "b"]
    assert cache.get("k") == ["a", "b"]
    assert cache.hits == 1


def test_missing_key_is_none(cache):
    assert cache.get("nope") is None
    assert cache.misses == 1


def test_entry_expires_after_ttl(cache, clock):
    cache.set("k", "v")
    clock.advance(299.9)
    assert cache.get("k") == "v"
    clock.advance(0.1)
    assert cache.get("k") is None
    assert "k" not in cache


def test_overwrite_resets_timestamp(cache, clock):
    cache.set("k", "old")
    clock.advance(200)
    cache.set("k", "new")
    clock.advance(200)
    assert cache.get("k") == "new"


def test_capacity_bound_evicts_least_recently_used():
    clock = FakeClock()
    small = TTLCache(ttl_sec=60, max_entries=2, clock=clock)
    small.set("a", 1)
    small.set("b", 2)
    small.get("a")
    small.set("c", 3)
    assert len(small) == 2
    assert small.get("b") is None
    assert small.get("a") == 1
    assert small.get("c") == 3


def test_clear_resets_entries_and_counters(cache):
    cache.set("k", "v")
    cache.get("k")
    cache.clear()
    assert len(cache) == 0
    assert cache.hits == 0
