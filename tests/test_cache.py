import pytest

from saferoute.core.cache import TTLCache


@pytest.fixture
def clock(monkeypatch):
    now = {"t": 1000.0}
    monkeypatch.setattr("saferoute.core.cache.time.monotonic", lambda: now["t"])
    return now


def test_get_or_set_returns_cached_value_within_ttl(clock):
    cache = TTLCache(60)
    calls = []

    def builder():
        calls.append(1)
        return {"items": [len(calls)]}

    first = cache.get_or_set("k", builder)
    clock["t"] += 59
    second = cache.get_or_set("k", builder)

    assert first is second
    assert len(calls) == 1
    assert cache.stats.hits == 1


def test_entry_expires_after_ttl(clock):
    cache = TTLCache(60)
    cache.set("k", "old")
    clock["t"] += 61

    assert cache.get("k") is None
    assert cache.get_or_set("k", lambda: "new") == "new"
    assert cache.stats.expired == 1


def test_distinct_keys_are_independent(clock):
    cache = TTLCache(60)
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("a") == 1
    assert cache.get("b") == 2


def test_full_cache_sweeps_expired_before_evicting(clock):
    cache = TTLCache(60, max_entries=2)
    cache.set("stale", 1)
    clock["t"] += 30
    cache.set("fresh", 2)
    clock["t"] += 31
    cache.set("new", 3)

    assert cache.get("fresh") == 2
    assert cache.get("new") == 3
    assert cache.stats.evictions == 0
    assert cache.stats.expired == 1


def test_full_cache_evicts_oldest_insert(clock):
    cache = TTLCache(60, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.stats.evictions == 1


def test_builder_errors_propagate_and_store_nothing(clock):
    cache = TTLCache(60)

    def builder():
        raise RuntimeError("store down")

    with pytest.raises(RuntimeError):
        cache.get_or_set("k", builder)
    assert len(cache) == 0


def test_invalid_configuration_is_rejected():
    with pytest.raises(ValueError):
        TTLCache(0)
    with pytest.raises(ValueError):
        TTLCache(60, max_entries=0)
