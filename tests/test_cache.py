from yakson_agent.cache import TTLCache


def test_entry_available_until_ttl_then_evicted(clock):
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("k", "v")

    clock.advance(59)
    assert cache.get("k") == "v"

    clock.advance(1)
    assert cache.get("k") == "v"  # exactly at expiry is still valid

    clock.advance(0.001)
    assert cache.get("k") is None
    assert "k" not in cache


def test_custom_ttl_overrides_default(clock):
    cache = TTLCache(default_ttl=6 * 3600, clock=clock)
    cache.set("short", 1, ttl=30 * 60)
    cache.set("long", 2)

    clock.advance(31 * 60)
    assert cache.get("short") is None
    assert cache.get("long") == 2


def test_oldest_inserted_entry_evicted_past_capacity(clock):
    cache = TTLCache(max_entries=3, clock=clock)
    for key in ("a", "b", "c", "d"):
        cache.set(key, key.upper())

    assert len(cache) == 3
    assert cache.get("a") is None
    assert [cache.get(k) for k in ("b", "c", "d")] == ["B", "C", "D"]


def test_replacing_a_value_is_wholesale(clock):
    cache = TTLCache(default_ttl=10, clock=clock)
    cache.set("k", {"v": 1})
    clock.advance(5)
    cache.set("k", {"v": 2})
    clock.advance(8)
    assert cache.get("k") == {"v": 2}
    assert cache.expires_at("k") == clock.now - 8 + 10


def test_missing_key_returns_none():
    assert TTLCache().get("nope") is None
