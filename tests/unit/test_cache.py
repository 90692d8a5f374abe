"""TTLCache 单元测试（使用可推进时钟）。"""

from finboard.modules.widgets.infrastructure.cache import MISS, TTLCache


class TestTTLCache:
    """TTLCache 测试。"""

    def test_get_within_ttl(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("alpha_vantage:quote:AAPL", {"price": 1}, ttl=30)

        clock.advance(30)
        assert cache.get("alpha_vantage:quote:AAPL") == {"price": 1}
        assert "alpha_vantage:quote:AAPL" in cache

    def test_expired_entry_is_miss(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("k", 1, ttl=30)

        clock.advance(30.5)
        assert cache.get("k") is MISS
        # 读取时惰性淘汰
        assert len(cache) == 0

    def test_miss_for_unknown_key(self):
        cache = TTLCache()
        assert cache.get("nope") is MISS
        assert not MISS
        assert 42 not in cache

    def test_set_replaces_entry_and_restarts_ttl(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("k", "old", ttl=10)
        clock.advance(8)
        cache.set("k", "new", ttl=10)
        clock.advance(8)

        assert cache.get("k") == "new"

    def test_falsy_values_are_hits(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("empty", [], ttl=10)
        assert cache.get("empty") == []

    def test_evicts_least_recently_used(self, clock):
        cache = TTLCache(max_entries=2, clock=clock)
        cache.set("a", 1, ttl=60)
        cache.set("b", 2, ttl=60)
        cache.get("a")
        cache.set("c", 3, ttl=60)

        assert cache.get("b") is MISS
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_sweep(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("quote", 1, ttl=30)
        cache.set("history", 2, ttl=300)

        clock.advance(60)
        assert cache.sweep() == 1
        assert len(cache) == 1
        assert cache.get("history") == 2

    def test_delete_and_clear(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("a", 1, ttl=60)
        cache.set("b", 2, ttl=60)

        assert cache.delete("a") is True
        assert cache.delete("a") is False
        cache.clear()
        assert len(cache) == 0

    def test_expired_entries_free_capacity_first(self, clock):
        """容量满时先清理过期条目，未过期的条目不会被挤掉。"""
        cache = TTLCache(max_entries=2, clock=clock)
        cache.set("quote", 1, ttl=5)
        cache.set("history", 2, ttl=300)

        clock.advance(6)
        cache.set("snapshot", 3, ttl=60)

        assert cache.get("history") == 2
        assert cache.get("snapshot") == 3
        assert cache.get("quote") is MISS
        assert len(cache) == 2
