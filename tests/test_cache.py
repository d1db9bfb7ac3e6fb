"""Tests for the TTL cache store."""
import asyncio

import pytest

from app.core.cache import TTLCacheStore


class Counter:
    """Async refresh function that counts calls and returns a scripted value."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        value = self.values[min(self.calls, len(self.values)) - 1]
        await asyncio.sleep(0)
        if isinstance(value, Exception):
            raise value
        return value


class TestExpiry:
    """Hit / refresh behaviour around the TTL boundary."""

    def test_second_call_within_ttl_is_a_hit(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)
        fetch = Counter({"v": 1}, {"v": 2})

        async def run():
            first = await store.get_or_refresh("k", fetch)
            clock.advance(9.9)
            second = await store.get_or_refresh("k", fetch)
            return first, second

        first, second = asyncio.run(run())
        assert fetch.calls == 1
        assert first == second == {"v": 1}

    def test_call_after_ttl_refetches_once(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)
        fetch = Counter("old", "new")

        async def run():
            await store.get_or_refresh("k", fetch)
            clock.advance(10)
            refreshed = await store.get_or_refresh("k", fetch)
            again = await store.get_or_refresh("k", fetch)
            return refreshed, again

        refreshed, again = asyncio.run(run())
        assert fetch.calls == 2
        assert refreshed == again == "new"

    def test_empty_result_is_cached_for_full_ttl(self, clock):
        """A degraded [] is stored like any other payload."""
        store = TTLCacheStore("t", ttl=10, clock=clock)
        fetch = Counter([], [{"date": "2024-03-05"}])

        async def run():
            a = await store.get_or_refresh("k", fetch)
            clock.advance(5)
            b = await store.get_or_refresh("k", fetch)
            clock.advance(5)
            c = await store.get_or_refresh("k", fetch)
            return a, b, c

        a, b, c = asyncio.run(run())
        assert a == b == []
        assert c == [{"date": "2024-03-05"}]
        assert fetch.calls == 2

    def test_expired_entry_is_kept_until_refreshed(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)
        asyncio.run(store.get_or_refresh("k", Counter("v")))
        clock.advance(60)
        assert "k" in store
        assert len(store) == 1

    def test_entry_is_stamped_when_the_fetch_starts(self, clock):
        """A slow upstream does not stretch the TTL window."""
        store = TTLCacheStore("t", ttl=10, clock=clock)
        calls = []

        async def slow():
            calls.append(clock())
            clock.advance(3)
            return len(calls)

        asyncio.run(store.get_or_refresh("k", slow))
        assert store.fetched_at("k") == calls[0]

        clock.advance(7)
        assert asyncio.run(store.get_or_refresh("k", slow)) == 2

    def test_keys_are_independent(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)
        fetch = Counter("a", "b")

        async def run():
            return (
                await store.get_or_refresh("x", fetch),
                await store.get_or_refresh("y", fetch),
            )

        assert asyncio.run(run()) == ("a", "b")
        assert fetch.calls == 2


class TestFailures:
    """Exceptions from the refresh function."""

    def test_exception_is_not_cached(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)
        fetch = Counter(RuntimeError("down"), "ok")

        with pytest.raises(RuntimeError):
            asyncio.run(store.get_or_refresh("k", fetch))
        assert "k" not in store

        assert asyncio.run(store.get_or_refresh("k", fetch)) == "ok"
        assert fetch.calls == 2

    def test_failed_refresh_keeps_previous_entry(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)
        fetch = Counter("v1", RuntimeError("down"))

        asyncio.run(store.get_or_refresh("k", fetch))
        stamp = store.fetched_at("k")
        clock.advance(11)
        with pytest.raises(RuntimeError):
            asyncio.run(store.get_or_refresh("k", fetch))
        assert store.fetched_at("k") == stamp


class TestSingleFlight:
    """Concurrent callers for one key share a fetch."""

    def test_concurrent_misses_fetch_once(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)
        fetch = Counter("v")

        async def run():
            return await asyncio.gather(*[store.get_or_refresh("k", fetch) for _ in range(5)])

        assert asyncio.run(run()) == ["v"] * 5
        assert fetch.calls == 1

    def test_different_keys_do_not_block_each_other(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)
        fetch = Counter("a", "b", "c")

        async def run():
            return await asyncio.gather(*[store.get_or_refresh(k, fetch) for k in "xyz"])

        assert sorted(asyncio.run(run())) == ["a", "b", "c"]
        assert fetch.calls == 3

    def test_slow_refresh_survives_other_keys_filling_a_bounded_store(self, clock):
        """Keys arriving while a refresh is in flight do not split its lock."""
        store = TTLCacheStore("t", ttl=10, maxsize=2, clock=clock)
        calls = {"k": 0}

        async def run():
            release = asyncio.Event()

            async def slow():
                calls["k"] += 1
                await release.wait()
                return "slow"

            first = asyncio.create_task(store.get_or_refresh("k", slow))
            await asyncio.sleep(0)
            await store.get_or_refresh("a", Counter("a"))
            await store.get_or_refresh("b", Counter("b"))
            second = asyncio.create_task(store.get_or_refresh("k", slow))
            await asyncio.sleep(0)
            release.set()
            return await asyncio.gather(first, second)

        assert asyncio.run(run()) == ["slow", "slow"]
        assert calls["k"] == 1

    def test_locks_are_released_after_refresh(self, clock):
        store = TTLCacheStore("t", ttl=10, clock=clock)

        async def run():
            await asyncio.gather(*[store.get_or_refresh(k, Counter(k)) for k in "xyz"])

        asyncio.run(run())
        assert store._locks == {}


class TestBoundedStore:
    """LRU eviction when maxsize is set."""

    def test_least_recently_used_key_is_evicted(self, clock):
        store = TTLCacheStore("t", ttl=100, maxsize=2, clock=clock)

        async def run():
            await store.get_or_refresh("a", Counter(1))
            await store.get_or_refresh("b", Counter(2))
            await store.get_or_refresh("a", Counter(99))  # hit, marks "a" as recent
            await store.get_or_refresh("c", Counter(3))

        asyncio.run(run())
        assert "a" in store
        assert "b" not in store
        assert "c" in store
        assert len(store) == 2

    def test_unbounded_by_default(self, clock):
        store = TTLCacheStore("t", ttl=100, clock=clock)

        async def run():
            for i in range(50):
                await store.get_or_refresh(i, Counter(i))

        asyncio.run(run())
        assert len(store) == 50


class TestStats:
    def test_hits_and_misses(self, clock):
        store = TTLCacheStore("quotes", ttl=5, maxsize=10, clock=clock)
        fetch = Counter("v")

        async def run():
            await store.get_or_refresh("k", fetch)
            await store.get_or_refresh("k", fetch)
            await store.get_or_refresh("k", fetch)

        asyncio.run(run())
        assert store.stats() == {
            "name": "quotes", "ttl": 5, "size": 1, "maxsize": 10, "hits": 2, "misses": 1,
        }

        store.clear()
        assert store.stats()["size"] == 0
        assert store.stats()["hits"] == 0
