"""Unit tests for the settle-once OnceCache."""

import asyncio

import pytest

from assetpack.cache import OnceCache


class TestOnceCacheMemoization:
    """Each key is computed at most once between clears."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_computation(self):
        """Callers arriving while the computation is pending get the same object."""
        cache: OnceCache[str, object] = OnceCache("test")
        calls = 0
        release = asyncio.Event()

        async def compute() -> object:
            nonlocal calls
            calls += 1
            await release.wait()
            return object()

        waiters = [asyncio.ensure_future(cache.get("k", compute)) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*waiters)

        assert calls == 1
        assert all(r is results[0] for r in results)

    @pytest.mark.asyncio
    async def test_later_caller_reuses_settled_result(self):
        """A settled entry is returned without calling the factory again."""
        cache: OnceCache[str, list[int]] = OnceCache("test")
        calls = 0

        async def compute() -> list[int]:
            nonlocal calls
            calls += 1
            return [calls]

        first = await cache.get("k", compute)
        second = await cache.get("k", compute)

        assert first is second
        assert calls == 1

    @pytest.mark.asyncio
    async def test_distinct_keys_computed_separately(self):
        """Different keys have independent entries."""
        cache: OnceCache[str, str] = OnceCache("test")

        async def compute(value: str) -> str:
            return value

        assert await cache.get("a", lambda: compute("a")) == "a"
        assert await cache.get("b", lambda: compute("b")) == "b"
        assert len(cache) == 2
        assert "a" in cache and "b" in cache


class TestOnceCacheFailures:
    """Failures are cached like successes."""

    @pytest.mark.asyncio
    async def test_failure_is_cached(self):
        """A failed entry raises the same exception without recomputing."""
        cache: OnceCache[str, str] = OnceCache("test")
        calls = 0

        async def compute() -> str:
            nonlocal calls
            calls += 1
            raise RuntimeError(f"boom {calls}")

        with pytest.raises(RuntimeError) as first:
            await cache.get("k", compute)
        with pytest.raises(RuntimeError) as second:
            await cache.get("k", compute)

        assert calls == 1
        assert first.value is second.value

    @pytest.mark.asyncio
    async def test_clear_allows_retry(self):
        """clear() discards the cached failure so the next call recomputes."""
        cache: OnceCache[str, str] = OnceCache("test")
        attempts = 0

        async def compute() -> str:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("first attempt fails")
            return "ok"

        with pytest.raises(RuntimeError):
            await cache.get("k", compute)

        cache.clear()

        assert await cache.get("k", compute) == "ok"
        assert attempts == 2


class TestOnceCacheClear:
    """clear() semantics."""

    @pytest.mark.asyncio
    async def test_clear_does_not_cancel_in_flight_work(self):
        """A caller already awaiting still receives the result after clear()."""
        cache: OnceCache[str, str] = OnceCache("test")
        release = asyncio.Event()

        async def compute() -> str:
            await release.wait()
            return "stale"

        waiter = asyncio.ensure_future(cache.get("k", compute))
        await asyncio.sleep(0)
        cache.clear()
        assert "k" not in cache

        release.set()
        assert await waiter == "stale"

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_work(self):
        """Cancelling one awaiter leaves the computation running for others."""
        cache: OnceCache[str, str] = OnceCache("test")
        release = asyncio.Event()

        async def compute() -> str:
            await release.wait()
            return "done"

        cancelled = asyncio.ensure_future(cache.get("k", compute))
        survivor = asyncio.ensure_future(cache.get("k", compute))
        await asyncio.sleep(0)

        cancelled.cancel()
        with pytest.raises(asyncio.CancelledError):
            await cancelled

        release.set()
        assert await survivor == "done"

    @pytest.mark.asyncio
    async def test_keys_lists_entries(self):
        """keys() iterates over every cached key."""
        cache: OnceCache[str, int] = OnceCache("test")

        async def one() -> int:
            return 1

        await cache.get("x", one)
        await cache.get("y", one)
        assert sorted(cache.keys()) == ["x", "y"]

        cache.clear()
        assert list(cache.keys()) == []


class TestOnceCacheWaitPending:
    """wait_pending() lets in-flight work settle."""

    @pytest.mark.asyncio
    async def test_waits_for_slow_entry_after_fast_failure(self):
        """A failed entry does not stop a slower entry from completing."""
        cache: OnceCache[str, str] = OnceCache("test")

        async def fail() -> str:
            raise ValueError("boom")

        async def slow() -> str:
            await asyncio.sleep(0.05)
            return "done"

        slow_waiter = asyncio.ensure_future(cache.get("slow", slow))
        with pytest.raises(ValueError):
            await cache.get("fail", fail)
        slow_waiter.cancel()

        await cache.wait_pending()

        assert await cache.get("slow", slow) == "done"

    @pytest.mark.asyncio
    async def test_empty_cache_returns_immediately(self):
        """Nothing pending means nothing to wait for."""
        await OnceCache("test").wait_pending()
