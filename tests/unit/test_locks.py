"""
Unit tests for KeyedLock.

Tests cover:
- Mutual exclusion per key
- Parallelism across keys
- Entry cleanup after release, errors and cancellation
"""

import asyncio

import pytest

from catalog.mvn_core.access import KeyedLock


class TestKeyedLock:
    """Tests for per-key locking."""

    @pytest.mark.asyncio
    async def test_entry_exists_only_while_held(self):
        locks = KeyedLock()
        async with locks.hold("k"):
            assert "k" in locks
            assert locks.locked("k")
        assert "k" not in locks
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_same_key_is_exclusive(self):
        """Critical sections on one key never overlap."""
        locks = KeyedLock()
        active = 0
        peak = 0

        async def worker():
            nonlocal active, peak
            async with locks.hold("k"):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0)
                active -= 1

        await asyncio.gather(*(worker() for _ in range(20)))

        assert peak == 1
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_different_keys_run_in_parallel(self):
        locks = KeyedLock()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def holder():
            async with locks.hold("a"):
                inside.set()
                await release.wait()

        task = asyncio.create_task(holder())
        await inside.wait()

        async with locks.hold("b"):
            assert locks.locked("a")

        release.set()
        await task
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_released_on_exception(self):
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.hold("k"):
                raise RuntimeError("boom")
        assert "k" not in locks

    @pytest.mark.asyncio
    async def test_released_on_cancellation(self):
        """A task cancelled while waiting leaves no entry behind."""
        locks = KeyedLock()
        release = asyncio.Event()
        inside = asyncio.Event()

        async def holder():
            async with locks.hold("k"):
                inside.set()
                await release.wait()

        async def waiter():
            async with locks.hold("k"):
                pass

        first = asyncio.create_task(holder())
        await inside.wait()
        second = asyncio.create_task(waiter())
        await asyncio.sleep(0)
        second.cancel()
        with pytest.raises(asyncio.CancelledError):
            await second

        release.set()
        await first
        assert len(locks) == 0
