"""
Unit tests for the single-flight run lock.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import LockError, RedisError

from app.modules.notifications.locking import RunLockUnavailableError, run_lock


def _redis_with_lock(acquire):
    lock = MagicMock()
    if isinstance(acquire, Exception):
        lock.acquire = AsyncMock(side_effect=acquire)
    else:
        lock.acquire = AsyncMock(return_value=acquire)
    lock.release = AsyncMock()
    client = MagicMock()
    client.lock.return_value = lock
    return client, lock


class TestInMemoryLock:
    """Lock behavior when Redis is not connected."""

    @pytest.mark.asyncio
    async def test_second_holder_times_out(self):
        async with run_lock("test", wait_seconds=1, hold_seconds=5):
            with pytest.raises(RunLockUnavailableError) as exc_info:
                async with run_lock("test", wait_seconds=0.01, hold_seconds=5):
                    pass

        assert exc_info.value.name == "test"

    @pytest.mark.asyncio
    async def test_released_after_block(self):
        async with run_lock("test", wait_seconds=0.01, hold_seconds=5):
            pass
        async with run_lock("test", wait_seconds=0.01, hold_seconds=5):
            pass

    @pytest.mark.asyncio
    async def test_released_when_block_raises(self):
        with pytest.raises(ValueError):
            async with run_lock("test", wait_seconds=0.01, hold_seconds=5):
                raise ValueError("boom")

        async with run_lock("test", wait_seconds=0.01, hold_seconds=5):
            pass

    @pytest.mark.asyncio
    async def test_waiter_runs_after_holder(self):
        order = []

        async def worker(name):
            async with run_lock("test", wait_seconds=1, hold_seconds=5):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert order == ["a-start", "a-end", "b-start", "b-end"]


class TestRedisLock:
    """Lock behavior when Redis is connected."""

    @pytest.mark.asyncio
    async def test_acquires_and_releases_redis_lock(self):
        client, lock = _redis_with_lock(True)

        with patch("app.modules.notifications.locking.get_redis", AsyncMock(return_value=client)):
            async with run_lock("test", wait_seconds=2, hold_seconds=60):
                pass

        client.lock.assert_called_once_with("lock:test", timeout=60, blocking_timeout=2)
        lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_acquired_raises(self):
        client, lock = _redis_with_lock(False)

        with patch("app.modules.notifications.locking.get_redis", AsyncMock(return_value=client)):
            with pytest.raises(RunLockUnavailableError):
                async with run_lock("test", wait_seconds=0, hold_seconds=60):
                    pass

        lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_error_falls_back_to_memory(self):
        client, lock = _redis_with_lock(RedisError("connection refused"))
        entered = False

        with patch("app.modules.notifications.locking.get_redis", AsyncMock(return_value=client)):
            async with run_lock("test", wait_seconds=0.01, hold_seconds=60):
                entered = True

        assert entered
        lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_lock_release_is_logged_not_raised(self):
        client, lock = _redis_with_lock(True)
        lock.release.side_effect = LockError("Cannot release an unlocked lock")

        with patch("app.modules.notifications.locking.get_redis", AsyncMock(return_value=client)):
            async with run_lock("test", wait_seconds=2, hold_seconds=60):
                pass

        lock.release.assert_awaited_once()
