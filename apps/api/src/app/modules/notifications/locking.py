"""
Notification Run Lock

Single-flight lock held for the whole duration of a notification run, so two
overlapping triggers cannot both read the unread set before either writes.

Uses a Redis lock when Redis is connected (works across processes). Falls
back to an in-process asyncio.Lock otherwise; the fallback only serializes
runs inside one process.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from redis.exceptions import LockError, RedisError

from app.core.redis import get_redis

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "lock:"

# In-memory locks (fallback when Redis unavailable), keyed by lock name
_memory_locks: dict[str, asyncio.Lock] = {}


class RunLockUnavailableError(Exception):
    """Raised when the lock is still held by another run after waiting."""

    def __init__(self, name: str, wait_seconds: float):
        self.name = name
        self.wait_seconds = wait_seconds
        super().__init__(f"Lock {name!r} still held after waiting {wait_seconds:g}s")


def _memory_lock(name: str) -> asyncio.Lock:
    if name not in _memory_locks:
        _memory_locks[name] = asyncio.Lock()
    return _memory_locks[name]


async def _release_redis_lock(lock, name: str) -> None:
    try:
        await lock.release()
    except LockError as e:
        # Expired after hold_seconds; another run may already own it
        logger.warning(f"Lock {name!r} was lost before release: {e}")
    except RedisError as e:
        logger.warning(f"Failed to release lock {name!r}: {e}")


@asynccontextmanager
async def _in_memory_lock(name: str, wait_seconds: float):
    lock = _memory_lock(name)
    try:
        await asyncio.wait_for(lock.acquire(), timeout=wait_seconds)
    except TimeoutError:
        raise RunLockUnavailableError(name, wait_seconds) from None
    try:
        yield
    finally:
        lock.release()


@asynccontextmanager
async def run_lock(
    name: str,
    wait_seconds: float,
    hold_seconds: float,
) -> AsyncIterator[None]:
    """
    Hold a named single-flight lock for the duration of the block.

    Args:
        name: Lock name
        wait_seconds: How long to wait for a run already holding the lock
        hold_seconds: Redis lock expiry, so a crashed holder cannot block
            later runs forever

    Raises:
        RunLockUnavailableError: If the lock could not be taken in time
    """
    client = await get_redis()
    redis_lock = None

    if client is not None:
        redis_lock = client.lock(
            f"{LOCK_KEY_PREFIX}{name}",
            timeout=hold_seconds,
            blocking_timeout=wait_seconds,
        )
        try:
            acquired = await redis_lock.acquire()
        except RedisError as e:
            logger.warning(f"Redis unavailable for run lock, using in-process lock: {e}")
            redis_lock = None
        else:
            if not acquired:
                raise RunLockUnavailableError(name, wait_seconds)

    if redis_lock is not None:
        try:
            yield
        finally:
            await _release_redis_lock(redis_lock, name)
        return

    async with _in_memory_lock(name, wait_seconds):
        yield
