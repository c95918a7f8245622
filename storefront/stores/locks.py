"""Per-listing mutual exclusion for the locked purchase mode.

Two providers with the same `hold(key)` shape:
- KeyedLocks: asyncio locks, correct within a single process
- RedisLocks: SET NX EX lock shared by every API instance
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol
from uuid import uuid4

import redis.asyncio as redis

from storefront.errors import InternalError
from storefront.stores.redis import PREFIX_LOCK, acquire_lock, release_lock


class LockProvider(Protocol):
    def hold(self, key: str) -> AbstractAsyncContextManager[None]: ...


class KeyedLocks:
    """In-process lock table keyed by listing ID.

    Entries live only while someone holds or waits on the key.
    """

    def __init__(self, wait_seconds: float = 5.0) -> None:
        self._wait_seconds = wait_seconds
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self._wait_seconds)
            except asyncio.TimeoutError as exc:
                raise InternalError(
                    f"Timed out waiting for lock on {key}", detail={"key": key}
                ) from exc
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class RedisLocks:
    """Distributed lock, polled until acquired or the wait budget runs out."""

    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int = 10,
        wait_seconds: float = 5.0,
        poll_interval: float = 0.05,
    ) -> None:
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._wait_seconds = wait_seconds
        self._poll_interval = poll_interval

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        token = str(uuid4())
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._wait_seconds

        while not await acquire_lock(self._client, key, token=token, ttl=self._ttl_seconds):
            if loop.time() >= deadline:
                raise InternalError(
                    f"Timed out waiting for lock on {key}",
                    detail={"key": f"{PREFIX_LOCK}{key}"},
                )
            await asyncio.sleep(self._poll_interval)

        try:
            yield
        finally:
            await release_lock(self._client, key, token=token)
