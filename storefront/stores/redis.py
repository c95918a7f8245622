"""Redis store for distributed purchase locks.

Handles:
- Connection setup/teardown (client owned by the app lifespan)
- Per-listing locks (SET NX EX), released only by their owner

TTL policies:
- Purchase locks: a few seconds, longer than one read-modify-write round trip
"""

import logging

import redis.asyncio as redis

# TTL constants (in seconds)
TTL_PURCHASE_LOCK = 10

# Key prefixes
PREFIX_LOCK = "lock:listing:"

logger = logging.getLogger("uvicorn.error")

# Delete the key only if it still holds our token (lock may have expired
# and been taken by another request in the meantime).
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


async def create_redis(redis_url: str) -> redis.Redis:
    """Create a Redis client and validate connectivity."""
    client = redis.from_url(
        redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    await client.ping()
    logger.info("Redis connected")
    return client


async def close_redis(client: redis.Redis | None) -> None:
    """Close Redis connection."""
    if client is not None:
        await client.aclose()


async def acquire_lock(
    client: redis.Redis,
    key: str,
    *,
    token: str,
    ttl: int = TTL_PURCHASE_LOCK,
) -> bool:
    """Acquire a distributed lock.

    Args:
        client: Redis client.
        key: Lock key (listing ID).
        token: Owner token, required to release.
        ttl: Lock timeout in seconds.

    Returns:
        True if lock acquired, False if already locked.
    """
    # SET NX (only if not exists) with TTL
    result = await client.set(f"{PREFIX_LOCK}{key}", token, nx=True, ex=ttl)
    return bool(result)


async def release_lock(client: redis.Redis, key: str, *, token: str) -> bool:
    """Release a lock we own.

    Returns:
        True if the lock was deleted, False if it had expired or changed owner.
    """
    deleted = await client.eval(_RELEASE_SCRIPT, 1, f"{PREFIX_LOCK}{key}", token)
    if not deleted:
        logger.warning(f"Lock {PREFIX_LOCK}{key} expired before release")
    return bool(deleted)
