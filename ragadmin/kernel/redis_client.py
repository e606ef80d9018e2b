# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Redis Connection Factory — Async pool used by the optional job lock.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as aioredis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry
from redis.exceptions import ConnectionError, TimeoutError

from ragadmin.core.config import settings

_pool: Optional[aioredis.Redis] = None

_RETRY = Retry(ExponentialBackoff(cap=2, base=0.1), retries=3)


async def get_redis_pool() -> aioredis.Redis:
    """Return a singleton async Redis client built from REDIS_URL."""
    global _pool
    if _pool is None:
        _pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            max_connections=10,
            health_check_interval=15,
            retry_on_error=[ConnectionError, TimeoutError, OSError],
            retry=_RETRY,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
    return _pool


async def close_redis_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None

