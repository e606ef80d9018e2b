# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Tenant Job Lock — Optional per-resource mutual exclusion for jobs.

Off unless JOB_LOCK_ENABLED is set. When on, at most one scrape/update
job runs per resource id across all processes sharing the Redis
instance; a second request fails fast instead of queueing.

Key: ragadmin:{resource_id}:job_lock -> job_id of the holder
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as aioredis

logger = logging.getLogger("ragadmin.job_lock")

# Delete only if we still own the key
_LUA_RELEASE = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


def lock_key(resource_id: str) -> str:
    return f"ragadmin:{resource_id}:job_lock"


class TenantJobLock:
    def __init__(self, redis: aioredis.Redis, ttl_seconds: int = 6 * 3600) -> None:
        self._redis = redis
        self._ttl = ttl_seconds
        self._release = self._redis.register_script(_LUA_RELEASE)

    async def acquire(self, resource_id: str, job_id: str) -> bool:
        acquired = await self._redis.set(lock_key(resource_id), job_id, nx=True, ex=self._ttl)
        if acquired:
            logger.info("Job lock acquired", extra={"resource_id": resource_id, "job_id": job_id})
        return bool(acquired)

    async def release(self, resource_id: str, job_id: str) -> bool:
        released = await self._release(keys=[lock_key(resource_id)], args=[job_id])
        if not released:
            logger.warning(
                "Job lock was not held at release (expired or taken over)",
                extra={"resource_id": resource_id, "job_id": job_id},
            )
        return bool(released)

    async def holder(self, resource_id: str) -> Optional[str]:
        return await self._redis.get(lock_key(resource_id))
