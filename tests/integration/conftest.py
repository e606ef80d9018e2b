# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Integration test fixtures — Real PostgreSQL and Redis.

These tests require running services (DATABASE_URL / REDIS_URL) and are
skipped when they are unreachable.
"""

import pytest
import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ragadmin.core.config import settings
from ragadmin.storage.database import Base, override_engine_for_test

# Import models so tables are registered
import ragadmin.storage.models  # noqa


@pytest.fixture
async def real_db():
    """Create tenant tables, yield a session factory, drop them afterwards."""
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, OperationalError, DBAPIError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL unavailable: {e}")

    override_engine_for_test(engine)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    yield factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def real_redis():
    """Connect to real Redis and remove lock keys after each test."""
    r = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await r.ping()
    except (OSError, RedisConnectionError) as e:
        await r.aclose()
        pytest.skip(f"Redis unavailable: {e}")

    yield r

    async for key in r.scan_iter(match="ragadmin:*"):
        await r.delete(key)
    await r.aclose()
