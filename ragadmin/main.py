# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
RagAdmin Application Entry Point.

Entry point: uvicorn ragadmin.main:app --host 0.0.0.0 --port 5000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ragadmin.api.errors import APIError, api_error_handler, domain_error_handler
from ragadmin.api.jobs import router as jobs_router
from ragadmin.api.middleware import TraceMiddleware
from ragadmin.api.observability import router as observability_router
from ragadmin.api.tenants import router as tenants_router
from ragadmin.core.config import settings
from ragadmin.core.context import ServiceContainer, build_services
from ragadmin.core.errors import RagAdminError
from ragadmin.core.logging import setup_logging
from ragadmin.kernel.redis_client import close_redis_pool, get_redis_pool
from ragadmin.storage.database import close_db, get_session_factory, init_db
from ragadmin.storage.repositories import SqlTenantStore
from ragadmin.storage.store import InMemoryTenantStore, TenantStore

logger = logging.getLogger("ragadmin.main")


async def _build_store() -> TenantStore:
    if settings.IDENTITY_STORE == "sql":
        await init_db(create_tables=settings.RAGADMIN_ENV == "dev")
        return SqlTenantStore(get_session_factory())
    if settings.IDENTITY_STORE != "memory":
        raise RuntimeError(f"Unknown IDENTITY_STORE: {settings.IDENTITY_STORE!r}")
    logger.warning("Using in-memory identity store; records are lost on restart")
    return InMemoryTenantStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    owned = getattr(app.state, "services", None) is None
    if owned:
        store = await _build_store()
        redis = await get_redis_pool() if settings.JOB_LOCK_ENABLED else None
        app.state.services = build_services(store, settings, redis=redis)
    logger.info("[RagAdmin] Service ready (store=%s)", settings.IDENTITY_STORE)
    yield
    if owned:
        await close_redis_pool()
        await close_db()
    logger.info("[RagAdmin] Shutdown complete")


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    app = FastAPI(
        title="RagAdmin",
        description="Tenant resource lifecycle and ingestion job orchestration",
        version="0.1.0",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(TraceMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RagAdminError, domain_error_handler)

    app.include_router(tenants_router, prefix="/api")
    app.include_router(jobs_router, prefix="/api")
    app.include_router(observability_router)
    return app


app = create_app()
