# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Service Container — The constructed components shared by request handlers.

Built once at startup (see ``build_services``) and attached to
``app.state.services``; handlers receive it through FastAPI Depends.
Tests construct their own container around in-memory collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import redis.asyncio as aioredis

from ragadmin.core.config import RagAdminSettings, settings as default_settings
from ragadmin.kernel.provisioner import ResourceProvisioner
from ragadmin.memory.tenant_cache import TenantContextCache
from ragadmin.protocols.jobs import JOB_SCRAPE, JOB_UPDATE
from ragadmin.resilience.job_lock import TenantJobLock
from ragadmin.runtime.job_runner import JobRunner, SubprocessJobRunner
from ragadmin.runtime.orchestrator import JobOrchestrator
from ragadmin.runtime.signaler import StaleIndexSignaler
from ragadmin.services.directory import TenantDirectory
from ragadmin.storage.store import TenantStore


@dataclass
class ServiceContainer:
    store: TenantStore
    cache: TenantContextCache
    provisioner: ResourceProvisioner
    directory: TenantDirectory
    orchestrator: JobOrchestrator
    signaler: StaleIndexSignaler


def build_services(
    store: TenantStore,
    config: Optional[RagAdminSettings] = None,
    runner: Optional[JobRunner] = None,
    signaler: Optional[StaleIndexSignaler] = None,
    redis: Optional[aioredis.Redis] = None,
) -> ServiceContainer:
    """Wire every component around one identity store."""
    cfg = config or default_settings
    cache = TenantContextCache(store)
    provisioner = ResourceProvisioner(store.resource_id_exists, cfg)
    directory = TenantDirectory(store, provisioner, cache)

    runner = runner or SubprocessJobRunner({
        JOB_SCRAPE: cfg.SCRAPER_COMMAND,
        JOB_UPDATE: cfg.UPDATER_COMMAND,
    })
    signaler = signaler or StaleIndexSignaler(
        fallback_endpoint=cfg.BOT_SERVICE_URL,
        shared_secret=cfg.BOT_SHARED_SECRET,
        timeout=cfg.SIGNAL_TIMEOUT_SECONDS,
    )
    job_lock = None
    if cfg.JOB_LOCK_ENABLED:
        if redis is None:
            raise RuntimeError("JOB_LOCK_ENABLED requires a Redis client")
        job_lock = TenantJobLock(redis, ttl_seconds=cfg.JOB_LOCK_TTL_SECONDS)

    orchestrator = JobOrchestrator(
        runner,
        signaler,
        job_lock=job_lock,
        max_output_chars=cfg.JOB_OUTPUT_MAX_CHARS,
        log_levels={JOB_SCRAPE: cfg.SCRAPER_LOG_LEVEL, JOB_UPDATE: cfg.UPDATER_LOG_LEVEL},
    )
    return ServiceContainer(
        store=store,
        cache=cache,
        provisioner=provisioner,
        directory=directory,
        orchestrator=orchestrator,
        signaler=signaler,
    )
