# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Jobs API — Run scrape and update jobs for a tenant.

The request stays open for the whole job; deployments must not put a
request timeout in front of these routes.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header

from ragadmin.api.deps import Caller, authorize_target, get_caller, get_services
from ragadmin.core.context import ServiceContainer
from ragadmin.protocols.jobs import JOB_SCRAPE, JOB_UPDATE, JobConfig

logger = logging.getLogger("ragadmin.api.jobs")

router = APIRouter(prefix="/scrape", tags=["jobs"])


async def _run(
    kind: str,
    config: JobConfig,
    caller: Caller,
    target: Optional[str],
    services: ServiceContainer,
) -> dict:
    identity = await authorize_target(caller, target, services)
    context = await services.cache.get(identity)
    outcome = await services.orchestrator.run(kind, context, config)
    return outcome.to_response()


@router.post("")
async def start_scrape(
    config: JobConfig,
    x_tenant_user_id: Optional[str] = Header(None, alias="X-Tenant-User-Id"),
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    """Crawl from the seed URL into the tenant's vector store."""
    return await _run(JOB_SCRAPE, config, caller, x_tenant_user_id, services)


@router.post("/update")
async def run_updater(
    config: JobConfig,
    x_tenant_user_id: Optional[str] = Header(None, alias="X-Tenant-User-Id"),
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    """Refresh already-indexed content; honours a data-store URI override."""
    return await _run(JOB_UPDATE, config, caller, x_tenant_user_id, services)
