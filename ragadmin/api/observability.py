# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Observability API — Health check and metrics.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from ragadmin.core.metrics import ops_metrics

router = APIRouter(tags=["observability"])


@router.get("/health")
async def health_check(request: Request):
    services = getattr(request.app.state, "services", None)
    return {
        "status": "ok" if services is not None else "starting",
        "version": "0.1.0",
        "cached_tenants": len(services.cache) if services is not None else 0,
        "metrics": ops_metrics.snapshot(),
    }


@router.get("/api/metrics")
async def get_metrics():
    return ops_metrics.snapshot()
