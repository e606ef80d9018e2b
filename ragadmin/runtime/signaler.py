# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Stale Index Signaler — Tells the bot service a tenant's index is dirty.

Lightweight by construction: the bot only sets a dirty flag and reloads
the vector store lazily on the next chat turn. The call has a hard
timeout and is never retried. Every failure is returned as
``SignalResult(success=False)``; nothing is raised to the caller.

Protocol:
  POST {bot_endpoint}/mark-data-updated
       ?resource_id=&vector_store_path=&database_uri=
  X-Service-Secret: <shared secret>
  -> {"status": "success", "message": ..., "documentCount": ...}
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ragadmin.core.metrics import ops_metrics
from ragadmin.core.tenant import TenantContext
from ragadmin.protocols.jobs import SignalResult

logger = logging.getLogger("ragadmin.signaler")

SECRET_HEADER = "X-Service-Secret"
MARK_PATH = "/mark-data-updated"


class StaleIndexSignaler:
    """Sends the mark-data-updated signal for a tenant."""

    def __init__(
        self,
        fallback_endpoint: str = "http://localhost:8000",
        shared_secret: str = "",
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._fallback_endpoint = fallback_endpoint
        self._shared_secret = shared_secret
        self._timeout = timeout
        self._client = client

    async def notify(self, context: TenantContext) -> SignalResult:
        endpoint = (context.bot_endpoint or self._fallback_endpoint).rstrip("/")
        url = f"{endpoint}{MARK_PATH}"
        params = {
            "resource_id": context.resource_id,
            "vector_store_path": context.index_path,
            "database_uri": context.data_store_uri,
        }
        headers = {SECRET_HEADER: self._shared_secret} if self._shared_secret else {}
        log_extra = {"identity": context.identity, "resource_id": context.resource_id}

        logger.info("Marking index stale: %s", url, extra=log_extra)

        try:
            if self._client is not None:
                resp = await self._client.post(
                    url, params=params, headers=headers, timeout=self._timeout,
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(url, params=params, headers=headers)
            result = self._interpret(resp)
        except Exception as e:
            result = SignalResult(success=False, error=str(e) or type(e).__name__)

        if result.success:
            ops_metrics.inc("signal_ok")
            logger.info("Index marked stale, next chat turn reloads", extra=log_extra)
        else:
            ops_metrics.inc("signal_failed")
            logger.warning("Stale-index signal failed: %s", result.error, extra=log_extra)
        return result

    @staticmethod
    def _interpret(resp: httpx.Response) -> SignalResult:
        if resp.status_code >= 400:
            return SignalResult(success=False, error=f"Bot service returned HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or body.get("status") != "success":
            return SignalResult(success=False, error="Unexpected response from bot service")

        count = body.get("documentCount")
        return SignalResult(
            success=True,
            message=body.get("message"),
            document_count=count if isinstance(count, int) else None,
        )
