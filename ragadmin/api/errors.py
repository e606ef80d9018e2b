# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
API Error Handling — Unified error envelope.

Every failure answers with:
  {"success": false, "error": ..., "code": ..., "summary": ..., "details": ..., "trace_id": ...}
``summary`` (and captured stdout/stderr) are filled for failed jobs.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ragadmin.core.errors import JobExecutionFailure, RagAdminError

logger = logging.getLogger("ragadmin.api.errors")


class APIError(Exception):
    """Request-level error raised by routers."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", None) or str(uuid.uuid4())


def _envelope(
    request: Request, status_code: int, code: str, message: str, details: Dict[str, Any],
    summary: Optional[Dict[str, Any]] = None, **extra: Any,
) -> JSONResponse:
    content = {
        "success": False,
        "error": message,
        "code": code,
        "summary": summary,
        "details": details,
        "trace_id": _trace_id(request),
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return _envelope(request, exc.status_code, exc.code, exc.message, exc.details)


async def domain_error_handler(request: Request, exc: RagAdminError) -> JSONResponse:
    """Map the domain taxonomy onto HTTP responses."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code,
            extra={"trace_id": _trace_id(request)},
        )
    if isinstance(exc, JobExecutionFailure):
        return _envelope(
            request, exc.status_code, exc.code, exc.message, exc.details,
            summary=exc.summary, jobId=exc.job_id, stdout=exc.stdout, stderr=exc.stderr,
        )
    return _envelope(request, exc.status_code, exc.code, exc.message, exc.details)
