# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Request Tracing — X-Trace-Id propagation and access logging.

The gateway may supply X-Trace-Id; otherwise one is minted here. It is
stored on ``request.state`` for the error envelope, echoed on the
response, and logged together with the calling identity. Job routes
stay open for the whole scrape, so their logged duration is the job's.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("ragadmin.api.access")

TRACE_HEADER = "X-Trace-Id"


class TraceMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get(TRACE_HEADER) or uuid.uuid4().hex
        request.state.trace_id = trace_id

        started = time.monotonic()
        response = await call_next(request)
        response.headers[TRACE_HEADER] = trace_id

        logger.info(
            "%s %s %d %.0fms",
            request.method, request.url.path, response.status_code,
            (time.monotonic() - started) * 1000,
            extra={"trace_id": trace_id, "identity": request.headers.get("X-User-Id")},
        )
        return response
