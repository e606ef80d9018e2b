# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Structured Logging — One JSON object per line, tagged with tenant and job.

Components pass tenant context through ``extra=`` so a job can be
followed from the HTTP request (trace_id) through the tenant
(identity, resource_id) to the scraper process output (job_id):

    logger.info("Scrape job finished", extra={"job_id": job_id, "resource_id": rid})

Subprocess output is echoed through the same loggers, so scraper and
updater lines land in this stream with their job_id attached.
"""

from __future__ import annotations

import json
import logging
import sys

CONTEXT_KEYS = ("trace_id", "identity", "resource_id", "job_id")

# Per-request INFO lines, signal URLs included
QUIET_LOGGERS = ("httpx", "httpcore")


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {key: getattr(record, key) for key in CONTEXT_KEYS if getattr(record, key, None)}
        )
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route every logger through a single JSON stdout handler."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers[:] = [handler]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
