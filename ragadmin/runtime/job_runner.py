# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Job Runner — Executes scrape/update jobs as external processes.

The orchestrator only talks to the JobRunner protocol; tests substitute
an in-memory runner. The subprocess runner waits for the process to exit
with no timeout: ingestion jobs are long-running and are never cancelled
once started.

Process contract:
  - CLI flags derived from the JobDescriptor (see ``build_job_args``)
  - exit code 0 means success
  - the last stdout line that parses as a JSON object is the summary
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shlex
import time
from typing import Any, Dict, List, Optional, Protocol

from ragadmin.core.errors import JobExecutionFailure
from ragadmin.protocols.jobs import JOB_UPDATE, JobDescriptor, JobResult

logger = logging.getLogger("ragadmin.job_runner")


class JobRunner(Protocol):
    async def run_job(self, descriptor: JobDescriptor) -> JobResult: ...


def _flag(args: List[str], name: str, value: Any) -> None:
    if value is None or value == "":
        return
    if isinstance(value, bool):
        args.append(f"--{name}" if value else f"--no-{name}")
    else:
        args.extend([f"--{name}", str(value)])


def build_job_args(descriptor: JobDescriptor) -> List[str]:
    """Translate a descriptor into scraper/updater command-line flags."""
    cfg = descriptor.config
    args: List[str] = []
    _flag(args, "start-url", cfg.start_url)
    _flag(args, "sitemap-url", cfg.sitemap_url)
    _flag(args, "resource-id", descriptor.resource_id)
    _flag(args, "user-id", descriptor.identity)
    _flag(args, "vector-store-path", descriptor.index_path)
    _flag(args, "collection-name", cfg.collection_name)
    _flag(args, "embedding-model", cfg.embedding_model_name)
    _flag(args, "domain", cfg.domain)
    _flag(args, "max-depth", cfg.max_depth)
    _flag(args, "max-links-per-page", cfg.max_links_per_page)
    _flag(args, "respect-robots", cfg.respect_robots)
    _flag(args, "aggressive-discovery", cfg.aggressive_discovery)
    if descriptor.kind == JOB_UPDATE:
        _flag(args, "mongo-uri", descriptor.data_store_uri)
    _flag(args, "job-id", descriptor.job_id)
    _flag(args, "log-level", descriptor.log_level)
    return args


def parse_summary(stdout: str) -> Optional[Dict[str, Any]]:
    for line in reversed(stdout.splitlines()):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            parsed = json.loads(line)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _log_stream(text: str, *, prefix: str, level: int, job_id: str) -> None:
    for line in text.splitlines():
        logger.log(level, "%s %s", prefix, line, extra={"job_id": job_id})


class SubprocessJobRunner:
    """Runs each job kind through its configured command line."""

    def __init__(self, commands: Dict[str, str], env: Optional[Dict[str, str]] = None):
        self._commands = {kind: shlex.split(cmd) for kind, cmd in commands.items()}
        self._env = env

    async def run_job(self, descriptor: JobDescriptor) -> JobResult:
        base = self._commands.get(descriptor.kind)
        if not base:
            raise JobExecutionFailure(
                f"No command configured for {descriptor.kind} jobs", job_id=descriptor.job_id,
            )
        cmd = [*base, *build_job_args(descriptor)]
        env = dict(self._env) if self._env is not None else os.environ.copy()

        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise JobExecutionFailure(
                f"Failed to start {descriptor.kind} process: {e}", job_id=descriptor.job_id,
            ) from e

        out, err = await proc.communicate()
        duration_ms = (time.monotonic() - start) * 1000
        stdout = out.decode(errors="replace") if out else ""
        stderr = err.decode(errors="replace") if err else ""
        summary = parse_summary(stdout)

        prefix = f"[{descriptor.kind}]"
        _log_stream(stdout, prefix=prefix, level=logging.INFO, job_id=descriptor.job_id)
        stderr_level = logging.ERROR if proc.returncode else logging.INFO
        _log_stream(stderr, prefix=prefix, level=stderr_level, job_id=descriptor.job_id)

        if proc.returncode != 0:
            raise JobExecutionFailure(
                f"{descriptor.kind.capitalize()} process exited with code {proc.returncode}",
                job_id=descriptor.job_id,
                exit_code=proc.returncode,
                summary=summary,
                stdout=stdout,
                stderr=stderr,
            )

        return JobResult(
            job_id=descriptor.job_id,
            success=True,
            summary=summary,
            stdout=stdout,
            stderr=stderr,
            exit_code=proc.returncode,
            duration_ms=duration_ms,
        )
