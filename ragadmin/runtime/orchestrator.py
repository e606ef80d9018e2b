# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Job Orchestrator — Drives a scrape/update job for one tenant.

Pipeline for one request, strictly sequential:
  ensure_tenant_resources -> dispatch (blocks until the process exits)
  -> stale-index signal -> JobOutcome

Job failures propagate as JobExecutionFailure with the captured output
and are not retried here. The signal outcome is carried next to the job
outcome and never changes it.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from ragadmin.core.errors import JobAlreadyRunning, JobExecutionFailure, ResourceIncomplete
from ragadmin.core.metrics import ops_metrics
from ragadmin.core.tenant import TenantContext
from ragadmin.protocols.jobs import JobConfig, JobDescriptor, JobOutcome, JobResult
from ragadmin.resilience.job_lock import TenantJobLock
from ragadmin.runtime.job_runner import JobRunner
from ragadmin.runtime.signaler import StaleIndexSignaler

logger = logging.getLogger("ragadmin.orchestrator")

DEFAULT_MAX_OUTPUT_CHARS = 8192


def truncate_log(value: Optional[str], max_chars: int = DEFAULT_MAX_OUTPUT_CHARS) -> Optional[str]:
    """Cap a captured stream for reporting; the process output itself is not limited."""
    if not value or len(value) <= max_chars:
        return value
    return f"{value[:max_chars]}\n... [truncated {len(value) - max_chars} chars]"


def ensure_tenant_resources(context: TenantContext) -> None:
    """Refuse to run jobs against a tenant without resource id or index path."""
    missing = [name for name in ("resource_id", "index_path") if not getattr(context, name)]
    if missing:
        raise ResourceIncomplete(context.identity, missing)


class JobOrchestrator:
    def __init__(
        self,
        runner: JobRunner,
        signaler: StaleIndexSignaler,
        job_lock: Optional[TenantJobLock] = None,
        max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS,
        log_levels: Optional[Dict[str, str]] = None,
    ) -> None:
        self._runner = runner
        self._signaler = signaler
        self._job_lock = job_lock
        self._max_output_chars = max_output_chars
        self._log_levels = log_levels or {}

    ensure_tenant_resources = staticmethod(ensure_tenant_resources)

    async def run(self, kind: str, context: TenantContext, config: JobConfig) -> JobOutcome:
        """Run a job end to end and signal the bot service on success."""
        ensure_tenant_resources(context)
        result = await self.dispatch(kind, context, config)
        signal = await self._signaler.notify(context)
        return JobOutcome(job=result, resource_id=context.resource_id, signal=signal)

    async def dispatch(self, kind: str, context: TenantContext, config: JobConfig) -> JobResult:
        """
        Launch the job process and wait for it to finish.

        Returns the captured output with each stream capped at
        ``max_output_chars``. Raises JobExecutionFailure on any abnormal
        outcome, JobAlreadyRunning if locking is enabled and held.
        """
        ensure_tenant_resources(context)
        descriptor = JobDescriptor.build(
            kind, context, config, log_level=self._log_levels.get(kind, "INFO"),
        )
        log_extra = {
            "identity": context.identity,
            "resource_id": context.resource_id,
            "job_id": descriptor.job_id,
        }

        if self._job_lock is not None:
            if not await self._job_lock.acquire(context.resource_id, descriptor.job_id):
                holder = await self._job_lock.holder(context.resource_id)
                raise JobAlreadyRunning(context.resource_id, holder)

        logger.info(
            "Starting %s job (data_store=%s, index=%s)",
            kind, descriptor.data_store_uri, descriptor.index_path, extra=log_extra,
        )
        ops_metrics.inc(f"job_started:{kind}")
        try:
            with ops_metrics.timed(f"job_duration_ms:{kind}"):
                result = await self._runner.run_job(descriptor)
        except JobExecutionFailure as e:
            ops_metrics.inc(f"job_failed:{kind}")
            e.job_id = e.job_id or descriptor.job_id
            e.stdout = truncate_log(e.stdout, self._max_output_chars) or ""
            e.stderr = truncate_log(e.stderr, self._max_output_chars) or ""
            logger.error("%s job failed: %s", kind.capitalize(), e.message, extra=log_extra)
            raise
        finally:
            if self._job_lock is not None:
                await self._release_lock(context.resource_id, descriptor.job_id, log_extra)

        if not result.success:
            ops_metrics.inc(f"job_failed:{kind}")
            raise JobExecutionFailure(
                f"{kind.capitalize()} job reported failure",
                job_id=descriptor.job_id,
                exit_code=result.exit_code,
                summary=result.summary,
                stdout=truncate_log(result.stdout, self._max_output_chars) or "",
                stderr=truncate_log(result.stderr, self._max_output_chars) or "",
            )

        ops_metrics.inc(f"job_succeeded:{kind}")
        result.stdout = truncate_log(result.stdout, self._max_output_chars) or ""
        result.stderr = truncate_log(result.stderr, self._max_output_chars) or ""
        logger.info("%s job finished", kind.capitalize(), extra=log_extra)
        return result

    async def _release_lock(self, resource_id: str, job_id: str, log_extra: Dict[str, str]) -> None:
        # An unreleased lock expires after its TTL
        try:
            await self._job_lock.release(resource_id, job_id)
        except Exception as e:
            ops_metrics.inc("job_lock_release_failed")
            logger.error("Failed to release job lock: %s", e, extra=log_extra)
