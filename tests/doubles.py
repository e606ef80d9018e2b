# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
In-memory collaborators shared by the test suite.
"""

from typing import Any, Dict, List, Optional

import pytest

from ragadmin.core.errors import JobExecutionFailure
from ragadmin.core.tenant import TenantRecord
from ragadmin.protocols.jobs import JobDescriptor, JobResult, SignalResult
from ragadmin.storage.store import InMemoryTenantStore



class CountingStore(InMemoryTenantStore):
    """InMemoryTenantStore that counts reads."""

    def __init__(self, records: Optional[List[TenantRecord]] = None):
        super().__init__(records)
        self.get_calls = 0

    async def get(self, identity: str):
        self.get_calls += 1
        return await super().get(identity)


class FakeJobRunner:
    """Records descriptors and returns a canned result (or raises)."""

    def __init__(
        self,
        summary: Optional[Dict[str, Any]] = None,
        stdout: str = "",
        stderr: str = "",
        error: Optional[JobExecutionFailure] = None,
    ):
        self.summary = summary if summary is not None else {"pagesCrawled": 1}
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.calls: List[JobDescriptor] = []

    async def run_job(self, descriptor: JobDescriptor) -> JobResult:
        self.calls.append(descriptor)
        if self.error is not None:
            raise self.error
        return JobResult(
            job_id=descriptor.job_id,
            success=True,
            summary=self.summary,
            stdout=self.stdout,
            stderr=self.stderr,
            exit_code=0,
        )


class ForbiddenJobRunner:
    """Fails the test if a job is ever dispatched."""

    async def run_job(self, descriptor: JobDescriptor) -> JobResult:
        pytest.fail(f"Job must not be dispatched: {descriptor.job_id}")


class FakeSignaler:
    def __init__(self, result: Optional[SignalResult] = None):
        self.result = result or SignalResult(success=True, message="ok")
        self.calls = []

    async def notify(self, context) -> SignalResult:
        self.calls.append(context)
        return self.result
