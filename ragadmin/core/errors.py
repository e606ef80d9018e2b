# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Domain Errors — Failure taxonomy shared by every component.

Each error carries a stable ``code`` and the HTTP status the API layer
answers with. Signal failures are not part of this hierarchy: they are
reported as ``SignalResult(success=False)`` and never raised.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RagAdminError(Exception):
    """Base class for domain failures."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ProvisioningFailure(RagAdminError):
    """Resource fields could not be derived; nothing was persisted."""

    code = "PROVISIONING_FAILED"
    status_code = 500


class ResourceIncomplete(RagAdminError):
    """Tenant is missing resource_id or index path. Retry after re-provisioning."""

    code = "RESOURCE_INCOMPLETE"
    status_code = 503
    retryable = True

    def __init__(self, identity: str, missing: list[str]):
        self.identity = identity
        self.missing = missing
        super().__init__(
            "Tenant resources are incomplete. Re-provision before running jobs.",
            details={"identity": identity, "missing": missing},
        )


class DuplicateIdentity(RagAdminError):
    """Uniqueness constraint violated in the identity store."""

    code = "DUPLICATE_IDENTITY"
    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(
            message or f"{field.capitalize()} already in use",
            details={"field": field},
        )


class TenantNotFound(RagAdminError):
    code = "TENANT_NOT_FOUND"
    status_code = 404

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"Tenant '{identity}' not found")


class ImmutableField(RagAdminError):
    code = "IMMUTABLE_FIELD"
    status_code = 400

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} cannot be changed once assigned", details={"field": field})


class JobExecutionFailure(RagAdminError):
    """The scrape/update process failed. Carries whatever was captured."""

    code = "JOB_FAILED"
    status_code = 500

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        exit_code: Optional[int] = None,
        summary: Optional[Dict[str, Any]] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.job_id = job_id
        self.exit_code = exit_code
        self.summary = summary
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message, details={"job_id": job_id, "exit_code": exit_code})


class JobAlreadyRunning(RagAdminError):
    """Another job holds the per-tenant lock (only when locking is enabled)."""

    code = "JOB_ALREADY_RUNNING"
    status_code = 409

    def __init__(self, resource_id: str, holder: Optional[str] = None):
        self.resource_id = resource_id
        self.holder = holder
        super().__init__(
            f"A job is already running for resource '{resource_id}'",
            details={"resource_id": resource_id, "holder": holder},
        )


class AccessDenied(RagAdminError):
    code = "ACCESS_DENIED"
    status_code = 403
