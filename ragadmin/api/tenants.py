# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Tenants API — Registration, member management and resource inspection.

Thin wrappers over TenantDirectory; all cache invalidation happens there.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ragadmin.api.deps import Caller, authorize_target, get_caller, get_services
from ragadmin.api.errors import APIError
from ragadmin.core.context import ServiceContainer
from ragadmin.core.errors import ImmutableField
from ragadmin.core.tenant import TenantRecord

logger = logging.getLogger("ragadmin.api.tenants")

router = APIRouter(tags=["tenants"])

_USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
_EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


# ── Request Models ──────────────────────────────────────────

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=_USERNAME_PATTERN)
    email: str = Field(..., pattern=_EMAIL_PATTERN)
    name: str = Field(..., min_length=2, max_length=100)


class CreateMemberRequest(RegisterRequest):
    is_active: bool = Field(default=True, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)


class UpdateTenantRequest(BaseModel):
    """
    Account fields only. Resource fields are owned by provisioning;
    anything else in the body is rejected by ``account_changes``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[str] = Field(default=None, pattern=_EMAIL_PATTERN)
    username: Optional[str] = Field(default=None, min_length=3, max_length=30, pattern=_USERNAME_PATTERN)
    is_active: Optional[bool] = Field(default=None, alias="isActive")

    def to_changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_none=True, exclude=set(self.model_extra or {}))
        if "name" in changes:
            changes["display_name"] = changes.pop("name")
        return changes


def account_changes(req: UpdateTenantRequest, caller: Caller, target: str) -> Dict[str, Any]:
    """
    Validate a PATCH body against what this caller may change.

    Everyone may edit name, email and username of an account they can
    act on; only an admin editing a member it owns may toggle isActive.
    """
    extra = sorted(req.model_extra or {})
    if extra:
        if {"resourceId", "resource_id"} & set(extra):
            raise ImmutableField("resource_id")
        raise APIError(
            code="INVALID_REQUEST",
            message=f"Fields cannot be updated: {', '.join(extra)}",
            details={"fields": extra},
        )
    changes = req.to_changes()
    if not changes:
        raise APIError(code="INVALID_REQUEST", message="No updatable fields provided")
    if "is_active" in changes and target == caller.identity:
        raise APIError(
            code="ACCESS_DENIED",
            message="Account status can only be changed by the owning administrator",
            status_code=403,
        )
    return changes


def _public(record: TenantRecord) -> Dict[str, Any]:
    return {
        "id": record.identity,
        "name": record.display_name,
        "username": record.username,
        "email": record.email,
        "role": record.role,
        "adminId": record.admin_id,
        "isActive": record.is_active,
        "resourceId": record.resource_id,
        "databaseUri": record.data_store_uri,
        "vectorStorePath": record.index_path,
        "botEndpoint": record.bot_endpoint,
        "schedulerEndpoint": record.scheduler_endpoint,
        "scraperEndpoint": record.scraper_endpoint,
    }


# ── Endpoints ───────────────────────────────────────────────

@router.post("/auth/register", status_code=201)
async def register(req: RegisterRequest, services: ServiceContainer = Depends(get_services)):
    """Public registration; creates an admin tenant with provisioned resources."""
    record = await services.directory.register_admin(req.username, req.email, req.name)
    return {"message": "Admin account registered successfully", "user": _public(record)}


@router.post("/tenants", status_code=201)
async def create_member(
    req: CreateMemberRequest,
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    if not caller.is_admin:
        raise APIError(code="ACCESS_DENIED", message="Only administrators can create users", status_code=403)
    record = await services.directory.create_member(
        caller.identity, req.username, req.email, req.name, is_active=req.is_active,
    )
    return {"message": "User created successfully", "user": _public(record)}


@router.get("/tenants")
async def list_members(
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    """Members created by the calling admin."""
    if not caller.is_admin:
        raise APIError(code="ACCESS_DENIED", message="Access denied", status_code=403)
    members = await services.directory.list_members(caller.identity)
    return {"users": [_public(r) for r in members], "count": len(members)}


@router.get("/tenants/me")
async def get_me(
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    record = await services.directory.get(caller.identity)
    return {"user": _public(record)}


@router.get("/tenants/{identity}")
async def get_tenant(
    identity: str,
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    target = await authorize_target(caller, identity, services)
    record = await services.directory.get(target)
    return {"user": _public(record)}


@router.get("/tenants/{identity}/resources")
async def get_resources(
    identity: str,
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    """Authoritative resource view (bypasses the cache)."""
    target = await authorize_target(caller, identity, services)
    context = await services.directory.inspect_resources(target)
    return {"tenant": context.to_dict()}


@router.post("/tenants/{identity}/resources/ensure")
async def ensure_resources(
    identity: str,
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    target = await authorize_target(caller, identity, services)
    record = await services.directory.ensure_resources(target)
    return {"user": _public(record)}


@router.patch("/tenants/{identity}")
async def update_tenant(
    identity: str,
    req: UpdateTenantRequest,
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    target = await authorize_target(caller, identity, services)
    changes = account_changes(req, caller, target)
    record = await services.directory.update(target, changes)
    return {"message": "User updated successfully", "user": _public(record)}


@router.delete("/tenants/{identity}")
async def delete_tenant(
    identity: str,
    caller: Caller = Depends(get_caller),
    services: ServiceContainer = Depends(get_services),
):
    if identity == caller.identity:
        raise APIError(code="INVALID_REQUEST", message="You cannot delete your own account while signed in")
    if not caller.is_admin:
        raise APIError(code="ACCESS_DENIED", message="Users cannot delete accounts", status_code=403)
    target = await authorize_target(caller, identity, services)
    await services.directory.delete(target)
    return {"message": "User deleted successfully"}
