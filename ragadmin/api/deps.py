# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
API Dependencies — Caller identity and the service container.

Caller identity is asserted by the upstream gateway in trusted headers;
token validation happens there, not here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, Request

from ragadmin.core.context import ServiceContainer
from ragadmin.core.errors import AccessDenied
from ragadmin.core.tenant import ROLE_ADMIN, ROLES


@dataclass(frozen=True)
class Caller:
    identity: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


async def get_caller(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> Caller:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing caller identification")
    role = (x_user_role or "").strip().lower()
    if role not in ROLES:
        raise HTTPException(status_code=401, detail="Missing or unknown caller role")
    return Caller(identity=x_user_id, role=role)


def get_services(request: Request) -> ServiceContainer:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized. Build them in the app lifespan first.")
    return services


async def authorize_target(
    caller: Caller, target_identity: Optional[str], services: ServiceContainer,
) -> str:
    """
    Resolve which tenant a request acts on.

    Members may only act on themselves; admins on themselves and on the
    members they own.
    """
    target = target_identity or caller.identity
    if target == caller.identity:
        return target
    if not caller.is_admin:
        raise AccessDenied("Access denied: you can only act on your own data")
    record = await services.directory.get(target)
    if record.admin_id != caller.identity:
        raise AccessDenied("Access denied: you can only act on users you created")
    return target
