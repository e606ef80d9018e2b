# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Tenant Directory — Identity-layer operations that touch tenant records.

This is where the write-invalidation protocol is wired: every method
that writes a record (or removes it) calls ``cache.invalidate`` right
after the store write succeeds. Creation provisions resources before
anything is persisted, so a provisioning failure leaves no record.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from ragadmin.core.errors import AccessDenied, ImmutableField, TenantNotFound
from ragadmin.core.tenant import (
    RESOURCE_FIELDS,
    ROLE_ADMIN,
    ROLE_MEMBER,
    TenantContext,
    TenantRecord,
)
from ragadmin.kernel.provisioner import ResourceProvisioner
from ragadmin.memory.tenant_cache import TenantContextCache
from ragadmin.storage.store import TenantStore

logger = logging.getLogger("ragadmin.directory")

UPDATABLE_FIELDS = frozenset({"display_name", "email", "username", "is_active"})


class TenantDirectory:
    def __init__(
        self,
        store: TenantStore,
        provisioner: ResourceProvisioner,
        cache: TenantContextCache,
    ) -> None:
        self._store = store
        self._provisioner = provisioner
        self._cache = cache

    # ── Creation ────────────────────────────────────────────────

    async def register_admin(self, username: str, email: str, display_name: str) -> TenantRecord:
        """Public self-registration; creates an admin tenant."""
        return await self._create(ROLE_ADMIN, username, email, display_name, admin_id=None)

    async def create_member(
        self,
        admin_identity: str,
        username: str,
        email: str,
        display_name: str,
        is_active: bool = True,
    ) -> TenantRecord:
        """Admin-initiated creation of a member bound to that admin."""
        admin = await self._require(admin_identity)
        if not admin.is_admin:
            raise AccessDenied("Only administrators can create users")
        return await self._create(
            ROLE_MEMBER, username, email, display_name,
            admin_id=admin.identity, is_active=is_active,
        )

    async def _create(
        self,
        role: str,
        username: str,
        email: str,
        display_name: str,
        admin_id: Optional[str],
        is_active: bool = True,
    ) -> TenantRecord:
        identity = uuid.uuid4().hex
        resources = await self._provisioner.provision(identity, display_name or username)
        record = TenantRecord(
            identity=identity,
            username=username.strip(),
            email=email.strip().lower(),
            role=role,
            display_name=display_name.strip(),
            admin_id=admin_id,
            is_active=is_active,
            **resources.to_dict(),
        )
        created = await self._store.create(record)
        logger.info(
            "Created %s %s", role, created.username,
            extra={"identity": identity, "resource_id": created.resource_id},
        )
        return created

    # ── Mutation ────────────────────────────────────────────────

    async def update(self, identity: str, changes: Dict[str, Any]) -> TenantRecord:
        """
        Profile or admin edit of account fields.

        Resource fields are owned by provisioning and can never be set here.
        """
        for name in RESOURCE_FIELDS:
            if name in changes:
                raise ImmutableField(name)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        clean = dict(changes)
        if clean.get("email"):
            clean["email"] = clean["email"].strip().lower()
        if clean.get("username"):
            clean["username"] = clean["username"].strip()

        updated = await self._store.update(identity, clean)
        self._cache.invalidate(identity)
        logger.info("Updated tenant fields %s", sorted(clean), extra={"identity": identity})
        return updated

    async def delete(self, identity: str) -> None:
        await self._store.delete(identity)
        self._cache.invalidate(identity)
        logger.info("Deleted tenant", extra={"identity": identity})

    async def ensure_resources(self, identity: str) -> TenantRecord:
        """
        Consistency backstop, run at authentication time.

        Persists only the fields that were absent and invalidates the cache
        when something was written.
        """
        record = await self._require(identity)
        resources = await self._provisioner.ensure_resources(record)
        filled = {
            name: value
            for name, value in resources.to_dict().items()
            if getattr(record, name) != value
        }
        if not filled:
            return record

        updated = await self._store.update(identity, filled)
        self._cache.invalidate(identity)
        logger.warning(
            "Backfilled resource fields %s", sorted(filled),
            extra={"identity": identity, "resource_id": updated.resource_id},
        )
        return updated

    # ── Reads ───────────────────────────────────────────────────

    async def get(self, identity: str) -> TenantRecord:
        return await self._require(identity)

    async def list_members(self, admin_identity: str) -> List[TenantRecord]:
        """Members owned by ``admin_identity``, newest first."""
        admin = await self._require(admin_identity)
        if not admin.is_admin:
            raise AccessDenied("Only administrators can list users")
        return await self._store.list_members(admin.identity)

    async def inspect_resources(self, identity: str) -> TenantContext:
        """Administrative view: always the authoritative record."""
        return await self._cache.get(identity, force_refresh=True)

    async def _require(self, identity: str) -> TenantRecord:
        record = await self._store.get(identity)
        if record is None:
            raise TenantNotFound(identity)
        return record
