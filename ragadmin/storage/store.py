# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Identity Store — Interface to the account records and an in-memory backend.

The identity store owns uniqueness: usernames are global, admin emails are
unique among admins, member emails are unique per owning admin, and
resource ids are unique across all tenants. Violations surface as
``DuplicateIdentity``; this layer never re-checks them elsewhere.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional, Protocol

from ragadmin.core.errors import DuplicateIdentity, ImmutableField, TenantNotFound
from ragadmin.core.tenant import ROLE_ADMIN, ROLE_MEMBER, TenantRecord

logger = logging.getLogger("ragadmin.store")


class TenantStore(Protocol):
    """Operations the service needs from the identity store."""

    async def get(self, identity: str) -> Optional[TenantRecord]: ...

    async def create(self, record: TenantRecord) -> TenantRecord: ...

    async def update(self, identity: str, changes: Dict[str, Any]) -> TenantRecord: ...

    async def delete(self, identity: str) -> None: ...

    async def resource_id_exists(self, resource_id: str) -> bool: ...

    async def list_all(self) -> List[TenantRecord]: ...

    async def list_members(self, admin_id: str) -> List[TenantRecord]: ...


class InMemoryTenantStore:
    """Dict-backed identity store for development and tests."""

    def __init__(self, records: Optional[List[TenantRecord]] = None):
        self._records: Dict[str, TenantRecord] = {}
        for record in records or []:
            self._records[record.identity] = copy.deepcopy(record)

    async def get(self, identity: str) -> Optional[TenantRecord]:
        record = self._records.get(identity)
        return copy.deepcopy(record) if record else None

    async def create(self, record: TenantRecord) -> TenantRecord:
        if record.identity in self._records:
            raise DuplicateIdentity("identity")
        self._check_unique(record)
        self._records[record.identity] = copy.deepcopy(record)
        logger.info("Created tenant record %s", record.identity, extra={"identity": record.identity})
        return copy.deepcopy(record)

    async def update(self, identity: str, changes: Dict[str, Any]) -> TenantRecord:
        current = self._records.get(identity)
        if current is None:
            raise TenantNotFound(identity)
        new_rid = changes.get("resource_id")
        if current.resource_id and new_rid is not None and new_rid != current.resource_id:
            raise ImmutableField("resource_id")

        updated = current.with_changes(**changes)
        self._check_unique(updated)
        self._records[identity] = updated
        return copy.deepcopy(updated)

    async def delete(self, identity: str) -> None:
        if self._records.pop(identity, None) is None:
            raise TenantNotFound(identity)

    async def resource_id_exists(self, resource_id: str) -> bool:
        return any(r.resource_id == resource_id for r in self._records.values())

    async def list_all(self) -> List[TenantRecord]:
        return [copy.deepcopy(r) for r in self._records.values()]

    async def list_members(self, admin_id: str) -> List[TenantRecord]:
        # insertion order stands in for creation time
        members = [r for r in self._records.values() if r.admin_id == admin_id]
        return [copy.deepcopy(r) for r in reversed(members)]

    def _check_unique(self, record: TenantRecord) -> None:
        email = record.email.lower()
        for other in self._records.values():
            if other.identity == record.identity:
                continue
            if other.username == record.username:
                raise DuplicateIdentity(
                    "username", "Username already taken. Please choose a different username.",
                )
            if record.resource_id and other.resource_id == record.resource_id:
                raise DuplicateIdentity("resource_id")
            if other.email.lower() != email or other.role != record.role:
                continue
            if record.role == ROLE_ADMIN:
                raise DuplicateIdentity("email", "Email already in use")
            if record.role == ROLE_MEMBER and other.admin_id == record.admin_id:
                raise DuplicateIdentity("email", "Email already in use by another user under this admin")
