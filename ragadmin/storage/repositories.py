# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
SQL Identity Store — TenantStore over the tenant_records table.

Each call opens its own session from the factory: the cache and the
directory call the store outside of any request-scoped transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ragadmin.core.errors import DuplicateIdentity, ImmutableField, TenantNotFound
from ragadmin.core.tenant import TenantRecord
from ragadmin.storage.models import TenantRecordRow

logger = logging.getLogger("ragadmin.store.sql")

_RECORD_COLUMNS = (
    "identity", "username", "email", "role", "display_name", "admin_id", "is_active",
    "resource_id", "data_store_uri", "index_path",
    "bot_endpoint", "scheduler_endpoint", "scraper_endpoint",
)

# constraint name -> offending field
_CONSTRAINT_FIELDS = {
    "tenant_records_pkey": "identity",
    "uq_tenant_username": "username",
    "uq_tenant_resource_id": "resource_id",
    "uq_tenant_admin_email": "email",
    "uq_tenant_member_email": "email",
}


def _to_record(row: TenantRecordRow) -> TenantRecord:
    return TenantRecord(**{name: getattr(row, name) for name in _RECORD_COLUMNS})


def _duplicate_from(err: IntegrityError) -> DuplicateIdentity:
    text = str(err.orig)
    for constraint, field in _CONSTRAINT_FIELDS.items():
        if constraint in text:
            return DuplicateIdentity(field)
    return DuplicateIdentity("record", "Record violates a uniqueness constraint")


class SqlTenantStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._factory = session_factory

    async def get(self, identity: str) -> Optional[TenantRecord]:
        async with self._factory() as db:
            result = await db.execute(
                select(TenantRecordRow).where(TenantRecordRow.identity == identity)
            )
            row = result.scalar_one_or_none()
            return _to_record(row) if row else None

    async def create(self, record: TenantRecord) -> TenantRecord:
        async with self._factory() as db:
            db.add(TenantRecordRow(**record.to_dict()))
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise _duplicate_from(e) from e
        logger.info("Created tenant record %s", record.identity, extra={"identity": record.identity})
        return record

    async def update(self, identity: str, changes: Dict[str, Any]) -> TenantRecord:
        async with self._factory() as db:
            result = await db.execute(
                select(TenantRecordRow).where(TenantRecordRow.identity == identity)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise TenantNotFound(identity)
            new_rid = changes.get("resource_id")
            if row.resource_id and new_rid is not None and new_rid != row.resource_id:
                raise ImmutableField("resource_id")

            try:
                await db.execute(
                    update(TenantRecordRow)
                    .where(TenantRecordRow.identity == identity)
                    .values(**changes)
                )
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise _duplicate_from(e) from e
            await db.refresh(row)
            return _to_record(row)

    async def delete(self, identity: str) -> None:
        async with self._factory() as db:
            result = await db.execute(
                delete(TenantRecordRow).where(TenantRecordRow.identity == identity)
            )
            await db.commit()
            if result.rowcount == 0:
                raise TenantNotFound(identity)

    async def resource_id_exists(self, resource_id: str) -> bool:
        async with self._factory() as db:
            result = await db.execute(
                select(TenantRecordRow.identity).where(TenantRecordRow.resource_id == resource_id)
            )
            return result.first() is not None

    async def list_all(self) -> List[TenantRecord]:
        async with self._factory() as db:
            result = await db.execute(
                select(TenantRecordRow).order_by(TenantRecordRow.created_at.asc())
            )
            return [_to_record(row) for row in result.scalars().all()]

    async def list_members(self, admin_id: str) -> List[TenantRecord]:
        async with self._factory() as db:
            result = await db.execute(
                select(TenantRecordRow)
                .where(TenantRecordRow.admin_id == admin_id)
                .order_by(TenantRecordRow.created_at.desc())
            )
            return [_to_record(row) for row in result.scalars().all()]
