# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
ORM Models — PostgreSQL table for tenant account records.

Uniqueness mirrors the identity rules:
  - username unique across all tenants
  - email unique among admins
  - (email, admin_id) unique among members
  - resource_id unique wherever assigned
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, String, text

from ragadmin.storage.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class TenantRecordRow(Base):
    __tablename__ = "tenant_records"

    identity = Column(String(64), primary_key=True)
    username = Column(String(30), nullable=False)
    email = Column(String(254), nullable=False)
    display_name = Column(String(100), nullable=False, default="")
    role = Column(String(16), nullable=False, default="member")
    admin_id = Column(String(64), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    resource_id = Column(String(60), nullable=True)
    data_store_uri = Column(String(512), nullable=True)
    index_path = Column(String(512), nullable=True)
    bot_endpoint = Column(String(512), nullable=True)
    scheduler_endpoint = Column(String(512), nullable=True)
    scraper_endpoint = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("uq_tenant_username", "username", unique=True),
        Index("uq_tenant_resource_id", "resource_id", unique=True),
        Index(
            "uq_tenant_admin_email", "email",
            unique=True, postgresql_where=text("role = 'admin'"),
        ),
        Index(
            "uq_tenant_member_email", "email", "admin_id",
            unique=True, postgresql_where=text("role = 'member'"),
        ),
        Index("idx_tenant_admin_created", "admin_id", "created_at"),
    )

    def __repr__(self):
        return f"<TenantRecord {self.identity} ({self.role}) resource={self.resource_id}>"
