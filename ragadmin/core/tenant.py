# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Tenant Types — Records, resource fields and the resolved context.

A tenant is an admin or a member owned by an admin. Every tenant is bound
to exactly one ``resource_id`` which namespaces its data store, vector
store and service endpoints.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLES = (ROLE_ADMIN, ROLE_MEMBER)

RESOURCE_FIELDS = (
    "resource_id",
    "data_store_uri",
    "index_path",
    "bot_endpoint",
    "scheduler_endpoint",
    "scraper_endpoint",
)


@dataclass(frozen=True)
class ResourceFields:
    """Per-tenant resource metadata produced by provisioning."""

    resource_id: str
    data_store_uri: str
    index_path: str
    bot_endpoint: str
    scheduler_endpoint: str
    scraper_endpoint: str

    def to_dict(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in RESOURCE_FIELDS}


@dataclass
class TenantRecord:
    """Account row as held by the identity store."""

    identity: str
    username: str
    email: str
    role: str = ROLE_MEMBER
    display_name: str = ""
    admin_id: Optional[str] = None
    is_active: bool = True
    resource_id: Optional[str] = None
    data_store_uri: Optional[str] = None
    index_path: Optional[str] = None
    bot_endpoint: Optional[str] = None
    scheduler_endpoint: Optional[str] = None
    scraper_endpoint: Optional[str] = None

    def __post_init__(self):
        if not self.identity:
            raise ValueError("identity must not be empty")
        if self.role not in ROLES:
            raise ValueError(f"role must be one of {ROLES}, got {self.role!r}")
        if self.role == ROLE_MEMBER and not self.admin_id:
            raise ValueError("members must reference an owning admin")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def missing_resources(self) -> list[str]:
        return [name for name in RESOURCE_FIELDS if not getattr(self, name)]

    def with_changes(self, **changes: Any) -> TenantRecord:
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __repr__(self) -> str:
        return f"TenantRecord(identity={self.identity!r}, role={self.role!r}, resource={self.resource_id!r})"


@dataclass(frozen=True)
class TenantContext:
    """Resolved runtime view of a tenant's resources (cache value)."""

    identity: str
    resource_id: Optional[str]
    data_store_uri: Optional[str]
    index_path: Optional[str]
    bot_endpoint: Optional[str]
    scheduler_endpoint: Optional[str]
    scraper_endpoint: Optional[str]
    role: str = ROLE_MEMBER
    admin_id: Optional[str] = None
    fetched_at: float = field(default_factory=time.time)

    @classmethod
    def from_record(cls, record: TenantRecord) -> TenantContext:
        return cls(
            identity=record.identity,
            resource_id=record.resource_id,
            data_store_uri=record.data_store_uri,
            index_path=record.index_path,
            bot_endpoint=record.bot_endpoint,
            scheduler_endpoint=record.scheduler_endpoint,
            scraper_endpoint=record.scraper_endpoint,
            role=record.role,
            admin_id=record.admin_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "role": self.role,
            "adminId": self.admin_id,
            "resourceId": self.resource_id,
            "dataStoreUri": self.data_store_uri,
            "vectorStorePath": self.index_path,
            "botEndpoint": self.bot_endpoint,
            "schedulerEndpoint": self.scheduler_endpoint,
            "scraperEndpoint": self.scraper_endpoint,
            "fetchedAt": self.fetched_at,
        }

    def __repr__(self) -> str:
        return f"TenantContext(identity={self.identity!r}, resource={self.resource_id!r})"
