# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Job Protocol — Request configuration, descriptors and results.

JobConfig is what a caller submits (camelCase on the wire). A
JobDescriptor binds that config to one tenant's resources for a single
invocation; it is never persisted. JobResult / SignalResult / JobOutcome
are returned synchronously and not retained.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ragadmin.core.tenant import TenantContext

JOB_SCRAPE = "scrape"
JOB_UPDATE = "update"
JOB_KINDS = (JOB_SCRAPE, JOB_UPDATE)

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def to_bool_or_none(value: Any) -> Optional[bool]:
    """Lenient flag parsing; unrecognised input means "not given"."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
    return None


def to_int_or_none(value: Any) -> Optional[int]:
    """Lenient count parsing; fractions truncate ("2.0" and 2.9 give 2)."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


class JobConfig(BaseModel):
    """Crawl / index options for a scrape or update job."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_url: str = Field(..., alias="startUrl", min_length=1, description="Seed URL")
    sitemap_url: Optional[str] = Field(default=None, alias="sitemapUrl")
    domain: Optional[str] = Field(default=None, description="Restrict crawl to this domain")
    max_depth: Optional[int] = Field(default=None, alias="maxDepth")
    max_links_per_page: Optional[int] = Field(default=None, alias="maxLinksPerPage")
    respect_robots: Optional[bool] = Field(default=None, alias="respectRobots")
    aggressive_discovery: Optional[bool] = Field(default=None, alias="aggressiveDiscovery")
    collection_name: Optional[str] = Field(default=None, alias="collectionName")
    embedding_model_name: Optional[str] = Field(default=None, alias="embeddingModelName")
    data_store_uri: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("mongoUri", "dataStoreUri", "data_store_uri"),
        description="Update jobs only: data-store URI override",
    )
    log_level: Optional[str] = Field(default=None, alias="logLevel")

    @field_validator(
        "start_url", "sitemap_url", "domain", "collection_name",
        "embedding_model_name", "data_store_uri", "log_level",
        mode="before",
    )
    @classmethod
    def strip_strings(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator(
        "sitemap_url", "domain", "collection_name",
        "embedding_model_name", "data_store_uri", "log_level",
    )
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator("respect_robots", "aggressive_discovery", mode="before")
    @classmethod
    def parse_flag(cls, v: Any) -> Optional[bool]:
        return to_bool_or_none(v)

    @field_validator("max_depth", "max_links_per_page", mode="before")
    @classmethod
    def parse_count(cls, v: Any) -> Optional[int]:
        return to_int_or_none(v)


def build_job_id(kind: str, resource_id: Optional[str]) -> str:
    """Correlation label for logs. Not a deduplication or locking key."""
    return f"{kind}_{resource_id or 'tenant'}_{uuid.uuid4()}"


@dataclass(frozen=True)
class JobDescriptor:
    """One invocation of a job, bound to a tenant's resources."""

    job_id: str
    kind: str
    identity: str
    resource_id: str
    index_path: str
    data_store_uri: Optional[str]
    config: JobConfig
    log_level: str = "INFO"

    @classmethod
    def build(
        cls,
        kind: str,
        context: TenantContext,
        config: JobConfig,
        log_level: str = "INFO",
    ) -> JobDescriptor:
        if kind not in JOB_KINDS:
            raise ValueError(f"Unknown job kind: {kind!r}")
        data_store_uri = context.data_store_uri
        if kind == JOB_UPDATE and config.data_store_uri:
            data_store_uri = config.data_store_uri
        return cls(
            job_id=build_job_id(kind, context.resource_id),
            kind=kind,
            identity=context.identity,
            resource_id=context.resource_id,
            index_path=context.index_path,
            data_store_uri=data_store_uri,
            config=config,
            log_level=config.log_level or log_level,
        )


@dataclass
class JobResult:
    """Captured output of a finished job process."""

    job_id: str
    success: bool
    summary: Optional[Dict[str, Any]] = None
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    duration_ms: float = 0.0


@dataclass
class SignalResult:
    """Outcome of the stale-index signal. Failure is a value, never raised."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    document_count: Optional[int] = None


@dataclass
class JobOutcome:
    """Job result plus the independent signal result."""

    job: JobResult
    resource_id: str
    signal: SignalResult = field(default_factory=lambda: SignalResult(success=False))

    @property
    def cache_refreshed(self) -> bool:
        return self.signal.success

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": self.job.success,
            "jobId": self.job.job_id,
            "resourceId": self.resource_id,
            "summary": self.job.summary,
            "stdout": self.job.stdout,
            "stderr": self.job.stderr,
            "cacheRefreshed": self.cache_refreshed,
        }
        if self.signal.document_count is not None:
            body["documentCount"] = self.signal.document_count
        if not self.signal.success and self.signal.error:
            body["cacheRefreshError"] = self.signal.error
        return body
