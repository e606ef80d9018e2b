# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Resource Provisioner — Derive and backfill per-tenant resource metadata.

Every tenant owns one resource id, ``{slug}_{hex}``, built from its name
plus random entropy. All other resource fields are a pure function of
that id and the configured templates:

    resource_id        acme_7f3a
    data_store_uri     TENANT_DATA_STORE_URI_TEMPLATE.format(resource_id=...)
    index_path         {TENANT_INDEX_ROOT}/acme_7f3a
    *_endpoint         {BOT,SCHEDULER,SCRAPER}_ENDPOINT_TEMPLATE.format(...)
"""

from __future__ import annotations

import logging
import re
import secrets
import unicodedata
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

from ragadmin.core.config import RagAdminSettings, settings as default_settings
from ragadmin.core.errors import ProvisioningFailure
from ragadmin.core.tenant import ResourceFields, TenantRecord

logger = logging.getLogger("ragadmin.provisioner")

RESOURCE_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_]{5,59}$")
_SLUG_MAX = 40

ResourceIdCheck = Callable[[str], Awaitable[bool]]


def slugify(name: str) -> str:
    """Lowercase ASCII slug of a display name, '' when nothing survives."""
    text = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode()
    text = re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")
    return text[:_SLUG_MAX].rstrip("_")


class ResourceProvisioner:
    """
    Generates resource ids and derives resource fields from configuration.

    ``is_taken`` reports whether a resource id is already assigned to some
    tenant; it is normally ``TenantStore.resource_id_exists``.
    """

    def __init__(
        self,
        is_taken: ResourceIdCheck,
        config: Optional[RagAdminSettings] = None,
    ) -> None:
        self._is_taken = is_taken
        self._config = config or default_settings

    # ── Creation ────────────────────────────────────────────────

    async def provision(self, identity: str, display_name: str) -> ResourceFields:
        """Build a complete, fresh set of resource fields for a new tenant."""
        resource_id = await self._generate_resource_id(identity, display_name)
        fields = ResourceFields(
            resource_id=resource_id,
            data_store_uri=self.data_store_uri_for(resource_id),
            index_path=self.index_path_for(resource_id),
            bot_endpoint=self.endpoint_for("BOT_ENDPOINT_TEMPLATE", resource_id),
            scheduler_endpoint=self.endpoint_for("SCHEDULER_ENDPOINT_TEMPLATE", resource_id),
            scraper_endpoint=self.endpoint_for("SCRAPER_ENDPOINT_TEMPLATE", resource_id),
        )
        logger.info(
            "Provisioned resources for %s", identity,
            extra={"identity": identity, "resource_id": resource_id},
        )
        return fields

    # ── Backfill ────────────────────────────────────────────────

    async def ensure_resources(self, record: TenantRecord) -> ResourceFields:
        """
        Fill only the absent resource fields of ``record``.

        An assigned resource id and any existing path or endpoint are
        returned untouched; a complete record comes back bit-identical.
        """
        resource_id = record.resource_id
        if not resource_id:
            resource_id = await self._generate_resource_id(
                record.identity, record.display_name or record.username,
            )
            logger.warning(
                "Backfilled missing resource id for %s", record.identity,
                extra={"identity": record.identity, "resource_id": resource_id},
            )

        return ResourceFields(
            resource_id=resource_id,
            data_store_uri=record.data_store_uri or self.data_store_uri_for(resource_id),
            index_path=record.index_path or self.index_path_for(resource_id),
            bot_endpoint=record.bot_endpoint
            or self.endpoint_for("BOT_ENDPOINT_TEMPLATE", resource_id),
            scheduler_endpoint=record.scheduler_endpoint
            or self.endpoint_for("SCHEDULER_ENDPOINT_TEMPLATE", resource_id),
            scraper_endpoint=record.scraper_endpoint
            or self.endpoint_for("SCRAPER_ENDPOINT_TEMPLATE", resource_id),
        )

    # ── Derivation ──────────────────────────────────────────────

    def data_store_uri_for(self, resource_id: str) -> str:
        uri = self._render("TENANT_DATA_STORE_URI_TEMPLATE", resource_id)
        if not urlparse(uri).scheme:
            raise ProvisioningFailure(f"Data store URI has no scheme: {uri!r}")
        return uri

    def index_path_for(self, resource_id: str) -> str:
        root = self._config.TENANT_INDEX_ROOT.rstrip("/")
        if not root:
            raise ProvisioningFailure("TENANT_INDEX_ROOT is empty")
        return f"{root}/{resource_id}"

    def endpoint_for(self, template_name: str, resource_id: str) -> str:
        url = self._render(template_name, resource_id).rstrip("/")
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ProvisioningFailure(f"{template_name} does not render an http(s) URL: {url!r}")
        return url

    def _render(self, template_name: str, resource_id: str) -> str:
        template = getattr(self._config, template_name)
        try:
            rendered = template.format(resource_id=resource_id).strip()
        except (KeyError, IndexError, ValueError) as e:
            raise ProvisioningFailure(f"Invalid {template_name} {template!r}: {e}") from e
        if not rendered:
            raise ProvisioningFailure(f"{template_name} renders empty")
        return rendered

    async def _generate_resource_id(self, identity: str, display_name: str) -> str:
        slug = slugify(display_name)
        if not slug:
            raise ProvisioningFailure(
                f"Cannot derive a resource id for {identity}: name {display_name!r} sanitizes to empty",
            )

        attempts = self._config.RESOURCE_ID_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            candidate = f"{slug}_{secrets.token_hex(self._config.RESOURCE_ID_ENTROPY_BYTES)}"
            if not RESOURCE_ID_PATTERN.match(candidate):
                raise ProvisioningFailure(f"Derived resource id {candidate!r} is not valid")
            if not await self._is_taken(candidate):
                return candidate
            logger.info("Resource id %s taken (attempt %d/%d)", candidate, attempt, attempts)

        raise ProvisioningFailure(
            f"Could not allocate a unique resource id for {identity} after {attempts} attempts",
        )
