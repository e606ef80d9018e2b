# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Tenant Context Cache — Write-invalidated cache in front of the identity store.

There is no time-based expiry. An entry stays valid until the identity
layer calls ``invalidate(identity)`` after writing the record, so every
mutator of resource-relevant fields (profile edit, admin edit, delete,
backfill) must call it.

Two concurrent misses for the same identity may both read the store and
both populate the entry; the read is idempotent so the last writer wins.
A read that overlaps an invalidation (or a ``clear``) is returned to its
caller but not cached, so it cannot outlive the write that triggered it.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from ragadmin.core.errors import ResourceIncomplete, TenantNotFound
from ragadmin.core.metrics import ops_metrics
from ragadmin.core.tenant import TenantContext
from ragadmin.storage.store import TenantStore

logger = logging.getLogger("ragadmin.cache")

REQUIRED_FIELDS = ("resource_id", "index_path")


class TenantContextCache:
    """
    Maps tenant identity to its resolved TenantContext.

    Constructed once per process and injected wherever tenant context is
    needed; tests build isolated instances.

    Overlap detection uses a logical clock. A miss records the clock when
    it starts reading; ``invalidate`` and ``clear`` stamp the clock they
    ran at. Stamps are only kept while reads are in flight, so the
    bookkeeping is empty whenever the cache is idle.
    """

    def __init__(self, store: TenantStore) -> None:
        self._store = store
        self._entries: Dict[str, TenantContext] = {}
        self._lock = threading.Lock()
        self._clock = 0
        self._cleared_at = 0
        self._invalidated_at: Dict[str, int] = {}
        self._reads_in_flight = 0

    async def get(self, identity: str, force_refresh: bool = False) -> TenantContext:
        """
        Return the cached context, or read the record and cache a fresh one.

        ``force_refresh`` always re-reads the store, for callers that must
        see the authoritative value right now.
        """
        with self._lock:
            cached = None if force_refresh else self._entries.get(identity)
            if cached is None:
                self._reads_in_flight += 1
                started = self._clock
        if cached is not None:
            ops_metrics.inc("cache_hit")
            return cached

        ops_metrics.inc("cache_miss")
        try:
            return await self._load(identity, started, force_refresh)
        finally:
            with self._lock:
                self._reads_in_flight -= 1
                if self._reads_in_flight == 0:
                    self._invalidated_at.clear()

    async def _load(self, identity: str, started: int, force_refresh: bool) -> TenantContext:
        record = await self._store.get(identity)
        if record is None:
            self.invalidate(identity)
            raise TenantNotFound(identity)

        missing = [name for name in REQUIRED_FIELDS if not getattr(record, name)]
        if missing:
            raise ResourceIncomplete(identity, missing)

        context = TenantContext.from_record(record)
        with self._lock:
            if self._cleared_at > started or self._invalidated_at.get(identity, 0) > started:
                return context
            self._entries[identity] = context
        logger.debug(
            "Cached tenant context%s", " (forced)" if force_refresh else "",
            extra={"identity": identity, "resource_id": context.resource_id},
        )
        return context

    def invalidate(self, identity: str) -> None:
        """Drop the entry so the next ``get`` reads the store."""
        with self._lock:
            dropped = self._entries.pop(identity, None)
            self._clock += 1
            if self._reads_in_flight:
                self._invalidated_at[identity] = self._clock
        if dropped is not None:
            ops_metrics.inc("cache_invalidate")
            logger.info("Invalidated tenant context", extra={"identity": identity})

    def peek(self, identity: str) -> Optional[TenantContext]:
        with self._lock:
            return self._entries.get(identity)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._clock += 1
            self._cleared_at = self._clock

    @property
    def pending_invalidations(self) -> int:
        with self._lock:
            return len(self._invalidated_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identity: str) -> bool:
        with self._lock:
            return identity in self._entries
