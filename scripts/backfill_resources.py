# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Backfill tenant resource fields for every record in the SQL identity store.

Fills only absent fields (resource id, data-store URI, vector store path,
endpoints); existing values are never overwritten.

Usage: python scripts/backfill_resources.py [--dry-run]
"""

import argparse
import asyncio
import logging

from ragadmin.core.config import settings
from ragadmin.core.context import build_services
from ragadmin.core.logging import setup_logging
from ragadmin.storage.database import close_db, get_session_factory, init_db
from ragadmin.storage.repositories import SqlTenantStore

logger = logging.getLogger("ragadmin.backfill")


async def main(dry_run: bool) -> int:
    setup_logging(settings.LOG_LEVEL)
    await init_db()
    store = SqlTenantStore(get_session_factory())
    services = build_services(store, settings)

    records = await store.list_all()
    incomplete = [r for r in records if r.missing_resources()]
    print(f"=== {len(records)} tenants, {len(incomplete)} with missing resources ===")

    failures = 0
    for record in incomplete:
        missing = ", ".join(record.missing_resources())
        if dry_run:
            print(f"  [dry-run] {record.username} ({record.identity}): {missing}")
            continue
        try:
            updated = await services.directory.ensure_resources(record.identity)
            print(f"  OK  {record.username} -> {updated.resource_id} (filled: {missing})")
        except Exception as e:
            failures += 1
            logger.error("Backfill failed for %s: %s", record.identity, e)
            print(f"  FAILED {record.username}: {e}")

    await close_db()
    return 1 if failures else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true", help="Only list incomplete tenants")
    args = parser.parse_args()
    raise SystemExit(asyncio.run(main(args.dry_run)))
