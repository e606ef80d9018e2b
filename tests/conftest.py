# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Shared test fixtures for all RagAdmin tests.
"""

import pytest
import fakeredis
import fakeredis.aioredis

from ragadmin.core.config import RagAdminSettings
from ragadmin.core.context import build_services
from ragadmin.core.metrics import ops_metrics
from ragadmin.core.tenant import ROLE_ADMIN, ROLE_MEMBER, TenantRecord
from tests.doubles import CountingStore, FakeJobRunner, FakeSignaler


# ── Fixtures ─────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def reset_metrics():
    ops_metrics.reset()
    yield


@pytest.fixture
def test_settings() -> RagAdminSettings:
    return RagAdminSettings(
        _env_file=None,
        TENANT_DATA_STORE_URI_TEMPLATE="mongodb://db.internal:27017/{resource_id}",
        TENANT_INDEX_ROOT="/stores",
        BOT_ENDPOINT_TEMPLATE="http://bot.internal:8000",
        SCHEDULER_ENDPOINT_TEMPLATE="http://scheduler.internal:8001/{resource_id}",
        SCRAPER_ENDPOINT_TEMPLATE="http://scraper.internal:8002/{resource_id}",
    )


@pytest.fixture
def admin_record() -> TenantRecord:
    return TenantRecord(
        identity="admin-1",
        username="acme_admin",
        email="ops@acme.example",
        role=ROLE_ADMIN,
        display_name="Acme",
        resource_id="acme_7f3a",
        data_store_uri="mongodb://db.internal:27017/acme_7f3a",
        index_path="/stores/acme_7f3a",
        bot_endpoint="http://bot.internal:8000",
        scheduler_endpoint="http://scheduler.internal:8001/acme_7f3a",
        scraper_endpoint="http://scraper.internal:8002/acme_7f3a",
    )


@pytest.fixture
def member_record() -> TenantRecord:
    return TenantRecord(
        identity="member-1",
        username="jane",
        email="jane@acme.example",
        role=ROLE_MEMBER,
        display_name="Jane Doe",
        admin_id="admin-1",
        resource_id="jane_doe_01ab",
        data_store_uri="mongodb://db.internal:27017/jane_doe_01ab",
        index_path="/stores/jane_doe_01ab",
        bot_endpoint="http://bot.internal:8000",
        scheduler_endpoint="http://scheduler.internal:8001/jane_doe_01ab",
        scraper_endpoint="http://scraper.internal:8002/jane_doe_01ab",
    )


@pytest.fixture
def store(admin_record, member_record) -> CountingStore:
    return CountingStore([admin_record, member_record])


@pytest.fixture
def fake_runner() -> FakeJobRunner:
    return FakeJobRunner(summary={"pagesCrawled": 40}, stdout="crawl done\n")


@pytest.fixture
def fake_signaler() -> FakeSignaler:
    return FakeSignaler()


@pytest.fixture
def services(store, test_settings, fake_runner, fake_signaler):
    return build_services(store, test_settings, runner=fake_runner, signaler=fake_signaler)


@pytest.fixture
def mock_redis():
    """Isolated FakeRedis; each test gets its own server."""
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def store_factory():
    """Build an isolated CountingStore from explicit records."""
    return CountingStore
