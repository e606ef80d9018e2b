# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""Tests for tenant types, settings, metrics and structured logging."""

import json
import logging

import pytest

from ragadmin.core.config import RagAdminSettings
from ragadmin.core.logging import StructuredFormatter, setup_logging
from ragadmin.core.metrics import Metrics
from ragadmin.core.tenant import ROLE_MEMBER, TenantContext, TenantRecord


class TestTenantTypes:
    def test_member_requires_admin(self):
        with pytest.raises(ValueError):
            TenantRecord(identity="m1", username="x", email="x@y.io", role=ROLE_MEMBER)

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            TenantRecord(identity="u1", username="x", email="x@y.io", role="owner")

    def test_missing_resources(self, admin_record):
        assert admin_record.missing_resources() == []
        partial = admin_record.with_changes(index_path=None, bot_endpoint="")
        assert partial.missing_resources() == ["index_path", "bot_endpoint"]

    def test_context_wire_shape(self, member_record):
        body = TenantContext.from_record(member_record).to_dict()
        assert body["resourceId"] == "jane_doe_01ab"
        assert body["vectorStorePath"] == "/stores/jane_doe_01ab"
        assert body["adminId"] == "admin-1"


class TestSettings:
    def test_defaults(self):
        cfg = RagAdminSettings(_env_file=None)
        assert cfg.JOB_OUTPUT_MAX_CHARS == 8192
        assert cfg.JOB_LOCK_ENABLED is False
        assert cfg.SIGNAL_TIMEOUT_SECONDS == 5.0
        assert "{resource_id}" in cfg.TENANT_DATA_STORE_URI_TEMPLATE

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("JOB_LOCK_ENABLED", "true")
        monkeypatch.setenv("TENANT_INDEX_ROOT", "/data/stores")
        cfg = RagAdminSettings(_env_file=None)
        assert cfg.JOB_LOCK_ENABLED is True
        assert cfg.TENANT_INDEX_ROOT == "/data/stores"


class TestMetrics:
    def test_counters_and_latency(self):
        m = Metrics()
        m.inc("cache_hit")
        m.inc("cache_hit", 2)
        m.observe("job_duration_ms:scrape", 10)
        m.observe("job_duration_ms:scrape", 30)

        snap = m.snapshot()
        assert snap["counters"]["cache_hit"] == 3
        assert snap["latency_job_duration_ms:scrape"] == {"count": 2, "avg": 20.0, "max": 30.0}

    def test_timed_observes_even_on_error(self):
        m = Metrics()
        with pytest.raises(RuntimeError):
            with m.timed("op"):
                raise RuntimeError("boom")
        assert m.snapshot()["latency_op"]["count"] == 1

    def test_reset(self):
        m = Metrics()
        m.inc("x")
        m.reset()
        assert m.get_counter("x") == 0


class TestStructuredFormatter:
    def test_includes_context_keys(self):
        record = logging.LogRecord("ragadmin.test", logging.INFO, __file__, 1, "Job %s", ("done",), None)
        record.job_id = "scrape_acme_7f3a_1"
        record.resource_id = "acme_7f3a"

        entry = json.loads(StructuredFormatter().format(record))
        assert entry["message"] == "Job done"
        assert entry["level"] == "INFO"
        assert entry["job_id"] == "scrape_acme_7f3a_1"
        assert entry["resource_id"] == "acme_7f3a"
        assert "trace_id" not in entry

    def test_setup_logging_installs_one_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("debug")
            setup_logging("debug")
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
            assert root.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
