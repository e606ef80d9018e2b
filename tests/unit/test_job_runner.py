# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""Tests for the subprocess job runner and its CLI contract."""

import pytest

from ragadmin.core.errors import JobExecutionFailure
from ragadmin.core.tenant import TenantContext
from ragadmin.protocols.jobs import JOB_SCRAPE, JOB_UPDATE, JobConfig, JobDescriptor
from ragadmin.runtime import job_runner
from ragadmin.runtime.job_runner import SubprocessJobRunner, build_job_args, parse_summary


class FakeProcess:
    def __init__(self, returncode=0, stdout=b"", stderr=b""):
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self):
        return self._stdout, self._stderr


@pytest.fixture
def descriptor(admin_record):
    ctx = TenantContext.from_record(admin_record)
    cfg = JobConfig(startUrl="https://acme.example", maxDepth=2, respectRobots=False)
    return JobDescriptor.build(JOB_SCRAPE, ctx, cfg)


def _patch_exec(monkeypatch, proc=None, error=None):
    calls = []

    async def fake_exec(*cmd, **kwargs):
        calls.append(cmd)
        if error is not None:
            raise error
        return proc

    monkeypatch.setattr(job_runner.asyncio, "create_subprocess_exec", fake_exec)
    return calls


class TestBuildArgs:
    def test_scrape_flags(self, descriptor):
        args = build_job_args(descriptor)
        assert args[args.index("--start-url") + 1] == "https://acme.example"
        assert args[args.index("--resource-id") + 1] == "acme_7f3a"
        assert args[args.index("--vector-store-path") + 1] == "/stores/acme_7f3a"
        assert args[args.index("--max-depth") + 1] == "2"
        assert args[args.index("--job-id") + 1] == descriptor.job_id
        assert "--no-respect-robots" in args
        assert "--mongo-uri" not in args
        assert "--sitemap-url" not in args

    def test_update_passes_data_store(self, admin_record):
        ctx = TenantContext.from_record(admin_record)
        cfg = JobConfig(startUrl="https://acme.example", mongoUri="mongodb://other/x")
        args = build_job_args(JobDescriptor.build(JOB_UPDATE, ctx, cfg))
        assert args[args.index("--mongo-uri") + 1] == "mongodb://other/x"


class TestParseSummary:
    def test_last_json_line_wins(self):
        out = 'starting\n{"pagesCrawled": 1}\nprogress\n{"pagesCrawled": 40}\n'
        assert parse_summary(out) == {"pagesCrawled": 40}

    def test_ignores_non_objects(self):
        assert parse_summary('{"a": 1}\n[1, 2]\n{broken\n') == {"a": 1}

    def test_none_without_json(self):
        assert parse_summary("just text\n") is None
        assert parse_summary("") is None


class TestSubprocessJobRunner:
    @pytest.mark.asyncio
    async def test_success(self, monkeypatch, descriptor):
        proc = FakeProcess(0, b'crawling\n{"pagesCrawled": 40}\n', b"warn\n")
        calls = _patch_exec(monkeypatch, proc)
        runner = SubprocessJobRunner({JOB_SCRAPE: "python -m scraper.run"}, env={})

        result = await runner.run_job(descriptor)

        assert result.success is True
        assert result.exit_code == 0
        assert result.summary == {"pagesCrawled": 40}
        assert result.stderr == "warn\n"
        assert calls[0][:3] == ("python", "-m", "scraper.run")
        assert "--start-url" in calls[0]

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises_with_output(self, monkeypatch, descriptor):
        _patch_exec(monkeypatch, FakeProcess(2, b'{"pagesCrawled": 3}\n', b"boom\n"))
        runner = SubprocessJobRunner({JOB_SCRAPE: "scraper"}, env={})

        with pytest.raises(JobExecutionFailure) as exc_info:
            await runner.run_job(descriptor)
        err = exc_info.value
        assert err.exit_code == 2
        assert err.stderr == "boom\n"
        assert err.summary == {"pagesCrawled": 3}
        assert err.job_id == descriptor.job_id

    @pytest.mark.asyncio
    async def test_spawn_error_raises(self, monkeypatch, descriptor):
        _patch_exec(monkeypatch, error=FileNotFoundError("scraper"))
        runner = SubprocessJobRunner({JOB_SCRAPE: "scraper"}, env={})
        with pytest.raises(JobExecutionFailure, match="Failed to start"):
            await runner.run_job(descriptor)

    @pytest.mark.asyncio
    async def test_missing_command(self, monkeypatch, descriptor):
        calls = _patch_exec(monkeypatch, FakeProcess())
        runner = SubprocessJobRunner({JOB_UPDATE: "updater"}, env={})
        with pytest.raises(JobExecutionFailure, match="No command configured"):
            await runner.run_job(descriptor)
        assert calls == []
