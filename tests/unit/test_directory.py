# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""Tests for TenantDirectory: creation, edits and cache invalidation wiring."""

import pytest

from ragadmin.core.errors import (
    AccessDenied,
    DuplicateIdentity,
    ImmutableField,
    ProvisioningFailure,
    ResourceIncomplete,
    TenantNotFound,
)
from ragadmin.core.tenant import ROLE_ADMIN, ROLE_MEMBER, TenantRecord


class TestCreation:
    @pytest.mark.asyncio
    async def test_register_admin_provisions_everything(self, services):
        record = await services.directory.register_admin("bob", "Bob@X.io", "Bob Corp")

        assert record.role == ROLE_ADMIN
        assert record.email == "bob@x.io"
        assert record.missing_resources() == []
        assert record.resource_id.startswith("bob_corp_")
        assert await services.store.get(record.identity) == record

    @pytest.mark.asyncio
    async def test_create_member_binds_admin(self, services):
        member = await services.directory.create_member("admin-1", "mark", "m@acme.example", "Mark")
        assert member.role == ROLE_MEMBER
        assert member.admin_id == "admin-1"
        assert member.resource_id != "acme_7f3a"

    @pytest.mark.asyncio
    async def test_member_cannot_create_members(self, services):
        with pytest.raises(AccessDenied):
            await services.directory.create_member("member-1", "x1", "x@y.io", "Xavier")

    @pytest.mark.asyncio
    async def test_provisioning_failure_persists_nothing(self, services):
        before = len(await services.store.list_all())
        with pytest.raises(ProvisioningFailure):
            await services.directory.register_admin("!!!", "z@z.io", "!!!")
        assert len(await services.store.list_all()) == before

    @pytest.mark.asyncio
    async def test_duplicate_username_rejected(self, services):
        with pytest.raises(DuplicateIdentity):
            await services.directory.register_admin("jane", "new@x.io", "Jane Two")


class TestInvalidationWiring:
    @pytest.mark.asyncio
    async def test_admin_edit_of_member_is_visible_immediately(self, services, store):
        await services.cache.get("member-1")
        reads = store.get_calls

        await services.directory.update("member-1", {"email": "Jane.New@acme.example"})

        assert "member-1" not in services.cache
        after = await services.cache.get("member-1")
        assert after.resource_id == "jane_doe_01ab"
        assert store.get_calls == reads + 1
        assert (await services.store.get("member-1")).email == "jane.new@acme.example"

    @pytest.mark.asyncio
    async def test_invalidation_triggers_one_store_read(self, services, store):
        await services.cache.get("admin-1")
        await services.cache.get("admin-1")
        reads = store.get_calls

        await services.directory.update("admin-1", {"display_name": "Acme Ltd"})
        await services.cache.get("admin-1")
        await services.cache.get("admin-1")

        assert store.get_calls == reads + 1

    @pytest.mark.asyncio
    async def test_delete_invalidates(self, services):
        await services.cache.get("member-1")
        await services.directory.delete("member-1")

        assert "member-1" not in services.cache
        with pytest.raises(TenantNotFound):
            await services.cache.get("member-1")

    @pytest.mark.asyncio
    async def test_resource_id_is_immutable(self, services):
        with pytest.raises(ImmutableField):
            await services.directory.update("admin-1", {"resource_id": "other_c0ffee"})
        assert (await services.store.get("admin-1")).resource_id == "acme_7f3a"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["index_path", "bot_endpoint", "data_store_uri"])
    async def test_resource_fields_are_not_editable(self, services, field):
        with pytest.raises(ImmutableField):
            await services.directory.update("member-1", {field: "http://elsewhere.example"})
        record = await services.store.get("member-1")
        assert getattr(record, field) != "http://elsewhere.example"

    @pytest.mark.asyncio
    async def test_unknown_fields_rejected(self, services):
        with pytest.raises(ValueError):
            await services.directory.update("admin-1", {"role": "member"})


class TestEnsureResources:
    @pytest.mark.asyncio
    async def test_backfill_unblocks_jobs(self, services):
        await services.store.create(TenantRecord(
            identity="legacy-1", username="legacy", email="l@x.io",
            role=ROLE_ADMIN, display_name="Legacy Co",
        ))
        with pytest.raises(ResourceIncomplete):
            await services.cache.get("legacy-1")

        record = await services.directory.ensure_resources("legacy-1")
        assert record.missing_resources() == []

        ctx = await services.cache.get("legacy-1")
        assert ctx.resource_id == record.resource_id

    @pytest.mark.asyncio
    async def test_complete_record_writes_nothing(self, services, admin_record):
        await services.cache.get("admin-1")
        record = await services.directory.ensure_resources("admin-1")
        assert record == admin_record
        assert "admin-1" in services.cache

    @pytest.mark.asyncio
    async def test_inspect_bypasses_cache(self, services, store):
        await services.cache.get("admin-1")
        await store.update("admin-1", {"index_path": "/out/of/band"})

        ctx = await services.directory.inspect_resources("admin-1")
        assert ctx.index_path == "/out/of/band"


class TestReads:
    @pytest.mark.asyncio
    async def test_list_members_of_admin(self, services):
        created = await services.directory.create_member("admin-1", "mark", "m@acme.example", "Mark")
        members = await services.directory.list_members("admin-1")
        assert [m.identity for m in members] == [created.identity, "member-1"]

    @pytest.mark.asyncio
    async def test_list_members_excludes_other_admins(self, services):
        other = await services.directory.register_admin("beta", "ops@beta.io", "Beta")
        await services.directory.create_member(other.identity, "bert", "bert@beta.io", "Bert")
        members = await services.directory.list_members("admin-1")
        assert [m.identity for m in members] == ["member-1"]

    @pytest.mark.asyncio
    async def test_member_cannot_list(self, services):
        with pytest.raises(AccessDenied):
            await services.directory.list_members("member-1")

    @pytest.mark.asyncio
    async def test_get_unknown(self, services):
        with pytest.raises(TenantNotFound):
            await services.directory.get("ghost")
