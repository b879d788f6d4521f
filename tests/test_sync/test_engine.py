"""Tests for the reconciliation engine."""

import asyncio

import pytest

from sitesearch.ingestion.base_adapter import Snapshot
from sitesearch.sync.engine import ReconciliationEngine

SITE_A = "site:https://a.example/export"
SITE_B = "site:https://b.example/export"


@pytest.fixture
def engine(store):
    return ReconciliationEngine(store)


class TestReconcile:
    @pytest.mark.asyncio
    async def test_first_run_inserts_everything(self, engine, store, make_doc):
        result = await engine.reconcile(Snapshot(SITE_A, [make_doc(extid="1"), make_doc(extid="2")]))

        assert result.added == 2
        assert result.failed is False
        assert {d.extid for d in await store.get_by_source(SITE_A)} == {"1", "2"}

    @pytest.mark.asyncio
    async def test_update_and_delete(self, engine, store, make_doc):
        await engine.reconcile(Snapshot(SITE_A, [
            make_doc(extid="1", timemodified=100),
            make_doc(extid="2", timemodified=100),
        ]))
        original_id = store.find(SITE_A, "1").id

        result = await engine.reconcile(Snapshot(SITE_A, [
            make_doc(extid="1", timemodified=200, title="Revised"),
        ]))

        assert (result.added, result.updated, result.deleted) == (0, 1, 1)
        stored = store.find(SITE_A, "1")
        assert stored.id == original_id
        assert stored.title == "Revised"
        assert stored.timemodified == 200
        assert store.find(SITE_A, "2") is None

    @pytest.mark.asyncio
    async def test_rerun_performs_no_writes(self, engine, store, make_doc):
        snapshot = Snapshot(SITE_A, [make_doc(extid="1"), make_doc(extid="2")])
        await engine.reconcile(snapshot)
        writes_after_first = len(store.writes)

        result = await engine.reconcile(snapshot)

        assert result.writes == 0
        assert result.unchanged == 2
        assert len(store.writes) == writes_after_first

    @pytest.mark.asyncio
    async def test_unchanged_timemodified_ignores_other_edits(self, engine, store, make_doc):
        await engine.reconcile(Snapshot(SITE_A, [make_doc(extid="1", title="Old")]))

        result = await engine.reconcile(Snapshot(SITE_A, [make_doc(extid="1", title="New")]))

        assert result.unchanged == 1
        assert store.find(SITE_A, "1").title == "Old"

    @pytest.mark.asyncio
    async def test_empty_snapshot_deletes_nothing(self, engine, store, make_doc):
        await engine.reconcile(Snapshot(SITE_A, [make_doc(extid="1"), make_doc(extid="2")]))

        result = await engine.reconcile(Snapshot(SITE_A, []))

        assert result.deleted == 0
        assert len(await store.get_by_source(SITE_A)) == 2

    @pytest.mark.asyncio
    async def test_sources_never_touch_each_other(self, engine, store, make_doc):
        await engine.reconcile(Snapshot(SITE_A, [make_doc(SITE_A, "1")]))
        await engine.reconcile(Snapshot(SITE_B, [make_doc(SITE_B, "1"), make_doc(SITE_B, "2")]))

        result = await engine.reconcile(Snapshot(SITE_A, [make_doc(SITE_A, "9")]))

        assert result.deleted == 1
        assert {d.extid for d in await store.get_by_source(SITE_B)} == {"1", "2"}
        assert {d.extid for d in await store.get_by_source(SITE_A)} == {"9"}

    @pytest.mark.asyncio
    async def test_duplicate_extid_first_wins(self, engine, store, make_doc):
        result = await engine.reconcile(Snapshot(SITE_A, [
            make_doc(extid="1", title="First"),
            make_doc(extid="1", title="Second"),
        ]))

        assert result.added == 1
        assert result.dropped == 1
        assert store.find(SITE_A, "1").title == "First"

    @pytest.mark.asyncio
    async def test_foreign_source_document_dropped(self, engine, store, make_doc):
        result = await engine.reconcile(Snapshot(SITE_A, [make_doc(SITE_A, "1"), make_doc(SITE_B, "2")]))

        assert result.added == 1
        assert result.dropped == 1
        assert await store.get_by_source(SITE_B) == []

    @pytest.mark.asyncio
    async def test_snapshot_dropped_count_carried(self, engine, make_doc):
        result = await engine.reconcile(Snapshot(SITE_A, [make_doc(extid="1")], dropped=4))

        assert result.dropped == 4

    @pytest.mark.asyncio
    async def test_skipped_snapshot_is_noop(self, engine, store, make_doc):
        await engine.reconcile(Snapshot("quicklink", [make_doc("quicklink", "a")]))
        writes_before = len(store.writes)

        result = await engine.reconcile(Snapshot("quicklink", skipped=True))

        assert result.skipped is True
        assert len(store.writes) == writes_before
        assert store.find("quicklink", "a") is not None


class TestChangeKeys:
    @pytest.mark.asyncio
    async def test_quicklink_url_change_updates(self, engine, store, make_doc):
        await engine.reconcile(Snapshot("quicklink", [make_doc("quicklink", "lib", url="/old")]))

        result = await engine.reconcile(Snapshot("quicklink", [make_doc("quicklink", "lib", url="/new")]))

        assert result.updated == 1
        assert store.find("quicklink", "lib").url == "/new"

    @pytest.mark.asyncio
    async def test_user_hash_change_updates(self, engine, store, make_doc):
        await engine.reconcile(Snapshot("user", [make_doc("user", "7", content="hash-1")]))

        same = await engine.reconcile(Snapshot("user", [make_doc("user", "7", content="hash-1", timemodified=999)]))
        changed = await engine.reconcile(Snapshot("user", [make_doc("user", "7", content="hash-2")]))

        assert same.unchanged == 1
        assert changed.updated == 1


class TestEvictions:
    @pytest.mark.asyncio
    async def test_evictions_scoped_to_source(self, engine, store, make_doc):
        await engine.reconcile(Snapshot("user", [make_doc("user", "1"), make_doc("user", "2")]))
        await engine.reconcile(Snapshot("quicklink", [make_doc("quicklink", "2")]))

        result = await engine.reconcile(Snapshot("user", [], evictions=["2"]))

        assert result.evicted == 1
        assert store.find("user", "1") is not None
        assert store.find("user", "2") is None
        assert store.find("quicklink", "2") is not None

    @pytest.mark.asyncio
    async def test_evicted_rows_not_double_counted(self, engine, store, make_doc):
        await engine.reconcile(Snapshot("user", [make_doc("user", "1"), make_doc("user", "2")]))

        result = await engine.reconcile(Snapshot("user", [make_doc("user", "1")], evictions=["2"]))

        assert result.evicted == 1
        assert result.deleted == 0
        assert result.unchanged == 1


class TestStoreFailure:
    @pytest.mark.asyncio
    async def test_store_error_aborts_remaining_writes(self, engine, store, make_doc):
        store.fail_on = {"b"}

        result = await engine.reconcile(Snapshot(SITE_A, [
            make_doc(extid="a"),
            make_doc(extid="b"),
            make_doc(extid="c"),
        ]))

        assert result.failed is True
        assert "StoreError" in result.error
        assert result.added == 1
        assert store.find(SITE_A, "a") is not None
        assert store.find(SITE_A, "c") is None

    @pytest.mark.asyncio
    async def test_other_sources_unaffected_by_store_error(self, engine, store, make_doc):
        store.fail_on = {"bad"}

        failed = await engine.reconcile(Snapshot(SITE_A, [make_doc(SITE_A, "bad")]))
        ok = await engine.reconcile(Snapshot(SITE_B, [make_doc(SITE_B, "good")]))

        assert failed.failed is True
        assert ok.failed is False
        assert ok.added == 1


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_passes_on_one_source_serialized(self, engine, store, make_doc):
        snapshot = Snapshot(SITE_A, [make_doc(extid="1"), make_doc(extid="2")])

        first, second = await asyncio.gather(engine.reconcile(snapshot), engine.reconcile(snapshot))

        assert first.added + second.added == 2
        assert first.unchanged + second.unchanged == 2
        assert len(await store.get_by_source(SITE_A)) == 2
