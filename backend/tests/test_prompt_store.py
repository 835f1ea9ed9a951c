"""
Tests for the prompt stores.
InMemoryPromptStore is exercised directly; SupabasePromptStore runs against
a MagicMock client so no Supabase connection is required.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from app.core.exceptions import PromptNotFound, StoreUnavailable, TemplateKeyConflict
from app.models.prompt import PromptRecord
from app.services.prompt_store import (
    InMemoryPromptStore,
    LegacyPromptReader,
    SupabasePromptStore,
    get_prompt_store,
    PROMPT_STORE,
)


def _record(prompt_id="p1", address=("passage", "system", "system_base"), text="hello", **kw):
    return PromptRecord(
        prompt_id=prompt_id, category=address[0], sub_category=address[1], key=address[2],
        prompt_text=text, name=prompt_id, **kw,
    )


# ---------------------------------------------------------------------------
# InMemoryPromptStore
# ---------------------------------------------------------------------------

class TestInMemoryStore:

    def test_upsert_then_get(self):
        store = InMemoryPromptStore()
        store.upsert(_record())
        got = store.get("passage", "system", "system_base")
        assert got.prompt_text == "hello"
        assert got.created_at is not None
        assert got.id is not None

    def test_get_skips_inactive_unless_asked(self):
        store = InMemoryPromptStore()
        store.upsert(_record(is_active=False))
        assert store.get("passage", "system", "system_base") is None
        assert store.get("passage", "system", "system_base", include_inactive=True) is not None

    def test_upsert_overwrites_and_keeps_created_at(self):
        store = InMemoryPromptStore()
        first = store.upsert(_record(text="v1"))
        second = store.upsert(_record(text="v2", version=2))
        assert second.prompt_text == "v2"
        assert second.created_at == first.created_at
        assert second.id == first.id
        assert len(store.list_all()) == 1

    def test_same_prompt_id_new_address_replaces_row(self):
        store = InMemoryPromptStore()
        store.upsert(_record("p1", ("area", "areaX", "old"), text="first"))
        store.upsert(_record("p1", ("area", "areaX", "new"), text="second"))
        rows = store.list_all()
        assert len(rows) == 1
        assert rows[0].key == "new"
        assert rows[0].prompt_text == "second"
        assert store.get("area", "areaX", "old") is None

    def test_two_active_rows_at_same_address_rejected(self):
        store = InMemoryPromptStore()
        store.upsert(_record("p1"))
        with pytest.raises(TemplateKeyConflict) as exc:
            store.upsert(_record("p2"))
        assert exc.value.prompt_id == "p2"

    def test_inactive_row_may_share_address(self):
        store = InMemoryPromptStore()
        store.upsert(_record("p1"))
        store.upsert(_record("p2", is_active=False))
        assert store.get("passage", "system", "system_base").prompt_id == "p1"

    def test_returned_records_are_copies(self):
        store = InMemoryPromptStore()
        out = store.upsert(_record())
        out.prompt_text = "mutated"
        assert store.get_by_prompt_id("p1").prompt_text == "hello"

    def test_update_text_bumps_version(self):
        store = InMemoryPromptStore()
        store.upsert(_record())
        updated = store.update_text("p1", "new", "alice")
        assert updated.version == 2
        assert updated.updated_by == "alice"
        assert store.get_by_prompt_id("p1").prompt_text == "new"

    def test_update_text_unknown(self):
        with pytest.raises(PromptNotFound):
            InMemoryPromptStore().update_text("missing", "x", "u")

    def test_list_by_category_in_insertion_order(self):
        store = InMemoryPromptStore()
        store.upsert(_record("b", ("area", "areaX", "b")))
        store.upsert(_record("a", ("area", "areaX", "a")))
        store.upsert(_record("z", ("subject", "s", "z")))
        assert [r.prompt_id for r in store.list_by_category("area")] == ["b", "a"]
        assert [r.prompt_id for r in store.list_by_category("area", order_by="name")] == ["a", "b"]

    def test_delete_all(self):
        store = InMemoryPromptStore()
        store.upsert(_record("a", ("area", "x", "a")))
        store.upsert(_record("b", ("subject", "x", "b")))
        assert store.delete_all(category="area") == 1
        assert store.delete_all() == 1
        assert store.list_all() == []


# ---------------------------------------------------------------------------
# SupabasePromptStore
# ---------------------------------------------------------------------------

ROW = {
    "id": "uuid-1",
    "prompt_id": "p1",
    "category": "passage",
    "sub_category": "system",
    "key": "system_base",
    "name": "System prompt",
    "prompt_text": "from db",
    "description": None,
    "is_active": True,
    "is_default": True,
    "version": 3,
    "created_at": "2025-01-01T00:00:00+00:00",
    "updated_at": "2025-01-02T00:00:00+00:00",
    "created_by": "system",
    "updated_by": "system",
}


class TestSupabaseStore:

    def test_get_maps_row(self):
        sb = MagicMock()
        sb.table().select().eq().eq().eq().eq().order().limit().execute.return_value = MagicMock(data=[ROW])
        store = SupabasePromptStore(supabase_client=sb)
        got = store.get("passage", "system", "system_base")
        assert got.prompt_text == "from db"
        assert got.version == 3
        assert got.id == "uuid-1"

    def test_get_empty_returns_none(self):
        sb = MagicMock()
        sb.table().select().eq().eq().eq().eq().order().limit().execute.return_value = MagicMock(data=[])
        assert SupabasePromptStore(supabase_client=sb).get("a", "b", "c") is None

    def test_backend_error_becomes_store_unavailable(self):
        sb = MagicMock()
        sb.table.side_effect = RuntimeError("connection refused")
        with pytest.raises(StoreUnavailable) as exc:
            SupabasePromptStore(supabase_client=sb).get_by_prompt_id("p1")
        assert exc.value.operation == "get_by_prompt_id"
        assert exc.value.prompt_id == "p1"

    def test_client_creation_failure_becomes_store_unavailable(self):
        def boom():
            raise RuntimeError("Supabase env vars missing")

        store = SupabasePromptStore(client_factory=boom)
        with pytest.raises(StoreUnavailable):
            store.list_all()

    def test_upsert_uses_prompt_id_conflict_target(self):
        sb = MagicMock()
        sb.table().upsert().execute.return_value = MagicMock(data=[ROW])
        store = SupabasePromptStore(supabase_client=sb)
        out = store.upsert(PromptRecord.from_row(ROW))
        assert out.prompt_id == "p1"
        _, kwargs = sb.table().upsert.call_args
        assert kwargs["on_conflict"] == "prompt_id"

    def test_upsert_unique_violation_becomes_conflict(self):
        err = Exception("duplicate key value violates unique constraint")
        err.code = "23505"
        sb = MagicMock()
        sb.table().upsert().execute.side_effect = err
        with pytest.raises(TemplateKeyConflict):
            SupabasePromptStore(supabase_client=sb).upsert(PromptRecord.from_row(ROW))

    def test_update_text_increments_version(self):
        sb = MagicMock()
        sb.table().select().eq().limit().execute.return_value = MagicMock(data=[ROW])
        sb.table().update().eq().execute.return_value = MagicMock(data=[])
        out = SupabasePromptStore(supabase_client=sb).update_text("p1", "edited", "bob")
        assert out.version == 4
        assert out.prompt_text == "edited"
        assert out.updated_by == "bob"

    def test_update_text_missing_row(self):
        sb = MagicMock()
        sb.table().select().eq().limit().execute.return_value = MagicMock(data=[])
        with pytest.raises(PromptNotFound):
            SupabasePromptStore(supabase_client=sb).update_text("p1", "x", "bob")

    def test_unsupported_order_column(self):
        with pytest.raises(ValueError):
            SupabasePromptStore(supabase_client=MagicMock()).list_all(order_by="prompt_text")


class TestLegacyReader:

    def test_read_all(self):
        sb = MagicMock()
        sb.table().select().order().execute.return_value = MagicMock(data=[{"prompt_type": "x"}])
        assert LegacyPromptReader(supabase_client=sb).read_all() == [{"prompt_type": "x"}]

    def test_failure_raises_store_unavailable(self):
        sb = MagicMock()
        sb.table.side_effect = RuntimeError("down")
        with pytest.raises(StoreUnavailable):
            LegacyPromptReader(supabase_client=sb).read_all()


class TestFactory:

    def test_memory_store_selected(self):
        settings = MagicMock(prompt_store="memory")
        assert get_prompt_store(settings) is PROMPT_STORE

    def test_supabase_store_selected(self):
        settings = MagicMock(prompt_store="supabase", prompt_table="custom_table")
        store = get_prompt_store(settings)
        assert isinstance(store, SupabasePromptStore)
        assert store.table == "custom_table"
