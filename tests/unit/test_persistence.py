"""Tests for document stores, the selection gateway and store discovery."""

import asyncio
import sqlite3

import pytest

from slo_combine.persistence import providers
from slo_combine.persistence.errors import PersistenceError, StoreUnavailable
from slo_combine.persistence.gateway import (
    SLO_COLLECTION_KEY,
    SLO_DOCUMENT_ID,
    LoadFailure,
    SaveFailure,
    SelectionDocument,
    UserStorageGateway,
)
from slo_combine.persistence.stores import (
    DocumentStore,
    InMemoryDocumentStore,
    SQLiteDocumentStore,
)


class BrokenStore:
    """Store whose every call fails, like an unreachable backend."""

    async def read_document(self, collection, document_id):
        raise ConnectionError("store unreachable")

    async def write_document(self, collection, document_id, document):
        raise ConnectionError("store unreachable")

    async def delete_document(self, collection, document_id):
        raise ConnectionError("store unreachable")


class TestSelectionDocument:
    def test_wire_format(self):
        doc = SelectionDocument(selected_ids=["a", "b"])
        assert doc.to_document() == {"selectedIds": ["a", "b"]}

    def test_parse_wire_format(self):
        doc = SelectionDocument.model_validate({"selectedIds": ["a"]})
        assert doc.selected_ids == ["a"]

    def test_default_empty(self):
        assert SelectionDocument().selected_ids == []


class TestInMemoryDocumentStore:
    def test_protocol(self):
        assert isinstance(InMemoryDocumentStore(), DocumentStore)

    def test_round_trip_copies(self):
        store = InMemoryDocumentStore()
        doc = {"selectedIds": ["a"]}
        asyncio.run(store.write_document("c", "d", doc))
        doc["selectedIds"].append("b")
        loaded = asyncio.run(store.read_document("c", "d"))
        assert loaded == {"selectedIds": ["a"]}
        loaded["selectedIds"].append("z")
        assert asyncio.run(store.read_document("c", "d")) == {"selectedIds": ["a"]}

    def test_missing(self):
        assert asyncio.run(InMemoryDocumentStore().read_document("c", "d")) is None

    def test_delete(self):
        store = InMemoryDocumentStore()
        asyncio.run(store.write_document("c", "d", {}))
        assert asyncio.run(store.delete_document("c", "d")) is True
        assert asyncio.run(store.delete_document("c", "d")) is False
        assert len(store) == 0


class TestSQLiteDocumentStore:
    @pytest.fixture
    def store(self, tmp_path):
        return SQLiteDocumentStore(tmp_path / "nested" / "store.db")

    def test_protocol(self, store):
        assert isinstance(store, DocumentStore)

    def test_write_then_read(self, store):
        asyncio.run(store.write_document("c", "d", {"selectedIds": ["a", "b"]}))
        assert asyncio.run(store.read_document("c", "d")) == {"selectedIds": ["a", "b"]}

    def test_overwrite(self, store):
        asyncio.run(store.write_document("c", "d", {"selectedIds": ["a"]}))
        asyncio.run(store.write_document("c", "d", {"selectedIds": []}))
        assert asyncio.run(store.read_document("c", "d")) == {"selectedIds": []}
        assert store.document_count() == 1

    def test_keys_are_scoped_by_collection(self, store):
        asyncio.run(store.write_document("c1", "d", {"v": 1}))
        asyncio.run(store.write_document("c2", "d", {"v": 2}))
        assert asyncio.run(store.read_document("c1", "d")) == {"v": 1}
        assert asyncio.run(store.read_document("c2", "d")) == {"v": 2}

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "store.db"
        asyncio.run(SQLiteDocumentStore(path).write_document("c", "d", {"v": 1}))
        assert asyncio.run(SQLiteDocumentStore(path).read_document("c", "d")) == {"v": 1}

    def test_row_layout(self, store):
        asyncio.run(store.write_document("c", "d", {"v": 1}))
        conn = sqlite3.connect(store.path)
        rows = conn.execute("SELECT collection, document_id, body FROM documents").fetchall()
        conn.close()
        assert rows == [("c", "d", '{"v": 1}')]

    def test_delete(self, store):
        asyncio.run(store.write_document("c", "d", {}))
        assert asyncio.run(store.delete_document("c", "d")) is True
        assert asyncio.run(store.read_document("c", "d")) is None

    def test_unwritable_path_raises_store_unavailable(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        with pytest.raises(StoreUnavailable) as exc_info:
            SQLiteDocumentStore(blocker / "store.db")
        assert isinstance(exc_info.value, PersistenceError)
        assert "not-a-dir" in str(exc_info.value)


class TestUserStorageGateway:
    def test_default_keys(self):
        gateway = UserStorageGateway(InMemoryDocumentStore())
        assert gateway.collection == SLO_COLLECTION_KEY == "slo_collection_v1"
        assert gateway.document_id == SLO_DOCUMENT_ID == "slo_document"

    def test_load_missing_document_is_empty(self):
        gateway = UserStorageGateway(InMemoryDocumentStore())
        assert asyncio.run(gateway.load()).selected_ids == []

    def test_save_then_load(self):
        store = InMemoryDocumentStore()
        gateway = UserStorageGateway(store)
        asyncio.run(gateway.save(("a", "b")))
        assert asyncio.run(store.read_document(SLO_COLLECTION_KEY, SLO_DOCUMENT_ID)) == {
            "selectedIds": ["a", "b"]
        }
        assert asyncio.run(gateway.load()).selected_ids == ["a", "b"]

    def test_load_failure_wraps_store_error(self):
        gateway = UserStorageGateway(BrokenStore())
        with pytest.raises(LoadFailure) as exc_info:
            asyncio.run(gateway.load())
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_malformed_document_is_load_failure(self):
        store = InMemoryDocumentStore()
        asyncio.run(store.write_document(SLO_COLLECTION_KEY, SLO_DOCUMENT_ID, {"selectedIds": "oops"}))
        with pytest.raises(LoadFailure):
            asyncio.run(UserStorageGateway(store).load())

    def test_save_failure(self):
        with pytest.raises(SaveFailure):
            asyncio.run(UserStorageGateway(BrokenStore()).save(["a"]))

    def test_clear(self):
        store = InMemoryDocumentStore()
        gateway = UserStorageGateway(store, collection="c", document_id="d")
        asyncio.run(gateway.save(["a"]))
        assert asyncio.run(gateway.clear()) is True
        assert asyncio.run(gateway.load()).selected_ids == []


class TestProviders:
    def setup_method(self):
        providers.clear_cache()

    def teardown_method(self):
        providers.clear_cache()

    def test_builtin_fallback(self, tmp_path, monkeypatch):
        monkeypatch.setattr(providers, "entry_points", lambda group: [])
        store = providers.get_document_store(path=tmp_path / "s.db")
        assert isinstance(store, SQLiteDocumentStore)
        assert providers.discover_store_class() is None

    def test_plugin_store(self, monkeypatch):
        class _EntryPoint:
            name = "memory"
            value = "tests:InMemoryDocumentStore"

            def load(self):
                return InMemoryDocumentStore

        groups = []

        def _entry_points(group):
            groups.append(group)
            return [_EntryPoint()]

        monkeypatch.setattr(providers, "entry_points", _entry_points)
        assert isinstance(providers.get_document_store(), InMemoryDocumentStore)
        assert providers.discover_store_class() is InMemoryDocumentStore
        assert groups == ["slo_combine.document_stores"]

    def test_discovery_error_falls_back(self, tmp_path, monkeypatch):
        def _boom(group):
            raise RuntimeError("broken metadata")

        monkeypatch.setattr(providers, "entry_points", _boom)
        store = providers.get_document_store(path=tmp_path / "s.db")
        assert isinstance(store, SQLiteDocumentStore)

    def test_discovery_is_cached(self, tmp_path, monkeypatch):
        calls = []

        def _entry_points(group):
            calls.append(group)
            return []

        monkeypatch.setattr(providers, "entry_points", _entry_points)
        providers.get_document_store(path=tmp_path / "a.db")
        providers.get_document_store(path=tmp_path / "b.db")
        assert len(calls) == 1
        providers.clear_cache()
        providers.get_document_store(path=tmp_path / "c.db")
        assert len(calls) == 2
