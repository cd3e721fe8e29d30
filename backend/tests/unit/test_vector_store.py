from datetime import datetime, timedelta, timezone
import uuid

import numpy as np
import pytest

from backend.src.models.vector import VectorMetadata
from backend.src.services.vector_store import (
    ChromaVectorStore,
    SQLiteVectorStore,
    cosine_similarity,
    create_vector_store,
    deserialize,
    serialize,
)

BASE = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def _meta(days: int = 0, mood: str = "calm") -> VectorMetadata:
    return VectorMetadata(mood=mood, tags=["walk"], created_at=BASE + timedelta(days=days), word_count=3)


def test_cosine_similarity_handles_zero_vectors():
    assert cosine_similarity(np.array([1.0, 0.0]), np.array([1.0, 0.0])) == pytest.approx(1.0)
    assert cosine_similarity(np.array([1.0, 0.0]), np.array([0.0, 1.0])) == pytest.approx(0.0)
    assert cosine_similarity(np.zeros(2), np.array([1.0, 0.0])) == 0.0


def test_serialize_round_trip_is_float32():
    data = serialize([0.5, -1.25])

    assert len(data) == 8
    assert deserialize(data).tolist() == [0.5, -1.25]


def test_create_vector_store_defaults_to_sqlite(app_env):
    assert isinstance(create_vector_store(app_env), SQLiteVectorStore)


def test_create_vector_store_builds_chroma_lazily(app_env):
    store = create_vector_store(app_env.model_copy(update={"vector_backend": "chroma"}))

    assert isinstance(store, ChromaVectorStore)
    assert store._collection is None


class TestSQLiteVectorStore:
    @pytest.fixture
    def store(self, db):
        return SQLiteVectorStore(db)

    def test_store_upserts_by_entry(self, store):
        first = store.store("entry-1", "user-a", "old text", [1.0, 0.0], _meta())
        second = store.store("entry-1", "user-a", "new text", [0.0, 1.0], _meta())

        assert first == second
        entry = store.get_entry("entry-1")
        assert entry.content == "new text"
        assert entry.vector == [0.0, 1.0]
        assert entry.metadata.tags == ["walk"]

    def test_search_is_scoped_ranked_and_thresholded(self, store):
        store.store("close", "user-a", "close", [1.0, 0.1], _meta())
        store.store("closest", "user-a", "closest", [1.0, 0.0], _meta())
        store.store("far", "user-a", "far", [0.0, 1.0], _meta())
        store.store("other-user", "user-b", "other", [1.0, 0.0], _meta())

        results = store.search_similar([1.0, 0.0], "user-a", limit=5, threshold=0.7)

        assert [r.entry.entry_id for r in results] == ["closest", "close"]
        assert results[0].similarity == pytest.approx(1.0)

    def test_search_skips_mismatched_dimensions(self, store):
        store.store("short", "user-a", "short", [1.0, 0.0], _meta())

        assert store.search_similar([1.0, 0.0, 0.0], "user-a", threshold=0.0) == []

    def test_search_respects_limit(self, store):
        for i in range(4):
            store.store(f"e{i}", "user-a", "text", [1.0, 0.0], _meta())

        assert len(store.search_similar([1.0, 0.0], "user-a", limit=2)) == 2

    def test_user_entries_newest_first(self, store):
        store.store("old", "user-a", "old", [1.0], _meta(days=0))
        store.store("new", "user-a", "new", [1.0], _meta(days=2))
        store.store("mid", "user-a", "mid", [1.0], _meta(days=1))

        assert [e.entry_id for e in store.get_user_entries("user-a")] == ["new", "mid", "old"]
        assert len(store.get_user_entries("user-a", limit=1)) == 1

    def test_delete(self, store):
        store.store("entry-1", "user-a", "text", [1.0], _meta())

        assert store.delete("entry-1") is True
        assert store.delete("entry-1") is False
        assert store.get_entry("entry-1") is None

    def test_health_check(self, store):
        assert store.health_check() == {"status": "ok", "message": "sqlite vector store healthy"}


class TestChromaVectorStore:
    @pytest.fixture
    def store(self, app_env):
        chromadb = pytest.importorskip("chromadb")
        config = app_env.model_copy(
            update={"vector_backend": "chroma", "chroma_collection": f"test_{uuid.uuid4().hex}"}
        )
        return ChromaVectorStore(config, client=chromadb.EphemeralClient())

    def test_store_search_and_delete(self, store):
        store.store("closest", "user-a", "closest", [1.0, 0.0, 0.0], _meta(mood="happy"))
        store.store("far", "user-a", "far", [0.0, 1.0, 0.0], _meta())
        store.store("other-user", "user-b", "other", [1.0, 0.0, 0.0], _meta())

        results = store.search_similar([1.0, 0.0, 0.0], "user-a", limit=5, threshold=0.7)

        assert [r.entry.entry_id for r in results] == ["closest"]
        assert results[0].entry.metadata.mood == "happy"
        assert results[0].entry.metadata.tags == ["walk"]
        assert store.delete("closest") is True
        assert store.delete("closest") is False

    def test_user_entries_sorted_client_side(self, store):
        store.store("old", "user-a", "old", [1.0, 0.0], _meta(days=0))
        store.store("new", "user-a", "new", [1.0, 0.0], _meta(days=3))

        assert [e.entry_id for e in store.get_user_entries("user-a")] == ["new", "old"]
        assert store.get_entry("new").content == "new"
