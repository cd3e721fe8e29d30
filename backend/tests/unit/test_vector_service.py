from datetime import datetime, timedelta, timezone

import pytest

from backend.src.services.embedding import EmbeddingError, EmbeddingService
from backend.src.services.vector_service import VectorService
from backend.src.services.vector_store import SQLiteVectorStore

START = datetime(2025, 5, 1, 8, 0, tzinfo=timezone.utc)


class FailingEmbedder:
    model = "failing"

    async def embed(self, text):
        raise EmbeddingError("provider down")

    async def embed_query(self, query):
        raise EmbeddingError("provider down")

    def status(self):
        return {"configured": True, "model": self.model, "dimensions": 0}


@pytest.mark.asyncio
async def test_store_entry_vector_merges_tags_and_counts_words(vector_service):
    vector_id = await vector_service.store_entry_vector(
        "entry-1",
        "user-a",
        "ocean waves ocean breeze",
        mood="calm",
        tags=["ocean", "travel"],
        sentiment=0.4,
        created_at=START,
    )

    stored = vector_service.store.get_entry("entry-1")
    assert stored.id == vector_id
    assert stored.metadata.tags == ["ocean", "travel", "waves", "breeze"]
    assert stored.metadata.word_count == 4
    assert stored.metadata.mood == "calm"
    assert stored.metadata.sentiment == 0.4


@pytest.mark.asyncio
async def test_store_entry_vector_without_provider_returns_none(app_env, db):
    service = VectorService(embedder=EmbeddingService(app_env), store=SQLiteVectorStore(db))

    assert await service.store_entry_vector("entry-1", "user-a", "text") is None
    assert service.store.get_entry("entry-1") is None


@pytest.mark.asyncio
async def test_provider_errors_degrade_to_empty_results(db):
    service = VectorService(embedder=FailingEmbedder(), store=SQLiteVectorStore(db))

    assert await service.store_entry_vector("entry-1", "user-a", "text") is None
    assert await service.search_similar_entries("text", "user-a") == []


@pytest.mark.asyncio
async def test_search_is_scoped_to_user(vector_service):
    await vector_service.store_entry_vector("mine", "user-a", "beach sunset calm evening")
    await vector_service.store_entry_vector("theirs", "user-b", "beach sunset calm evening")

    results = await vector_service.search_similar_entries("beach sunset calm evening", "user-a")

    assert [r.entry.entry_id for r in results] == ["mine"]
    assert results[0].similarity == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_diary_context_collects_scores_themes_and_range(vector_service):
    await vector_service.store_entry_vector(
        "first", "user-a", "beach sunset calm evening", tags=["beach"], created_at=START
    )
    await vector_service.store_entry_vector(
        "second",
        "user-a",
        "beach sunset calm evening",
        tags=["beach"],
        created_at=START + timedelta(days=3),
    )

    context = await vector_service.get_diary_context("beach sunset calm evening", "user-a")

    assert len(context.relevant_entries) == 2
    assert context.similarity_scores == [pytest.approx(1.0), pytest.approx(1.0)]
    assert context.themes[0] == "beach"
    assert context.time_range.start == START
    assert context.time_range.end == START + timedelta(days=3)


@pytest.mark.asyncio
async def test_related_entries_exclude_the_entry_itself(vector_service):
    await vector_service.store_entry_vector("target", "user-a", "morning garden coffee birds")
    await vector_service.store_entry_vector("twin", "user-a", "morning garden coffee birds")
    await vector_service.store_entry_vector("other", "user-a", "quarterly budget spreadsheet deadline")

    related = vector_service.get_related_entries("target", "user-a")

    assert [r.entry.entry_id for r in related] == ["twin"]
    assert vector_service.get_related_entries("target", "user-b") == []
    assert vector_service.get_related_entries("missing", "user-a") == []


@pytest.mark.asyncio
async def test_user_insights_aggregate_metadata(vector_service):
    await vector_service.store_entry_vector(
        "a", "user-a", "garden walk garden", mood="calm", sentiment=0.5, created_at=START
    )
    await vector_service.store_entry_vector(
        "b", "user-a", "garden rain", mood="calm", sentiment=-0.1, created_at=START + timedelta(days=1)
    )
    await vector_service.store_entry_vector(
        "c", "user-a", "exam stress", mood="anxious", created_at=START + timedelta(days=2)
    )

    insights = vector_service.get_user_insights("user-a")

    assert insights.total_entries == 3
    assert insights.mood_distribution == {"calm": 2, "anxious": 1}
    assert insights.common_tags[0] == "garden"
    assert insights.average_word_count == pytest.approx(7 / 3)
    assert insights.average_sentiment == pytest.approx(0.2)
    assert insights.time_range.start == START


def test_user_insights_empty(vector_service):
    insights = vector_service.get_user_insights("nobody")

    assert insights.total_entries == 0
    assert insights.common_tags == []


def test_delete_entry_vector(vector_service):
    assert vector_service.delete_entry_vector("missing") is False


def test_health_check_reports_embedding_status(app_env, db, vector_service):
    healthy = vector_service.health_check()
    assert healthy.overall is True
    assert healthy.backend == "sqlite"

    unconfigured = VectorService(embedder=EmbeddingService(app_env), store=SQLiteVectorStore(db))
    status = unconfigured.health_check()
    assert status.store.status == "ok"
    assert status.embedding_configured is False
    assert status.overall is False
