"""Vector Service - diary embedding, semantic search and vector-derived stats."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from statistics import mean
from typing import List, Optional, Sequence

from ..models.vector import (
    DiaryContext,
    SimilarEntry,
    StoreHealth,
    TimeRange,
    UserVectorInsights,
    VectorHealth,
    VectorMetadata,
)
from .embedding import EmbeddingError, EmbeddingService
from .text_analysis import extract_key_phrases, top_items, word_count
from .vector_store import VectorStore, create_vector_store

logger = logging.getLogger(__name__)

CONTEXT_THRESHOLD = 0.6


def _time_range(created: Sequence[datetime]) -> TimeRange:
    if not created:
        now = datetime.now(timezone.utc)
        return TimeRange(start=now, end=now)
    ordered = sorted(created)
    return TimeRange(start=ordered[0], end=ordered[-1])


class VectorService:
    """Coordinates the embedding provider and the vector store."""

    def __init__(
        self,
        embedder: EmbeddingService | None = None,
        store: VectorStore | None = None,
    ) -> None:
        self.embedder = embedder or EmbeddingService()
        self.store = store or create_vector_store()

    async def store_entry_vector(
        self,
        entry_id: str,
        user_id: str,
        content: str,
        *,
        mood: Optional[str] = None,
        tags: Optional[List[str]] = None,
        sentiment: Optional[float] = None,
        created_at: Optional[datetime] = None,
    ) -> Optional[str]:
        """Embed and store an entry. Returns the vector id, or None if nothing was stored."""
        try:
            embedding = await self.embedder.embed(content)
        except EmbeddingError as exc:
            logger.error(f"Failed to generate embedding for entry {entry_id}: {exc}")
            return None
        if embedding is None:
            logger.info(f"Embedding unavailable; skipped vector for entry {entry_id}")
            return None

        merged_tags: List[str] = []
        for tag in list(tags or []) + extract_key_phrases(content)[:5]:
            if tag not in merged_tags:
                merged_tags.append(tag)

        metadata = VectorMetadata(
            mood=mood or "neutral",
            tags=merged_tags,
            created_at=created_at or datetime.now(timezone.utc),
            word_count=word_count(content),
            sentiment=sentiment,
        )
        vector_id = self.store.store(entry_id, user_id, content, embedding, metadata)
        logger.info(f"Stored vector {vector_id} for entry {entry_id}")
        return vector_id

    async def search_similar_entries(
        self,
        query: str,
        user_id: str,
        *,
        limit: int = 5,
        threshold: float = 0.7,
    ) -> List[SimilarEntry]:
        try:
            embedding = await self.embedder.embed_query(query)
        except EmbeddingError as exc:
            logger.error(f"Failed to generate query embedding: {exc}")
            return []
        if embedding is None:
            return []
        results = self.store.search_similar(embedding, user_id, limit=limit, threshold=threshold)
        logger.info(f"Found {len(results)} similar entries for user {user_id}")
        return results

    async def get_diary_context(self, message: str, user_id: str, limit: int = 3) -> DiaryContext:
        """Related entries, their scores, top themes and time span for the chat companion."""
        matches = await self.search_similar_entries(
            message, user_id, limit=limit, threshold=CONTEXT_THRESHOLD
        )
        tags = [tag for match in matches for tag in match.entry.metadata.tags]
        return DiaryContext(
            relevant_entries=matches,
            similarity_scores=[match.similarity for match in matches],
            themes=top_items(tags, 5),
            time_range=_time_range([match.entry.metadata.created_at for match in matches]),
        )

    def get_related_entries(self, entry_id: str, user_id: str, limit: int = 3) -> List[SimilarEntry]:
        """Entries similar to the stored vector of ``entry_id``, excluding itself."""
        target = self.store.get_entry(entry_id)
        if target is None or target.user_id != user_id or not target.vector:
            logger.info(f"Entry {entry_id} not found in vector store")
            return []
        results = self.store.search_similar(
            target.vector, user_id, limit=limit + 1, threshold=CONTEXT_THRESHOLD
        )
        return [match for match in results if match.entry.entry_id != entry_id][:limit]

    def delete_entry_vector(self, entry_id: str) -> bool:
        return self.store.delete(entry_id)

    def get_user_insights(self, user_id: str) -> UserVectorInsights:
        entries = self.store.get_user_entries(user_id)
        if not entries:
            return UserVectorInsights(time_range=_time_range([]))

        mood_distribution: dict[str, int] = {}
        for entry in entries:
            mood = entry.metadata.mood or "unknown"
            mood_distribution[mood] = mood_distribution.get(mood, 0) + 1

        sentiments = [e.metadata.sentiment for e in entries if e.metadata.sentiment is not None]
        return UserVectorInsights(
            total_entries=len(entries),
            average_word_count=mean(e.metadata.word_count for e in entries),
            common_tags=top_items((tag for e in entries for tag in e.metadata.tags), 10),
            mood_distribution=mood_distribution,
            time_range=_time_range([e.metadata.created_at for e in entries]),
            average_sentiment=mean(sentiments) if sentiments else 0.0,
        )

    def health_check(self) -> VectorHealth:
        store_health = StoreHealth(**self.store.health_check())
        embedding_status = self.embedder.status()
        return VectorHealth(
            store=store_health,
            embedding_configured=embedding_status["configured"],
            embedding_model=embedding_status["model"],
            backend=self.store.name,
            overall=store_health.status == "ok" and embedding_status["configured"],
        )


def get_vector_service() -> VectorService:
    """FastAPI dependency; tests override it with a deterministic embedder."""
    return VectorService()


__all__ = ["VectorService", "get_vector_service", "CONTEXT_THRESHOLD"]
