"""Private diary routes. Every route is scoped to the authenticated owner."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from ...models.auth import MessageResponse
from ...models.diary import (
    DiaryEntry,
    DiaryEntryCreate,
    DiaryEntryList,
    DiaryEntryUpdate,
    DiaryInsights,
    DiarySearchResponse,
    MoodInfo,
    MoodStats,
    MoodType,
    RelatedEntriesResponse,
    ScoredDiaryEntry,
)
from ...models.vector import SimilarEntry
from ...services.diary import DiaryService, get_diary_service, index_entry
from ...services.engagement import record_event
from ...services.errors import ServiceError, ValidationError
from ...services.insights import diary_insights
from ...services.vector_service import CONTEXT_THRESHOLD, VectorService, get_vector_service
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/diary", tags=["diary"])


def _scored(
    diary: DiaryService, user_id: str, matches: List[SimilarEntry]
) -> List[ScoredDiaryEntry]:
    """Attach similarity scores to the owner's entries, keeping match order."""
    entries = diary.get_entries_by_ids(user_id, [m.entry.entry_id for m in matches])
    return [
        ScoredDiaryEntry(**entries[m.entry.entry_id].model_dump(), similarity=m.similarity)
        for m in matches
        if m.entry.entry_id in entries
    ]


@router.get("/mood-types", response_model=List[MoodInfo])
async def mood_types(auth: AuthContext = Depends(get_auth_context)):
    return [MoodInfo.for_mood(mood) for mood in MoodType]


@router.get("/moods", response_model=MoodStats)
async def mood_stats(
    auth: AuthContext = Depends(get_auth_context),
    diary: DiaryService = Depends(get_diary_service),
):
    """Entry counts for every mood, zero-filled."""
    return diary.mood_stats(auth.user_id)


@router.get("/search", response_model=DiarySearchResponse)
async def search_entries(
    q: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=20),
    auth: AuthContext = Depends(get_auth_context),
    diary: DiaryService = Depends(get_diary_service),
    vectors: VectorService = Depends(get_vector_service),
):
    """Semantic search over the caller's diary."""
    query = (q or "").strip()
    if not query:
        raise ValidationError("MISSING_QUERY", "Search query is required")

    try:
        matches = await vectors.search_similar_entries(
            query, auth.user_id, limit=limit, threshold=CONTEXT_THRESHOLD
        )
        entries = _scored(diary, auth.user_id, matches)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Diary search failed for user {auth.user_id}")
        raise HTTPException(status_code=500, detail=f"Failed to search diary entries: {str(e)}")

    return DiarySearchResponse(query=query, entries=entries, total_results=len(entries))


@router.get("/insights", response_model=DiaryInsights)
async def insights(
    auth: AuthContext = Depends(get_auth_context),
    vectors: VectorService = Depends(get_vector_service),
):
    try:
        return diary_insights(vectors.get_user_insights(auth.user_id))
    except Exception as e:
        logger.exception(f"Diary insights failed for user {auth.user_id}")
        raise HTTPException(status_code=500, detail=f"Failed to get diary insights: {str(e)}")


@router.get("", response_model=DiaryEntryList)
async def list_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    auth: AuthContext = Depends(get_auth_context),
    diary: DiaryService = Depends(get_diary_service),
):
    return diary.list_entries(auth.user_id, page, limit)


@router.post("", response_model=DiaryEntry, status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: DiaryEntryCreate,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(get_auth_context),
    diary: DiaryService = Depends(get_diary_service),
    vectors: VectorService = Depends(get_vector_service),
):
    """Create an entry; its vector is indexed after the response is sent."""
    entry = diary.create_entry(auth.user_id, body)
    background_tasks.add_task(index_entry, entry, vectors, diary)

    metadata = {"content_id": entry.id, "content_type": "diary"}
    if entry.gratitude or entry.highlights:
        metadata["emotional_context"] = {
            "mood": entry.mood.value,
            "has_gratitude": bool(entry.gratitude),
            "has_highlights": bool(entry.highlights),
        }
    record_event(auth.user_id, "diary_entry", metadata)
    return entry


@router.get("/{entry_id}/related", response_model=RelatedEntriesResponse)
async def related_entries(
    entry_id: str,
    limit: int = Query(3, ge=1, le=10),
    auth: AuthContext = Depends(get_auth_context),
    diary: DiaryService = Depends(get_diary_service),
    vectors: VectorService = Depends(get_vector_service),
):
    diary.get_entry(entry_id, auth.user_id)
    matches = vectors.get_related_entries(entry_id, auth.user_id, limit=limit)
    related = _scored(diary, auth.user_id, matches)
    return RelatedEntriesResponse(
        entry_id=entry_id, related_entries=related, total_results=len(related)
    )


@router.get("/{entry_id}", response_model=DiaryEntry)
async def get_entry(
    entry_id: str,
    auth: AuthContext = Depends(get_auth_context),
    diary: DiaryService = Depends(get_diary_service),
):
    return diary.get_entry(entry_id, auth.user_id)


@router.put("/{entry_id}", response_model=DiaryEntry)
async def update_entry(
    entry_id: str,
    body: DiaryEntryUpdate,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(get_auth_context),
    diary: DiaryService = Depends(get_diary_service),
    vectors: VectorService = Depends(get_vector_service),
):
    """Apply a partial update and re-index the entry vector."""
    changes = body.changes()
    entry = diary.update_entry(entry_id, auth.user_id, changes)
    if changes:
        vectors.delete_entry_vector(entry.id)
        diary.set_vector_id(entry.id, None)
        entry = entry.model_copy(update={"vector_id": None})
        background_tasks.add_task(index_entry, entry, vectors, diary)
    return entry


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_entry(
    entry_id: str,
    auth: AuthContext = Depends(get_auth_context),
    diary: DiaryService = Depends(get_diary_service),
    vectors: VectorService = Depends(get_vector_service),
):
    diary.delete_entry(entry_id, auth.user_id)
    if not vectors.delete_entry_vector(entry_id):
        logger.info(f"No vector stored for deleted entry {entry_id}")
    return MessageResponse(message="Diary entry deleted successfully")


__all__ = ["router"]
