"""Diary Service - private, mood-tagged entries and their vector indexing."""

from __future__ import annotations

import logging
import sqlite3
from typing import Dict, Iterable, List, Optional

from ..models.diary import (
    DiaryEntry,
    DiaryEntryCreate,
    DiaryEntryList,
    MoodStats,
    MoodType,
    Pagination,
)
from .database import DatabaseService, new_id, utc_now
from .errors import NotFoundError
from .text_analysis import extract_tags, sentiment_score

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("title", "content", "mood", "gratitude", "highlights", "goals")


def _row_to_entry(row: sqlite3.Row) -> DiaryEntry:
    return DiaryEntry(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        content=row["content"],
        mood=row["mood"],
        gratitude=row["gratitude"],
        highlights=row["highlights"],
        goals=row["goals"],
        is_private=bool(row["is_private"]),
        vector_id=row["vector_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _db_value(value):
    return value.value if isinstance(value, MoodType) else value


class DiaryService:
    """CRUD for diary entries. Every read and write is scoped to the owner."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def create_entry(self, user_id: str, data: DiaryEntryCreate) -> DiaryEntry:
        entry_id = new_id()
        now = utc_now()
        conn = self._db.connect()
        try:
            conn.execute(
                """
                INSERT INTO diary_entries
                    (id, user_id, title, content, mood, gratitude, highlights, goals,
                     is_private, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
                """,
                (
                    entry_id,
                    user_id,
                    data.title,
                    data.content,
                    data.mood.value,
                    data.gratitude,
                    data.highlights,
                    data.goals,
                    now,
                    now,
                ),
            )
            conn.commit()
            logger.info(f"Created diary entry {entry_id} for user {user_id}")
        finally:
            conn.close()
        return self.get_entry(entry_id, user_id)

    def get_entry(self, entry_id: str, user_id: str) -> DiaryEntry:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM diary_entries WHERE id = ? AND user_id = ?",
                (entry_id, user_id),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("ENTRY_NOT_FOUND", "Diary entry not found")
        return _row_to_entry(row)

    def get_entries_by_ids(self, user_id: str, entry_ids: Iterable[str]) -> Dict[str, DiaryEntry]:
        ids = list(entry_ids)
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        conn = self._db.connect()
        try:
            rows = conn.execute(
                f"SELECT * FROM diary_entries WHERE user_id = ? AND id IN ({placeholders})",
                (user_id, *ids),
            ).fetchall()
        finally:
            conn.close()
        return {row["id"]: _row_to_entry(row) for row in rows}

    def list_entries(self, user_id: str, page: int = 1, limit: int = 20) -> DiaryEntryList:
        offset = (page - 1) * limit
        conn = self._db.connect()
        try:
            total = conn.execute(
                "SELECT COUNT(*) FROM diary_entries WHERE user_id = ?", (user_id,)
            ).fetchone()[0]
            rows = conn.execute(
                """
                SELECT * FROM diary_entries WHERE user_id = ?
                ORDER BY created_at DESC
                LIMIT ? OFFSET ?
                """,
                (user_id, limit, offset),
            ).fetchall()
        finally:
            conn.close()
        return DiaryEntryList(
            entries=[_row_to_entry(row) for row in rows],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                has_more=offset + len(rows) < total,
            ),
        )

    def update_entry(self, entry_id: str, user_id: str, changes: Dict[str, object]) -> DiaryEntry:
        """Apply ``changes``; an empty change set returns the entry untouched."""
        existing = self.get_entry(entry_id, user_id)
        fields = {key: value for key, value in changes.items() if key in _UPDATABLE_FIELDS}
        if not fields:
            return existing

        assignments = ", ".join(f"{key} = ?" for key in fields)
        params: List[object] = [_db_value(value) for value in fields.values()]
        conn = self._db.connect()
        try:
            conn.execute(
                f"UPDATE diary_entries SET {assignments}, updated_at = ? WHERE id = ? AND user_id = ?",
                (*params, utc_now(), entry_id, user_id),
            )
            conn.commit()
            logger.info(f"Updated diary entry {entry_id} ({', '.join(fields)})")
        finally:
            conn.close()
        return self.get_entry(entry_id, user_id)

    def delete_entry(self, entry_id: str, user_id: str) -> None:
        conn = self._db.connect()
        try:
            cursor = conn.execute(
                "DELETE FROM diary_entries WHERE id = ? AND user_id = ?", (entry_id, user_id)
            )
            conn.commit()
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError("ENTRY_NOT_FOUND", "Diary entry not found")
        logger.info(f"Deleted diary entry {entry_id}")

    def set_vector_id(self, entry_id: str, vector_id: Optional[str]) -> None:
        conn = self._db.connect()
        try:
            conn.execute(
                "UPDATE diary_entries SET vector_id = ? WHERE id = ?", (vector_id, entry_id)
            )
            conn.commit()
        finally:
            conn.close()

    def mood_stats(self, user_id: str) -> MoodStats:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT mood, COUNT(*) AS count FROM diary_entries WHERE user_id = ? GROUP BY mood",
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        moods = {mood.value: 0 for mood in MoodType}
        for row in rows:
            moods[row["mood"]] = row["count"]
        return MoodStats(moods=moods, total_entries=sum(moods.values()))


async def index_entry(entry: DiaryEntry, vector_service, diary_service: DiaryService) -> None:
    """Background task: (re)embed an entry and remember its vector id.

    Failures are logged; the request that scheduled this has already returned.
    """
    try:
        text = entry.combined_text()
        vector_id = await vector_service.store_entry_vector(
            entry.id,
            entry.user_id,
            text,
            mood=entry.mood.value,
            tags=extract_tags(text),
            sentiment=sentiment_score(text),
            created_at=entry.created_at,
        )
        if vector_id:
            diary_service.set_vector_id(entry.id, vector_id)
    except Exception:
        logger.exception(f"Vector indexing failed for diary entry {entry.id}")


def get_diary_service() -> DiaryService:
    return DiaryService()


__all__ = ["DiaryService", "get_diary_service", "index_entry"]
