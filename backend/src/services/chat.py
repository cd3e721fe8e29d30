"""Chat Service - the reflective AI companion and its message history."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from ..models.chat import (
    ChatHistory,
    ChatMessage,
    ChatResponse,
    ConversationStats,
    PersonalInsights,
    RelatedEntrySummary,
)
from .database import DatabaseService, new_id, utc_now
from .diary import DiaryService
from .errors import ValidationError
from .insights import personal_insights
from .llm import LLMClient, LLMError, build_system_prompt
from .text_analysis import extract_key_phrases, sentiment_score
from .vector_service import VectorService

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000
SUMMARY_CHARS = 200
HISTORY_WINDOW = 4

_GREETING = re.compile(r"\b(hello|hi|hey)\b", re.IGNORECASE)


def fallback_response(message: str, related: Sequence[RelatedEntrySummary]) -> str:
    """Rule-based reply used when the language model is unavailable."""
    lowered = message.lower()
    if _GREETING.search(lowered):
        return (
            "Hello! I'm here to help you reflect on your thoughts and feelings. I've been "
            "reading your diary entries and I'm here to support your journey of self-discovery. "
            "What's on your mind today?"
        )
    if "mood" in lowered or "feeling" in lowered:
        if related:
            moods = ", ".join(entry.mood for entry in related)
            return (
                f"I notice you've written about feeling {moods} in similar situations. "
                "How are you feeling about this right now?"
            )
        return (
            "I'd love to help you explore your feelings. Your diary shows you experience a range "
            "of emotions, which is completely natural. What specific mood or feeling would you "
            "like to talk about?"
        )
    if related:
        return (
            f"I found some related entries in your diary from {related[0].date}. This seems to be "
            "something you've reflected on before. What aspects of this would you like to explore further?"
        )
    return (
        "Thank you for sharing that with me. I'm here to listen and help you reflect on your "
        "thoughts and experiences. Your diary shows you're on a meaningful journey of "
        "self-discovery. What would you like to explore or talk about?"
    )


def _summarize(content: str) -> str:
    if len(content) > SUMMARY_CHARS:
        return content[:SUMMARY_CHARS] + "..."
    return content


class ChatService:
    """Orchestrates diary context retrieval, the LLM call and history persistence."""

    def __init__(
        self,
        vector_service: VectorService,
        llm: LLMClient | None = None,
        diary_service: DiaryService | None = None,
        db_service: DatabaseService | None = None,
    ) -> None:
        self._db = db_service or DatabaseService()
        self.vectors = vector_service
        self.llm = llm or LLMClient()
        self.diary = diary_service or DiaryService(self._db)

    async def _related_entries(self, user_id: str, message: str) -> List[RelatedEntrySummary]:
        context = await self.vectors.get_diary_context(message, user_id, limit=3)
        ids = [match.entry.entry_id for match in context.relevant_entries]
        entries = self.diary.get_entries_by_ids(user_id, ids)
        related: List[RelatedEntrySummary] = []
        for match in context.relevant_entries:
            entry = entries.get(match.entry.entry_id)
            if entry is None:
                continue
            related.append(
                RelatedEntrySummary(
                    id=entry.id,
                    date=entry.created_at.strftime("%a %b %d %Y"),
                    mood=entry.mood.value,
                    content=_summarize(entry.content),
                    sentiment=match.entry.metadata.sentiment,
                )
            )
        return related

    async def _generate_reply(
        self,
        user_id: str,
        message: str,
        related: List[RelatedEntrySummary],
    ) -> str:
        if not self.llm.is_configured():
            return fallback_response(message, related)
        try:
            stats = self.vectors.get_user_insights(user_id)
            history = self.get_history(user_id, limit=6).messages
            messages: List[Dict[str, str]] = [
                {"role": "system", "content": build_system_prompt(stats, related)}
            ]
            messages.extend(
                {"role": item.role, "content": item.content}
                for item in history[-HISTORY_WINDOW:]
            )
            messages.append({"role": "user", "content": message})
            return await self.llm.complete(messages, temperature=0.7, max_tokens=300)
        except LLMError as exc:
            logger.error(f"Chat completion failed, using fallback reply: {exc}")
            return fallback_response(message, related)

    async def send_message(self, user_id: str, message: Optional[str]) -> ChatResponse:
        text = (message or "").strip()
        if not text:
            raise ValidationError(
                "INVALID_MESSAGE", "Message is required and must be a non-empty string"
            )
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                "MESSAGE_TOO_LONG", f"Message must be less than {MAX_MESSAGE_LENGTH} characters"
            )

        related = await self._related_entries(user_id, text)
        reply = await self._generate_reply(user_id, text, related)

        self._save_message(user_id, "user", text)
        assistant = self._save_message(
            user_id,
            "assistant",
            reply,
            {
                "related_entries": [entry.id for entry in related],
                "sentiment": sentiment_score(text),
            },
        )
        logger.info(f"Chat reply for user {user_id} with {len(related)} related entries")
        return ChatResponse(message=assistant, related_entries=related)

    def _save_message(
        self,
        user_id: str,
        role: str,
        content: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> ChatMessage:
        message_id = new_id()
        created_at = utc_now()
        conn = self._db.connect()
        try:
            conn.execute(
                """
                INSERT INTO chat_messages (id, user_id, role, content, context, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    message_id,
                    user_id,
                    role,
                    content,
                    json.dumps(context) if context is not None else None,
                    created_at,
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return ChatMessage(
            id=message_id,
            user_id=user_id,
            role=role,
            content=content,
            context=context,
            created_at=created_at,
        )

    def get_history(self, user_id: str, limit: int = 50) -> ChatHistory:
        """Most recent ``limit`` messages in chronological order."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                """
                SELECT id, user_id, role, content, context, created_at
                FROM chat_messages
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        finally:
            conn.close()
        messages = [
            ChatMessage(
                id=row["id"],
                user_id=row["user_id"],
                role=row["role"],
                content=row["content"],
                context=json.loads(row["context"]) if row["context"] else None,
                created_at=row["created_at"],
            )
            for row in reversed(rows)
        ]
        return ChatHistory(messages=messages, total_messages=len(messages))

    def clear_history(self, user_id: str) -> int:
        conn = self._db.connect()
        try:
            cursor = conn.execute("DELETE FROM chat_messages WHERE user_id = ?", (user_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info(f"Cleared {cursor.rowcount} chat messages for user {user_id}")
        return cursor.rowcount

    def get_stats(self, user_id: str) -> ConversationStats:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT role, content FROM chat_messages WHERE user_id = ?", (user_id,)
            ).fetchall()
        finally:
            conn.close()
        user_texts = [row["content"] for row in rows if row["role"] == "user"]
        average = (
            sum(sentiment_score(text) for text in user_texts) / len(user_texts)
            if user_texts
            else 0.0
        )
        return ConversationStats(
            total_messages=len(rows),
            user_messages=len(user_texts),
            assistant_messages=len(rows) - len(user_texts),
            average_sentiment=average,
            top_topics=extract_key_phrases(" ".join(user_texts), limit=5) if user_texts else [],
        )

    def get_personal_insights(self, user_id: str) -> PersonalInsights:
        stats = self.vectors.get_user_insights(user_id)
        return PersonalInsights(
            insights=personal_insights(stats),
            total_entries=stats.total_entries,
            analysis_date=datetime.now(timezone.utc),
        )


__all__ = ["ChatService", "fallback_response", "MAX_MESSAGE_LENGTH"]
