"""Models for the AI chat companion."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Incoming chat message. Length rules are enforced by the chat service."""

    message: str = ""


class ChatMessage(BaseModel):
    id: str
    user_id: str
    role: Literal["user", "assistant"]
    content: str
    context: Optional[Dict[str, Any]] = None
    created_at: datetime


class RelatedEntrySummary(BaseModel):
    """Short view of a diary entry used as companion context."""

    id: str
    date: str
    mood: str
    content: str = Field(..., description="Content truncated to 200 characters")
    sentiment: Optional[float] = None


class ChatResponse(BaseModel):
    message: ChatMessage
    related_entries: List[RelatedEntrySummary] = Field(default_factory=list)


class ChatHistory(BaseModel):
    messages: List[ChatMessage]
    total_messages: int


class ConversationStats(BaseModel):
    total_messages: int
    user_messages: int
    assistant_messages: int
    average_sentiment: float
    top_topics: List[str]


class PersonalInsight(BaseModel):
    type: Literal["pattern", "mood", "growth", "theme"]
    title: str
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    related_entries: Optional[List[str]] = None


class PersonalInsights(BaseModel):
    insights: List[PersonalInsight]
    total_entries: int
    analysis_date: datetime


__all__ = [
    "ChatRequest",
    "ChatMessage",
    "RelatedEntrySummary",
    "ChatResponse",
    "ChatHistory",
    "ConversationStats",
    "PersonalInsight",
    "PersonalInsights",
]
