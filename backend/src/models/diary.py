"""Pydantic models for the private diary."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class MoodType(str, Enum):
    HAPPY = "happy"
    CALM = "calm"
    REFLECTIVE = "reflective"
    GRATEFUL = "grateful"
    ANXIOUS = "anxious"
    SAD = "sad"
    EXCITED = "excited"
    PEACEFUL = "peaceful"


MOOD_COLORS: Dict[MoodType, str] = {
    MoodType.HAPPY: "#fbbf24",
    MoodType.CALM: "#60a5fa",
    MoodType.REFLECTIVE: "#a78bfa",
    MoodType.GRATEFUL: "#34d399",
    MoodType.ANXIOUS: "#f87171",
    MoodType.SAD: "#6b7280",
    MoodType.EXCITED: "#fb7185",
    MoodType.PEACEFUL: "#6ee7b7",
}

MOOD_ICONS: Dict[MoodType, str] = {
    MoodType.HAPPY: "😊",
    MoodType.CALM: "😌",
    MoodType.REFLECTIVE: "🤔",
    MoodType.GRATEFUL: "🙏",
    MoodType.ANXIOUS: "😰",
    MoodType.SAD: "😢",
    MoodType.EXCITED: "🤩",
    MoodType.PEACEFUL: "☮️",
}


class MoodInfo(BaseModel):
    value: MoodType
    label: str
    color: str
    icon: str

    @classmethod
    def for_mood(cls, mood: MoodType) -> "MoodInfo":
        return cls(
            value=mood,
            label=mood.value.capitalize(),
            color=MOOD_COLORS[mood],
            icon=MOOD_ICONS[mood],
        )


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class DiaryEntryCreate(BaseModel):
    """New diary entry. Entries are always private."""

    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)
    mood: MoodType
    gratitude: Optional[str] = Field(None, max_length=1000)
    highlights: Optional[str] = Field(None, max_length=1000)
    goals: Optional[str] = Field(None, max_length=1000)

    @field_validator("content", mode="before")
    @classmethod
    def _strip_content(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("title", "gratitude", "highlights", "goals", mode="before")
    @classmethod
    def _strip_optional_fields(cls, value):
        if isinstance(value, str):
            return _strip_optional(value)
        return value


class DiaryEntryUpdate(BaseModel):
    """Partial update; omitted fields stay unchanged."""

    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=10000)
    mood: Optional[MoodType] = None
    gratitude: Optional[str] = Field(None, max_length=1000)
    highlights: Optional[str] = Field(None, max_length=1000)
    goals: Optional[str] = Field(None, max_length=1000)

    @field_validator("content", mode="before")
    @classmethod
    def _strip_content(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("title", "gratitude", "highlights", "goals", mode="before")
    @classmethod
    def _strip_optional_fields(cls, value):
        if isinstance(value, str):
            return _strip_optional(value)
        return value

    def changes(self) -> Dict[str, object]:
        """Fields the client sent. Blank optional text clears the field; null content or mood is ignored."""
        data = self.model_dump(exclude_unset=True)
        for required in ("content", "mood"):
            if required in data and data[required] is None:
                data.pop(required)
        return data


class DiaryEntry(BaseModel):
    id: str
    user_id: str
    title: Optional[str] = None
    content: str
    mood: MoodType
    gratitude: Optional[str] = None
    highlights: Optional[str] = None
    goals: Optional[str] = None
    is_private: bool = True
    vector_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    def combined_text(self) -> str:
        """Title, content, gratitude, highlights and goals joined for embedding."""
        parts = [self.title, self.content, self.gratitude, self.highlights, self.goals]
        return " ".join(part for part in parts if part)


class ScoredDiaryEntry(DiaryEntry):
    similarity: float = 0.0


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    has_more: bool


class DiaryEntryList(BaseModel):
    entries: List[DiaryEntry]
    pagination: Pagination


class MoodStats(BaseModel):
    moods: Dict[str, int]
    total_entries: int


class DiarySearchResponse(BaseModel):
    query: str
    entries: List[ScoredDiaryEntry]
    total_results: int


class RelatedEntriesResponse(BaseModel):
    entry_id: str
    related_entries: List[ScoredDiaryEntry]
    total_results: int


class DiaryInsights(BaseModel):
    total_entries: int
    overall_mood: str
    sentiment_score: float
    top_topics: List[str]
    mood_distribution: Dict[str, int]
    insights: List[str]


__all__ = [
    "MoodType",
    "MOOD_COLORS",
    "MOOD_ICONS",
    "MoodInfo",
    "DiaryEntryCreate",
    "DiaryEntryUpdate",
    "DiaryEntry",
    "ScoredDiaryEntry",
    "Pagination",
    "DiaryEntryList",
    "MoodStats",
    "DiarySearchResponse",
    "RelatedEntriesResponse",
    "DiaryInsights",
]
