"""Models for diary vectors and semantic search."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class VectorMetadata(BaseModel):
    mood: str = "neutral"
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    word_count: int = 0
    sentiment: Optional[float] = None


class VectorEntry(BaseModel):
    """A stored diary embedding."""

    id: str
    user_id: str
    entry_id: str
    content: str
    vector: List[float] = Field(default_factory=list, repr=False)
    metadata: VectorMetadata


class SimilarEntry(BaseModel):
    entry: VectorEntry
    similarity: float


class TimeRange(BaseModel):
    start: datetime
    end: datetime


class DiaryContext(BaseModel):
    relevant_entries: List[SimilarEntry] = Field(default_factory=list)
    similarity_scores: List[float] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    time_range: TimeRange


class UserVectorInsights(BaseModel):
    total_entries: int = 0
    average_word_count: float = 0.0
    common_tags: List[str] = Field(default_factory=list)
    mood_distribution: Dict[str, int] = Field(default_factory=dict)
    time_range: TimeRange
    average_sentiment: float = 0.0


class StoreHealth(BaseModel):
    status: str
    message: str


class VectorHealth(BaseModel):
    store: StoreHealth
    embedding_configured: bool
    embedding_model: str
    backend: str
    overall: bool


__all__ = [
    "VectorMetadata",
    "VectorEntry",
    "SimilarEntry",
    "TimeRange",
    "DiaryContext",
    "UserVectorInsights",
    "StoreHealth",
    "VectorHealth",
]
