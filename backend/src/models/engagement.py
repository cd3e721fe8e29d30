"""Gamification models: streaks, levels, badges, achievements, rewards and event log."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StreakType = Literal["posting", "diary", "community", "combined"]
BadgeCategory = Literal["streak", "achievement", "social", "growth"]
BadgeRarity = Literal["common", "rare", "epic", "legendary"]
EventType = Literal[
    "post_create",
    "diary_entry",
    "comment",
    "like",
    "share",
    "login",
    "follow",
    "profile_update",
]


class StreakData(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_activity: Optional[datetime] = None
    next_milestone: int = 7
    grace_periods_used: int = 0
    streak_type: StreakType


class SocialImpact(BaseModel):
    posts_inspired: int = 0
    connections_formed: int = 0
    helpfulness_score: float = 0.0
    community_contributions: int = 0
    positive_interactions: int = 0


class EmotionalGrowth(BaseModel):
    emotional_awareness: float = 0.0
    mood_stability: float = 0.0
    reflection_depth: float = 0.0
    gratitude_practice: float = 0.0
    growth_trend: Literal["improving", "stable", "declining"] = "stable"


class Streaks(BaseModel):
    posting: StreakData = Field(default_factory=lambda: StreakData(streak_type="posting"))
    diary: StreakData = Field(default_factory=lambda: StreakData(streak_type="diary"))
    community: StreakData = Field(default_factory=lambda: StreakData(streak_type="community"))
    combined: StreakData = Field(default_factory=lambda: StreakData(streak_type="combined"))


class Badge(BaseModel):
    id: str
    name: str
    description: str
    category: BadgeCategory
    rarity: BadgeRarity
    unlocked_at: datetime


class AchievementProgress(BaseModel):
    id: str
    name: str
    description: str
    category: str
    progress: int = 0
    max_progress: int
    completed: bool = False
    completed_at: Optional[datetime] = None
    experience: int = 0
    badge: Optional[str] = None
    unlocks: List[str] = Field(default_factory=list)


class EngagementProfile(BaseModel):
    user_id: str
    level: int = 1
    experience: int = 0
    streaks: Streaks = Field(default_factory=Streaks)
    unlocked_features: List[str] = Field(default_factory=lambda: ["basic_themes"])
    content_created: int = 0
    social_impact: SocialImpact = Field(default_factory=SocialImpact)
    emotional_growth: EmotionalGrowth = Field(default_factory=EmotionalGrowth)
    badges: List[Badge] = Field(default_factory=list)
    achievements: List[AchievementProgress] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class EventMetadata(BaseModel):
    """Free-form event context; known keys drive rewards."""

    quality_score: Optional[float] = None
    emotional_context: Optional[Dict[str, Any]] = None
    content_id: Optional[str] = None
    content_type: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class Celebration(BaseModel):
    type: Literal["level_up", "streak_milestone", "badge_unlock", "achievement"]
    title: str
    description: str
    animation_type: str


class EventRewards(BaseModel):
    experience: int = 0
    badges: List[str] = Field(default_factory=list)
    unlocks: List[str] = Field(default_factory=list)


class EventRequest(BaseModel):
    event_type: EventType
    metadata: EventMetadata = Field(default_factory=EventMetadata)


class EventResult(BaseModel):
    rewards: EventRewards
    celebrations: List[Celebration] = Field(default_factory=list)
    profile: EngagementProfile


class EngagementEvent(BaseModel):
    id: str
    user_id: str
    event_type: str
    metadata: Dict[str, Any]
    rewards: EventRewards
    created_at: datetime


class EngagementEventList(BaseModel):
    events: List[EngagementEvent]


class BadgeProgress(BaseModel):
    """A badge the user has not earned yet."""

    id: str
    name: str
    description: str
    category: BadgeCategory
    rarity: BadgeRarity
    can_earn: bool
    progress: str


class BadgeOverview(BaseModel):
    earned: List[Badge]
    available: List[BadgeProgress]
    achievements: List[AchievementProgress]


class LeaderboardEntry(BaseModel):
    user_id: str
    username: Optional[str] = None
    level: int
    experience: int


class Leaderboard(BaseModel):
    entries: List[LeaderboardEntry]


__all__ = [
    "StreakType",
    "EventType",
    "BadgeCategory",
    "BadgeRarity",
    "StreakData",
    "SocialImpact",
    "EmotionalGrowth",
    "Streaks",
    "Badge",
    "AchievementProgress",
    "EngagementProfile",
    "EventMetadata",
    "Celebration",
    "EventRewards",
    "EventRequest",
    "EventResult",
    "EngagementEvent",
    "EngagementEventList",
    "BadgeProgress",
    "BadgeOverview",
    "LeaderboardEntry",
    "Leaderboard",
]
