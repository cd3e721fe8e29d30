"""Badge and achievement catalog, and the checks that award them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Callable, List, Optional, Tuple

from ..models.engagement import (
    AchievementProgress,
    Badge,
    BadgeOverview,
    BadgeProgress,
    EngagementProfile,
)

logger = logging.getLogger(__name__)

ProfileCheck = Callable[[EngagementProfile], bool]


def _activity_streaks(profile: EngagementProfile):
    streaks = profile.streaks
    return (streaks.posting, streaks.diary, streaks.community)


def _best_streak(profile: EngagementProfile) -> int:
    return max(max(s.current_streak, s.longest_streak) for s in _activity_streaks(profile))


def _streak_at_least(days: int) -> ProfileCheck:
    return lambda profile: _best_streak(profile) >= days


def _achievement_completed(achievement_id: str) -> ProfileCheck:
    def check(profile: EngagementProfile) -> bool:
        return any(a.id == achievement_id and a.completed for a in profile.achievements)

    return check


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    category: str
    rarity: str
    condition: ProfileCheck
    describe: Optional[Callable[[EngagementProfile], str]] = None

    def progress(self, profile: EngagementProfile) -> str:
        if self.describe is None:
            return "Keep engaging to unlock!"
        return self.describe(profile)

    def to_badge(self, unlocked_at: datetime) -> Badge:
        return Badge(
            id=self.id,
            name=self.name,
            description=self.description,
            category=self.category,
            rarity=self.rarity,
            unlocked_at=unlocked_at,
        )


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    name: str
    description: str
    category: str
    max_progress: int
    measure: Callable[[EngagementProfile], int]
    experience: int
    unlocks: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def badge_id(self) -> str:
        return f"{self.id}_badge"

    def start(self) -> AchievementProgress:
        return AchievementProgress(
            id=self.id,
            name=self.name,
            description=self.description,
            category=self.category,
            max_progress=self.max_progress,
            experience=self.experience,
            badge=self.badge_id,
            unlocks=list(self.unlocks),
        )


def _streak_master_progress(profile: EngagementProfile) -> int:
    if all(s.current_streak > 0 for s in _activity_streaks(profile)):
        return profile.streaks.combined.current_streak
    return 0


ACHIEVEMENTS: List[AchievementDefinition] = [
    AchievementDefinition(
        id="daily_writer",
        name="Daily Writer",
        description="Write diary entries for consecutive days",
        category="writing",
        max_progress=30,
        measure=lambda p: p.streaks.diary.current_streak,
        experience=100,
        unlocks=("advanced_diary_templates",),
    ),
    AchievementDefinition(
        id="social_butterfly",
        name="Social Butterfly",
        description="Engage with community members through likes and comments",
        category="social",
        max_progress=100,
        measure=lambda p: p.social_impact.positive_interactions,
        experience=150,
        unlocks=("community_features",),
    ),
    AchievementDefinition(
        id="mindful_explorer",
        name="Mindful Explorer",
        description="Explore different aspects of mindfulness and self-reflection",
        category="growth",
        max_progress=50,
        measure=lambda p: int(p.emotional_growth.emotional_awareness),
        experience=200,
        unlocks=("mood_insights",),
    ),
    AchievementDefinition(
        id="streak_master",
        name="Streak Master",
        description="Maintain multiple types of streaks simultaneously",
        category="consistency",
        max_progress=21,
        measure=_streak_master_progress,
        experience=300,
        unlocks=("premium_themes",),
    ),
    AchievementDefinition(
        id="inspiration_giver",
        name="Inspiration Giver",
        description="Inspire others through your thoughtful posts and interactions",
        category="impact",
        max_progress=100,
        measure=lambda p: p.social_impact.posts_inspired,
        experience=250,
        unlocks=("featured_content",),
    ),
]

BADGES: List[BadgeDefinition] = [
    BadgeDefinition(
        "first_week_streak",
        "First Steps",
        "Maintained a 7-day streak in any activity",
        "streak",
        "common",
        _streak_at_least(7),
        lambda p: f"{max(s.current_streak for s in _activity_streaks(p))}/7 days",
    ),
    BadgeDefinition(
        "month_warrior",
        "Month Warrior",
        "Achieved a 30-day streak - true dedication!",
        "streak",
        "rare",
        _streak_at_least(30),
        lambda p: f"{max(s.longest_streak for s in _activity_streaks(p))}/30 days",
    ),
    BadgeDefinition(
        "century_master",
        "Century Master",
        "Incredible! 100 days of consistent mindful practice",
        "streak",
        "epic",
        _streak_at_least(100),
    ),
    BadgeDefinition(
        "year_legend",
        "Year Legend",
        "Legendary achievement: 365 days of mindful engagement",
        "streak",
        "legendary",
        _streak_at_least(365),
    ),
    BadgeDefinition(
        "community_helper",
        "Community Helper",
        "Helped others through meaningful interactions",
        "social",
        "common",
        lambda p: p.social_impact.community_contributions >= 10,
        lambda p: f"{p.social_impact.community_contributions}/10 contributions",
    ),
    BadgeDefinition(
        "inspiration_source",
        "Inspiration Source",
        "Your posts have inspired 50+ people to reflect",
        "social",
        "rare",
        lambda p: p.social_impact.posts_inspired >= 50,
    ),
    BadgeDefinition(
        "connection_catalyst",
        "Connection Catalyst",
        "Facilitated meaningful connections in the community",
        "social",
        "epic",
        lambda p: p.social_impact.connections_formed >= 25,
    ),
    BadgeDefinition(
        "self_aware",
        "Self Aware",
        "Demonstrated growing emotional awareness",
        "growth",
        "common",
        lambda p: p.emotional_growth.emotional_awareness >= 50,
    ),
    BadgeDefinition(
        "mindful_sage",
        "Mindful Sage",
        "Achieved high levels of mindful reflection",
        "growth",
        "rare",
        lambda p: p.emotional_growth.reflection_depth >= 75,
    ),
    BadgeDefinition(
        "gratitude_master",
        "Gratitude Master",
        "Mastered the practice of daily gratitude",
        "growth",
        "epic",
        lambda p: p.emotional_growth.gratitude_practice >= 90,
    ),
    BadgeDefinition(
        "level_5_achiever",
        "Wisdom Keeper",
        "Reached Level 5 - Wisdom Keeper status",
        "achievement",
        "rare",
        lambda p: p.level >= 5,
    ),
    BadgeDefinition(
        "experience_master",
        "Experience Master",
        "Accumulated over 2000 experience points",
        "achievement",
        "epic",
        lambda p: p.experience >= 2000,
    ),
    BadgeDefinition(
        "content_creator",
        "Content Creator",
        "Created 100+ pieces of mindful content",
        "achievement",
        "rare",
        lambda p: p.content_created >= 100,
        lambda p: f"{p.content_created}/100 pieces of content",
    ),
]

# Completing an achievement grants its own badge.
BADGES.extend(
    BadgeDefinition(
        definition.badge_id,
        definition.name,
        f"Completed the {definition.name} achievement",
        "achievement",
        "rare",
        _achievement_completed(definition.id),
    )
    for definition in ACHIEVEMENTS
)


def update_achievements(profile: EngagementProfile, now: datetime) -> List[AchievementProgress]:
    """Refresh achievement progress on ``profile`` and return those completed by this call.

    Progress only moves forward and completed achievements are frozen.
    """
    tracked = {a.id: a for a in profile.achievements}
    completed: List[AchievementProgress] = []
    for definition in ACHIEVEMENTS:
        achievement = tracked.get(definition.id)
        if achievement is None:
            achievement = definition.start()
            profile.achievements.append(achievement)
        if achievement.completed:
            continue
        measured = min(definition.measure(profile), definition.max_progress)
        achievement.progress = max(achievement.progress, measured)
        if achievement.progress >= definition.max_progress:
            achievement.completed = True
            achievement.completed_at = now
            completed.append(achievement)
            logger.info(f"User {profile.user_id} completed achievement {definition.id}")
    return completed


def award_badges(profile: EngagementProfile, now: datetime) -> List[Badge]:
    """Add every newly qualified badge to ``profile`` and return them."""
    earned = {badge.id for badge in profile.badges}
    new_badges = [
        definition.to_badge(now)
        for definition in BADGES
        if definition.id not in earned and definition.condition(profile)
    ]
    profile.badges.extend(new_badges)
    for badge in new_badges:
        logger.info(f"User {profile.user_id} unlocked badge {badge.id}")
    return new_badges


def badge_overview(profile: EngagementProfile) -> BadgeOverview:
    earned = {badge.id for badge in profile.badges}
    available = [
        BadgeProgress(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            category=definition.category,
            rarity=definition.rarity,
            can_earn=definition.condition(profile),
            progress=definition.progress(profile),
        )
        for definition in BADGES
        if definition.id not in earned
    ]
    tracked = {a.id: a for a in profile.achievements}
    achievements = []
    for definition in ACHIEVEMENTS:
        achievement = tracked.get(definition.id)
        if achievement is None:
            achievement = definition.start()
            achievement.progress = min(definition.measure(profile), definition.max_progress)
        achievements.append(achievement)
    return BadgeOverview(earned=profile.badges, available=available, achievements=achievements)


__all__ = [
    "ACHIEVEMENTS",
    "BADGES",
    "AchievementDefinition",
    "BadgeDefinition",
    "award_badges",
    "badge_overview",
    "update_achievements",
]
