"""Engagement Service - experience points, levels, streaks, badges and the event log."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from ..models.engagement import (
    AchievementProgress,
    Badge,
    BadgeOverview,
    Celebration,
    EmotionalGrowth,
    EngagementEvent,
    EngagementProfile,
    EventMetadata,
    EventResult,
    EventRewards,
    LeaderboardEntry,
    SocialImpact,
    StreakData,
    Streaks,
)
from .badges import award_badges, badge_overview, update_achievements
from .database import DatabaseService, new_id, utc_now

logger = logging.getLogger(__name__)

XP_REWARDS: Dict[str, int] = {
    "post_create": 10,
    "diary_entry": 15,
    "comment": 5,
    "like": 2,
    "login": 3,
}
DEFAULT_XP = 1
QUALITY_BONUS_THRESHOLD = 1.5
QUALITY_COMMENT_THRESHOLD = 1.2
EMOTIONAL_CONTEXT_BONUS = 5

LEVEL_THRESHOLDS = [0, 100, 300, 600, 1000, 1500, 2500]
LEVEL_TITLES = [
    "Thoughtful Beginner",
    "Reflective Explorer",
    "Mindful Contributor",
    "Community Connector",
    "Wisdom Keeper",
    "Mindful Sage",
]
FEATURE_UNLOCKS: Dict[int, List[str]] = {
    2: ["custom_themes"],
    3: ["advanced_diary_templates"],
    4: ["priority_feed"],
    5: ["beta_features"],
    6: ["premium_features", "mentor_badge"],
}
STREAK_MILESTONES = [7, 14, 30, 60, 100, 365]
GRACE_PERIODS_ALLOWED = 3
GRACE_GAP_DAYS = 2

STREAKS_BY_EVENT: Dict[str, Tuple[str, ...]] = {
    "post_create": ("posting", "combined"),
    "diary_entry": ("diary", "combined"),
    "comment": ("community", "combined"),
    "like": ("community", "combined"),
    "share": ("community", "combined"),
}

_REFLECTIVE_WORDS = ("reflect", "grateful", "mindful", "consider", "realize", "understand", "appreciate")


def content_quality(content: str) -> float:
    """Heuristic 1.0-2.0 quality score for a post, used for the XP bonus."""
    score = 1.0
    if len(content) > 100:
        score += 0.2
    if len(content) > 300:
        score += 0.3

    words = len(content.split())
    if words > 20:
        score += 0.2
    if words > 50:
        score += 0.3

    lowered = content.lower()
    if any(word in lowered for word in _REFLECTIVE_WORDS):
        score += 0.3
    score += min(content.count("?") * 0.1, 0.2)
    return min(round(score, 2), 2.0)


def calculate_level(experience: int) -> int:
    for index in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
        if experience >= LEVEL_THRESHOLDS[index]:
            return index + 1
    return 1


def level_title(level: int) -> str:
    if 1 <= level <= len(LEVEL_TITLES):
        return LEVEL_TITLES[level - 1]
    return "Mindful Master"


def next_milestone(current: int) -> int:
    for milestone in STREAK_MILESTONES:
        if milestone > current:
            return milestone
    return STREAK_MILESTONES[-1] + 100


def calculate_rewards(event_type: str, metadata: EventMetadata) -> EventRewards:
    experience: float = XP_REWARDS.get(event_type, DEFAULT_XP)
    if event_type == "post_create" and (metadata.quality_score or 0) > QUALITY_BONUS_THRESHOLD:
        experience *= 1.5
    if event_type == "diary_entry" and metadata.emotional_context:
        experience += EMOTIONAL_CONTEXT_BONUS
    return EventRewards(experience=round(experience))


def advance_streak(streak: StreakData, now: datetime) -> Optional[int]:
    """Move ``streak`` forward for an activity at ``now``.

    Returns the milestone reached, if any. Calendar days are compared in UTC.
    """
    last = streak.last_activity
    if last is None:
        streak.current_streak = 1
        streak.longest_streak = max(streak.longest_streak, 1)
        streak.last_activity = now
        return None

    last = last if last.tzinfo else last.replace(tzinfo=timezone.utc)
    day_gap = (now.astimezone(timezone.utc).date() - last.astimezone(timezone.utc).date()).days
    if day_gap <= 0:
        return None

    if day_gap == 1:
        streak.current_streak += 1
        streak.last_activity = now
        streak.longest_streak = max(streak.longest_streak, streak.current_streak)
        if streak.current_streak in STREAK_MILESTONES:
            streak.next_milestone = next_milestone(streak.current_streak)
            return streak.current_streak
        return None

    elapsed_days = int((now - last) / timedelta(days=1))
    if elapsed_days <= GRACE_GAP_DAYS and streak.grace_periods_used < GRACE_PERIODS_ALLOWED:
        streak.grace_periods_used += 1
        streak.last_activity = now
        return None

    streak.current_streak = 1
    streak.last_activity = now
    streak.grace_periods_used = 0
    streak.next_milestone = STREAK_MILESTONES[0]
    return None


def _level_up_celebration(level: int) -> Celebration:
    return Celebration(
        type="level_up",
        title=f"Level Up! You're now a {level_title(level)}",
        description=f"You've reached level {level} and unlocked new features!",
        animation_type="level_animation",
    )


def _milestone_celebration(streak_type: str, milestone: int) -> Celebration:
    return Celebration(
        type="streak_milestone",
        title=f"{milestone} Day {streak_type} Streak!",
        description=(
            f"Amazing dedication! You've maintained your {streak_type} streak for {milestone} days."
        ),
        animation_type="confetti",
    )


def _badge_celebration(badge: Badge) -> Celebration:
    return Celebration(
        type="badge_unlock",
        title=f"New Badge: {badge.name}",
        description=badge.description,
        animation_type="badge_reveal",
    )


def _achievement_celebration(achievement: AchievementProgress) -> Celebration:
    return Celebration(
        type="achievement",
        title=f"Achievement Complete: {achievement.name}",
        description=f"{achievement.description}. +{achievement.experience} XP!",
        animation_type="particles",
    )


def _dump_list(items) -> str:
    return json.dumps([item.model_dump(mode="json") for item in items])


def _row_to_profile(row: sqlite3.Row) -> EngagementProfile:
    return EngagementProfile(
        user_id=row["user_id"],
        level=row["level"],
        experience=row["experience"],
        streaks=Streaks.model_validate_json(row["streaks"]),
        unlocked_features=json.loads(row["unlocked_features"]),
        content_created=row["content_created"],
        social_impact=SocialImpact.model_validate_json(row["social_impact"]),
        emotional_growth=EmotionalGrowth.model_validate_json(row["emotional_growth"]),
        badges=[Badge.model_validate(item) for item in json.loads(row["badges"])],
        achievements=[
            AchievementProgress.model_validate(item) for item in json.loads(row["achievements"])
        ],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class EngagementService:
    """Processes engagement events against a per-user profile stored in SQLite."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def _load(self, conn: sqlite3.Connection, user_id: str) -> Optional[EngagementProfile]:
        row = conn.execute(
            "SELECT * FROM user_engagement WHERE user_id = ?", (user_id,)
        ).fetchone()
        return _row_to_profile(row) if row else None

    def _insert(self, conn: sqlite3.Connection, user_id: str) -> EngagementProfile:
        now = utc_now()
        profile = EngagementProfile(user_id=user_id, created_at=now, updated_at=now)
        conn.execute(
            """
            INSERT INTO user_engagement
                (user_id, level, experience, streaks, unlocked_features, content_created,
                 social_impact, emotional_growth, badges, achievements, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                profile.level,
                profile.experience,
                profile.streaks.model_dump_json(),
                json.dumps(profile.unlocked_features),
                profile.content_created,
                profile.social_impact.model_dump_json(),
                profile.emotional_growth.model_dump_json(),
                _dump_list(profile.badges),
                _dump_list(profile.achievements),
                now,
                now,
            ),
        )
        logger.info(f"Created engagement profile for user {user_id}")
        return profile

    def get_profile(self, user_id: str) -> EngagementProfile:
        """Return the user's profile, creating a fresh one on first access."""
        conn = self._db.connect()
        try:
            profile = self._load(conn, user_id)
            if profile is None:
                profile = self._insert(conn, user_id)
                conn.commit()
        finally:
            conn.close()
        return profile

    def get_badges(self, user_id: str) -> BadgeOverview:
        """Earned badges, the ones still available with progress, and achievement progress."""
        return badge_overview(self.get_profile(user_id))

    def process_event(
        self,
        user_id: str,
        event_type: str,
        metadata: EventMetadata | Dict[str, Any] | None = None,
        *,
        now: Optional[datetime] = None,
    ) -> EventResult:
        if not isinstance(metadata, EventMetadata):
            metadata = EventMetadata.model_validate(metadata or {})
        now = now or datetime.now(timezone.utc)

        conn = self._db.connect()
        try:
            profile = self._load(conn, user_id) or self._insert(conn, user_id)
            rewards = calculate_rewards(event_type, metadata)
            celebrations: List[Celebration] = []

            streak_touched = False
            for streak_type in STREAKS_BY_EVENT.get(event_type, ()):
                streak: StreakData = getattr(profile.streaks, streak_type)
                before = (streak.current_streak, streak.last_activity, streak.grace_periods_used)
                milestone = advance_streak(streak, now)
                streak_touched = streak_touched or before != (
                    streak.current_streak,
                    streak.last_activity,
                    streak.grace_periods_used,
                )
                if milestone:
                    celebrations.append(_milestone_celebration(streak_type, milestone))

            self._update_analytics(profile, event_type, metadata)

            unlocks: List[str] = []
            for achievement in update_achievements(profile, now):
                rewards.experience += achievement.experience
                unlocks.extend(achievement.unlocks)
                celebrations.append(_achievement_celebration(achievement))

            old_level = profile.level
            profile.experience += rewards.experience
            new_level = calculate_level(profile.experience)
            if new_level > old_level:
                profile.level = new_level
                level_unlocks: List[str] = []
                for level in range(old_level + 1, new_level + 1):
                    level_unlocks.extend(FEATURE_UNLOCKS.get(level, []))
                unlocks = level_unlocks + unlocks
                celebrations.insert(0, _level_up_celebration(new_level))
                logger.info(f"User {user_id} reached level {new_level}")

            for feature in unlocks:
                if feature not in profile.unlocked_features:
                    profile.unlocked_features.append(feature)
            rewards.unlocks = list(dict.fromkeys(unlocks))

            for badge in award_badges(profile, now):
                rewards.badges.append(badge.id)
                celebrations.append(_badge_celebration(badge))
            profile.updated_at = now

            conn.execute(
                """
                UPDATE user_engagement
                SET level = ?, experience = ?, streaks = ?, unlocked_features = ?,
                    content_created = ?, social_impact = ?, emotional_growth = ?, badges = ?,
                    achievements = ?, updated_at = ?
                WHERE user_id = ?
                """,
                (
                    profile.level,
                    profile.experience,
                    profile.streaks.model_dump_json(),
                    json.dumps(profile.unlocked_features),
                    profile.content_created,
                    profile.social_impact.model_dump_json(),
                    profile.emotional_growth.model_dump_json(),
                    _dump_list(profile.badges),
                    _dump_list(profile.achievements),
                    now.isoformat(timespec="microseconds"),
                    user_id,
                ),
            )

            event_metadata = {
                "experience_gained": rewards.experience,
                "streak_impact": streak_touched,
                **metadata.model_dump(exclude_none=True),
            }
            event_metadata.setdefault("quality_score", 1.0)
            conn.execute(
                """
                INSERT INTO engagement_events (id, user_id, event_type, metadata, rewards, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id(),
                    user_id,
                    event_type,
                    json.dumps(event_metadata),
                    rewards.model_dump_json(),
                    now.isoformat(timespec="microseconds"),
                ),
            )
            conn.commit()
        finally:
            conn.close()

        logger.info(f"Processed {event_type} for user {user_id}: +{rewards.experience} XP")
        return EventResult(rewards=rewards, celebrations=celebrations, profile=profile)

    @staticmethod
    def _update_analytics(profile: EngagementProfile, event_type: str, metadata: EventMetadata) -> None:
        if event_type in ("post_create", "diary_entry"):
            profile.content_created += 1
        if event_type == "comment" and (metadata.quality_score or 0) > QUALITY_COMMENT_THRESHOLD:
            profile.social_impact.community_contributions += 1
        if event_type == "like":
            profile.social_impact.positive_interactions += 1
        if event_type == "diary_entry" and metadata.emotional_context:
            growth = profile.emotional_growth
            growth.emotional_awareness = round(growth.emotional_awareness + 0.1, 4)
            growth.reflection_depth = round(growth.reflection_depth + 0.05, 4)

    def get_events(self, user_id: str, limit: int = 50) -> List[EngagementEvent]:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                """
                SELECT * FROM engagement_events
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        finally:
            conn.close()
        return [
            EngagementEvent(
                id=row["id"],
                user_id=row["user_id"],
                event_type=row["event_type"],
                metadata=json.loads(row["metadata"]),
                rewards=EventRewards.model_validate_json(row["rewards"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def leaderboard(self, limit: int = 10) -> List[LeaderboardEntry]:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                """
                SELECT e.user_id, u.username, e.level, e.experience
                FROM user_engagement e
                LEFT JOIN users u ON u.id = e.user_id
                ORDER BY e.experience DESC, e.updated_at ASC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        finally:
            conn.close()
        return [
            LeaderboardEntry(
                user_id=row["user_id"],
                username=row["username"],
                level=row["level"],
                experience=row["experience"],
            )
            for row in rows
        ]


def record_event(
    user_id: str,
    event_type: str,
    metadata: Dict[str, Any] | None = None,
    service: EngagementService | None = None,
) -> Optional[EventResult]:
    """Fire-and-forget award used by other features; failures never break the caller."""
    try:
        return (service or EngagementService()).process_event(user_id, event_type, metadata)
    except Exception:
        logger.exception(f"Failed to record {event_type} engagement for user {user_id}")
        return None


def get_engagement_service() -> EngagementService:
    return EngagementService()


__all__ = [
    "EngagementService",
    "get_engagement_service",
    "record_event",
    "content_quality",
    "calculate_level",
    "advance_streak",
    "next_milestone",
]
