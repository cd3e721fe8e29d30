"""Reflective insight messages derived from a user's vector statistics."""

from __future__ import annotations

import math
from typing import List

from ..models.chat import PersonalInsight
from ..models.diary import DiaryInsights
from ..models.vector import UserVectorInsights

EMPTY_DIARY_MESSAGE = "Keep writing to discover patterns and insights about yourself!"
MAX_PERSONAL_INSIGHTS = 6


def round_half_up(value: float) -> int:
    """Round halves up, matching how percentages are shown to users."""
    return math.floor(value + 0.5)


def insight_messages(stats: UserVectorInsights) -> List[str]:
    messages: List[str] = []

    if stats.total_entries > 10:
        messages.append(
            "You're building a wonderful habit of regular reflection. "
            "This consistency will serve you well!"
        )
    elif stats.total_entries > 0:
        messages.append(
            "You're starting your journaling journey. "
            "Each entry is a step toward greater self-awareness."
        )

    if stats.common_tags:
        messages.append(
            f"You frequently write about: {', '.join(stats.common_tags[:3])}. "
            "These seem to be important themes in your life."
        )

    if stats.mood_distribution:
        top_mood = max(stats.mood_distribution.items(), key=lambda item: item[1])[0]
        messages.append(
            f'Your most common mood is "{top_mood}" - this gives insight into your emotional patterns.'
        )

    if stats.average_word_count > 200:
        messages.append(
            "You tend to write detailed, expressive entries. "
            "This depth of reflection is valuable for personal growth."
        )
    elif stats.average_word_count > 0:
        messages.append(
            "You prefer concise entries. "
            "Sometimes brief reflections can be just as powerful as longer ones."
        )

    return messages or [EMPTY_DIARY_MESSAGE]


def diary_insights(stats: UserVectorInsights) -> DiaryInsights:
    if stats.total_entries == 0:
        return DiaryInsights(
            total_entries=0,
            overall_mood="neutral",
            sentiment_score=0.0,
            top_topics=[],
            mood_distribution={},
            insights=[EMPTY_DIARY_MESSAGE],
        )
    return DiaryInsights(
        total_entries=stats.total_entries,
        overall_mood="expressive" if stats.average_word_count > 100 else "concise",
        sentiment_score=stats.average_sentiment,
        top_topics=stats.common_tags[:5],
        mood_distribution=stats.mood_distribution,
        insights=insight_messages(stats),
    )


def personal_insights(stats: UserVectorInsights) -> List[PersonalInsight]:
    """Typed insights for the chat companion, strongest signals first, capped at six."""
    insights: List[PersonalInsight] = []
    total = stats.total_entries
    if total == 0:
        return insights

    if total >= 5:
        insights.append(
            PersonalInsight(
                type="growth",
                title="Consistent Journaling Habit",
                description=(
                    f"You've written {total} diary entries, showing great commitment to "
                    "self-reflection. This consistency is building valuable self-awareness."
                ),
                confidence=0.9,
            )
        )

    average_words = round_half_up(stats.average_word_count)
    if stats.average_word_count > 150:
        insights.append(
            PersonalInsight(
                type="pattern",
                title="Detailed Reflector",
                description=(
                    f"Your entries average {average_words} words, indicating you enjoy deep, "
                    "thoughtful reflection. This thoroughness helps process complex emotions."
                ),
                confidence=0.8,
            )
        )
    elif stats.average_word_count > 0:
        insights.append(
            PersonalInsight(
                type="pattern",
                title="Concise Communicator",
                description=(
                    f"You prefer brief, focused entries averaging {average_words} words. "
                    "Sometimes the most powerful insights come in small packages."
                ),
                confidence=0.7,
            )
        )

    if len(stats.common_tags) >= 3:
        insights.append(
            PersonalInsight(
                type="theme",
                title="Recurring Life Themes",
                description=(
                    f"Your writing frequently explores themes around {', '.join(stats.common_tags[:3])}. "
                    "These recurring topics suggest important areas of focus in your life journey."
                ),
                confidence=0.85,
            )
        )

    if stats.mood_distribution:
        mood_total = sum(stats.mood_distribution.values())
        top_mood, top_count = max(stats.mood_distribution.items(), key=lambda item: item[1])
        share = round_half_up(top_count * 100 / mood_total)
        if share > 40:
            insights.append(
                PersonalInsight(
                    type="mood",
                    title=f"{top_mood.capitalize()} Mood Pattern",
                    description=(
                        f"{share}% of your entries reflect a {top_mood} mood. This pattern offers "
                        "insight into your emotional landscape and can guide future self-care practices."
                    ),
                    confidence=0.75,
                )
            )
        if len(stats.mood_distribution) >= 4:
            insights.append(
                PersonalInsight(
                    type="growth",
                    title="Emotional Range Awareness",
                    description=(
                        f"You've documented {len(stats.mood_distribution)} different emotional states, "
                        "showing healthy emotional awareness and the courage to explore various feelings."
                    ),
                    confidence=0.8,
                )
            )

    span = stats.time_range.end - stats.time_range.start
    days = math.ceil(span.total_seconds() / 86400)
    if days > 7 and total >= 5:
        insights.append(
            PersonalInsight(
                type="pattern",
                title="Journaling Rhythm",
                description=(
                    f"You write approximately every {round_half_up(days / total)} days over the past "
                    f"{days} days. Finding your natural rhythm helps maintain this valuable practice."
                ),
                confidence=0.7,
            )
        )

    if total >= 10:
        insights.append(
            PersonalInsight(
                type="growth",
                title="Self-Discovery Journey",
                description=(
                    f"With {total} entries, you're building a rich tapestry of self-knowledge. "
                    "Consider reviewing older entries to see how you've grown and evolved."
                ),
                confidence=0.9,
            )
        )

    return insights[:MAX_PERSONAL_INSIGHTS]


__all__ = [
    "insight_messages",
    "diary_insights",
    "personal_insights",
    "round_half_up",
    "EMPTY_DIARY_MESSAGE",
]
