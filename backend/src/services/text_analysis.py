"""Keyword extraction and sentiment scoring for diary and chat text."""

from __future__ import annotations

from collections import Counter
from functools import lru_cache
import re
from typing import Iterable, List

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

STOP_WORDS = frozenset(
    """
    the a an and or but in on at to for of with by from up about into through
    during before after above below between among this that these those i me my
    myself we our ours ourselves you your yours yourself yourselves he him his
    himself she her hers herself it its itself they them their theirs themselves
    what which who whom whose am is are was were be been being have has had having
    do does did doing will would could should may might must can shall today
    yesterday tomorrow
    """.split()
)

_NON_WORD = re.compile(r"[^\w\s]")


def tokenize(text: str) -> List[str]:
    """Lowercased words longer than three characters, stop words removed."""
    words = _NON_WORD.sub(" ", (text or "").lower()).split()
    return [word for word in words if len(word) > 3 and word not in STOP_WORDS]


def extract_key_phrases(text: str, limit: int = 10) -> List[str]:
    """Most frequent content words, ties broken by first appearance."""
    return [word for word, _ in Counter(tokenize(text)).most_common(limit)]


def extract_tags(text: str) -> List[str]:
    return extract_key_phrases(text, limit=5)


def top_items(values: Iterable[str], limit: int) -> List[str]:
    return [value for value, _ in Counter(values).most_common(limit)]


def word_count(text: str) -> int:
    return len((text or "").split())


@lru_cache(maxsize=1)
def _analyzer() -> SentimentIntensityAnalyzer:
    return SentimentIntensityAnalyzer()


def sentiment_score(text: str) -> float:
    """VADER compound score in [-1, 1]; 0.0 for empty text."""
    if not text or not text.strip():
        return 0.0
    return float(_analyzer().polarity_scores(text)["compound"])


__all__ = [
    "STOP_WORDS",
    "tokenize",
    "extract_key_phrases",
    "extract_tags",
    "top_items",
    "word_count",
    "sentiment_score",
]
