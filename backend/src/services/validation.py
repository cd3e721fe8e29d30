"""Input validation and sanitizing helpers for accounts, posts and search."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import re
from typing import List, Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
RESERVED_USERNAMES = frozenset(
    {
        "admin",
        "root",
        "api",
        "www",
        "mail",
        "support",
        "help",
        "about",
        "privacy",
        "terms",
        "contact",
        "blog",
        "news",
    }
)
MAX_EMAIL_LENGTH = 254
MAX_POST_LENGTH = 500
MAX_SEARCH_QUERY_LENGTH = 100
POST_EDIT_WINDOW = timedelta(minutes=15)

SPAM_PATTERNS = (
    re.compile(r"(.)\1{10,}", re.IGNORECASE),
    re.compile(r"(\b\w+\b)\s*\1\s*\1", re.IGNORECASE),
    re.compile(r"[A-Z]{20,}"),
    re.compile(
        r"\b(buy now|click here|free money|get rich quick|limited time|act now)\b",
        re.IGNORECASE,
    ),
)
SQL_INJECTION_PATTERNS = (
    re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|UNION)\b", re.IGNORECASE),
    re.compile(r"(--|/\*|\*/)"),
    re.compile(r"\bOR\b.*=.*\bOR\b", re.IGNORECASE),
    re.compile(r"\bAND\b.*=.*\bAND\b", re.IGNORECASE),
)
MENTION_PATTERN = re.compile(r"@([a-zA-Z0-9_]{3,20})")
HASHTAG_PATTERN = re.compile(r"#([a-zA-Z0-9_]{1,50})")
WHITESPACE_PATTERN = re.compile(r"\s+")


def validate_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email)) and len(email) <= MAX_EMAIL_LENGTH


def validate_username(username: Optional[str]) -> List[str]:
    """Return every problem with ``username``; an empty list means it is valid."""
    username = username or ""
    errors: List[str] = []
    if len(username) < 3:
        errors.append("Username must be at least 3 characters long")
    if len(username) > 20:
        errors.append("Username must be no more than 20 characters long")
    if not USERNAME_PATTERN.match(username):
        errors.append("Username can only contain letters, numbers, and underscores")
    if username.lower() in RESERVED_USERNAMES:
        errors.append("This username is not available")
    return errors


def validate_password_strength(password: Optional[str]) -> List[str]:
    password = password or ""
    errors: List[str] = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if len(password) > 128:
        errors.append("Password must be no more than 128 characters long")
    if not re.search(r"[a-zA-Z]", password):
        errors.append("Password must contain at least one letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    return errors


def sanitize_input(value: str) -> str:
    """Strip angle brackets and surrounding whitespace from free text."""
    return value.replace("<", "").replace(">", "").strip()


def contains_spam(content: str) -> bool:
    return any(pattern.search(content) for pattern in SPAM_PATTERNS)


def validate_post_content(content: Optional[str]) -> List[str]:
    if not content:
        return ["Post content is required"]
    trimmed = content.strip()
    errors: List[str] = []
    if not trimmed:
        errors.append("Post cannot be empty")
    if len(trimmed) > MAX_POST_LENGTH:
        errors.append(f"Post must be no more than {MAX_POST_LENGTH} characters")
    if contains_spam(trimmed):
        errors.append("Post content appears to be spam")
    return errors


def sanitize_post_content(content: str) -> str:
    collapsed = WHITESPACE_PATTERN.sub(" ", content.strip())
    return collapsed.replace("<", "").replace(">", "")


def extract_mentions(content: str) -> List[str]:
    """Unique @mentions in order of first appearance."""
    mentions: List[str] = []
    for match in MENTION_PATTERN.finditer(content or ""):
        if match.group(1) not in mentions:
            mentions.append(match.group(1))
    return mentions


def extract_hashtags(content: str) -> List[str]:
    """Unique lowercased #hashtags in order of first appearance."""
    hashtags: List[str] = []
    for match in HASHTAG_PATTERN.finditer(content or ""):
        tag = match.group(1).lower()
        if tag not in hashtags:
            hashtags.append(tag)
    return hashtags


def can_edit_post(
    created_at: datetime,
    *,
    now: Optional[datetime] = None,
    window: timedelta = POST_EDIT_WINDOW,
) -> bool:
    current = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return current - created_at <= window


def contains_sql_injection(query: str) -> bool:
    return any(pattern.search(query) for pattern in SQL_INJECTION_PATTERNS)


def validate_search_query(query: Optional[str]) -> List[str]:
    if not query:
        return ["Search query is required"]
    trimmed = query.strip()
    errors: List[str] = []
    if not trimmed:
        errors.append("Search query cannot be empty")
    if len(trimmed) > MAX_SEARCH_QUERY_LENGTH:
        errors.append(
            f"Search query must be no more than {MAX_SEARCH_QUERY_LENGTH} characters"
        )
    if contains_sql_injection(trimmed):
        errors.append("Invalid search query")
    return errors


__all__ = [
    "validate_email",
    "validate_username",
    "validate_password_strength",
    "sanitize_input",
    "contains_spam",
    "validate_post_content",
    "sanitize_post_content",
    "extract_mentions",
    "extract_hashtags",
    "can_edit_post",
    "contains_sql_injection",
    "validate_search_query",
    "RESERVED_USERNAMES",
    "POST_EDIT_WINDOW",
]
