"""Pydantic models for data validation and serialization."""

from .auth import AuthResponse, JWTPayload, LoginRequest, RegisterRequest, TokenResponse
from .chat import ChatMessage, ChatResponse, PersonalInsight
from .diary import DiaryEntry, DiaryEntryCreate, DiaryEntryUpdate, MoodType
from .engagement import AchievementProgress, Badge, BadgeOverview, EngagementProfile, EventRewards
from .follow import FollowList, FollowResult, FollowStats
from .post import Post, PostCreate, PostList
from .user import PublicUser, UserWithStats
from .vector import DiaryContext, SimilarEntry, VectorEntry, VectorMetadata

__all__ = [
    "PublicUser",
    "UserWithStats",
    "TokenResponse",
    "AuthResponse",
    "JWTPayload",
    "RegisterRequest",
    "LoginRequest",
    "Post",
    "PostCreate",
    "PostList",
    "FollowResult",
    "FollowList",
    "FollowStats",
    "MoodType",
    "DiaryEntry",
    "DiaryEntryCreate",
    "DiaryEntryUpdate",
    "VectorEntry",
    "VectorMetadata",
    "SimilarEntry",
    "DiaryContext",
    "ChatMessage",
    "ChatResponse",
    "PersonalInsight",
    "EngagementProfile",
    "EventRewards",
    "Badge",
    "AchievementProgress",
    "BadgeOverview",
]
