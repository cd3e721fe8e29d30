"""Follow graph models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from .user import PublicUser


class FollowResult(BaseModel):
    following: bool
    follower_count: int


class FollowListItem(PublicUser):
    followed_at: datetime


class FollowList(BaseModel):
    users: List[FollowListItem]
    has_more: bool


class FollowStats(BaseModel):
    follower_count: int
    following_count: int
    is_following: Optional[bool] = None
    is_followed_by: Optional[bool] = None


class SuggestedUser(PublicUser):
    mutual_connections: int = 0


class SuggestionList(BaseModel):
    users: List[SuggestedUser]


class MutualList(BaseModel):
    users: List[PublicUser]


class FollowActivity(BaseModel):
    follower: PublicUser
    following: PublicUser
    created_at: datetime


class FollowActivityList(BaseModel):
    activities: List[FollowActivity]


__all__ = [
    "FollowResult",
    "FollowListItem",
    "FollowList",
    "FollowStats",
    "SuggestedUser",
    "SuggestionList",
    "MutualList",
    "FollowActivity",
    "FollowActivityList",
]
