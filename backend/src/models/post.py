"""Pydantic models for posts, likes and reposts."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class PostAuthor(BaseModel):
    id: str
    username: str
    bio: Optional[str] = None


class OriginalPost(BaseModel):
    """Summary of the post a repost points at."""

    id: str
    content: str
    author: PostAuthor
    created_at: datetime


class Post(BaseModel):
    """A post as returned to clients."""

    id: str
    content: str
    author_id: str
    author: PostAuthor
    original_post_id: Optional[str] = None
    original_post: Optional[OriginalPost] = None
    like_count: int = 0
    repost_count: int = 0
    is_liked_by_current_user: Optional[bool] = None
    is_reposted_by_current_user: Optional[bool] = None
    mentions: List[str] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class PostCreate(BaseModel):
    content: str = ""


class PostUpdate(BaseModel):
    content: str = ""


class PostList(BaseModel):
    posts: List[Post]
    has_more: bool


class PostSearchResponse(PostList):
    query: str


class LikeResult(BaseModel):
    liked: bool
    like_count: int


class RepostResult(BaseModel):
    reposted: bool
    repost_count: int


__all__ = [
    "PostAuthor",
    "OriginalPost",
    "Post",
    "PostCreate",
    "PostUpdate",
    "PostList",
    "PostSearchResponse",
    "LikeResult",
    "RepostResult",
]
