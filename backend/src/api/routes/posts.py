"""Public post routes: create, timelines, edits, likes, reposts and search."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...models.auth import MessageResponse
from ...models.post import (
    LikeResult,
    Post,
    PostCreate,
    PostList,
    PostSearchResponse,
    PostUpdate,
    RepostResult,
)
from ...services.engagement import content_quality, record_event
from ...services.posts import PostService, get_post_service
from ...services.rate_limit import get_post_limiter
from ...services.users import UserService, get_user_service
from ..middleware import AuthContext, get_auth_context, get_optional_auth_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])

POST_LIMIT_MESSAGE = "Too many posts. Please slow down and try again later."


def _viewer(auth: Optional[AuthContext]) -> Optional[str]:
    return auth.user_id if auth else None


@router.post("", response_model=Post, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    auth: AuthContext = Depends(get_auth_context),
    posts: PostService = Depends(get_post_service),
):
    get_post_limiter().enforce(auth.user_id, POST_LIMIT_MESSAGE)
    post = posts.create_post(auth.user_id, body.content)
    record_event(
        auth.user_id,
        "post_create",
        {
            "quality_score": content_quality(post.content),
            "content_id": post.id,
            "content_type": "post",
        },
    )
    return post


@router.get("/feed", response_model=PostList)
async def feed(
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(get_auth_context),
    posts: PostService = Depends(get_post_service),
):
    """Your posts and posts from people you follow, newest first."""
    return posts.feed(auth.user_id, limit, offset)


@router.get("/recent", response_model=PostList)
async def recent(
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    posts: PostService = Depends(get_post_service),
):
    return posts.recent(_viewer(auth), limit, offset)


@router.get("/search", response_model=PostSearchResponse)
async def search(
    q: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    posts: PostService = Depends(get_post_service),
):
    results = posts.search(q, _viewer(auth), limit, offset)
    return PostSearchResponse(query=(q or "").strip(), posts=results.posts, has_more=results.has_more)


@router.get("/user/{username}", response_model=PostList)
async def user_posts(
    username: str,
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    posts: PostService = Depends(get_post_service),
    users: UserService = Depends(get_user_service),
):
    author = users.require_by_username(username)
    return posts.by_author(author.id, _viewer(auth), limit, offset)


@router.get("/{post_id}", response_model=Post)
async def get_post(
    post_id: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    posts: PostService = Depends(get_post_service),
):
    return posts.get_post(post_id, _viewer(auth))


@router.put("/{post_id}", response_model=Post)
async def update_post(
    post_id: str,
    body: PostUpdate,
    auth: AuthContext = Depends(get_auth_context),
    posts: PostService = Depends(get_post_service),
):
    """Edit a post within its edit window."""
    return posts.update_post(post_id, auth.user_id, body.content)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    auth: AuthContext = Depends(get_auth_context),
    posts: PostService = Depends(get_post_service),
):
    posts.delete_post(post_id, auth.user_id)
    return MessageResponse(message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=LikeResult)
async def toggle_like(
    post_id: str,
    auth: AuthContext = Depends(get_auth_context),
    posts: PostService = Depends(get_post_service),
):
    result = posts.toggle_like(post_id, auth.user_id)
    if result.liked:
        record_event(auth.user_id, "like", {"content_id": post_id, "content_type": "post"})
    return result


@router.post("/{post_id}/repost", response_model=RepostResult)
async def toggle_repost(
    post_id: str,
    auth: AuthContext = Depends(get_auth_context),
    posts: PostService = Depends(get_post_service),
):
    return posts.toggle_repost(post_id, auth.user_id)


__all__ = ["router"]
