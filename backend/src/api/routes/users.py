"""User profile and follow-graph routes."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...models.follow import (
    FollowActivityList,
    FollowList,
    FollowResult,
    FollowStats,
    MutualList,
    SuggestionList,
)
from ...models.user import ProfileUpdate, UserWithStats
from ...services.follows import FollowService, get_follow_service
from ...services.users import UserService, get_user_service
from ..middleware import AuthContext, get_auth_context, get_optional_auth_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def _viewer(auth: Optional[AuthContext]) -> Optional[str]:
    return auth.user_id if auth else None


# Fixed paths first so they are not captured by /{username}.


@router.get("/suggestions", response_model=SuggestionList)
async def suggestions(
    limit: int = Query(10, ge=1, le=20),
    auth: AuthContext = Depends(get_auth_context),
    follows: FollowService = Depends(get_follow_service),
):
    """People followed by the people you follow."""
    return SuggestionList(users=follows.suggestions(auth.user_id, limit))


@router.get("/mutual", response_model=MutualList)
async def mutual_follows(
    auth: AuthContext = Depends(get_auth_context),
    follows: FollowService = Depends(get_follow_service),
):
    return MutualList(users=follows.mutual(auth.user_id))


@router.get("/activity", response_model=FollowActivityList)
async def follow_activity(
    limit: int = Query(20, ge=1, le=50),
    auth: AuthContext = Depends(get_auth_context),
    follows: FollowService = Depends(get_follow_service),
):
    return FollowActivityList(activities=follows.activity(auth.user_id, limit))


@router.put("/profile", response_model=UserWithStats)
async def update_profile(
    body: ProfileUpdate,
    auth: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service),
):
    """Update the caller's bio; an empty bio clears it."""
    user = users.update_bio(auth.user_id, body.bio)
    return users.with_stats(user, include_email=True)


@router.get("/{username}", response_model=UserWithStats)
async def get_profile(
    username: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    users: UserService = Depends(get_user_service),
):
    return users.get_profile(username, viewer_id=_viewer(auth))


@router.post("/{user_id}/follow", response_model=FollowResult, status_code=status.HTTP_201_CREATED)
async def follow(
    user_id: str,
    auth: AuthContext = Depends(get_auth_context),
    follows: FollowService = Depends(get_follow_service),
):
    return follows.follow(auth.user_id, user_id)


@router.delete("/{user_id}/follow", response_model=FollowResult)
async def unfollow(
    user_id: str,
    auth: AuthContext = Depends(get_auth_context),
    follows: FollowService = Depends(get_follow_service),
):
    return follows.unfollow(auth.user_id, user_id)


@router.get("/{user_id}/followers", response_model=FollowList)
async def followers(
    user_id: str,
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    follows: FollowService = Depends(get_follow_service),
):
    return follows.followers(user_id, limit, offset)


@router.get("/{user_id}/following", response_model=FollowList)
async def following(
    user_id: str,
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    follows: FollowService = Depends(get_follow_service),
):
    return follows.following(user_id, limit, offset)


@router.get("/{user_id}/follow-stats", response_model=FollowStats)
async def follow_stats(
    user_id: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    follows: FollowService = Depends(get_follow_service),
):
    return follows.stats(user_id, viewer_id=_viewer(auth))


__all__ = ["router"]
