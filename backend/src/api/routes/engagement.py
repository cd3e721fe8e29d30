"""Gamification routes: profile, badges, event tracking, history and leaderboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...models.engagement import (
    BadgeOverview,
    EngagementEventList,
    EngagementProfile,
    EventRequest,
    EventResult,
    Leaderboard,
)
from ...services.engagement import EngagementService, get_engagement_service
from ..middleware import AuthContext, get_auth_context

router = APIRouter(prefix="/api/engagement", tags=["engagement"])


@router.get("/profile", response_model=EngagementProfile)
async def profile(
    auth: AuthContext = Depends(get_auth_context),
    engagement: EngagementService = Depends(get_engagement_service),
):
    return engagement.get_profile(auth.user_id)


@router.get("/badges", response_model=BadgeOverview)
async def badges(
    auth: AuthContext = Depends(get_auth_context),
    engagement: EngagementService = Depends(get_engagement_service),
):
    return engagement.get_badges(auth.user_id)


@router.post("/event", response_model=EventResult)
async def track_event(
    body: EventRequest,
    auth: AuthContext = Depends(get_auth_context),
    engagement: EngagementService = Depends(get_engagement_service),
):
    return engagement.process_event(auth.user_id, body.event_type, body.metadata)


@router.get("/events", response_model=EngagementEventList)
async def events(
    limit: int = Query(50, ge=1, le=200),
    auth: AuthContext = Depends(get_auth_context),
    engagement: EngagementService = Depends(get_engagement_service),
):
    return EngagementEventList(events=engagement.get_events(auth.user_id, limit))


@router.get("/leaderboard", response_model=Leaderboard)
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    engagement: EngagementService = Depends(get_engagement_service),
):
    return Leaderboard(entries=engagement.leaderboard(limit))


__all__ = ["router"]
