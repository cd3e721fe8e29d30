"""User and profile models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PublicUser(BaseModel):
    """User fields safe to show to anyone. Never carries email or password hash."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0f6a4a53-3b1e-4c55-9a1d-0d7b7f3b1c10",
                "username": "alice",
                "bio": "Writing one honest sentence a day.",
                "created_at": "2025-01-15T10:30:00Z",
            }
        }
    )

    id: str = Field(..., description="Internal user ID")
    username: str = Field(..., min_length=1, max_length=20)
    bio: Optional[str] = Field(None, max_length=160)
    is_email_verified: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserWithStats(PublicUser):
    """Public user plus social counters and viewer relationship flags."""

    email: Optional[str] = Field(None, description="Only present on the user's own view")
    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0
    is_following: Optional[bool] = None
    is_followed_by: Optional[bool] = None


class UserRecord(PublicUser):
    """Full stored user row, used inside the service layer only."""

    email: str
    password_hash: str
    last_login_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    bio: Optional[str] = None


__all__ = ["PublicUser", "UserWithStats", "UserRecord", "ProfileUpdate"]
