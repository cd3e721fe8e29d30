"""Authentication models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .user import UserWithStats


class TokenResponse(BaseModel):
    """JWT issuance response."""

    token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type (always bearer)")
    expires_at: datetime = Field(..., description="Expiration timestamp")


class AuthResponse(TokenResponse):
    """Token plus the authenticated user's profile."""

    user: UserWithStats


class JWTPayload(BaseModel):
    """JWT claims payload."""

    sub: str = Field(..., description="Subject (user_id)")
    username: Optional[str] = Field(None, description="Username at issuance")
    email: Optional[str] = Field(None, description="Email at issuance")
    iat: int = Field(..., description="Issued at timestamp")
    exp: int = Field(..., description="Expiration timestamp")
    iss: Optional[str] = Field(None, description="Issuer")
    aud: Optional[str] = Field(None, description="Audience")


class RegisterRequest(BaseModel):
    """Account registration body. Field rules are enforced by the auth service."""

    username: str = ""
    email: str = ""
    password: str = ""
    bio: Optional[str] = None


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UsernameAvailability(BaseModel):
    username: str
    available: bool
    reason: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str


__all__ = [
    "TokenResponse",
    "AuthResponse",
    "JWTPayload",
    "RegisterRequest",
    "LoginRequest",
    "UsernameAvailability",
    "MessageResponse",
]
