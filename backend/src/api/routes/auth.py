"""Account and session routes: register, login, me, logout, username checks."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ...models.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UsernameAvailability,
)
from ...models.user import UserWithStats
from ...services.accounts import AccountService, get_account_service
from ...services.engagement import record_event
from ...services.rate_limit import get_auth_limiter
from ...services.users import UserService, get_user_service
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

AUTH_LIMIT_MESSAGE = "Too many authentication attempts. Please try again later."


def client_key(request: Request) -> str:
    """Rate-limit key for an anonymous caller."""
    return request.client.host if request.client else "unknown"


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    accounts: AccountService = Depends(get_account_service),
):
    """Create an account and return a session token."""
    limiter = get_auth_limiter()
    key = client_key(request)
    limiter.enforce(key, AUTH_LIMIT_MESSAGE)

    response = accounts.register(body.username, body.email, body.password, body.bio)
    limiter.clear(key)
    record_event(response.user.id, "login")
    return response


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    accounts: AccountService = Depends(get_account_service),
):
    """Exchange email and password for a session token."""
    limiter = get_auth_limiter()
    key = client_key(request)
    limiter.enforce(key, AUTH_LIMIT_MESSAGE)

    response = accounts.login(body.email, body.password)
    limiter.clear(key)
    record_event(response.user.id, "login")
    return response


@router.get("/me", response_model=UserWithStats)
async def me(
    auth: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(get_user_service),
):
    """Return the authenticated user, including email and counts."""
    return users.with_stats(auth.user, include_email=True)


@router.post("/logout", response_model=MessageResponse)
async def logout():
    """Tokens are stateless; the client simply discards its token."""
    return MessageResponse(message="Logged out successfully")


@router.get("/check-username", response_model=UsernameAvailability)
async def check_username(
    username: Optional[str] = Query(None),
    accounts: AccountService = Depends(get_account_service),
):
    return accounts.check_username(username)


__all__ = ["router", "client_key"]
