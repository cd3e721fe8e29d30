"""Authentication dependency helpers."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Annotated, Optional

from fastapi import Header, HTTPException, status

from ...models.auth import JWTPayload
from ...models.user import UserRecord
from ...services.auth import AuthError, AuthService
from ...services.users import UserService

logger = logging.getLogger(__name__)


def _unauthorized(message: str, error: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
    )


@dataclass
class AuthContext:
    """Context extracted from a bearer token and the account behind it."""

    user_id: str
    token: str
    payload: JWTPayload
    user: UserRecord

    @property
    def username(self) -> str:
        return self.user.username


def _parse_bearer(authorization: str) -> str:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized(
            "Authorization header must be in format: Bearer <token>", error="INVALID_TOKEN"
        )
    return token.strip()


def _resolve(token: str) -> AuthContext:
    try:
        payload = AuthService().validate_jwt(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": exc.error, "message": exc.message, "detail": exc.detail or None},
        ) from exc

    user = UserService().get_by_id(payload.sub)
    if user is None:
        logger.info(f"Token subject {payload.sub} no longer exists")
        raise _unauthorized("User no longer exists", error="USER_NOT_FOUND")
    return AuthContext(user_id=user.id, token=token, payload=payload, user=user)


def get_auth_context(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
) -> AuthContext:
    """
    Validate the Bearer token and load its user.

    Raises HTTPException if the header is missing, the token is invalid, or the
    account has been removed.
    """
    if not authorization:
        raise _unauthorized("Access token is required", error="NO_TOKEN")
    return _resolve(_parse_bearer(authorization))


def get_optional_auth_context(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
) -> Optional[AuthContext]:
    """Like get_auth_context, but anonymous callers and bad tokens yield None."""
    if not authorization:
        return None
    try:
        return _resolve(_parse_bearer(authorization))
    except HTTPException as exc:
        logger.debug(f"Ignoring invalid optional credentials: {exc.detail}")
        return None


__all__ = [
    "AuthContext",
    "get_auth_context",
    "get_optional_auth_context",
]
