"""Registration, login and username availability."""

from __future__ import annotations

import logging
from typing import Optional

from ..models.auth import AuthResponse, UsernameAvailability
from ..models.user import UserRecord
from .auth import AuthError, AuthService
from .errors import ConflictError, ValidationError
from .users import UserService, clean_bio
from .validation import (
    validate_email,
    validate_password_strength,
    validate_username,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Account flows on top of UserService (rows) and AuthService (hashing, tokens)."""

    def __init__(
        self,
        users: UserService | None = None,
        auth: AuthService | None = None,
    ) -> None:
        self.users = users or UserService()
        self.auth = auth or AuthService()

    def _token_response(self, user: UserRecord) -> AuthResponse:
        token, expires_at = self.auth.issue_token_response(
            user.id, username=user.username, email=user.email
        )
        return AuthResponse(
            token=token,
            expires_at=expires_at,
            user=self.users.with_stats(user, include_email=True),
        )

    def register(
        self,
        username: str,
        email: str,
        password: str,
        bio: Optional[str] = None,
    ) -> AuthResponse:
        username = (username or "").strip()
        email = (email or "").strip().lower()

        if not validate_email(email):
            raise ValidationError("INVALID_EMAIL", "Please provide a valid email address")

        username_errors = validate_username(username)
        if username_errors:
            raise ValidationError(
                "INVALID_USERNAME", username_errors[0], detail={"errors": username_errors}
            )

        password_errors = validate_password_strength(password)
        if password_errors:
            raise ValidationError(
                "INVALID_PASSWORD", password_errors[0], detail={"errors": password_errors}
            )

        cleaned_bio = clean_bio(bio)

        if self.users.email_exists(email):
            raise ConflictError("EMAIL_EXISTS", "An account with this email already exists")
        if self.users.username_exists(username):
            raise ConflictError("USERNAME_EXISTS", "This username is already taken")

        user = self.users.create_user(
            username,
            email,
            self.auth.hash_password(password),
            cleaned_bio,
        )
        logger.info(f"Registered user {user.username}")
        return self._token_response(user)

    def login(self, email: str, password: str) -> AuthResponse:
        email = (email or "").strip().lower()
        if not validate_email(email):
            raise ValidationError("INVALID_EMAIL", "Please provide a valid email address")

        user = self.users.get_by_email(email)
        if not user or not self.auth.verify_password(password or "", user.password_hash):
            logger.info("Rejected login with invalid credentials")
            raise AuthError("INVALID_CREDENTIALS", "Invalid email or password")

        self.users.touch_login(user.id)
        refreshed = self.users.require_by_id(user.id)
        logger.info(f"User {user.username} logged in")
        return self._token_response(refreshed)

    def check_username(self, username: Optional[str]) -> UsernameAvailability:
        if not username:
            raise ValidationError("MISSING_USERNAME", "Username is required")
        errors = validate_username(username)
        if errors:
            return UsernameAvailability(
                username=username, available=False, reason=errors[0], errors=errors
            )
        if self.users.username_exists(username):
            return UsernameAvailability(
                username=username, available=False, reason="Username is already taken"
            )
        return UsernameAvailability(username=username, available=True)


def get_account_service() -> AccountService:
    return AccountService()


__all__ = ["AccountService", "get_account_service"]
