"""Authentication helpers (bcrypt passwords + JWT strategies)."""

from __future__ import annotations

import abc
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import bcrypt
import jwt
from fastapi import status

from ..models.auth import JWTPayload
from .config import AppConfig, get_config

LOCAL_USER_ID = "local-dev"
DEV_FALLBACK_SECRET = "local-dev-secret-key-123"


class AuthError(Exception):
    """Domain-specific authentication error."""

    def __init__(
        self,
        error: str,
        message: str,
        *,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code
        self.detail = detail or {}


def _resolve_secret(config: AppConfig) -> str:
    secret = config.jwt_secret_key
    if secret:
        return secret
    if config.is_development and config.enable_local_mode:
        return DEV_FALLBACK_SECRET
    raise AuthError(
        "missing_jwt_secret",
        "JWT secret is not configured.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class TokenValidator(abc.ABC):
    """Abstract base class for token validation strategies."""

    @abc.abstractmethod
    def validate(self, token: str) -> Optional[JWTPayload]:
        """
        Return the payload if the token is valid, or None if this validator
        does not recognize the token (allow fallthrough).
        Raises AuthError if token is recognized but invalid/expired.
        """


class StaticTokenValidator(TokenValidator):
    """Accepts one configured static token for the seeded demo user."""

    def __init__(self, static_token: Optional[str], user_id: str, username: str):
        self.static_token = static_token
        self.user_id = user_id
        self.username = username

    def validate(self, token: str) -> Optional[JWTPayload]:
        if self.static_token and token == self.static_token:
            now = datetime.now(timezone.utc)
            return JWTPayload(
                sub=self.user_id,
                username=self.username,
                iat=int(now.timestamp()),
                exp=int((now + timedelta(days=365)).timestamp()),
            )
        return None


class JWTValidator(TokenValidator):
    """Validates JWTs signed by the application secret, including iss and aud."""

    def __init__(self, config: AppConfig, algorithm: str = "HS256"):
        self.config = config
        self.algorithm = algorithm

    def validate(self, token: str) -> Optional[JWTPayload]:
        secret = _resolve_secret(self.config)
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                audience=self.config.jwt_audience,
                issuer=self.config.jwt_issuer,
            )
            return JWTPayload(**decoded)
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("token_expired", "Token expired") from exc
        except jwt.DecodeError:
            # Not a JWT at all; let the chain report invalid credentials.
            return None
        except jwt.InvalidTokenError as exc:
            raise AuthError("invalid_token", f"Invalid token: {exc}") from exc


class AuthService:
    """Hash passwords, issue tokens and validate them using configured strategies."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        algorithm: str = "HS256",
    ) -> None:
        self.config = config or get_config()
        self.algorithm = algorithm
        self.token_ttl_days = self.config.jwt_expires_days

        self.validators: List[TokenValidator] = []
        if self.config.enable_local_mode:
            self.validators.append(
                StaticTokenValidator(self.config.local_dev_token, LOCAL_USER_ID, LOCAL_USER_ID)
            )
        self.validators.append(JWTValidator(self.config, algorithm))

    # Passwords

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.config.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Stored hash is not a bcrypt hash
            return False

    # Tokens

    def validate_jwt(self, token: str) -> JWTPayload:
        """
        Validate a token against all registered strategies.

        Returns the first successful payload. A validator that recognizes the
        token but rejects it stops the chain by raising AuthError.
        """
        for validator in self.validators:
            payload = validator.validate(token)
            if payload:
                return payload
        raise AuthError("invalid_token", "Invalid authentication credentials")

    def _build_payload(
        self,
        user_id: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
        expires_in: Optional[timedelta] = None,
    ) -> JWTPayload:
        now = datetime.now(timezone.utc)
        lifetime = expires_in or timedelta(days=self.token_ttl_days)
        return JWTPayload(
            sub=user_id,
            username=username,
            email=email,
            iat=int(now.timestamp()),
            exp=int((now + lifetime).timestamp()),
            iss=self.config.jwt_issuer,
            aud=self.config.jwt_audience,
        )

    def create_jwt(
        self,
        user_id: str,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        expires_in: Optional[timedelta] = None,
    ) -> str:
        """Create a signed JWT for the given user."""
        token, _ = self.issue_token_response(
            user_id, username=username, email=email, expires_in=expires_in
        )
        return token

    def issue_token_response(
        self,
        user_id: str,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        expires_in: Optional[timedelta] = None,
    ) -> tuple[str, datetime]:
        """Return token string and expiry timestamp (helper for API routes)."""
        payload = self._build_payload(user_id, username, email, expires_in)
        token = jwt.encode(
            payload.model_dump(exclude_none=True),
            _resolve_secret(self.config),
            algorithm=self.algorithm,
        )
        expires_at = datetime.fromtimestamp(payload.exp, tz=timezone.utc)
        return token, expires_at


__all__ = [
    "AuthService",
    "AuthError",
    "TokenValidator",
    "StaticTokenValidator",
    "JWTValidator",
    "LOCAL_USER_ID",
]
