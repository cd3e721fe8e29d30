"""Domain errors raised by the service layer."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class ServiceError(Exception):
    """Base error carrying a machine-readable code and an HTTP status."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        error: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail or None

    def to_detail(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, "detail": self.detail}


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class RateLimitError(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


__all__ = [
    "ServiceError",
    "ValidationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
]
