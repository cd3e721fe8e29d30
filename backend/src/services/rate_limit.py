"""In-memory fixed-window rate limiting keyed by client or user."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import threading
import time
from typing import Callable, Dict, Optional

from .config import get_config
from .errors import RateLimitError


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: datetime


class RateLimiter:
    """Count attempts per key inside a window; the window starts at the first attempt."""

    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._attempts: Dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def _purge_expired(self, now: float) -> None:
        expired = [
            key for key, (_, reset) in self._attempts.items() if now >= reset
        ]
        for key in expired:
            self._attempts.pop(key, None)

    def check(self, key: str) -> RateLimitResult:
        """Record one attempt for ``key`` and report whether it is allowed."""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            count, reset = self._attempts.get(key, (0, now + self.window_seconds))
            reset_at = datetime.fromtimestamp(reset, tz=timezone.utc)
            if count >= self.max_attempts:
                return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)
            count += 1
            self._attempts[key] = (count, reset)
            return RateLimitResult(
                allowed=True,
                remaining=self.max_attempts - count,
                reset_at=reset_at,
            )

    def enforce(self, key: str, message: str = "Too many requests. Please try again later.") -> RateLimitResult:
        """Like check(), but raise RateLimitError when the key is over its limit."""
        result = self.check(key)
        if not result.allowed:
            raise RateLimitError(
                "RATE_LIMIT_EXCEEDED",
                message,
                detail={"reset_at": result.reset_at.isoformat()},
            )
        return result

    def clear(self, key: str) -> None:
        with self._lock:
            self._attempts.pop(key, None)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()


_auth_limiter: Optional[RateLimiter] = None
_post_limiter: Optional[RateLimiter] = None


def get_auth_limiter() -> RateLimiter:
    """Limiter for register/login attempts per client address."""
    global _auth_limiter
    if _auth_limiter is None:
        config = get_config()
        _auth_limiter = RateLimiter(
            config.auth_rate_limit_attempts,
            timedelta(minutes=config.auth_rate_limit_window_minutes).total_seconds(),
        )
    return _auth_limiter


def get_post_limiter() -> RateLimiter:
    """Limiter for post creation per user."""
    global _post_limiter
    if _post_limiter is None:
        config = get_config()
        _post_limiter = RateLimiter(
            config.post_rate_limit,
            timedelta(minutes=config.post_rate_limit_window_minutes).total_seconds(),
        )
    return _post_limiter


def reset_limiters() -> None:
    """Drop the shared limiters so the next call rebuilds them from config."""
    global _auth_limiter, _post_limiter
    _auth_limiter = None
    _post_limiter = None


__all__ = [
    "RateLimiter",
    "RateLimitResult",
    "get_auth_limiter",
    "get_post_limiter",
    "reset_limiters",
]
