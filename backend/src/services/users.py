"""User Service - account rows, profiles and social counters."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from ..models.user import PublicUser, UserRecord, UserWithStats
from .database import DatabaseService, new_id, utc_now
from .errors import ConflictError, NotFoundError, ValidationError
from .validation import sanitize_input

logger = logging.getLogger(__name__)

MAX_BIO_LENGTH = 160

_USER_COLUMNS = (
    "id, username, email, password_hash, bio, is_email_verified, "
    "created_at, updated_at, last_login_at"
)


def row_to_record(row: sqlite3.Row) -> UserRecord:
    return UserRecord(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        bio=row["bio"],
        is_email_verified=bool(row["is_email_verified"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_login_at=row["last_login_at"],
    )


def clean_bio(bio: Optional[str]) -> Optional[str]:
    """Sanitize a bio, returning None when it is blank."""
    cleaned = sanitize_input(bio or "")
    if len(cleaned) > MAX_BIO_LENGTH:
        raise ValidationError(
            "BIO_TOO_LONG", f"Bio must be no more than {MAX_BIO_LENGTH} characters"
        )
    return cleaned or None


def to_public(user: UserRecord) -> PublicUser:
    return PublicUser(
        id=user.id,
        username=user.username,
        bio=user.bio,
        is_email_verified=user.is_email_verified,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserService:
    """CRUD over the users table plus follower/post counters."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def _fetch_one(self, where: str, value: str) -> Optional[UserRecord]:
        conn = self._db.connect()
        try:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE {where} = ?", (value,)
            ).fetchone()
            return row_to_record(row) if row else None
        finally:
            conn.close()

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        return self._fetch_one("id", user_id)

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        return self._fetch_one("email", email.strip().lower())

    def get_by_username(self, username: str) -> Optional[UserRecord]:
        return self._fetch_one("username", username)

    def require_by_username(self, username: str) -> UserRecord:
        user = self.get_by_username(username)
        if not user:
            raise NotFoundError("USER_NOT_FOUND", "User not found")
        return user

    def require_by_id(self, user_id: str) -> UserRecord:
        user = self.get_by_id(user_id)
        if not user:
            raise NotFoundError("USER_NOT_FOUND", "User not found")
        return user

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def username_exists(self, username: str) -> bool:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT 1 FROM users WHERE lower(username) = lower(?)", (username,)
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        bio: Optional[str] = None,
        *,
        user_id: Optional[str] = None,
    ) -> UserRecord:
        """Insert a new account row. Callers validate and hash beforehand."""
        conn = self._db.connect()
        now = utc_now()
        user_id = user_id or new_id()
        try:
            conn.execute(
                """
                INSERT INTO users (id, username, email, password_hash, bio,
                                   is_email_verified, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (user_id, username, email.strip().lower(), password_hash, bio, now, now),
            )
            conn.commit()
            logger.info(f"Created user {username} ({user_id})")
        except sqlite3.IntegrityError as exc:
            # Lost a race with a concurrent registration.
            logger.warning(f"Rejected duplicate account for {username}: {exc}")
            if "users.email" in str(exc):
                raise ConflictError(
                    "EMAIL_EXISTS", "An account with this email already exists"
                ) from exc
            raise ConflictError("USERNAME_EXISTS", "This username is already taken") from exc
        finally:
            conn.close()
        return self.require_by_id(user_id)

    def touch_login(self, user_id: str) -> None:
        conn = self._db.connect()
        try:
            conn.execute(
                "UPDATE users SET last_login_at = ? WHERE id = ?", (utc_now(), user_id)
            )
            conn.commit()
        finally:
            conn.close()

    def update_bio(self, user_id: str, bio: Optional[str]) -> UserRecord:
        """Set or clear the bio. Blank clears it."""
        cleaned = clean_bio(bio)
        conn = self._db.connect()
        try:
            cursor = conn.execute(
                "UPDATE users SET bio = ?, updated_at = ? WHERE id = ?",
                (cleaned, utc_now(), user_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError("USER_NOT_FOUND", "User not found")
            logger.info(f"Updated bio for user {user_id}")
        finally:
            conn.close()
        return self.require_by_id(user_id)

    def counts(self, user_id: str) -> tuple[int, int, int]:
        """Return (follower_count, following_count, post_count)."""
        conn = self._db.connect()
        try:
            row = conn.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM follows WHERE following_id = :id) AS followers,
                    (SELECT COUNT(*) FROM follows WHERE follower_id = :id) AS following,
                    (SELECT COUNT(*) FROM posts WHERE author_id = :id) AS posts
                """,
                {"id": user_id},
            ).fetchone()
            return row["followers"], row["following"], row["posts"]
        finally:
            conn.close()

    def relationship(self, viewer_id: str, user_id: str) -> tuple[bool, bool]:
        """Return (viewer follows user, user follows viewer)."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                """
                SELECT follower_id FROM follows
                WHERE (follower_id = ? AND following_id = ?)
                   OR (follower_id = ? AND following_id = ?)
                """,
                (viewer_id, user_id, user_id, viewer_id),
            ).fetchall()
        finally:
            conn.close()
        followers = {row["follower_id"] for row in rows}
        return viewer_id in followers, user_id in followers

    def with_stats(
        self,
        user: UserRecord,
        *,
        viewer_id: Optional[str] = None,
        include_email: bool = False,
    ) -> UserWithStats:
        follower_count, following_count, post_count = self.counts(user.id)
        view = UserWithStats(
            **to_public(user).model_dump(),
            email=user.email if include_email else None,
            follower_count=follower_count,
            following_count=following_count,
            post_count=post_count,
        )
        if viewer_id and viewer_id != user.id:
            view.is_following, view.is_followed_by = self.relationship(viewer_id, user.id)
        return view

    def get_profile(self, username: str, viewer_id: Optional[str] = None) -> UserWithStats:
        user = self.require_by_username(username)
        return self.with_stats(user, viewer_id=viewer_id)


def get_user_service() -> UserService:
    return UserService()


__all__ = [
    "UserService",
    "get_user_service",
    "row_to_record",
    "to_public",
    "clean_bio",
    "MAX_BIO_LENGTH",
]
