"""Follow Service - follow graph writes, lists and suggestions."""

from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from ..models.follow import (
    FollowActivity,
    FollowList,
    FollowListItem,
    FollowResult,
    FollowStats,
    SuggestedUser,
)
from ..models.user import PublicUser
from .database import DatabaseService, new_id, utc_now
from .errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = "u.id, u.username, u.bio, u.is_email_verified, u.created_at, u.updated_at"


def _public_from_row(row: sqlite3.Row, prefix: str = "") -> PublicUser:
    return PublicUser(
        id=row[f"{prefix}id"],
        username=row[f"{prefix}username"],
        bio=row[f"{prefix}bio"],
        is_email_verified=bool(row[f"{prefix}is_email_verified"]),
        created_at=row[f"{prefix}created_at"],
        updated_at=row[f"{prefix}updated_at"],
    )


class FollowService:
    """Service for the follows table."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def _require_user(self, conn: sqlite3.Connection, user_id: str) -> None:
        if not conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone():
            raise NotFoundError("USER_NOT_FOUND", "User not found")

    @staticmethod
    def _follower_count(conn: sqlite3.Connection, user_id: str) -> int:
        return conn.execute(
            "SELECT COUNT(*) FROM follows WHERE following_id = ?", (user_id,)
        ).fetchone()[0]

    @staticmethod
    def _is_following(conn: sqlite3.Connection, follower_id: str, following_id: str) -> bool:
        return (
            conn.execute(
                "SELECT 1 FROM follows WHERE follower_id = ? AND following_id = ?",
                (follower_id, following_id),
            ).fetchone()
            is not None
        )

    def follow(self, follower_id: str, target_id: str) -> FollowResult:
        conn = self._db.connect()
        try:
            self._require_user(conn, target_id)
            if follower_id == target_id:
                raise ValidationError("CANNOT_FOLLOW_SELF", "You cannot follow yourself")
            if self._is_following(conn, follower_id, target_id):
                raise ConflictError("ALREADY_FOLLOWING", "You are already following this user")
            conn.execute(
                """
                INSERT INTO follows (id, follower_id, following_id, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (new_id(), follower_id, target_id, utc_now()),
            )
            conn.commit()
            logger.info(f"User {follower_id} followed {target_id}")
            return FollowResult(following=True, follower_count=self._follower_count(conn, target_id))
        finally:
            conn.close()

    def unfollow(self, follower_id: str, target_id: str) -> FollowResult:
        conn = self._db.connect()
        try:
            self._require_user(conn, target_id)
            cursor = conn.execute(
                "DELETE FROM follows WHERE follower_id = ? AND following_id = ?",
                (follower_id, target_id),
            )
            if cursor.rowcount == 0:
                raise ConflictError("NOT_FOLLOWING", "You are not following this user")
            conn.commit()
            logger.info(f"User {follower_id} unfollowed {target_id}")
            return FollowResult(following=False, follower_count=self._follower_count(conn, target_id))
        finally:
            conn.close()

    def _list(self, user_id: str, join_on: str, match_on: str, limit: int, offset: int) -> FollowList:
        conn = self._db.connect()
        try:
            self._require_user(conn, user_id)
            rows = conn.execute(
                f"""
                SELECT {_PUBLIC_COLUMNS}, f.created_at AS followed_at
                FROM follows f
                JOIN users u ON u.id = f.{join_on}
                WHERE f.{match_on} = ?
                ORDER BY f.created_at DESC
                LIMIT ? OFFSET ?
                """,
                (user_id, limit + 1, offset),
            ).fetchall()
        finally:
            conn.close()
        users = [
            FollowListItem(**_public_from_row(row).model_dump(), followed_at=row["followed_at"])
            for row in rows[:limit]
        ]
        return FollowList(users=users, has_more=len(rows) > limit)

    def followers(self, user_id: str, limit: int = 20, offset: int = 0) -> FollowList:
        return self._list(user_id, "follower_id", "following_id", limit, offset)

    def following(self, user_id: str, limit: int = 20, offset: int = 0) -> FollowList:
        return self._list(user_id, "following_id", "follower_id", limit, offset)

    def stats(self, user_id: str, viewer_id: Optional[str] = None) -> FollowStats:
        conn = self._db.connect()
        try:
            self._require_user(conn, user_id)
            following_count = conn.execute(
                "SELECT COUNT(*) FROM follows WHERE follower_id = ?", (user_id,)
            ).fetchone()[0]
            stats = FollowStats(
                follower_count=self._follower_count(conn, user_id),
                following_count=following_count,
            )
            if viewer_id and viewer_id != user_id:
                stats.is_following = self._is_following(conn, viewer_id, user_id)
                stats.is_followed_by = self._is_following(conn, user_id, viewer_id)
            return stats
        finally:
            conn.close()

    def suggestions(self, user_id: str, limit: int = 10) -> List[SuggestedUser]:
        """Friends of friends, ranked by mutual connections then newest account."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                f"""
                SELECT {_PUBLIC_COLUMNS}, COUNT(DISTINCT mine.following_id) AS mutual_connections
                FROM follows mine
                JOIN follows theirs ON theirs.follower_id = mine.following_id
                JOIN users u ON u.id = theirs.following_id
                WHERE mine.follower_id = :me
                  AND u.id != :me
                  AND u.id NOT IN (SELECT following_id FROM follows WHERE follower_id = :me)
                GROUP BY u.id
                ORDER BY mutual_connections DESC, u.created_at DESC
                LIMIT :limit
                """,
                {"me": user_id, "limit": limit},
            ).fetchall()
        finally:
            conn.close()
        return [
            SuggestedUser(
                **_public_from_row(row).model_dump(),
                mutual_connections=row["mutual_connections"],
            )
            for row in rows
        ]

    def mutual(self, user_id: str) -> List[PublicUser]:
        """Users who follow ``user_id`` and are followed back."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                f"""
                SELECT {_PUBLIC_COLUMNS}
                FROM follows out_f
                JOIN follows in_f
                  ON in_f.follower_id = out_f.following_id AND in_f.following_id = out_f.follower_id
                JOIN users u ON u.id = out_f.following_id
                WHERE out_f.follower_id = ?
                ORDER BY u.username
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return [_public_from_row(row) for row in rows]

    def activity(self, user_id: str, limit: int = 20) -> List[FollowActivity]:
        """Recent follows made by the people ``user_id`` follows."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                """
                SELECT f.created_at AS activity_at,
                       a.id AS a_id, a.username AS a_username, a.bio AS a_bio,
                       a.is_email_verified AS a_is_email_verified,
                       a.created_at AS a_created_at, a.updated_at AS a_updated_at,
                       b.id AS b_id, b.username AS b_username, b.bio AS b_bio,
                       b.is_email_verified AS b_is_email_verified,
                       b.created_at AS b_created_at, b.updated_at AS b_updated_at
                FROM follows f
                JOIN users a ON a.id = f.follower_id
                JOIN users b ON b.id = f.following_id
                WHERE f.follower_id IN (SELECT following_id FROM follows WHERE follower_id = ?)
                ORDER BY f.created_at DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        finally:
            conn.close()
        return [
            FollowActivity(
                follower=_public_from_row(row, "a_"),
                following=_public_from_row(row, "b_"),
                created_at=row["activity_at"],
            )
            for row in rows
        ]


def get_follow_service() -> FollowService:
    return FollowService()


__all__ = ["FollowService", "get_follow_service"]
