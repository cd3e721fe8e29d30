"""Post Service - posts, likes, reposts, feeds and search."""

from __future__ import annotations

from datetime import datetime
import logging
import sqlite3
from typing import Any, Dict, Optional

from ..models.post import (
    LikeResult,
    OriginalPost,
    Post,
    PostAuthor,
    PostList,
    RepostResult,
)
from .database import DatabaseService, new_id, utc_now
from .errors import ForbiddenError, NotFoundError, ValidationError
from .validation import (
    can_edit_post,
    extract_hashtags,
    extract_mentions,
    sanitize_post_content,
    validate_post_content,
    validate_search_query,
)

logger = logging.getLogger(__name__)

_POST_SELECT = """
    SELECT p.id, p.content, p.author_id, p.original_post_id, p.created_at, p.updated_at,
           a.username AS author_username, a.bio AS author_bio,
           (SELECT COUNT(*) FROM likes l WHERE l.post_id = p.id) AS like_count,
           (SELECT COUNT(*) FROM reposts r WHERE r.post_id = p.id) AS repost_count,
           EXISTS (SELECT 1 FROM likes l WHERE l.post_id = p.id AND l.user_id = :viewer) AS liked,
           EXISTS (SELECT 1 FROM reposts r WHERE r.post_id = p.id AND r.user_id = :viewer) AS reposted,
           o.content AS original_content, o.author_id AS original_author_id,
           o.created_at AS original_created_at,
           oa.username AS original_author_username, oa.bio AS original_author_bio
    FROM posts p
    JOIN users a ON a.id = p.author_id
    LEFT JOIN posts o ON o.id = p.original_post_id
    LEFT JOIN users oa ON oa.id = o.author_id
"""


def _row_to_post(row: sqlite3.Row, viewer_id: Optional[str]) -> Post:
    original = None
    if row["original_post_id"] and row["original_author_id"]:
        original = OriginalPost(
            id=row["original_post_id"],
            content=row["original_content"],
            author=PostAuthor(
                id=row["original_author_id"],
                username=row["original_author_username"],
                bio=row["original_author_bio"],
            ),
            created_at=row["original_created_at"],
        )
    return Post(
        id=row["id"],
        content=row["content"],
        author_id=row["author_id"],
        author=PostAuthor(id=row["author_id"], username=row["author_username"], bio=row["author_bio"]),
        original_post_id=row["original_post_id"],
        original_post=original,
        like_count=row["like_count"],
        repost_count=row["repost_count"],
        is_liked_by_current_user=bool(row["liked"]) if viewer_id else None,
        is_reposted_by_current_user=bool(row["reposted"]) if viewer_id else None,
        mentions=extract_mentions(row["content"]),
        hashtags=extract_hashtags(row["content"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _clean_content(content: Optional[str]) -> str:
    errors = validate_post_content(content)
    if errors:
        raise ValidationError("INVALID_CONTENT", errors[0], detail={"errors": errors})
    return sanitize_post_content(content or "")


class PostService:
    """Service for post CRUD and interactions."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def _query(
        self,
        where: str,
        params: Dict[str, Any],
        viewer_id: Optional[str],
        limit: int,
        offset: int,
    ) -> PostList:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                f"{_POST_SELECT} WHERE {where} ORDER BY p.created_at DESC LIMIT :limit OFFSET :offset",
                {**params, "viewer": viewer_id, "limit": limit + 1, "offset": offset},
            ).fetchall()
        finally:
            conn.close()
        posts = [_row_to_post(row, viewer_id) for row in rows[:limit]]
        return PostList(posts=posts, has_more=len(rows) > limit)

    def get_post(self, post_id: str, viewer_id: Optional[str] = None) -> Post:
        conn = self._db.connect()
        try:
            row = conn.execute(
                f"{_POST_SELECT} WHERE p.id = :post_id",
                {"post_id": post_id, "viewer": viewer_id},
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("POST_NOT_FOUND", "Post not found")
        return _row_to_post(row, viewer_id)

    def create_post(self, author_id: str, content: Optional[str]) -> Post:
        cleaned = _clean_content(content)
        post_id = new_id()
        now = utc_now()
        conn = self._db.connect()
        try:
            conn.execute(
                """
                INSERT INTO posts (id, content, author_id, original_post_id, created_at, updated_at)
                VALUES (?, ?, ?, NULL, ?, ?)
                """,
                (post_id, cleaned, author_id, now, now),
            )
            conn.commit()
            logger.info(f"Created post {post_id} for user {author_id}")
        finally:
            conn.close()
        return self.get_post(post_id, author_id)

    def update_post(
        self,
        post_id: str,
        user_id: str,
        content: Optional[str],
        *,
        now: Optional[datetime] = None,
    ) -> Post:
        existing = self.get_post(post_id, user_id)
        if existing.author_id != user_id:
            raise ForbiddenError("NOT_AUTHORIZED", "You can only edit your own posts")
        if not can_edit_post(existing.created_at, now=now):
            raise ForbiddenError(
                "EDIT_TIME_EXPIRED", "Posts can only be edited within 15 minutes of creation"
            )
        cleaned = _clean_content(content)
        conn = self._db.connect()
        try:
            conn.execute(
                "UPDATE posts SET content = ?, updated_at = ? WHERE id = ?",
                (cleaned, utc_now(), post_id),
            )
            conn.commit()
            logger.info(f"Updated post {post_id}")
        finally:
            conn.close()
        return self.get_post(post_id, user_id)

    def delete_post(self, post_id: str, user_id: str) -> None:
        existing = self.get_post(post_id, user_id)
        if existing.author_id != user_id:
            raise ForbiddenError("NOT_AUTHORIZED", "You can only delete your own posts")
        conn = self._db.connect()
        try:
            # If this row is itself a repost, drop the matching reposts record too.
            if existing.original_post_id:
                conn.execute(
                    "DELETE FROM reposts WHERE user_id = ? AND post_id = ?",
                    (user_id, existing.original_post_id),
                )
            # Likes, reposts and repost rows cascade through foreign keys.
            conn.execute("DELETE FROM posts WHERE id = ?", (post_id,))
            conn.commit()
            logger.info(f"Deleted post {post_id}")
        finally:
            conn.close()

    def toggle_like(self, post_id: str, user_id: str) -> LikeResult:
        self.get_post(post_id)
        conn = self._db.connect()
        try:
            cursor = conn.execute(
                "DELETE FROM likes WHERE user_id = ? AND post_id = ?", (user_id, post_id)
            )
            liked = cursor.rowcount == 0
            if liked:
                conn.execute(
                    "INSERT INTO likes (id, user_id, post_id, created_at) VALUES (?, ?, ?, ?)",
                    (new_id(), user_id, post_id, utc_now()),
                )
            conn.commit()
            count = conn.execute(
                "SELECT COUNT(*) FROM likes WHERE post_id = ?", (post_id,)
            ).fetchone()[0]
        finally:
            conn.close()
        return LikeResult(liked=liked, like_count=count)

    def toggle_repost(self, post_id: str, user_id: str) -> RepostResult:
        post = self.get_post(post_id)
        if post.author_id == user_id:
            raise ValidationError("CANNOT_REPOST_OWN", "You cannot repost your own post")
        conn = self._db.connect()
        try:
            cursor = conn.execute(
                "DELETE FROM reposts WHERE user_id = ? AND post_id = ?", (user_id, post_id)
            )
            reposted = cursor.rowcount == 0
            if reposted:
                now = utc_now()
                conn.execute(
                    "INSERT INTO reposts (id, user_id, post_id, created_at) VALUES (?, ?, ?, ?)",
                    (new_id(), user_id, post_id, now),
                )
                conn.execute(
                    """
                    INSERT INTO posts (id, content, author_id, original_post_id, created_at, updated_at)
                    VALUES (?, '', ?, ?, ?, ?)
                    """,
                    (new_id(), user_id, post_id, now, now),
                )
            else:
                conn.execute(
                    "DELETE FROM posts WHERE author_id = ? AND original_post_id = ?",
                    (user_id, post_id),
                )
            conn.commit()
            count = conn.execute(
                "SELECT COUNT(*) FROM reposts WHERE post_id = ?", (post_id,)
            ).fetchone()[0]
        finally:
            conn.close()
        return RepostResult(reposted=reposted, repost_count=count)

    def feed(self, user_id: str, limit: int = 20, offset: int = 0) -> PostList:
        """The user's own posts plus posts from everyone they follow."""
        return self._query(
            "(p.author_id = :me OR p.author_id IN "
            "(SELECT following_id FROM follows WHERE follower_id = :me))",
            {"me": user_id},
            user_id,
            limit,
            offset,
        )

    def recent(self, viewer_id: Optional[str] = None, limit: int = 20, offset: int = 0) -> PostList:
        return self._query("1 = 1", {}, viewer_id, limit, offset)

    def by_author(
        self,
        author_id: str,
        viewer_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> PostList:
        return self._query("p.author_id = :author", {"author": author_id}, viewer_id, limit, offset)

    def search(
        self,
        query: Optional[str],
        viewer_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> PostList:
        errors = validate_search_query(query)
        if errors:
            raise ValidationError("INVALID_QUERY", errors[0], detail={"errors": errors})
        pattern = f"%{(query or '').strip()}%"
        return self._query("p.content LIKE :pattern", {"pattern": pattern}, viewer_id, limit, offset)


def get_post_service() -> PostService:
    return PostService()


__all__ = ["PostService", "get_post_service"]
