"""HTTP API route handlers."""

from . import auth, chat, diary, engagement, posts, users, vector

__all__ = ["auth", "users", "posts", "diary", "chat", "engagement", "vector"]
