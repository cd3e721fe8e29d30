"""Startup initialization: schema plus the local demo account."""

from __future__ import annotations

import logging

from .auth import LOCAL_USER_ID
from .config import get_config
from .database import DatabaseService, init_database
from .users import UserService

logger = logging.getLogger(__name__)

LOCAL_USER_EMAIL = "local-dev@introvirght.local"
LOCAL_USER_BIO = "Demo account for local development."
# Not a bcrypt hash, so no password ever verifies against it.
UNUSABLE_PASSWORD_HASH = "!"


def ensure_local_user(db_service: DatabaseService | None = None) -> bool:
    """
    Make sure the account behind the static local token exists.

    Returns True if the account was created.
    """
    users = UserService(db_service)
    if users.get_by_id(LOCAL_USER_ID):
        return False
    users.create_user(
        LOCAL_USER_ID,
        LOCAL_USER_EMAIL,
        UNUSABLE_PASSWORD_HASH,
        LOCAL_USER_BIO,
        user_id=LOCAL_USER_ID,
    )
    logger.info(f"Seeded local demo user: {LOCAL_USER_ID}")
    return True


def init_and_seed() -> None:
    """
    Initialize the database schema and, in local mode, the demo account.

    Called on application startup so ephemeral storage always has a usable schema.
    """
    db_path = init_database()
    logger.info(f"Database initialized at: {db_path}")

    if get_config().enable_local_mode:
        ensure_local_user(DatabaseService(db_path))


__all__ = ["init_and_seed", "ensure_local_user", "LOCAL_USER_EMAIL"]
