"""Service layer for business logic and external integrations."""

from .accounts import AccountService, get_account_service
from .auth import AuthError, AuthService
from .badges import award_badges, badge_overview, update_achievements
from .chat import ChatService
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .diary import DiaryService, get_diary_service, index_entry
from .embedding import EmbeddingError, EmbeddingService
from .engagement import EngagementService, get_engagement_service, record_event
from .errors import ServiceError
from .follows import FollowService, get_follow_service
from .llm import LLMClient, LLMError
from .posts import PostService, get_post_service
from .rate_limit import RateLimiter, get_auth_limiter, get_post_limiter
from .users import UserService, get_user_service
from .vector_service import VectorService, get_vector_service
from .vector_store import ChromaVectorStore, SQLiteVectorStore, VectorStore, create_vector_store

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "ServiceError",
    "AuthService",
    "AuthError",
    "AccountService",
    "get_account_service",
    "UserService",
    "get_user_service",
    "FollowService",
    "get_follow_service",
    "PostService",
    "get_post_service",
    "DiaryService",
    "get_diary_service",
    "index_entry",
    "EmbeddingService",
    "EmbeddingError",
    "VectorStore",
    "SQLiteVectorStore",
    "ChromaVectorStore",
    "create_vector_store",
    "VectorService",
    "get_vector_service",
    "LLMClient",
    "LLMError",
    "ChatService",
    "EngagementService",
    "get_engagement_service",
    "record_event",
    "award_badges",
    "badge_overview",
    "update_achievements",
    "RateLimiter",
    "get_auth_limiter",
    "get_post_limiter",
]
