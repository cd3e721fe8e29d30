"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATABASE_PATH = PROJECT_ROOT / "data" / "introvirght.db"
DEFAULT_CHROMA_PATH = PROJECT_ROOT / "data" / "chroma"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    jwt_secret_key: Optional[str] = Field(
        default=None,
        description="HMAC secret for JWT signing",
    )
    jwt_expires_days: int = Field(default=7, ge=1, description="Token lifetime in days")
    jwt_issuer: str = Field(default="introvirght-api", description="JWT iss claim")
    jwt_audience: str = Field(default="introvirght-client", description="JWT aud claim")
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, description="bcrypt cost factor")
    enable_local_mode: bool = Field(
        default=True,
        description="Allow the static demo token when running locally",
    )
    local_dev_token: Optional[str] = Field(
        default="local-dev-token",
        description="Static token accepted in local mode for the demo user",
    )
    environment: str = Field(default="development", description="Deployment environment name")
    database_path: Path = Field(..., description="SQLite database file")
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Frontend origin allowed by CORS",
    )
    openai_api_key: Optional[str] = Field(
        None, description="API key for embeddings and chat completions (optional)"
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of an OpenAI-compatible API",
    )
    openai_model: str = Field(default="gpt-3.5-turbo", description="Chat completion model")
    embedding_model: str = Field(
        default="text-embedding-3-small", description="Embedding model"
    )
    embedding_dimensions: int = Field(default=1536, ge=1, description="Embedding size")
    vector_backend: Literal["sqlite", "chroma"] = Field(
        default="sqlite", description="Vector store implementation"
    )
    chroma_path: Path = Field(
        default=DEFAULT_CHROMA_PATH, description="chromadb persistence directory"
    )
    chroma_collection: str = Field(
        default="diary_embeddings", description="chromadb collection name"
    )
    auth_rate_limit_attempts: int = Field(default=5, ge=1)
    auth_rate_limit_window_minutes: int = Field(default=15, ge=1)
    post_rate_limit: int = Field(default=10, ge=1)
    post_rate_limit_window_minutes: int = Field(default=60, ge=1)

    @field_validator("database_path", "chroma_path", mode="before")
    @classmethod
    def _normalize_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("path setting cannot be empty")
        if isinstance(value, Path):
            path = value
        else:
            path = Path(value)
        return path.expanduser().resolve()

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def _ensure_secret(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError(
                "JWT_SECRET_KEY cannot be empty; unset the variable to use the development secret"
            )
        if len(cleaned) < 16:
            raise ValueError("JWT_SECRET_KEY must be at least 16 characters")
        return cleaned

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev")


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_flag(key: str, default: str) -> bool:
    return (_read_env(key, default) or default).lower() not in {"0", "false", "no"}


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    config = AppConfig(
        jwt_secret_key=_read_env("JWT_SECRET_KEY"),
        jwt_expires_days=_read_env("JWT_EXPIRES_DAYS", "7"),
        jwt_issuer=_read_env("JWT_ISSUER", "introvirght-api"),
        jwt_audience=_read_env("JWT_AUDIENCE", "introvirght-client"),
        bcrypt_rounds=_read_env("BCRYPT_ROUNDS", "12"),
        enable_local_mode=_read_flag("ENABLE_LOCAL_MODE", "true"),
        local_dev_token=_read_env("LOCAL_DEV_TOKEN", "local-dev-token"),
        environment=_read_env("ENVIRONMENT", "development"),
        database_path=_read_env("DATABASE_PATH", str(DEFAULT_DATABASE_PATH)),
        frontend_url=_read_env("FRONTEND_URL", "http://localhost:5173"),
        openai_api_key=_read_env("OPENAI_API_KEY"),
        openai_base_url=_read_env("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        openai_model=_read_env("OPENAI_MODEL", "gpt-3.5-turbo"),
        embedding_model=_read_env("EMBEDDING_MODEL", "text-embedding-3-small"),
        embedding_dimensions=_read_env("EMBEDDING_DIMENSIONS", "1536"),
        vector_backend=(_read_env("VECTOR_BACKEND", "sqlite") or "sqlite").lower(),
        chroma_path=_read_env("CHROMA_PATH", str(DEFAULT_CHROMA_PATH)),
        chroma_collection=_read_env("CHROMA_COLLECTION", "diary_embeddings"),
        auth_rate_limit_attempts=_read_env("AUTH_RATE_LIMIT_ATTEMPTS", "5"),
        auth_rate_limit_window_minutes=_read_env("AUTH_RATE_LIMIT_WINDOW_MINUTES", "15"),
        post_rate_limit=_read_env("POST_RATE_LIMIT", "10"),
        post_rate_limit_window_minutes=_read_env("POST_RATE_LIMIT_WINDOW_MINUTES", "60"),
    )
    # Ensure the data directory exists for downstream services.
    config.database_path.parent.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "PROJECT_ROOT",
    "DEFAULT_DATABASE_PATH",
    "DEFAULT_CHROMA_PATH",
]
