"""Shared fixtures: isolated database, deterministic embeddings, HTTP client."""

from __future__ import annotations

import hashlib
import math
import re
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from backend.src.services import config as config_module
from backend.src.services.database import DatabaseService, init_database
from backend.src.services.rate_limit import reset_limiters
from backend.src.services.vector_service import VectorService
from backend.src.services.vector_store import SQLiteVectorStore

FAKE_DIMENSIONS = 256
_WORD = re.compile(r"[a-z0-9']+")


class FakeEmbedder:
    """Bag-of-words hashing embedder; texts sharing words score high."""

    model = "fake-embedding"
    dimensions = FAKE_DIMENSIONS

    def __init__(self) -> None:
        self.calls: List[str] = []

    def is_configured(self) -> bool:
        return True

    def status(self) -> dict:
        return {"configured": True, "model": self.model, "dimensions": self.dimensions}

    def _vector(self, text: str) -> Optional[List[float]]:
        words = _WORD.findall((text or "").lower())
        if not words:
            return None
        vector = [0.0] * self.dimensions
        for word in words:
            bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % self.dimensions
            vector[bucket] += 1.0
        norm = math.sqrt(sum(x * x for x in vector))
        return [x / norm for x in vector]

    async def embed(self, text: str) -> Optional[List[float]]:
        self.calls.append(text)
        return self._vector(text)

    async def embed_query(self, query: str) -> Optional[List[float]]:
        return await self.embed(query)


@pytest.fixture(autouse=True)
def app_env(monkeypatch, tmp_path: Path):
    """Point every test at a fresh SQLite file with development settings."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "introvirght-test.db"))
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("ENABLE_LOCAL_MODE", "true")
    monkeypatch.setenv("LOCAL_DEV_TOKEN", "local-dev-token")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("VECTOR_BACKEND", "sqlite")
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    cfg = config_module.reload_config()
    reset_limiters()
    init_database()
    yield cfg
    config_module.get_config.cache_clear()
    reset_limiters()


@pytest.fixture
def db(app_env) -> DatabaseService:
    return DatabaseService(app_env.database_path)


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def vector_service(db, fake_embedder) -> VectorService:
    return VectorService(embedder=fake_embedder, store=SQLiteVectorStore(db))


@pytest.fixture
def make_user(db):
    """Insert a user row directly (no bcrypt) and return the record."""
    from backend.src.services.users import UserService

    users = UserService(db)

    def _make(username: str, bio: Optional[str] = None):
        return users.create_user(username, f"{username}@example.com", "!", bio)

    return _make


@pytest.fixture
def client(vector_service):
    """TestClient with deterministic embeddings and no LLM configured."""
    from fastapi.testclient import TestClient

    from backend.src.api.main import app
    from backend.src.services.llm import LLMClient, get_llm_client
    from backend.src.services.vector_service import get_vector_service

    app.dependency_overrides[get_vector_service] = lambda: vector_service
    app.dependency_overrides[get_llm_client] = lambda: LLMClient()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """Register through the API; returns the JSON body plus ready-made auth headers."""

    def _register(username: str, password: str = "password123", **extra) -> Dict:
        payload = {
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            **extra,
        }
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        body["headers"] = {"Authorization": f"Bearer {body['token']}"}
        return body

    return _register


@pytest.fixture
def alice(register_user) -> Dict:
    return register_user("alice", bio="Writing one honest sentence a day.")


@pytest.fixture
def bob(register_user) -> Dict:
    return register_user("bob")
