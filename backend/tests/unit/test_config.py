from pathlib import Path

import pytest

from backend.src.services import config as config_module


def test_get_config_allows_missing_jwt_secret(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "app.db"))

    cfg = config_module.reload_config()

    assert cfg.jwt_secret_key is None
    assert cfg.database_path == (tmp_path / "app.db").resolve()


def test_get_config_rejects_short_jwt_secret(monkeypatch) -> None:
    monkeypatch.setenv("JWT_SECRET_KEY", "short")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_get_config_rejects_blank_jwt_secret(monkeypatch) -> None:
    monkeypatch.setenv("JWT_SECRET_KEY", "   ")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_defaults_match_documented_values(monkeypatch) -> None:
    for key in ("JWT_EXPIRES_DAYS", "OPENAI_MODEL", "EMBEDDING_MODEL", "AUTH_RATE_LIMIT_ATTEMPTS"):
        monkeypatch.delenv(key, raising=False)

    cfg = config_module.reload_config()

    assert cfg.jwt_expires_days == 7
    assert cfg.jwt_issuer == "introvirght-api"
    assert cfg.jwt_audience == "introvirght-client"
    assert cfg.openai_model == "gpt-3.5-turbo"
    assert cfg.embedding_model == "text-embedding-3-small"
    assert cfg.embedding_dimensions == 1536
    assert cfg.auth_rate_limit_attempts == 5
    assert cfg.post_rate_limit == 10
    assert cfg.is_development


@pytest.mark.parametrize("raw", ["0", "false", "No"])
def test_local_mode_flag_parsing(monkeypatch, raw: str) -> None:
    monkeypatch.setenv("ENABLE_LOCAL_MODE", raw)

    assert config_module.reload_config().enable_local_mode is False


def test_blank_openai_key_is_treated_as_unset(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "  ")

    assert config_module.reload_config().openai_api_key is None


def test_vector_backend_is_restricted(monkeypatch) -> None:
    monkeypatch.setenv("VECTOR_BACKEND", "CHROMA")
    assert config_module.reload_config().vector_backend == "chroma"

    monkeypatch.setenv("VECTOR_BACKEND", "faiss")
    with pytest.raises(ValueError):
        config_module.reload_config()
