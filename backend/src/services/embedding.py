"""
Embedding client for diary semantic search.

Calls an OpenAI-compatible /embeddings endpoint with httpx. When no API key
is configured every call returns None so callers can degrade gracefully.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

import httpx

from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

MAX_TEXT_CHARS = 8000
MAX_QUERY_CHARS = 1000

_WHITESPACE = re.compile(r"\s+")
_TRAILING_PUNCTUATION = re.compile(r"[?!.]+$")
_SEARCH_PREFIX = re.compile(r"^(find|show|search|get)\s+", re.IGNORECASE)


class EmbeddingError(Exception):
    """Raised when embedding generation fails."""


def preprocess_text(text: Optional[str]) -> str:
    """Trim, collapse whitespace and cap length."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text.strip())[:MAX_TEXT_CHARS]


def preprocess_query(query: Optional[str]) -> str:
    """Normalize a search query: lowercase, no trailing punctuation or search verb."""
    if not query:
        return ""
    processed = query.strip().lower()
    processed = _TRAILING_PUNCTUATION.sub("", processed)
    processed = _SEARCH_PREFIX.sub("", processed)
    return processed[:MAX_QUERY_CHARS]


class EmbeddingService:
    """Generate embeddings through the configured provider."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.config = config or get_config()
        self.model = self.config.embedding_model
        self.dimensions = self.config.embedding_dimensions
        self._transport = transport
        self._timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.config.openai_api_key)

    def status(self) -> dict:
        return {
            "configured": self.is_configured(),
            "model": self.model,
            "dimensions": self.dimensions,
        }

    async def embed(self, text: str) -> Optional[List[float]]:
        """
        Embed ``text``.

        Returns None if no API key is configured or the text is blank after
        preprocessing. Raises EmbeddingError on API failures.
        """
        if not self.is_configured():
            return None
        clean = preprocess_text(text)
        if not clean:
            return None

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.config.openai_base_url.rstrip('/')}/embeddings",
                    headers={
                        "Authorization": f"Bearer {self.config.openai_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "input": clean,
                        "encoding_format": "float",
                    },
                )
        except httpx.TimeoutException as exc:
            raise EmbeddingError("Embedding API request timed out") from exc
        except httpx.RequestError as exc:
            raise EmbeddingError(f"Network error calling embedding API: {exc}") from exc

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "60")
            raise EmbeddingError(f"Rate limited. Retry after {retry_after} seconds.")
        if response.status_code != 200:
            raise EmbeddingError(
                f"Embedding API returned {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise EmbeddingError("Embedding API returned a non-JSON body") from exc

        items = data.get("data") if isinstance(data, dict) else None
        if not items or not isinstance(items, list):
            raise EmbeddingError("No embedding data in API response")
        first = items[0]
        embedding = first.get("embedding") if isinstance(first, dict) else None
        if not isinstance(embedding, list) or not all(
            isinstance(x, (int, float)) for x in embedding
        ):
            raise EmbeddingError("Invalid embedding format from API")

        usage = data.get("usage")
        tokens = usage.get("total_tokens", 0) if isinstance(usage, dict) else 0
        logger.info(f"Generated embedding: {len(embedding)} dimensions, {tokens} tokens")
        return [float(x) for x in embedding]

    async def embed_query(self, query: str) -> Optional[List[float]]:
        return await self.embed(preprocess_query(query))


__all__ = [
    "EmbeddingService",
    "EmbeddingError",
    "preprocess_text",
    "preprocess_query",
]
