"""
Vector store wrapper for diary embeddings.

Two interchangeable backends implement ``VectorStore``:

- ``SQLiteVectorStore`` keeps float32 blobs in the ``diary_vectors`` table and
  ranks candidates with numpy cosine similarity.
- ``ChromaVectorStore`` uses a persistent chromadb collection in cosine space.
  chromadb is an optional extra and is imported only when this backend is built.
"""

from __future__ import annotations

import abc
import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..models.vector import SimilarEntry, VectorEntry, VectorMetadata
from .config import AppConfig, get_config
from .database import DatabaseService, new_id, utc_now

logger = logging.getLogger(__name__)


def cosine_similarity(v1: np.ndarray, v2: np.ndarray) -> float:
    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return float(np.dot(v1, v2) / (norm1 * norm2))


def serialize(vector: Sequence[float]) -> bytes:
    return np.asarray(vector, dtype=np.float32).tobytes()


def deserialize(data: bytes) -> np.ndarray:
    return np.frombuffer(data, dtype=np.float32)


class VectorStore(abc.ABC):
    """Insert, query and delete diary vectors scoped per user."""

    name: str = "base"

    @abc.abstractmethod
    def initialize(self) -> None:
        """Prepare the backend (create tables or collections)."""

    @abc.abstractmethod
    def store(
        self,
        entry_id: str,
        user_id: str,
        content: str,
        vector: Sequence[float],
        metadata: VectorMetadata,
    ) -> str:
        """Insert or replace the vector for ``entry_id``; return the vector id."""

    @abc.abstractmethod
    def search_similar(
        self,
        vector: Sequence[float],
        user_id: str,
        limit: int = 5,
        threshold: float = 0.7,
    ) -> List[SimilarEntry]:
        """Entries of ``user_id`` with cosine similarity >= threshold, best first."""

    @abc.abstractmethod
    def delete(self, entry_id: str) -> bool:
        """Remove the vector for ``entry_id``. Returns False if none existed."""

    @abc.abstractmethod
    def get_user_entries(self, user_id: str, limit: int = 100) -> List[VectorEntry]:
        """Stored vectors for ``user_id``, newest first."""

    def get_entry(self, entry_id: str) -> Optional[VectorEntry]:
        return None

    def is_configured(self) -> bool:
        return True

    def health_check(self) -> Dict[str, str]:
        try:
            self.initialize()
            self.get_user_entries("__health__", limit=1)
        except Exception as exc:
            logger.error(f"Vector store health check failed: {exc}")
            return {"status": "error", "message": f"{self.name} vector store failed: {exc}"}
        return {"status": "ok", "message": f"{self.name} vector store healthy"}


class SQLiteVectorStore(VectorStore):
    """Vectors in SQLite, scored in-process with numpy."""

    name = "sqlite"

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    def initialize(self) -> None:
        self._db.initialize()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> VectorEntry:
        return VectorEntry(
            id=row["id"],
            user_id=row["user_id"],
            entry_id=row["entry_id"],
            content=row["content"],
            vector=deserialize(row["embedding"]).tolist(),
            metadata=VectorMetadata(**json.loads(row["metadata"])),
        )

    def store(
        self,
        entry_id: str,
        user_id: str,
        content: str,
        vector: Sequence[float],
        metadata: VectorMetadata,
    ) -> str:
        vector_id = new_id()
        now = utc_now()
        conn = self._db.connect()
        try:
            conn.execute(
                """
                INSERT INTO diary_vectors
                    (id, user_id, entry_id, content, embedding, metadata, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(entry_id) DO UPDATE SET
                    user_id = excluded.user_id,
                    content = excluded.content,
                    embedding = excluded.embedding,
                    metadata = excluded.metadata,
                    updated_at = excluded.updated_at
                """,
                (
                    vector_id,
                    user_id,
                    entry_id,
                    content,
                    serialize(vector),
                    metadata.model_dump_json(),
                    now,
                    now,
                ),
            )
            conn.commit()
            row = conn.execute(
                "SELECT id FROM diary_vectors WHERE entry_id = ?", (entry_id,)
            ).fetchone()
        finally:
            conn.close()
        logger.info(f"Stored vector for entry {entry_id}")
        return row["id"]

    def search_similar(
        self,
        vector: Sequence[float],
        user_id: str,
        limit: int = 5,
        threshold: float = 0.7,
    ) -> List[SimilarEntry]:
        query = np.asarray(vector, dtype=np.float32)
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT * FROM diary_vectors WHERE user_id = ?", (user_id,)
            ).fetchall()
        finally:
            conn.close()

        scored: List[SimilarEntry] = []
        for row in rows:
            candidate = deserialize(row["embedding"])
            if candidate.shape != query.shape:
                logger.warning(f"Skipping vector for entry {row['entry_id']}: dimension mismatch")
                continue
            score = cosine_similarity(query, candidate)
            if score >= threshold:
                scored.append(SimilarEntry(entry=self._row_to_entry(row), similarity=score))

        scored.sort(key=lambda item: item.similarity, reverse=True)
        return scored[:limit]

    def delete(self, entry_id: str) -> bool:
        conn = self._db.connect()
        try:
            cursor = conn.execute("DELETE FROM diary_vectors WHERE entry_id = ?", (entry_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
        finally:
            conn.close()
        if deleted:
            logger.info(f"Deleted vector for entry {entry_id}")
        return deleted

    def get_user_entries(self, user_id: str, limit: int = 100) -> List[VectorEntry]:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                """
                SELECT * FROM diary_vectors WHERE user_id = ?
                ORDER BY json_extract(metadata, '$.created_at') DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_entry(row) for row in rows]

    def get_entry(self, entry_id: str) -> Optional[VectorEntry]:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM diary_vectors WHERE entry_id = ?", (entry_id,)
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_entry(row) if row else None


class ChromaVectorStore(VectorStore):
    """Vectors in a persistent chromadb collection using cosine distance."""

    name = "chroma"

    def __init__(self, config: AppConfig | None = None, *, client: Any = None):
        self.config = config or get_config()
        self._client = client
        self._collection = None

    def initialize(self) -> None:
        if self._collection is not None:
            return
        if self._client is None:
            import chromadb
            from chromadb.config import Settings

            self.config.chroma_path.mkdir(parents=True, exist_ok=True)
            self._client = chromadb.PersistentClient(
                path=str(self.config.chroma_path),
                settings=Settings(anonymized_telemetry=False),
            )
        self._collection = self._client.get_or_create_collection(
            name=self.config.chroma_collection,
            metadata={"hnsw:space": "cosine"},
        )
        logger.info(f"Connected to chroma collection {self.config.chroma_collection}")

    @property
    def collection(self):
        self.initialize()
        return self._collection

    @staticmethod
    def _flatten(user_id: str, entry_id: str, metadata: VectorMetadata) -> Dict[str, Any]:
        # chroma metadata values must be scalars
        flat: Dict[str, Any] = {
            "user_id": user_id,
            "entry_id": entry_id,
            "mood": metadata.mood,
            "tags": json.dumps(metadata.tags),
            "created_at": metadata.created_at.isoformat(),
            "word_count": metadata.word_count,
        }
        if metadata.sentiment is not None:
            flat["sentiment"] = metadata.sentiment
        return flat

    @staticmethod
    def _to_entry(
        vector_id: str,
        document: Optional[str],
        meta: Dict[str, Any],
        embedding: Optional[Sequence[float]],
    ) -> VectorEntry:
        return VectorEntry(
            id=vector_id,
            user_id=meta["user_id"],
            entry_id=meta["entry_id"],
            content=document or "",
            vector=[float(x) for x in embedding] if embedding is not None else [],
            metadata=VectorMetadata(
                mood=meta.get("mood", "neutral"),
                tags=json.loads(meta.get("tags") or "[]"),
                created_at=meta["created_at"],
                word_count=meta.get("word_count", 0),
                sentiment=meta.get("sentiment"),
            ),
        )

    def store(
        self,
        entry_id: str,
        user_id: str,
        content: str,
        vector: Sequence[float],
        metadata: VectorMetadata,
    ) -> str:
        self.collection.upsert(
            ids=[entry_id],
            embeddings=[[float(x) for x in vector]],
            documents=[content],
            metadatas=[self._flatten(user_id, entry_id, metadata)],
        )
        logger.info(f"Stored chroma vector for entry {entry_id}")
        return entry_id

    def search_similar(
        self,
        vector: Sequence[float],
        user_id: str,
        limit: int = 5,
        threshold: float = 0.7,
    ) -> List[SimilarEntry]:
        available = self.collection.count()
        if available == 0:
            return []
        results = self.collection.query(
            query_embeddings=[[float(x) for x in vector]],
            n_results=min(limit, available),
            where={"user_id": user_id},
            include=["documents", "metadatas", "distances", "embeddings"],
        )
        ids = results["ids"][0] if results["ids"] else []
        matches: List[SimilarEntry] = []
        for i, vector_id in enumerate(ids):
            similarity = 1.0 - float(results["distances"][0][i])
            if similarity < threshold:
                continue
            embeddings = results.get("embeddings")
            entry = self._to_entry(
                vector_id,
                results["documents"][0][i],
                results["metadatas"][0][i],
                embeddings[0][i] if embeddings is not None else None,
            )
            matches.append(SimilarEntry(entry=entry, similarity=similarity))
        matches.sort(key=lambda item: item.similarity, reverse=True)
        return matches

    def delete(self, entry_id: str) -> bool:
        existing = self.collection.get(ids=[entry_id])
        if not existing["ids"]:
            return False
        self.collection.delete(ids=[entry_id])
        logger.info(f"Deleted chroma vector for entry {entry_id}")
        return True

    def _get(self, **kwargs) -> List[VectorEntry]:
        results = self.collection.get(include=["documents", "metadatas", "embeddings"], **kwargs)
        embeddings = results.get("embeddings")
        return [
            self._to_entry(
                vector_id,
                results["documents"][i],
                results["metadatas"][i],
                embeddings[i] if embeddings is not None else None,
            )
            for i, vector_id in enumerate(results["ids"])
        ]

    def get_user_entries(self, user_id: str, limit: int = 100) -> List[VectorEntry]:
        # chroma has no ordering; sort client side
        entries = self._get(where={"user_id": user_id})
        entries.sort(key=lambda entry: entry.metadata.created_at, reverse=True)
        return entries[:limit]

    def get_entry(self, entry_id: str) -> Optional[VectorEntry]:
        entries = self._get(ids=[entry_id])
        return entries[0] if entries else None


def create_vector_store(config: AppConfig | None = None) -> VectorStore:
    """Build the backend named by ``VECTOR_BACKEND``."""
    config = config or get_config()
    if config.vector_backend == "chroma":
        return ChromaVectorStore(config)
    return SQLiteVectorStore(DatabaseService(config.database_path))


__all__ = [
    "VectorStore",
    "SQLiteVectorStore",
    "ChromaVectorStore",
    "create_vector_store",
    "cosine_similarity",
    "serialize",
    "deserialize",
]
