"""Embeddings configuration and the content-addressed embedding cache."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import numpy as np
from sqlalchemy import DateTime, LargeBinary, UniqueConstraint
from sqlmodel import Field, SQLModel

# Vectors are persisted as big-endian float32.
_VECTOR_DTYPE = np.dtype(">f4")


class EmbeddingsConfig(SQLModel, table=True):
    """How to build an embedding provider (kind, model, dimensions, options)."""

    __tablename__ = "ragsync_embeddings_configs"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(default="")
    kind: str = Field(default="openai")
    model: str = Field(default="")
    dimensions: int | None = Field(default=None)
    meta_json: str = Field(default="{}")

    @property
    def meta(self) -> dict[str, Any]:
        return json.loads(self.meta_json or "{}")


class EmbeddingVector(SQLModel, table=True):
    """Cached embedding for one chunk content under one embeddings config.

    Keyed by ``(embeddings_config_id, content_hash)``; identical content
    always maps to the same vector.
    """

    __tablename__ = "ragsync_embedding_vectors"
    __table_args__ = (UniqueConstraint("embeddings_config_id", "content_hash"),)

    id: int | None = Field(default=None, primary_key=True)
    embeddings_config_id: int = Field(index=True)
    content_hash: str = Field(index=True)
    vector: bytes = Field(default=b"", sa_type=LargeBinary)  # type: ignore[invalid-argument-type]
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


def encode_vector(vector: list[float]) -> bytes:
    """Pack *vector* into big-endian float32 bytes."""
    return np.asarray(vector, dtype=_VECTOR_DTYPE).tobytes()


def decode_vector(blob: bytes) -> list[float]:
    """Unpack bytes produced by :func:`encode_vector`."""
    return np.frombuffer(blob, dtype=_VECTOR_DTYPE).astype(np.float64).tolist()
