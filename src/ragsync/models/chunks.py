"""Splitting and DocumentChunk models — DB-backed chunk storage.

Chunks are scoped by ``(document_id, splitting_id)``: the same document
split with two different configurations produces two independent chunk
sets.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


class Splitting(SQLModel, table=True):
    """Chunking configuration; ``(chunk_size, chunk_overlap)`` is unique."""

    __tablename__ = "ragsync_splittings"
    __table_args__ = (UniqueConstraint("chunk_size", "chunk_overlap"),)

    id: int | None = Field(default=None, primary_key=True)
    chunk_size: int = Field(default=1000)
    chunk_overlap: int = Field(default=200)


class DocumentChunk(SQLModel, table=True):
    """A contiguous piece of a document's text, the unit of embedding."""

    __tablename__ = "ragsync_document_chunks"

    id: int | None = Field(default=None, primary_key=True)
    document_id: int = Field(index=True)
    splitting_id: int = Field(index=True)
    chunk_no: int = Field(default=0)
    content: str = Field(default="")
    content_hash: str = Field(default="", index=True)
    metadata_json: str = Field(default="{}")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )

    @property
    def meta(self) -> dict[str, Any]:
        """Decoded ``metadata_json``."""
        return json.loads(self.metadata_json or "{}")
