"""Collection and Document models.

A document may belong to several collections; membership lives in
``CollectionDocument`` so removing a document from one collection leaves
its chunks (and their cached embeddings) intact.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


class Collection(SQLModel, table=True):
    """A named set of documents owned by the user."""

    __tablename__ = "ragsync_collections"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    description: str = Field(default="")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class Document(SQLModel, table=True):
    """An imported document, referenced by its path on disk."""

    __tablename__ = "ragsync_documents"

    id: int | None = Field(default=None, primary_key=True)
    filepath: str = Field(index=True)
    filename: str = Field(default="")
    content_hash: str = Field(default="", index=True)
    size_bytes: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class CollectionDocument(SQLModel, table=True):
    """Membership of a document in a collection."""

    __tablename__ = "ragsync_collection_documents"
    __table_args__ = (UniqueConstraint("collection_id", "document_id"),)

    id: int | None = Field(default=None, primary_key=True)
    collection_id: int = Field(index=True)
    document_id: int = Field(index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
