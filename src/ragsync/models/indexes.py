"""Vector store configuration, collection indexes, and indexed-document bookkeeping."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


class VectorStoreConfig(SQLModel, table=True):
    """How to reach a vector store (kind, index name, options)."""

    __tablename__ = "ragsync_vector_store_configs"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(default="")
    kind: str = Field(default="pinecone")
    index_name: str = Field(default="")
    meta_json: str = Field(default="{}")

    @property
    def meta(self) -> dict[str, Any]:
        return json.loads(self.meta_json or "{}")


class CollectionIndex(SQLModel, table=True):
    """A collection bound to an embeddings config, a vector store, and a splitting."""

    __tablename__ = "ragsync_collection_indexes"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(default="")
    collection_id: int = Field(index=True)
    embeddings_config_id: int = Field(index=True)
    vector_store_config_id: int = Field(index=True)
    splitting_id: int = Field(index=True)
    namespace: str = Field(default="")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class IndexedDocument(SQLModel, table=True):
    """A document believed to be present, as vectors, in an index's namespace."""

    __tablename__ = "ragsync_indexed_documents"
    __table_args__ = (UniqueConstraint("index_id", "document_id"),)

    id: int | None = Field(default=None, primary_key=True)
    index_id: str = Field(index=True)
    document_id: int = Field(index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
