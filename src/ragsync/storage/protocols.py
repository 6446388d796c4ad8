"""Storage protocols — the local persistence the indexer depends on.

All methods are async and manage their own transaction; implementations
must make each call atomic.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ragsync.models.chunks import DocumentChunk
    from ragsync.models.documents import Document
    from ragsync.types import EmbeddingRecord, RawChunk


@runtime_checkable
class DocumentSource(Protocol):
    """Lists the live documents of a collection."""

    async def get_documents_in_collection(self, collection_id: int) -> list[Document]:
        """Return the collection's documents in insertion order."""
        ...


@runtime_checkable
class ChunkStore(Protocol):
    """Chunks persisted per ``(document, splitting)``."""

    async def get_chunks(self, document_id: int, splitting_id: int) -> list[DocumentChunk]:
        """Return existing chunks ordered by ``chunk_no`` (empty if never split)."""
        ...

    async def create_chunks(
        self,
        document_id: int,
        splitting_id: int,
        raw_chunks: Sequence[RawChunk],
    ) -> list[DocumentChunk]:
        """Persist *raw_chunks* with their content hashes and return them."""
        ...

    async def get_chunk_hashes_by_documents(
        self,
        document_ids: Sequence[int],
        splitting_id: int,
    ) -> list[str]:
        """Return the distinct content hashes of all chunks of *document_ids*."""
        ...


@runtime_checkable
class EmbeddingCache(Protocol):
    """Content-addressed embedding vectors, keyed by ``(config id, content hash)``."""

    async def get_embedding(
        self, embeddings_config_id: int, content_hash: str
    ) -> list[float] | None:
        """Return the cached vector, or ``None`` on a miss."""
        ...

    async def get_embeddings(
        self,
        embeddings_config_id: int,
        content_hashes: Sequence[str],
    ) -> dict[str, list[float]]:
        """Return cached vectors for the hits among *content_hashes*."""
        ...

    async def upsert_embeddings(self, records: Sequence[EmbeddingRecord]) -> int:
        """Insert or overwrite *records*; returns the number written."""
        ...


@runtime_checkable
class IndexBookkeeping(Protocol):
    """Which documents an index believes are present in its namespace."""

    async def get_indexed_document_ids(self, index_id: str) -> list[int]:
        """Return indexed document ids in the order they were added."""
        ...

    async def add_indexed_documents(self, index_id: str, document_ids: Sequence[int]) -> None:
        """Record *document_ids* as indexed (existing rows are kept)."""
        ...

    async def remove_indexed_documents(self, index_id: str, document_ids: Sequence[int]) -> int:
        """Forget *document_ids*; returns how many rows were removed."""
        ...


@runtime_checkable
class IndexerStore(ChunkStore, EmbeddingCache, IndexBookkeeping, Protocol):
    """Everything :class:`~ragsync.indexer.Indexer` needs from local storage."""
