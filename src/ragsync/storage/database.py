"""DatabaseStore — session-per-operation access to all local ragsync state."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ragsync.exceptions import NotFoundError, StorageError
from ragsync.hashing import content_hash
from ragsync.models.chunks import Splitting
from ragsync.models.documents import Collection, Document
from ragsync.models.embeddings import EmbeddingsConfig
from ragsync.models.indexes import CollectionIndex, VectorStoreConfig
from ragsync.storage.chunks import ChunkService
from ragsync.storage.documents import DocumentService
from ragsync.storage.embeddings import EmbeddingService
from ragsync.storage.indexes import IndexService
from ragsync.types import IndexedCollection

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from ragsync.models.chunks import DocumentChunk
    from ragsync.types import EmbeddingRecord, RawChunk

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class DatabaseStore:
    """Implements ``DocumentSource``, ``ChunkStore``, ``EmbeddingCache`` and
    ``IndexBookkeeping`` on top of an async SQLAlchemy session factory.

    Every public method runs in its own session: committed on success,
    rolled back on failure.  Database errors surface as
    :class:`StorageError`.
    """

    def __init__(
        self,
        session_factory: Callable[..., AsyncSession],
        *,
        hash_content: Callable[[str], str] = content_hash,
    ) -> None:
        self._session_factory = session_factory
        self.documents = DocumentService()
        self.chunks = ChunkService(hash_content)
        self.embeddings = EmbeddingService()
        self.indexes = IndexService()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Yield a session that commits on success and rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Database operation failed: %s", e)
            raise StorageError(str(e)) from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ------------------------------------------------------------------
    # DocumentSource
    # ------------------------------------------------------------------

    async def get_documents_in_collection(self, collection_id: int) -> list[Document]:
        async with self.session() as session:
            return await self.documents.documents_in_collection(session, collection_id)

    # ------------------------------------------------------------------
    # ChunkStore
    # ------------------------------------------------------------------

    async def get_chunks(self, document_id: int, splitting_id: int) -> list[DocumentChunk]:
        async with self.session() as session:
            return await self.chunks.list_chunks(session, document_id, splitting_id)

    async def create_chunks(
        self,
        document_id: int,
        splitting_id: int,
        raw_chunks: Sequence[RawChunk],
    ) -> list[DocumentChunk]:
        async with self.session() as session:
            return await self.chunks.create_chunks(session, document_id, splitting_id, raw_chunks)

    async def get_chunk_hashes_by_documents(
        self,
        document_ids: Sequence[int],
        splitting_id: int,
    ) -> list[str]:
        async with self.session() as session:
            return await self.chunks.hashes_by_documents(session, document_ids, splitting_id)

    # ------------------------------------------------------------------
    # EmbeddingCache
    # ------------------------------------------------------------------

    async def get_embedding(
        self, embeddings_config_id: int, content_hash: str
    ) -> list[float] | None:
        async with self.session() as session:
            return await self.embeddings.get(session, embeddings_config_id, content_hash)

    async def get_embeddings(
        self,
        embeddings_config_id: int,
        content_hashes: Sequence[str],
    ) -> dict[str, list[float]]:
        async with self.session() as session:
            return await self.embeddings.get_many(session, embeddings_config_id, content_hashes)

    async def upsert_embeddings(self, records: Sequence[EmbeddingRecord]) -> int:
        async with self.session() as session:
            return await self.embeddings.upsert(session, records)

    # ------------------------------------------------------------------
    # IndexBookkeeping
    # ------------------------------------------------------------------

    async def get_indexed_document_ids(self, index_id: str) -> list[int]:
        async with self.session() as session:
            return await self.indexes.indexed_document_ids(session, index_id)

    async def add_indexed_documents(self, index_id: str, document_ids: Sequence[int]) -> None:
        async with self.session() as session:
            await self.indexes.add_indexed_documents(session, index_id, document_ids)

    async def remove_indexed_documents(self, index_id: str, document_ids: Sequence[int]) -> int:
        async with self.session() as session:
            return await self.indexes.remove_indexed_documents(session, index_id, document_ids)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_collection(self, collection_id: int) -> Collection:
        return await self._require(Collection, collection_id)

    async def get_document(self, document_id: int) -> Document:
        return await self._require(Document, document_id)

    async def get_embeddings_config(self, config_id: int) -> EmbeddingsConfig:
        return await self._require(EmbeddingsConfig, config_id)

    async def get_vector_store_config(self, config_id: int) -> VectorStoreConfig:
        return await self._require(VectorStoreConfig, config_id)

    async def load_index(self, index_id: str) -> IndexedCollection:
        """Load an index with its splitting and current indexed document ids."""
        async with self.session() as session:
            index = await session.get(CollectionIndex, index_id)
            if index is None:
                msg = f"Collection index not found: {index_id}"
                raise NotFoundError(msg)
            splitting = await session.get(Splitting, index.splitting_id)
            if splitting is None:
                msg = f"Splitting {index.splitting_id} of index {index_id} not found"
                raise NotFoundError(msg)
            indexed = await self.indexes.indexed_document_ids(session, index_id)
        return IndexedCollection(index=index, splitting=splitting, indexed_documents=indexed)

    async def _require(self, model: type[_T], key: int | str) -> _T:
        async with self.session() as session:
            row = await session.get(model, key)
        if row is None:
            msg = f"{model.__name__} not found: {key}"
            raise NotFoundError(msg)
        return row
