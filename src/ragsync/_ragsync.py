"""RagSync — async facade over collections, indexes, and syncs."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from ragsync.exceptions import NotFoundError
from ragsync.hashing import file_hash
from ragsync.indexer import Indexer
from ragsync.models.chunks import DocumentChunk, Splitting
from ragsync.models.documents import Collection, CollectionDocument, Document
from ragsync.models.embeddings import EmbeddingsConfig, EmbeddingVector
from ragsync.models.indexes import CollectionIndex, IndexedDocument, VectorStoreConfig
from ragsync.splitting import DocumentSplitter
from ragsync.storage.database import DatabaseStore
from ragsync.sync_status import IndexSyncStatus
from ragsync.tracing import IndexTracer
from ragsync.vectors.adapter import VectorStoreAdapter
from ragsync.vectors.factory import (
    EmbeddingsKind,
    VectorStoreKind,
    check_dimensions,
    create_embedding_provider,
    create_vector_store,
    parse_kind,
)
from ragsync.vectors.protocols import SupportsNamespaces

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from ragsync.indexer import SyncResult
    from ragsync.tracing import Tracer
    from ragsync.types import IndexedCollection
    from ragsync.vectors.protocols import EmbeddingProvider, VectorStore
    from ragsync.vectors.types import VectorSearchResult

logger = logging.getLogger(__name__)

_TABLES = [
    model.__table__  # type: ignore[attr-defined]
    for model in (
        Collection,
        Document,
        CollectionDocument,
        Splitting,
        DocumentChunk,
        EmbeddingsConfig,
        EmbeddingVector,
        VectorStoreConfig,
        CollectionIndex,
        IndexedDocument,
    )
]


class RagSync:
    """Async facade wiring local storage, embedding providers, vector stores and the indexer.

    Engine-based setup creates the ragsync tables on :meth:`open`::

        engine = create_async_engine("sqlite+aiosqlite:///ragsync.db")
        rs = RagSync(engine=engine)
        await rs.open()
        collection = await rs.create_collection("Notes")
        await rs.add_document(collection.id, "notes/today.md")
        ...
        result = await rs.sync(index.id)
        await rs.close()

    With a *session_factory* the caller owns the schema.

    Providers and stores are normally built from the stored
    ``EmbeddingsConfig`` / ``VectorStoreConfig`` rows for every operation.
    An explicit *embedding_provider* or *vector_store* overrides that for
    every index; the explicit store is connected in :meth:`open` and closed
    in :meth:`close`.
    """

    def __init__(
        self,
        *,
        engine: AsyncEngine | None = None,
        session_factory: Callable[..., AsyncSession] | None = None,
        embedding_provider: EmbeddingProvider | None = None,
        vector_store: VectorStore | None = None,
        splitter: DocumentSplitter | None = None,
        continue_on_error: bool = False,
    ) -> None:
        if engine is not None and session_factory is not None:
            msg = "Provide engine or session_factory, not both"
            raise ValueError(msg)
        if engine is None and session_factory is None:
            msg = "Provide engine or session_factory"
            raise ValueError(msg)

        if session_factory is None:
            session_factory = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
        self._engine = engine
        self._store = DatabaseStore(session_factory)
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._splitter = splitter or DocumentSplitter()
        self._continue_on_error = continue_on_error
        self._opened = False
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        if self._opened:
            return
        if self._engine is not None:
            async with self._engine.begin() as conn:
                await conn.run_sync(
                    lambda c: SQLModel.metadata.create_all(c, tables=_TABLES)
                )
        if self._vector_store is not None:
            await self._vector_store.connect()
        self._opened = True
        self._closed = False

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._opened = False
        if self._vector_store is not None:
            await self._vector_store.close()
        if self._embedding_provider is not None:
            await _close_provider(self._embedding_provider)

    async def __aenter__(self) -> RagSync:
        await self.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    @property
    def store(self) -> DatabaseStore:
        return self._store

    # ------------------------------------------------------------------
    # Collections and documents
    # ------------------------------------------------------------------

    async def create_collection(self, name: str, description: str = "") -> Collection:
        async with self._store.session() as session:
            return await self._store.documents.create_collection(session, name, description)

    async def add_document(self, collection_id: int, filepath: str | Path) -> Document:
        """Register the file at *filepath* and link it to the collection.

        A file whose path and content are unchanged reuses its existing
        document row, so its stored chunks are reused as well.  When the
        content changed, the new row replaces the old one in the collection
        and the next sync swaps their vectors.
        """
        await self._store.get_collection(collection_id)
        path = Path(filepath).resolve()
        digest = await asyncio.to_thread(file_hash, path)
        size = path.stat().st_size
        async with self._store.session() as session:
            document = await self._store.documents.get_or_create_document(
                session, str(path), content_hash=digest, size_bytes=size
            )
            assert document.id is not None
            replaced = await self._store.documents.unlink_other_versions(
                session, collection_id, str(path), document.id
            )
            await self._store.documents.add_to_collection(session, collection_id, document.id)
        if replaced:
            logger.info(
                "Replaced %d older version(s) of %s in collection %d",
                replaced,
                path,
                collection_id,
            )
        logger.debug("Added %s to collection %d", path, collection_id)
        return document

    async def remove_document(self, collection_id: int, document_id: int) -> bool:
        async with self._store.session() as session:
            return await self._store.documents.remove_from_collection(
                session, collection_id, document_id
            )

    async def list_documents(self, collection_id: int) -> list[Document]:
        return await self._store.get_documents_in_collection(collection_id)

    # ------------------------------------------------------------------
    # Configuration rows
    # ------------------------------------------------------------------

    async def create_embeddings_config(
        self,
        name: str,
        *,
        kind: str = EmbeddingsKind.OPENAI.value,
        model: str = "",
        dimensions: int | None = None,
        **meta: Any,
    ) -> EmbeddingsConfig:
        """Store an embeddings configuration; *meta* holds per-kind options."""
        kind = parse_kind(EmbeddingsKind, kind, "embeddings").value
        config = EmbeddingsConfig(
            name=name,
            kind=kind,
            model=model,
            dimensions=dimensions,
            meta_json=json.dumps(meta),
        )
        async with self._store.session() as session:
            session.add(config)
            await session.flush()
        return config

    async def create_vector_store_config(
        self,
        name: str,
        *,
        kind: str = VectorStoreKind.PINECONE.value,
        index_name: str = "",
        **meta: Any,
    ) -> VectorStoreConfig:
        kind = parse_kind(VectorStoreKind, kind, "vector store").value
        config = VectorStoreConfig(
            name=name,
            kind=kind,
            index_name=index_name,
            meta_json=json.dumps(meta),
        )
        async with self._store.session() as session:
            session.add(config)
            await session.flush()
        return config

    async def get_or_create_splitting(
        self, chunk_size: int = 1000, chunk_overlap: int = 200
    ) -> Splitting:
        async with self._store.session() as session:
            return await self._store.indexes.get_or_create_splitting(
                session, chunk_size, chunk_overlap
            )

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    async def create_index(
        self,
        name: str,
        *,
        collection_id: int,
        embeddings_config_id: int,
        vector_store_config_id: int,
        splitting_id: int,
    ) -> CollectionIndex:
        """Bind a collection to an embeddings config, a vector store config and a splitting."""
        await self._store.get_collection(collection_id)
        await self._store.get_embeddings_config(embeddings_config_id)
        await self._store.get_vector_store_config(vector_store_config_id)
        async with self._store.session() as session:
            if await session.get(Splitting, splitting_id) is None:
                msg = f"Splitting not found: {splitting_id}"
                raise NotFoundError(msg)
            index = await self._store.indexes.create_index(
                session,
                name=name,
                collection_id=collection_id,
                embeddings_config_id=embeddings_config_id,
                vector_store_config_id=vector_store_config_id,
                splitting_id=splitting_id,
            )
        logger.info("Created index %s (namespace %s)", index.id, index.namespace)
        return index

    async def get_index(self, index_id: str) -> IndexedCollection:
        return await self._store.load_index(index_id)

    async def list_indexes(self, collection_id: int) -> list[CollectionIndex]:
        async with self._store.session() as session:
            return await self._store.indexes.list_indexes(session, collection_id)

    async def sync_status(self, index_id: str) -> IndexSyncStatus:
        """Compare the index's bookkeeping with its collection's current documents."""
        index = await self._store.load_index(index_id)
        documents = await self._store.get_documents_in_collection(index.collection_id)
        return IndexSyncStatus.compute(documents, index)

    async def sync(self, index_id: str, tracer: Tracer | None = None) -> SyncResult:
        """Compute a fresh sync status for the index and apply it.

        An :class:`IndexTracer` is started before the run and marked failed
        if the run raises; calling ``finish()`` once its state has been
        shown is left to the caller.
        """
        tracer = tracer if tracer is not None else IndexTracer()
        if isinstance(tracer, IndexTracer):
            tracer.start()

        try:
            index = await self._store.load_index(index_id)
            documents = await self._store.get_documents_in_collection(index.collection_id)
            status = IndexSyncStatus.compute(documents, index)

            embeddings_config = await self._store.get_embeddings_config(
                index.embeddings_config_id
            )
            async with self._provider_for(embeddings_config) as provider:
                vs_config = await self._store.get_vector_store_config(
                    index.index.vector_store_config_id
                )
                async with self._vector_store_for(vs_config, provider.dimensions) as store:
                    indexer = Indexer(
                        provider,
                        VectorStoreAdapter(store, index.namespace),
                        index.embeddings_config_id,
                        index.splitting,
                        tracer,
                        store=self._store,
                        splitter=self._splitter,
                        dimensions=embeddings_config.dimensions,
                        continue_on_error=self._continue_on_error,
                    )
                    return await indexer.sync(status, index)
        except Exception as e:
            if isinstance(tracer, IndexTracer):
                tracer.fail(e)
            raise

    async def query(self, index_id: str, text: str, k: int = 4) -> list[VectorSearchResult]:
        """Embed *text* and return the *k* nearest chunks in the index's namespace."""
        index = await self._store.load_index(index_id)
        embeddings_config = await self._store.get_embeddings_config(index.embeddings_config_id)
        vs_config = await self._store.get_vector_store_config(index.index.vector_store_config_id)
        async with self._provider_for(embeddings_config) as provider:
            vector = await provider.embed(text)
            async with self._vector_store_for(vs_config, provider.dimensions) as store:
                return await VectorStoreAdapter(store, index.namespace).search(vector, k=k)

    async def drop_index(self, index_id: str) -> bool:
        """Remove the index's vectors and then its rows.

        The whole namespace is dropped when the store supports namespaces;
        otherwise the vectors of the indexed documents are deleted by
        content hash.  Remote failures are logged and do not keep the
        index from being dropped.
        """
        index = await self._store.load_index(index_id)
        embeddings_config = await self._store.get_embeddings_config(index.embeddings_config_id)
        vs_config = await self._store.get_vector_store_config(index.index.vector_store_config_id)
        dimension = embeddings_config.dimensions
        if dimension is None and self._embedding_provider is not None:
            dimension = self._embedding_provider.dimensions

        async with self._vector_store_for(vs_config, dimension) as store:
            try:
                if isinstance(store, SupportsNamespaces):
                    await store.delete_namespace(index.namespace)
                else:
                    hashes = await self._store.get_chunk_hashes_by_documents(
                        index.indexed_documents, index.index.splitting_id
                    )
                    await VectorStoreAdapter(store, index.namespace).delete(hashes)
            except Exception as e:
                # Rows go regardless; orphaned vectors are only logged.
                logger.warning(
                    "Could not remove vectors of index %s: %s", index_id, e, exc_info=True
                )

        async with self._store.session() as session:
            return await self._store.indexes.delete_index(session, index_id)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _provider_for(self, config: EmbeddingsConfig) -> AsyncGenerator[EmbeddingProvider]:
        if self._embedding_provider is not None:
            check_dimensions(self._embedding_provider, config.dimensions)
            yield self._embedding_provider
            return

        provider = create_embedding_provider(config)
        try:
            yield provider
        finally:
            await _close_provider(provider)

    @asynccontextmanager
    async def _vector_store_for(
        self, config: VectorStoreConfig, dimension: int | None
    ) -> AsyncGenerator[VectorStore]:
        if self._vector_store is not None:
            yield self._vector_store
            return

        store = create_vector_store(config, dimension=dimension)
        await store.connect()
        try:
            yield store
        finally:
            await store.close()


async def _close_provider(provider: Any) -> None:
    close = getattr(provider, "close", None)
    if close is not None:
        await close()

