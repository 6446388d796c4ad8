"""Indexer — bring a collection index's vector namespace in line with its collection.

A sync runs two phases, always in this order:

1. **Delete**: vectors of documents that left the collection are removed
   from the namespace.  Remote failures are downgraded to warnings; the
   local bookkeeping is updated regardless, since it is the authority on
   what the namespace should contain.
2. **Index**: every new document is split (or its stored chunks reused),
   its chunks are looked up in the embedding cache, the misses are
   embedded in one batch and cached, and all vectors are uploaded.  Only
   then is the document recorded as indexed.

Deleting first means a chunk shared by a removed document and a newly
added one (same content, same hash, same record id) survives the sync.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ragsync.exceptions import (
    CapabilityNotSupportedError,
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    IndexingError,
    VectorStoreError,
)
from ragsync.splitting import DocumentSplitter
from ragsync.types import EmbeddingRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ragsync.models.chunks import DocumentChunk, Splitting
    from ragsync.models.documents import Document
    from ragsync.storage.protocols import IndexerStore
    from ragsync.sync_status import IndexSyncStatus
    from ragsync.tracing import Tracer
    from ragsync.types import IndexedCollection
    from ragsync.vectors.adapter import VectorStoreAdapter
    from ragsync.vectors.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of one :meth:`Indexer.sync` call.

    Attributes:
        indexed: Documents newly recorded as indexed.
        deleted: Bookkeeping rows removed for documents that left the collection.
        failed: Ids of documents skipped after an error (``continue_on_error`` only);
            ``None`` stands for a document that was never persisted.
    """

    indexed: int = 0
    deleted: int = 0
    failed: list[int | None] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Indexer:
    """Runs syncs for one collection index.

    Args:
        embedding_provider: Turns chunk texts into vectors, in order.
        vector_store: Adapter bound to the index's namespace.
        embeddings_config_id: Embedding cache key dimension.
        splitting: Chunking configuration of the index.
        tracer: Receives nested progress and log lines.
        store: Local chunk store, embedding cache and index bookkeeping.
        splitter: Produces chunks for documents that have none yet.
        dimensions: Expected vector size; checked on every freshly
            embedded vector when given.
        continue_on_error: When False, the first failing document aborts
            the sync with :class:`IndexingError`.  When True the document
            is reported in :attr:`SyncResult.failed` and the sync moves on.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStoreAdapter,
        embeddings_config_id: int,
        splitting: Splitting,
        tracer: Tracer,
        *,
        store: IndexerStore,
        splitter: DocumentSplitter | None = None,
        dimensions: int | None = None,
        continue_on_error: bool = False,
    ) -> None:
        if splitting.id is None:
            msg = "Indexer needs a persisted splitting"
            raise ConfigurationError(msg)
        self._provider = embedding_provider
        self._vectors = vector_store
        self._embeddings_config_id = embeddings_config_id
        self._splitting = splitting
        self._splitting_id: int = splitting.id
        self._tracer = tracer
        self._store = store
        self._splitter = splitter or DocumentSplitter()
        self._dimensions = dimensions
        self._continue_on_error = continue_on_error

    @property
    def continue_on_error(self) -> bool:
        return self._continue_on_error

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def sync(self, status: IndexSyncStatus, index: IndexedCollection) -> SyncResult:
        """Apply *status* to *index* and clear it.

        ``index.indexed_documents`` is updated in memory alongside the
        bookkeeping rows.
        """
        if index.namespace != self._vectors.namespace:
            msg = (
                f"Vector store adapter is bound to namespace {self._vectors.namespace!r}, "
                f"index {index.id} uses {index.namespace!r}"
            )
            raise ConfigurationError(msg)
        if index.splitting.id != self._splitting_id:
            msg = f"Index {index.id} uses splitting {index.splitting.id}, not {self._splitting_id}"
            raise ConfigurationError(msg)

        to_delete = sorted(status.to_deleted)
        to_index = list(status.to_indexed)
        logger.info(
            "Syncing index %s: %d to index, %d to delete",
            index.id,
            len(to_index),
            len(to_delete),
        )

        with self._tracer.step("Syncing", index.name, total=2):
            deleted = await self._delete_documents(to_delete, index)
            indexed, failed = await self._index_documents(to_index, index)

        status.clear()
        result = SyncResult(indexed=indexed, deleted=deleted, failed=failed)
        logger.info(
            "Synced index %s: %d indexed, %d deleted, %d failed",
            index.id,
            result.indexed,
            result.deleted,
            len(result.failed),
        )
        return result

    # ------------------------------------------------------------------
    # Delete phase
    # ------------------------------------------------------------------

    async def _delete_documents(self, document_ids: list[int], index: IndexedCollection) -> int:
        with self._tracer.step("Deleting", f"{len(document_ids)} removed documents"):
            if not document_ids:
                return 0

            hashes = await self._store.get_chunk_hashes_by_documents(
                document_ids, self._splitting_id
            )
            gone = set(document_ids)
            remaining = [d for d in index.indexed_documents if d not in gone]
            if hashes and remaining:
                # Vectors are keyed by content, so a chunk may also belong to a kept document.
                kept = set(
                    await self._store.get_chunk_hashes_by_documents(remaining, self._splitting_id)
                )
                hashes = [h for h in hashes if h not in kept]

            if hashes:
                try:
                    removed = await self._vectors.delete(hashes)
                except (VectorStoreError, CapabilityNotSupportedError) as e:
                    logger.warning(
                        "Could not delete %d vectors from namespace %s",
                        len(hashes),
                        self._vectors.namespace,
                        exc_info=True,
                    )
                    self._tracer.warning("Failed to delete vectors:", e)
                else:
                    self._tracer.log(f"Deleted {removed} vectors")

            count = await self._store.remove_indexed_documents(index.id, document_ids)
            index.indexed_documents = remaining
            self._tracer.log(f"Removed {count} documents from the index")
            return count

    # ------------------------------------------------------------------
    # Index phase
    # ------------------------------------------------------------------

    async def _index_documents(
        self, documents: list[Document], index: IndexedCollection
    ) -> tuple[int, list[int | None]]:
        indexed = 0
        failed: list[int | None] = []
        with self._tracer.step("Indexing", f"{len(documents)} new documents", total=len(documents)):
            for document in documents:
                document_id = document.id
                try:
                    await self._index_document(document, index)
                except Exception as e:
                    msg = f"Indexing {document.filename} failed: {e}"
                    if not self._continue_on_error:
                        self._tracer.error(msg)
                        raise IndexingError(document_id, msg) from e
                    logger.warning(msg, exc_info=True)
                    self._tracer.error(msg)
                    failed.append(document_id)
                else:
                    indexed += 1
        return indexed, failed

    async def _index_document(self, document: Document, index: IndexedCollection) -> None:
        document_id = _document_id(document)
        with self._tracer.step(document.filename, "Preparing chunks", total=4):
            with self._tracer.step("Chunks", "Loading stored chunks"):
                chunks = await self._load_chunks(document)

            unique = _unique_by_hash(chunks)
            with self._tracer.step("Cache", f"Looking up {len(unique)} chunks"):
                cached = await self._store.get_embeddings(
                    self._embeddings_config_id, [c.content_hash for c in unique]
                )
                hits = [c for c in unique if c.content_hash in cached]
                misses = [c for c in unique if c.content_hash not in cached]
                if hits:
                    # A cache hit says nothing about presence in this namespace.
                    await self._upload(document, hits, [cached[c.content_hash] for c in hits])
                    self._tracer.log(f"Re-uploaded {len(hits)} cached vectors")

            with self._tracer.step("Embedding", f"Embedding {len(misses)} chunks"):
                vectors = await self._embed(misses)

            with self._tracer.step("Uploading", f"Uploading {len(misses)} vectors"):
                if misses:
                    await self._upload(document, misses, vectors)

            await self._store.add_indexed_documents(index.id, [document_id])
            if document_id not in index.indexed_documents:
                index.indexed_documents.append(document_id)
            self._tracer.log(
                f"Indexed {document.filename}: {len(hits)} cached, {len(misses)} embedded"
            )

    async def _load_chunks(self, document: Document) -> list[DocumentChunk]:
        document_id = _document_id(document)
        chunks = await self._store.get_chunks(document_id, self._splitting_id)
        if chunks:
            return chunks
        self._tracer.log(f"Splitting {document.filename}")
        raw_chunks = await self._splitter.split(document, self._splitting)
        return await self._store.create_chunks(document_id, self._splitting_id, raw_chunks)

    async def _embed(self, chunks: Sequence[DocumentChunk]) -> list[list[float]]:
        if not chunks:
            return []
        vectors = await self._provider.embed_batch([c.content for c in chunks])
        if len(vectors) != len(chunks):
            msg = f"Embedding provider returned {len(vectors)} vectors for {len(chunks)} texts"
            raise EmbeddingError(msg)
        if self._dimensions is not None:
            for vector in vectors:
                if len(vector) != self._dimensions:
                    msg = (
                        f"Embedding provider returned a {len(vector)}-dimensional vector, "
                        f"expected {self._dimensions}"
                    )
                    raise DimensionMismatchError(msg)

        await self._store.upsert_embeddings(
            [
                EmbeddingRecord(
                    embeddings_config_id=self._embeddings_config_id,
                    content_hash=chunk.content_hash,
                    vector=list(vector),
                )
                for chunk, vector in zip(chunks, vectors, strict=True)
            ]
        )
        return [list(v) for v in vectors]

    async def _upload(
        self,
        document: Document,
        chunks: Sequence[DocumentChunk],
        vectors: Sequence[list[float]],
    ) -> int:
        return await self._vectors.upload(
            vectors,
            [c.content_hash for c in chunks],
            [_chunk_metadata(document, c) for c in chunks],
        )


def _document_id(document: Document) -> int:
    if document.id is None:
        msg = f"Document {document.filepath} has not been persisted"
        raise ConfigurationError(msg)
    return document.id


def _unique_by_hash(chunks: Sequence[DocumentChunk]) -> list[DocumentChunk]:
    seen: set[str] = set()
    unique: list[DocumentChunk] = []
    for chunk in chunks:
        if chunk.content_hash in seen:
            continue
        seen.add(chunk.content_hash)
        unique.append(chunk)
    return unique


def _chunk_metadata(document: Document, chunk: DocumentChunk) -> dict[str, Any]:
    return {
        **chunk.meta,
        "text": chunk.content,
        "document_id": document.id,
        "filename": document.filename,
        "filepath": document.filepath,
        "chunk_no": chunk.chunk_no,
    }
