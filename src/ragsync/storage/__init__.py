"""Local persistence — protocols, stateless services, and the session-per-op store."""

from ragsync.storage.chunks import ChunkService
from ragsync.storage.database import DatabaseStore
from ragsync.storage.documents import DocumentService
from ragsync.storage.embeddings import EmbeddingService
from ragsync.storage.indexes import IndexService, camel_case, namespace_of
from ragsync.storage.protocols import (
    ChunkStore,
    DocumentSource,
    EmbeddingCache,
    IndexBookkeeping,
    IndexerStore,
)

__all__ = [
    "ChunkService",
    "ChunkStore",
    "DatabaseStore",
    "DocumentService",
    "DocumentSource",
    "EmbeddingCache",
    "EmbeddingService",
    "IndexBookkeeping",
    "IndexService",
    "IndexerStore",
    "camel_case",
    "namespace_of",
]
