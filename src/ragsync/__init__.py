"""ragsync: keep vector-store namespaces in sync with document collections.

Chunking, content-addressed embedding caching, vector upload and deletion,
and nested progress tracing for retrieval-augmented generation.
"""

__version__ = "0.1.0"

from ragsync._ragsync import RagSync
from ragsync.exceptions import (
    CapabilityNotSupportedError,
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    IndexingError,
    NotFoundError,
    RagSyncError,
    StorageError,
    VectorStoreError,
)
from ragsync.hashing import content_hash, file_hash
from ragsync.indexer import Indexer, SyncResult
from ragsync.loaders import MarkdownLoader, PDFLoader, TextLoader, loader_for
from ragsync.splitting import DocumentSplitter
from ragsync.storage import DatabaseStore
from ragsync.sync_status import IndexSyncStatus
from ragsync.tracing import IndexTracer, LogEntry, LogLevel, Step, Tracer
from ragsync.types import EmbeddingRecord, IndexedCollection, LoadedPart, RawChunk
from ragsync.vectors import (
    EmbeddingProvider,
    EmbeddingsKind,
    LocalVectorStore,
    SupportsNamespaces,
    VectorEntry,
    VectorSearchResult,
    VectorStore,
    VectorStoreAdapter,
    VectorStoreKind,
)

__all__ = [
    "CapabilityNotSupportedError",
    "ConfigurationError",
    "DatabaseStore",
    "DimensionMismatchError",
    "DocumentSplitter",
    "EmbeddingError",
    "EmbeddingProvider",
    "EmbeddingRecord",
    "EmbeddingsKind",
    "IndexSyncStatus",
    "IndexTracer",
    "IndexedCollection",
    "Indexer",
    "IndexingError",
    "LoadedPart",
    "LocalVectorStore",
    "LogEntry",
    "LogLevel",
    "MarkdownLoader",
    "NotFoundError",
    "PDFLoader",
    "RagSync",
    "RagSyncError",
    "RawChunk",
    "Step",
    "StorageError",
    "SupportsNamespaces",
    "SyncResult",
    "TextLoader",
    "Tracer",
    "VectorEntry",
    "VectorSearchResult",
    "VectorStore",
    "VectorStoreAdapter",
    "VectorStoreError",
    "VectorStoreKind",
    "__version__",
    "content_hash",
    "file_hash",
    "loader_for",
]
