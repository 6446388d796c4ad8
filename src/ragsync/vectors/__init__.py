"""Vector layer — embedding providers, vector stores, and the namespace adapter."""

from ragsync.vectors.adapter import VectorStoreAdapter, clean_metadata, flatten_metadata
from ragsync.vectors.factory import (
    EmbeddingsKind,
    VectorStoreKind,
    create_embedding_provider,
    create_vector_store,
    parse_kind,
)
from ragsync.vectors.protocols import EmbeddingProvider, SupportsNamespaces, VectorStore
from ragsync.vectors.stores.local import LocalVectorStore
from ragsync.vectors.types import DeleteResult, UpsertResult, VectorEntry, VectorSearchResult

__all__ = [
    "DeleteResult",
    "EmbeddingProvider",
    "EmbeddingsKind",
    "LocalVectorStore",
    "SupportsNamespaces",
    "UpsertResult",
    "VectorEntry",
    "VectorSearchResult",
    "VectorStore",
    "VectorStoreAdapter",
    "VectorStoreKind",
    "clean_metadata",
    "flatten_metadata",
    "create_embedding_provider",
    "create_vector_store",
    "parse_kind",
]
