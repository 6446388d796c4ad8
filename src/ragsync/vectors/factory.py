"""Build embedding providers and vector stores from stored configuration.

Backend selection happens once here, keyed by a kind enum; the rest of the
code base only sees the ``EmbeddingProvider`` / ``VectorStore`` protocols.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from ragsync.exceptions import ConfigurationError, DimensionMismatchError

if TYPE_CHECKING:
    from ragsync.models.embeddings import EmbeddingsConfig
    from ragsync.models.indexes import VectorStoreConfig
    from ragsync.vectors.protocols import EmbeddingProvider, VectorStore

logger = logging.getLogger(__name__)


class EmbeddingsKind(str, Enum):
    """Supported embedding provider backends."""

    OPENAI = "openai"
    SENTENCE_TRANSFORMERS = "sentence-transformers"


class VectorStoreKind(str, Enum):
    """Supported vector store backends."""

    PINECONE = "pinecone"
    LOCAL = "local"


def parse_kind(enum_type: type[Enum], value: str, what: str) -> Enum:
    """Convert *value* to a member of *enum_type*, or raise :class:`ConfigurationError`."""
    try:
        return enum_type(value)
    except ValueError:
        supported = ", ".join(k.value for k in enum_type)  # type: ignore[attr-defined]
        msg = f"Unsupported {what} kind {value!r} (supported: {supported})"
        raise ConfigurationError(msg) from None


def create_embedding_provider(config: EmbeddingsConfig) -> EmbeddingProvider:
    """Instantiate the provider described by *config*.

    Raises :class:`ConfigurationError` for unknown kinds and
    :class:`DimensionMismatchError` when the configured dimensionality
    disagrees with what the provider produces.
    """
    kind = parse_kind(EmbeddingsKind, config.kind, "embeddings")
    meta = config.meta

    provider: EmbeddingProvider
    if kind is EmbeddingsKind.OPENAI:
        from ragsync.vectors.providers.openai import DEFAULT_MODEL, OpenAIEmbedding

        provider = OpenAIEmbedding(
            model=config.model or DEFAULT_MODEL,
            dimensions=config.dimensions,
            api_key=meta.get("api_key"),
            batch_size=int(meta.get("batch_size", 512)),
        )
    else:
        from ragsync.vectors.providers.sentence_transformers import (
            DEFAULT_MODEL as ST_DEFAULT_MODEL,
        )
        from ragsync.vectors.providers.sentence_transformers import (
            SentenceTransformerEmbedding,
        )

        provider = SentenceTransformerEmbedding(
            config.model or ST_DEFAULT_MODEL,
            batch_size=int(meta.get("batch_size", 32)),
        )

    check_dimensions(provider, config.dimensions)
    logger.debug("Created %s embedding provider %s", kind.value, provider.model_name)
    return provider


def check_dimensions(provider: EmbeddingProvider, expected: int | None) -> None:
    """Fail fast when *provider* cannot produce *expected*-dimensional vectors."""
    if expected is None:
        return
    actual = provider.dimensions
    if actual != expected:
        msg = (
            f"Embedding provider {provider.model_name!r} produces {actual}-dimensional "
            f"vectors, config expects {expected}"
        )
        raise DimensionMismatchError(msg)


def create_vector_store(config: VectorStoreConfig, *, dimension: int | None = None) -> VectorStore:
    """Instantiate the vector store described by *config*.

    *dimension* is required for the local store, which has to size its
    HNSW index up front.
    """
    kind = parse_kind(VectorStoreKind, config.kind, "vector store")
    meta = config.meta

    if kind is VectorStoreKind.PINECONE:
        from ragsync.vectors.stores.pinecone import PineconeVectorStore

        return PineconeVectorStore(index_name=config.index_name, api_key=meta.get("api_key"))

    from ragsync.vectors.stores.local import LocalVectorStore

    dim = dimension or meta.get("dimension")
    if not dim:
        msg = "The local vector store needs the embedding dimension"
        raise ConfigurationError(msg)
    return LocalVectorStore(
        dimension=int(dim),
        metric=meta.get("metric", "cosine"),
        path=meta.get("path"),
    )
