"""Value objects shared between storage, splitting, and the indexer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ragsync.models.chunks import Splitting
    from ragsync.models.indexes import CollectionIndex


@dataclass(frozen=True, slots=True)
class LoadedPart:
    """A piece of raw document text produced by a loader (a page, or the whole file).

    Attributes:
        text: Extracted text.
        metadata: Loader-provided attributes such as ``source`` or ``page``.
    """

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RawChunk:
    """A chunk produced by the splitter, before it is persisted.

    Attributes:
        content: Chunk text.
        metadata: Free-form attributes carried into the vector store.
    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EmbeddingRecord:
    """One embedding cache entry, keyed by ``(embeddings_config_id, content_hash)``."""

    embeddings_config_id: int
    content_hash: str
    vector: list[float]


@dataclass(slots=True)
class IndexedCollection:
    """A collection index loaded with its splitting and indexed document ids.

    ``indexed_documents`` is the in-memory mirror of the index's
    ``IndexedDocument`` rows; the indexer keeps both in step.
    """

    index: CollectionIndex
    splitting: Splitting
    indexed_documents: list[int] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.index.id

    @property
    def name(self) -> str:
        return self.index.name

    @property
    def namespace(self) -> str:
        return self.index.namespace

    @property
    def collection_id(self) -> int:
        return self.index.collection_id

    @property
    def embeddings_config_id(self) -> int:
        return self.index.embeddings_config_id
