"""Records exchanged between the vector adapter and the stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class VectorEntry:
    """One chunk vector as written to (or read back from) a store.

    ``id`` is the chunk's content hash for stores with custom ids, or the
    store-assigned id otherwise.  ``metadata`` is already flattened to the
    scalar values every backend accepts.
    """

    id: str
    vector: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class VectorSearchResult:
    """A match from ``VectorStore.search``; larger ``score`` is closer."""

    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)
    vector: list[float] | None = None


@dataclass(frozen=True, slots=True)
class UpsertResult:
    """Outcome of a write.  ``errors`` holds per-record failure messages."""

    upserted_count: int
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Outcome of a delete-by-id.

    Backends that cannot tell which ids existed report the number requested.
    """

    deleted_count: int
