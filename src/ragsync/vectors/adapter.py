"""VectorStoreAdapter — a vector store bound to one collection index namespace."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from ragsync.exceptions import CapabilityNotSupportedError, VectorStoreError
from ragsync.vectors.types import VectorEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ragsync.vectors.protocols import VectorStore
    from ragsync.vectors.types import VectorSearchResult

logger = logging.getLogger(__name__)


def clean_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Recursively drop ``None`` values and empty containers.

    Vector databases reject null metadata values, and empty nested
    objects carry no information.
    """
    cleaned: dict[str, Any] = {}
    for key, value in metadata.items():
        if isinstance(value, dict):
            value = clean_metadata(value)
        if value is None:
            continue
        if isinstance(value, (dict, list, tuple, set, str)) and len(value) == 0:
            continue
        cleaned[key] = value
    return cleaned


def flatten_metadata(metadata: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested objects into dotted keys.

    ``{"loc": {"page": 2}}`` becomes ``{"loc.page": 2}``.

    Remote stores such as Pinecone only accept scalar or list values.
    """
    flat: dict[str, Any] = {}
    for key, value in metadata.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten_metadata(value, f"{name}."))
        else:
            flat[name] = value
    return flat


class VectorStoreAdapter:
    """Uniform upload/delete API over any :class:`VectorStore`, scoped to a namespace.

    Stores that keep caller-chosen ids receive chunk content hashes as
    record ids, which makes re-uploads idempotent.  Other stores get
    generated ids, and the content hash travels in the metadata instead;
    deleting by content hash is then not possible.

    Store exceptions are re-raised as :class:`VectorStoreError`.
    """

    def __init__(self, store: VectorStore, namespace: str) -> None:
        self._store = store
        self._namespace = namespace
        self._supports_custom_ids = bool(getattr(store, "supports_custom_ids", False))

    @property
    def store(self) -> VectorStore:
        return self._store

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def supports_custom_ids(self) -> bool:
        return self._supports_custom_ids

    async def upload(
        self,
        vectors: Sequence[list[float]],
        ids: Sequence[str] | None,
        metadata: Sequence[dict[str, Any]],
    ) -> int:
        """Upsert *vectors* with their *metadata*; returns the number stored.

        *ids* are content hashes; they are used as record ids only when the
        store supports it.
        """
        if len(vectors) != len(metadata) or (ids is not None and len(ids) != len(vectors)):
            msg = "vectors, ids and metadata must have the same length"
            raise ValueError(msg)
        if not vectors:
            return 0

        entries: list[VectorEntry] = []
        for i, vector in enumerate(vectors):
            meta = dict(metadata[i])
            if ids is not None and self._supports_custom_ids:
                entry_id = ids[i]
            else:
                entry_id = str(uuid.uuid4())
                if ids is not None:
                    meta["content_hash"] = ids[i]
            meta = flatten_metadata(clean_metadata(meta))
            entries.append(VectorEntry(id=entry_id, vector=list(vector), metadata=meta))

        try:
            result = await self._store.upsert(entries, namespace=self._namespace)
        except Exception as e:
            msg = f"Upload of {len(entries)} vectors to namespace {self._namespace!r} failed: {e}"
            raise VectorStoreError(msg) from e

        if result.errors:
            msg = f"Vector store reported upsert errors: {'; '.join(result.errors)}"
            raise VectorStoreError(msg)
        logger.debug("Uploaded %d vectors to namespace %s", result.upserted_count, self._namespace)
        return result.upserted_count

    async def delete(self, ids: Sequence[str]) -> int:
        """Delete the vectors whose record ids are *ids* (content hashes)."""
        if not ids:
            return 0
        if not self._supports_custom_ids:
            msg = (
                f"{type(self._store).__name__} assigns its own ids; "
                "vectors cannot be deleted by content hash"
            )
            raise CapabilityNotSupportedError(msg)

        try:
            result = await self._store.delete(list(ids), namespace=self._namespace)
        except Exception as e:
            msg = f"Delete of {len(ids)} vectors from namespace {self._namespace!r} failed: {e}"
            raise VectorStoreError(msg) from e
        return result.deleted_count

    async def search(self, vector: list[float], *, k: int = 4) -> list[VectorSearchResult]:
        """Nearest-neighbour search within the namespace."""
        return await self._store.search(vector, k=k, namespace=self._namespace)
