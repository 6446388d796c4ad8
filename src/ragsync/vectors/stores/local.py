"""In-process vector store on usearch HNSW indexes, one per namespace."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from usearch.index import Index

from ragsync.exceptions import DimensionMismatchError
from ragsync.vectors.types import DeleteResult, UpsertResult, VectorEntry, VectorSearchResult

logger = logging.getLogger(__name__)

_SIDECAR = "vectors_meta.json"


@dataclass(slots=True)
class _Record:
    id: str
    vector: list[float]
    metadata: dict[str, Any]


@dataclass
class _Namespace:
    """An HNSW index keyed by integers, plus the string-id lookup around it."""

    index: Index
    next_key: int = 0
    records: dict[int, _Record] = field(default_factory=dict)
    keys: dict[str, int] = field(default_factory=dict)

    def find(self, record_id: str) -> _Record | None:
        key = self.keys.get(record_id)
        return None if key is None else self.records.get(key)


class LocalVectorStore:
    """``VectorStore`` and ``SupportsNamespaces`` without any service.

    Records keep the ids they are given, so a local index is addressed by
    chunk content hash exactly like a Pinecone one.  usearch only knows
    integer keys; each namespace maps ids to keys and never reuses a key.

    With *path* set, :meth:`connect` restores the last saved state and
    :meth:`close` writes it back.  Index mutations hold a
    :class:`threading.Lock`.
    """

    def __init__(
        self,
        *,
        dimension: int,
        metric: str = "cosine",
        path: str | Path | None = None,
        namespace: str = "",
    ) -> None:
        self._dimension = dimension
        self._metric = "cos" if metric == "cosine" else metric
        self._path = Path(path) if path is not None else None
        self._default_namespace = namespace
        self._lock = threading.Lock()
        self._namespaces: dict[str, _Namespace] = {}

    @property
    def index_name(self) -> str:
        return "local"

    @property
    def supports_custom_ids(self) -> bool:
        return True

    @property
    def dimension(self) -> int:
        return self._dimension

    def __len__(self) -> int:
        return sum(len(ns.records) for ns in self._namespaces.values())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self._path is not None and (self._path / _SIDECAR).exists():
            self.load(self._path)

    async def close(self) -> None:
        if self._path is not None:
            self.save(self._path)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def upsert(
        self,
        entries: list[VectorEntry],
        *,
        namespace: str | None = None,
    ) -> UpsertResult:
        """Add *entries*; an existing id is replaced, not duplicated."""
        bad = next((e for e in entries if len(e.vector) != self._dimension), None)
        if bad is not None:
            msg = (
                f"Vector for {bad.id!r} has {len(bad.vector)} dimensions, "
                f"store expects {self._dimension}"
            )
            raise DimensionMismatchError(msg)

        ns = self._namespace(namespace, create=True)
        assert ns is not None
        for entry in entries:
            self._drop(ns, entry.id)
            with self._lock:
                key = ns.next_key
                ns.next_key += 1
                ns.index.add(key, np.asarray(entry.vector, dtype=np.float32))
            ns.records[key] = _Record(entry.id, list(entry.vector), dict(entry.metadata))
            ns.keys[entry.id] = key
        return UpsertResult(upserted_count=len(entries))

    async def delete(
        self,
        ids: list[str],
        *,
        namespace: str | None = None,
    ) -> DeleteResult:
        """Remove *ids*; ids not present are skipped and not counted."""
        ns = self._namespace(namespace)
        if ns is None:
            return DeleteResult(deleted_count=0)
        return DeleteResult(deleted_count=sum(self._drop(ns, i) for i in ids))

    async def fetch(
        self,
        ids: list[str],
        *,
        namespace: str | None = None,
    ) -> list[VectorEntry | None]:
        ns = self._namespace(namespace)
        found: list[VectorEntry | None] = []
        for record_id in ids:
            record = ns.find(record_id) if ns is not None else None
            found.append(
                None
                if record is None
                else VectorEntry(id=record.id, vector=record.vector, metadata=record.metadata)
            )
        return found

    async def search(
        self,
        vector: list[float],
        *,
        k: int = 10,
        namespace: str | None = None,
        include_metadata: bool = True,
        score_threshold: float | None = None,
    ) -> list[VectorSearchResult]:
        """Nearest records by the configured metric; score is ``1 - distance``."""
        ns = self._namespace(namespace)
        if ns is None or not ns.records:
            return []

        with self._lock:
            matches = ns.index.search(
                np.asarray(vector, dtype=np.float32), min(k, len(ns.records))
            )

        hits: list[VectorSearchResult] = []
        for key, distance in zip(matches.keys.tolist(), matches.distances.tolist(), strict=True):
            record = ns.records.get(int(key))
            score = 1.0 - distance
            if record is None or (score_threshold is not None and score < score_threshold):
                continue
            hits.append(
                VectorSearchResult(
                    id=record.id,
                    score=score,
                    metadata=dict(record.metadata) if include_metadata else {},
                    vector=record.vector if include_metadata else None,
                )
            )
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits

    # ------------------------------------------------------------------
    # SupportsNamespaces
    # ------------------------------------------------------------------

    async def list_namespaces(self) -> list[str]:
        """Non-empty namespaces, sorted by name."""
        return sorted(name for name, ns in self._namespaces.items() if ns.records)

    async def delete_namespace(self, namespace: str) -> None:
        self._namespaces.pop(namespace, None)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def has(self, entry_id: str, *, namespace: str | None = None) -> bool:
        ns = self._namespace(namespace)
        return ns is not None and entry_id in ns.keys

    def count(self, *, namespace: str | None = None) -> int:
        ns = self._namespace(namespace)
        return 0 if ns is None else len(ns.records)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, directory: str | Path) -> None:
        """Write one ``.usearch`` file per namespace and a JSON sidecar.

        Vectors are only stored in the usearch files; the sidecar carries
        ids, metadata and the key counter.
        """
        root = Path(directory)
        root.mkdir(parents=True, exist_ok=True)

        namespaces: list[dict[str, Any]] = []
        for n, name in enumerate(sorted(self._namespaces)):
            ns = self._namespaces[name]
            filename = f"ns-{n}.usearch"
            with self._lock:
                ns.index.save(str(root / filename))
            namespaces.append(
                {
                    "name": name,
                    "file": filename,
                    "next_key": ns.next_key,
                    "records": {
                        str(key): {"id": rec.id, "metadata": rec.metadata}
                        for key, rec in ns.records.items()
                    },
                }
            )

        sidecar = {"dimension": self._dimension, "namespaces": namespaces}
        (root / _SIDECAR).write_text(json.dumps(sidecar))
        logger.debug("Saved %d vectors in %d namespaces to %s", len(self), len(namespaces), root)

    def load(self, directory: str | Path) -> None:
        """Replace the in-memory state with what :meth:`save` wrote to *directory*."""
        root = Path(directory)
        sidecar = json.loads((root / _SIDECAR).read_text())

        saved_dimension = sidecar.get("dimension", self._dimension)
        if saved_dimension != self._dimension:
            msg = (
                f"Saved vectors have {saved_dimension} dimensions, "
                f"store expects {self._dimension}"
            )
            raise DimensionMismatchError(msg)

        namespaces: dict[str, _Namespace] = {}
        for saved in sidecar.get("namespaces", []):
            ns = _Namespace(index=self._new_index(), next_key=saved["next_key"])
            with self._lock:
                ns.index.load(str(root / saved["file"]))
            for raw_key, rec in saved.get("records", {}).items():
                key = int(raw_key)
                vector = ns.index.get(key).astype(np.float64).tolist()
                ns.records[key] = _Record(rec["id"], vector, rec["metadata"])
                ns.keys[rec["id"]] = key
            namespaces[saved["name"]] = ns
        self._namespaces = namespaces

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _new_index(self) -> Index:
        return Index(ndim=self._dimension, metric=self._metric, dtype="f32")

    def _namespace(self, namespace: str | None, *, create: bool = False) -> _Namespace | None:
        name = self._default_namespace if namespace is None else namespace
        if name not in self._namespaces and create:
            self._namespaces[name] = _Namespace(index=self._new_index())
        return self._namespaces.get(name)

    def _drop(self, ns: _Namespace, entry_id: str) -> bool:
        key = ns.keys.pop(entry_id, None)
        if key is None:
            return False
        del ns.records[key]
        with self._lock:
            ns.index.remove(key)
        return True
