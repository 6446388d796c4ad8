"""IndexSyncStatus — what a sync has to add to and remove from an index."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ragsync.models.documents import Document
    from ragsync.types import IndexedCollection


@dataclass
class IndexSyncStatus:
    """Snapshot of the difference between a collection and one of its indexes.

    Computed fresh before every sync and consumed by a single
    :meth:`Indexer.sync` call, which clears both work lists.

    Attributes:
        to_deleted: Ids recorded as indexed that are no longer in the collection.
        to_indexed: Documents in the collection that are not indexed yet,
            in collection order.
        all: Every live document the status was computed from.
        index: The index the status refers to.
    """

    to_deleted: set[int]
    to_indexed: list[Document]
    all: list[Document] = field(default_factory=list)
    index: IndexedCollection | None = None

    @property
    def clean(self) -> bool:
        """True if there is nothing to do."""
        return not self.to_deleted and not self.to_indexed

    @classmethod
    def compute(cls, documents: Sequence[Document], index: IndexedCollection) -> IndexSyncStatus:
        """Compare the live *documents* against ``index.indexed_documents``.

        A document that is both live and indexed is left alone even if its
        content changed; changed content shows up as new chunk hashes and
        is re-embedded through the cache-miss path.
        """
        indexed = set(index.indexed_documents)
        to_indexed: list[Document] = []
        for document in documents:
            if document.id in indexed:
                indexed.discard(document.id)
            else:
                to_indexed.append(document)
        return cls(
            to_deleted=indexed,
            to_indexed=to_indexed,
            all=list(documents),
            index=index,
        )

    def clear(self) -> None:
        """Empty both work lists; the status must be recomputed before reuse."""
        self.to_indexed.clear()
        self.to_deleted.clear()
