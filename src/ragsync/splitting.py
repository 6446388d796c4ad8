"""DocumentSplitter — load a document and cut it into ordered chunks."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter

from ragsync.loaders import loader_for
from ragsync.types import RawChunk

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from ragsync.loaders import Loader
    from ragsync.models.chunks import Splitting
    from ragsync.models.documents import Document

logger = logging.getLogger(__name__)

_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


class DocumentSplitter:
    """Splits documents according to a :class:`Splitting`.

    The result for a given file and splitting is deterministic, which is
    what allows chunks to be persisted once per ``(document, splitting)``
    and reused afterwards.

    Loading and splitting are blocking, so :meth:`split` runs them in a
    worker thread.
    """

    def __init__(self, *, loader_factory: Callable[[str | Path], Loader] = loader_for) -> None:
        self._loader_factory = loader_factory

    async def split(self, document: Document, splitting: Splitting) -> list[RawChunk]:
        return await asyncio.to_thread(
            self.split_file, document.filepath, splitting.chunk_size, splitting.chunk_overlap
        )

    def split_file(
        self, filepath: str | Path, chunk_size: int, chunk_overlap: int
    ) -> list[RawChunk]:
        """Synchronous core of :meth:`split`.

        Every chunk gets a ``chunk`` number, counted across all parts of
        the file.  Whitespace-only pieces are dropped.
        """
        parts = self._loader_factory(filepath).load(filepath)
        splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=_SEPARATORS,
        )

        chunks: list[RawChunk] = []
        for part in parts:
            for piece in splitter.split_text(part.text):
                if not piece.strip():
                    continue
                metadata = {**part.metadata, "chunk": len(chunks)}
                chunks.append(RawChunk(content=piece, metadata=metadata))

        logger.debug("Split %s into %d chunks", filepath, len(chunks))
        return chunks
