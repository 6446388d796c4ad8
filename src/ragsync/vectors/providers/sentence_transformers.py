"""Offline embeddings from a local ``sentence-transformers`` model."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

try:
    from sentence_transformers import SentenceTransformer

    _HAS_SENTENCE_TRANSFORMERS = True
except ImportError:  # pragma: no cover
    _HAS_SENTENCE_TRANSFORMERS = False

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"


class SentenceTransformerEmbedding:
    """Runs a SentenceTransformer model in a worker thread.

    Loading the model happens on first use, so constructing the provider
    for a config that never embeds anything stays cheap.  Encoding blocks,
    hence ``asyncio.to_thread``.
    """

    def __init__(self, model_name: str = DEFAULT_MODEL, *, batch_size: int = 32) -> None:
        if not _HAS_SENTENCE_TRANSFORMERS:
            msg = (
                "sentence-transformers is required for SentenceTransformerEmbedding. "
                "Install it with: pip install ragsync[search]"
            )
            raise ImportError(msg)
        self._model_name = model_name
        self._batch_size = batch_size
        self._model: SentenceTransformer | None = None

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimensions(self) -> int:
        width = self._loaded().get_sentence_embedding_dimension()
        if width is None:
            msg = f"{self._model_name!r} does not report an embedding dimension"
            raise RuntimeError(msg)
        return width

    async def embed(self, text: str) -> list[float]:
        (vector,) = await asyncio.to_thread(self._encode_sync, [text])
        return vector

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode_sync, texts)

    def _loaded(self) -> SentenceTransformer:
        if self._model is None:
            logger.info("Loading sentence-transformers model %s", self._model_name)
            self._model = SentenceTransformer(self._model_name)
        return self._model

    def _encode_sync(self, texts: list[str]) -> list[list[float]]:
        matrix: Any = self._loaded().encode(texts, batch_size=self._batch_size)
        return [row.tolist() for row in matrix]
