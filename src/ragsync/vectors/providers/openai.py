"""OpenAI embeddings for ragsync indexes."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from ragsync.exceptions import ConfigurationError
from ragsync.vectors.utils import batched

try:
    from openai import AsyncOpenAI

    _HAS_OPENAI = True
except ImportError:  # pragma: no cover
    _HAS_OPENAI = False

if TYPE_CHECKING:
    from openai import AsyncOpenAI as AsyncOpenAIType

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-ada-002"

# Native output width of the models ragsync knows about.
_NATIVE_DIMENSIONS: dict[str, int] = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}

# Models whose vectors can be truncated server-side via ``dimensions=``.
_TRUNCATABLE = frozenset({"text-embedding-3-small", "text-embedding-3-large"})


class OpenAIEmbedding:
    """Embeds chunk text through ``AsyncOpenAI.embeddings.create``.

    A sync run hands over every cache miss of a document at once; they go
    out in requests of at most *batch_size* texts.  The key falls back to
    ``OPENAI_API_KEY``.  Needs ``pip install ragsync[openai]``.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        dimensions: int | None = None,
        api_key: str | None = None,
        max_retries: int = 2,
        timeout: float = 60.0,
        batch_size: int = 512,
    ) -> None:
        if not _HAS_OPENAI:
            msg = (
                "openai is required for OpenAIEmbedding. "
                "Install it with: pip install ragsync[openai]"
            )
            raise ImportError(msg)

        key = api_key or os.environ.get("OPENAI_API_KEY")
        if not key:
            msg = "No OpenAI API key: pass api_key= or set OPENAI_API_KEY"
            raise ConfigurationError(msg)

        native = _NATIVE_DIMENSIONS.get(model)
        fixed_width = native is not None and model not in _TRUNCATABLE
        if dimensions is not None and fixed_width and dimensions != native:
            msg = (
                f"{model!r} always returns {native}-dimensional vectors; "
                f"got dimensions={dimensions}"
            )
            raise ConfigurationError(msg)

        self._model = model
        self._dimensions = dimensions
        self._batch_size = batch_size
        self._options: dict[str, Any] = {"model": model}
        if dimensions is not None and model in _TRUNCATABLE:
            self._options["dimensions"] = dimensions
        self._client: AsyncOpenAIType = AsyncOpenAI(
            api_key=key, max_retries=max_retries, timeout=timeout
        )

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def dimensions(self) -> int:
        if self._dimensions is not None:
            return self._dimensions
        if self._model in _NATIVE_DIMENSIONS:
            return _NATIVE_DIMENSIONS[self._model]
        msg = f"Unknown default dimensions for {self._model!r}; pass dimensions= explicitly"
        raise ConfigurationError(msg)

    async def embed(self, text: str) -> list[float]:
        (vector,) = await self._create([text])
        return vector

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for batch in batched(texts, self._batch_size):
            vectors.extend(await self._create(list(batch)))
        return vectors

    async def close(self) -> None:
        await self._client.close()

    async def _create(self, texts: list[str]) -> list[list[float]]:
        logger.debug("Requesting %d embeddings from %s", len(texts), self._model)
        response = await self._client.embeddings.create(input=texts, **self._options)
        # The API tags each item with its input position; restore that order.
        by_position = sorted(response.data, key=lambda item: item.index)
        return [item.embedding for item in by_position]
