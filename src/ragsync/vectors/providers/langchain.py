"""Use any LangChain ``Embeddings`` object as a ragsync embedding provider."""

from __future__ import annotations

from typing import Any

try:
    from langchain_core.embeddings import Embeddings as _LCEmbeddings

    _HAS_LANGCHAIN = True
except ImportError:  # pragma: no cover
    _HAS_LANGCHAIN = False

_PROBE_TEXT = "dimension probe"


class LangChainEmbedding:
    """Wraps a ``langchain_core.embeddings.Embeddings`` instance.

    Chunks are embedded as documents (``aembed_documents``); single texts as
    queries.  When *dimensions* is not given the width is measured once by
    embedding a probe string, which costs one synchronous provider call.
    Needs ``pip install ragsync[langchain]``.
    """

    def __init__(
        self,
        embeddings: Any,
        *,
        dimensions: int | None = None,
        model_name: str | None = None,
    ) -> None:
        if not _HAS_LANGCHAIN:
            msg = (
                "langchain-core is required for LangChainEmbedding. "
                "Install it with: pip install ragsync[langchain]"
            )
            raise ImportError(msg)
        if not isinstance(embeddings, _LCEmbeddings):
            msg = (
                "embeddings must be a langchain_core.embeddings.Embeddings, "
                f"not {type(embeddings).__name__}"
            )
            raise TypeError(msg)

        self._embeddings = embeddings
        self._dimensions = dimensions
        self._model_name = model_name or _model_name_of(embeddings)

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimensions(self) -> int:
        if self._dimensions is None:
            self._dimensions = len(self._embeddings.embed_query(_PROBE_TEXT))
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        return await self._embeddings.aembed_query(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await self._embeddings.aembed_documents(texts)


def _model_name_of(embeddings: Any) -> str:
    """Best-effort model name: ``.model``, then ``.model_name``, then the class name."""
    for attr in ("model", "model_name"):
        value = getattr(embeddings, attr, None)
        if isinstance(value, str) and value:
            return value
    return type(embeddings).__name__
