"""Embedding providers — protocol and implementations."""

from ragsync.vectors.protocols import EmbeddingProvider

__all__ = [
    "EmbeddingProvider",
]

# Optional providers, import-guarded: available only when their deps are installed.
try:
    from ragsync.vectors.providers.openai import OpenAIEmbedding

    __all__.append("OpenAIEmbedding")
except ImportError:  # pragma: no cover
    pass

try:
    from ragsync.vectors.providers.langchain import LangChainEmbedding

    __all__.append("LangChainEmbedding")
except ImportError:  # pragma: no cover
    pass

try:
    from ragsync.vectors.providers.sentence_transformers import SentenceTransformerEmbedding

    __all__.append("SentenceTransformerEmbedding")
except ImportError:  # pragma: no cover
    pass
