"""
Retrieval — vector index access, workspace scoping, and diversity selection.

This module wraps the vector index behind a clean interface so that
the pipelines never need to know which backend is serving queries.

Public surface
--------------
- :class:`RetrievalPipeline` — question → diverse, workspace-scoped matches.
- :class:`VectorIndexBase` — abstract backend (subclass for Pinecone, etc.).
- :class:`ChromaVectorIndex` — default Chroma backend.
- :class:`InMemoryVectorIndex` — in-process backend for tests and dev.
- :class:`IndexEntry`, :class:`QueryMatch`, :class:`MetadataFilter` — data models.
- :func:`build_index` — construct the configured backend.
"""

from __future__ import annotations

from workspace_rag.config import Settings, settings
from workspace_rag.retrieval.base import VectorIndexBase
from workspace_rag.retrieval.memory_store import InMemoryVectorIndex
from workspace_rag.retrieval.models import IndexEntry, MetadataFilter, QueryMatch
from workspace_rag.retrieval.retriever import RetrievalPipeline

__all__ = [
    "ChromaVectorIndex",
    "InMemoryVectorIndex",
    "IndexEntry",
    "MetadataFilter",
    "QueryMatch",
    "RetrievalPipeline",
    "VectorIndexBase",
    "build_index",
]


def build_index(config: Settings = settings) -> VectorIndexBase:
    """Return the vector index selected by ``config.vector_backend``."""
    if config.vector_backend == "memory":
        return InMemoryVectorIndex(config.chroma_collection)
    if config.vector_backend == "chroma":
        from workspace_rag.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex(
            config.chroma_collection,
            host=config.chroma_host,
            port=config.chroma_port,
        )
    raise ValueError(f"Unsupported vector_backend={config.vector_backend!r}")


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorIndex to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorIndex":
        from workspace_rag.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
