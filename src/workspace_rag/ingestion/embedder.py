"""Embedding — batched text → vector conversion.

The embedding service may answer with a flat vector per input or with
a nested (row-per-token / batch-of-one) shape.  Both are normalised
here, at the adapter boundary, through :class:`FlatEmbedding` and
:class:`NestedEmbedding`, so callers only ever see flat ``list[float]``
vectors of a single, fixed dimension.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Union

from pydantic import BaseModel, ValidationError

from workspace_rag.config import Settings, settings
from workspace_rag.errors import (
    EmbeddingCountMismatchError,
    EmbeddingDimensionError,
    EmbeddingServiceError,
    RagError,
)

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response shapes
# ---------------------------------------------------------------------------


class FlatEmbedding(BaseModel):
    """A single vector: ``[0.1, 0.2, ...]``."""

    model_config = {"frozen": True}

    values: list[float]

    def to_vector(self) -> list[float]:
        return list(self.values)


class NestedEmbedding(BaseModel):
    """A nested shape: ``[[0.1, 0.2, ...], ...]``, flattened row-major."""

    model_config = {"frozen": True}

    rows: list[list[float]]

    def to_vector(self) -> list[float]:
        return [v for row in self.rows for v in row]


EmbeddingPayload = Union[FlatEmbedding, NestedEmbedding]


def _as_list(raw: Any) -> Any:
    # numpy arrays (HF Inference responses) expose tolist()
    return raw.tolist() if hasattr(raw, "tolist") else raw


def parse_payload(raw: Any) -> EmbeddingPayload:
    """Classify one raw per-input response into a payload variant.

    Raises
    ------
    EmbeddingServiceError
        When *raw* is not a non-empty numeric sequence.
    """
    raw = _as_list(raw)
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence) or len(raw) == 0:
        raise EmbeddingServiceError(f"Unusable embedding payload: {type(raw).__name__}")

    first = _as_list(raw[0])
    try:
        if isinstance(first, Sequence) and not isinstance(first, (str, bytes)):
            return NestedEmbedding(rows=[_as_list(row) for row in raw])
        return FlatEmbedding(values=raw)
    except ValidationError as exc:
        raise EmbeddingServiceError(f"Non-numeric embedding payload: {exc.error_count()} bad value(s)") from exc


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class EmbeddingBackend(ABC):
    """Anything that can turn a batch of strings into raw vectors."""

    @abstractmethod
    def embed_batch(self, texts: list[str]) -> list[Any]:
        """Return one raw payload per input, in input order."""
        ...


class LangChainEmbeddingBackend(EmbeddingBackend):
    """Adapter over any LangChain :class:`Embeddings` implementation."""

    def __init__(self, embeddings: Embeddings) -> None:
        self._embeddings = embeddings

    def embed_batch(self, texts: list[str]) -> list[Any]:
        return self._embeddings.embed_documents(texts)


def build_backend(config: Settings = settings) -> EmbeddingBackend:
    """Return the backend selected by ``config.embedding_backend``."""
    if config.embedding_backend == "local":
        from langchain_huggingface import HuggingFaceEmbeddings

        return LangChainEmbeddingBackend(HuggingFaceEmbeddings(model_name=config.embedding_model))
    if config.embedding_backend == "endpoint":
        from langchain_huggingface import HuggingFaceEndpointEmbeddings

        return LangChainEmbeddingBackend(
            HuggingFaceEndpointEmbeddings(
                model=config.embedding_model,
                huggingfacehub_api_token=config.huggingfacehub_api_token or None,
            )
        )
    raise ValueError(f"Unsupported embedding_backend={config.embedding_backend!r}")


# ---------------------------------------------------------------------------
# Embedder
# ---------------------------------------------------------------------------


class Embedder:
    """Batched, shape-normalising front end to an :class:`EmbeddingBackend`.

    Parameters
    ----------
    backend:
        The embedding service adapter.
    batch_size:
        Maximum number of fragments sent per backend call.
    dimension:
        Expected vector length.  When ``None`` the first observed
        length becomes the expected one for the lifetime of the
        embedder.
    """

    def __init__(
        self,
        backend: EmbeddingBackend,
        *,
        batch_size: int = 10,
        dimension: int | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._backend = backend
        self.batch_size = batch_size
        self.dimension = dimension

    def embed(self, fragments: Sequence[str]) -> list[list[float]]:
        """Embed *fragments*, returning exactly one vector per fragment."""
        fragments = list(fragments)
        vectors: list[list[float]] = []

        for start in range(0, len(fragments), self.batch_size):
            batch = fragments[start : start + self.batch_size]
            raw = self._call_backend(batch)
            if len(raw) != len(batch):
                raise EmbeddingCountMismatchError(expected=len(batch), received=len(raw))
            vectors.extend(parse_payload(item).to_vector() for item in raw)
            logger.debug("embedded %d / %d", len(vectors), len(fragments))

        if len(vectors) != len(fragments):
            raise EmbeddingCountMismatchError(expected=len(fragments), received=len(vectors))

        self._check_dimensions(vectors)
        return vectors

    def embed_one(self, text: str) -> list[float]:
        """Embed a single string (e.g. a user question)."""
        return self.embed([text])[0]

    # -- internals ------------------------------------------------------------

    def _call_backend(self, batch: list[str]) -> list[Any]:
        try:
            raw = self._backend.embed_batch(batch)
        except RagError:
            raise
        except Exception as exc:
            raise EmbeddingServiceError(f"Embedding service call failed: {exc}") from exc
        return list(_as_list(raw))

    def _check_dimensions(self, vectors: list[list[float]]) -> None:
        if not vectors:
            return
        if self.dimension is None:
            self.dimension = len(vectors[0])
            logger.info("Embedding dimension fixed at %d", self.dimension)
        bad = {len(v) for v in vectors if len(v) != self.dimension}
        if bad:
            raise EmbeddingDimensionError(
                f"Expected {self.dimension}-dimensional vectors, got lengths {sorted(bad)}"
            )


def build_embedder(config: Settings = settings) -> Embedder:
    """Construct the configured :class:`Embedder`."""
    return Embedder(
        build_backend(config),
        batch_size=config.embedding_batch_size,
        dimension=config.embedding_dimension or None,
    )
