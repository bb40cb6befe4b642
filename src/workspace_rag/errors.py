"""Error taxonomy shared by the ingestion and retrieval pipelines.

Every error raised by the pipelines derives from :class:`RagError`.
The ``retryable`` class attribute tells callers whether re-running the
whole pipeline invocation may succeed; nothing in this package retries
on its own.
"""

from __future__ import annotations


class RagError(Exception):
    """Base class for all pipeline errors."""

    retryable: bool = False
    document_id: str | None = None


class DocumentNotFoundError(RagError, LookupError):
    """The requested document (or its workspace) does not exist."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id!r}")
        self.document_id = document_id


class EmptyDocumentError(RagError, ValueError):
    """Chunking produced zero fragments — nothing to ingest."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"No text chunks generated for document {document_id!r}")
        self.document_id = document_id


class InvalidStatusTransitionError(RagError):
    """A document status change not permitted by the lifecycle."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid document status transition: {current} -> {target}")
        self.current = current
        self.target = target


# -- transient infrastructure failures ----------------------------------------


class EmbeddingServiceError(RagError):
    """The embedding backend failed or returned an unusable payload."""

    retryable = True


class IndexUnavailableError(RagError):
    """The vector index could not be reached or rejected the request."""

    retryable = True


class SynthesisError(RagError):
    """The completion model call failed."""

    retryable = True


# -- fatal invariant violations -----------------------------------------------


class EmbeddingCountMismatchError(RagError):
    """The embedder returned a different number of vectors than inputs."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(f"Embedding count mismatch: expected {expected}, received {received}")
        self.expected = expected
        self.received = received


class EmbeddingDimensionError(RagError):
    """Vectors from one embedding model disagree on their length."""
