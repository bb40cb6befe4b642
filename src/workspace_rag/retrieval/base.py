"""Abstract base class for vector-index backends.

Adding a new backend (Pinecone, Qdrant …) only requires subclassing
:class:`VectorIndexBase` and implementing the abstract methods.  The
rest of the stack is backend-agnostic.

All workspaces share one logical namespace; entries are tagged with
``workspace_id`` in their metadata and isolation is enforced by the
caller at query time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from workspace_rag.retrieval.models import IndexEntry, MetadataFilter, QueryMatch


class VectorIndexBase(ABC):
    """Backend-agnostic vector-index interface.

    Parameters
    ----------
    namespace:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, entries: list[IndexEntry]) -> None:
        """Insert or overwrite *entries*, keyed by ``entry.id``.

        Re-upserting an existing id replaces its vector and metadata.

        Raises
        ------
        IndexUnavailableError
            When the backend cannot be reached or rejects the batch.
        """
        ...

    @abstractmethod
    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[QueryMatch]:
        """Return up to *top_k* matches sorted by descending similarity.

        Parameters
        ----------
        vector:
            Dense query vector.
        top_k:
            Number of candidates to return.
        filters:
            Optional metadata predicates applied index-side.
        """
        ...

    @abstractmethod
    def delete(self, ids: list[str]) -> None:
        """Remove entries by id; unknown ids are ignored."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
