"""In-process vector index using cosine similarity.

Useful for local development and tests; everything is lost when the
process exits, which is fine because the index is a projection that
``IngestionPipeline.reindex_workspace`` can rebuild.
"""

from __future__ import annotations

import math
import threading

from workspace_rag.retrieval.base import VectorIndexBase
from workspace_rag.retrieval.models import IndexEntry, MetadataFilter, QueryMatch


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two equal-length vectors (0.0 for zero vectors)."""
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorIndex(VectorIndexBase):
    """Dictionary-backed index keyed by entry id."""

    def __init__(self, namespace: str = "default") -> None:
        super().__init__(namespace)
        self._entries: dict[str, IndexEntry] = {}
        self._lock = threading.Lock()

    def upsert(self, entries: list[IndexEntry]) -> None:
        with self._lock:
            for entry in entries:
                self._entries[entry.id] = entry.model_copy(deep=True)

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[QueryMatch]:
        with self._lock:
            entries = list(self._entries.values())

        matches = [
            QueryMatch(
                id=entry.id,
                score=cosine_similarity(vector, entry.vector),
                metadata=dict(entry.metadata),
            )
            for entry in entries
            if not filters or all(f.matches(entry.metadata) for f in filters)
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    def delete(self, ids: list[str]) -> None:
        with self._lock:
            for entry_id in ids:
                self._entries.pop(entry_id, None)

    def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, entry_id: str) -> IndexEntry | None:
        """Return the stored entry for *entry_id*, if any."""
        with self._lock:
            return self._entries.get(entry_id)
