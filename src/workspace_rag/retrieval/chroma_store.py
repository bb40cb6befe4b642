"""Chroma implementation of the vector-index abstraction."""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from workspace_rag.config import settings
from workspace_rag.errors import IndexUnavailableError
from workspace_rag.retrieval.base import VectorIndexBase
from workspace_rag.retrieval.models import IndexEntry, MetadataFilter, QueryMatch

logger = logging.getLogger(__name__)


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Translate equality filters into a Chroma ``where`` clause."""
    if not filters:
        return None

    clauses = [{f.field: {"$eq": f.value}} for f in filters]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _flat_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    # Chroma metadata values must be flat str/int/float/bool; text travels as the document
    return {
        k: v
        for k, v in metadata.items()
        if k != "text" and isinstance(v, (str, int, float, bool))
    }


class ChromaVectorIndex(VectorIndexBase):
    """Chroma-backed vector index using cosine distance.

    Parameters
    ----------
    namespace:
        Name of the Chroma collection shared by all workspaces.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client (tests, embedded mode).  When given,
        *host* and *port* are ignored.
    """

    def __init__(
        self,
        namespace: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: Any = None,
    ) -> None:
        super().__init__(namespace)
        try:
            self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
            self._collection = self._client.get_or_create_collection(
                name=namespace,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as exc:
            raise IndexUnavailableError(f"Cannot open Chroma collection {namespace!r}: {exc}") from exc

    # -- VectorIndexBase overrides --------------------------------------------

    def upsert(self, entries: list[IndexEntry]) -> None:
        if not entries:
            return
        try:
            self._collection.upsert(
                ids=[e.id for e in entries],
                embeddings=[e.vector for e in entries],
                documents=[e.metadata.get("text", "") for e in entries],
                metadatas=[_flat_metadata(e.metadata) for e in entries],
            )
        except Exception as exc:
            raise IndexUnavailableError(f"Chroma upsert failed: {exc}") from exc
        logger.info("Upserted %d vectors into %r", len(entries), self.namespace)

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[QueryMatch]:
        where = _build_chroma_where(filters) if filters else None
        try:
            results = self._collection.query(
                query_embeddings=[vector],
                n_results=top_k,
                where=where,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise IndexUnavailableError(f"Chroma query failed: {exc}") from exc

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        matches: list[QueryMatch] = []
        for chunk_id, text, meta, dist in zip(ids, docs, metas, distances):
            # cosine space: distance = 1 - similarity
            matches.append(
                QueryMatch(
                    id=chunk_id,
                    score=1.0 - dist,
                    metadata={**(meta or {}), "text": text or ""},
                )
            )
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    def delete(self, ids: list[str]) -> None:
        if not ids:
            return
        try:
            self._collection.delete(ids=ids)
        except Exception as exc:
            raise IndexUnavailableError(f"Chroma delete failed: {exc}") from exc

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
