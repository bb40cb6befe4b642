"""Ingestion pipeline — chunk → embed → persist → index for one document.

Lifecycle::

    PENDING ──► PROCESSING ──► READY
                    │
                    └────────► FAILED

Every step is a hard checkpoint.  Any failure after the document has
entered ``PROCESSING`` marks it ``FAILED`` and the original exception
is re-raised.  A document is only marked ``READY`` once every chunk it
produced has been both persisted and indexed, and no chunk reaches the
index before it is persisted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from workspace_rag.errors import EmbeddingCountMismatchError, EmptyDocumentError, RagError
from workspace_rag.ingestion.chunker import chunk_text
from workspace_rag.ingestion.models import Chunk, ChunkRecord, DocumentStatus
from workspace_rag.retrieval.models import IndexEntry

if TYPE_CHECKING:
    from workspace_rag.ingestion.embedder import Embedder
    from workspace_rag.ingestion.store import DocumentStore
    from workspace_rag.retrieval.base import VectorIndexBase

logger = logging.getLogger(__name__)


class IngestionResult(BaseModel):
    """Outcome of a successful ingestion."""

    document_id: str
    workspace_id: str
    chunks_indexed: int
    status: DocumentStatus = DocumentStatus.READY


def _index_entries(chunks: list[Chunk], workspace_id: str) -> list[IndexEntry]:
    return [
        IndexEntry(
            id=chunk.id,
            vector=chunk.vector,
            metadata={
                "text": chunk.text,
                "document_id": chunk.document_id,
                "workspace_id": workspace_id,
                "position": chunk.position,
            },
        )
        for chunk in chunks
    ]


class IngestionPipeline:
    """Turn a stored document into indexed, retrievable chunks.

    Parameters
    ----------
    store:
        Source of truth for documents, status, and chunk rows.
    embedder:
        Converts chunk text to vectors.
    index:
        Shared vector index (derived projection of the chunk rows).
    chunk_size:
        Target fragment size in characters for :func:`chunk_text`.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: Embedder,
        index: VectorIndexBase,
        *,
        chunk_size: int = 300,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._index = index
        self.chunk_size = chunk_size

    def ingest(self, document_id: str, text: str | None = None, *, force: bool = False) -> IngestionResult:
        """Run the full pipeline for *document_id*.

        Parameters
        ----------
        document_id:
            The document to process.
        text:
            Raw text to chunk; defaults to the stored document text.
        force:
            Take over a document left in ``PROCESSING`` by a run that
            never finished (e.g. a worker killed at its deadline).
            Without it such a document is rejected.

        Raises
        ------
        RagError
            Any pipeline failure, after the document was marked ``FAILED``.
        """
        if force and self._store.get_document(document_id).status is DocumentStatus.PROCESSING:
            logger.warning("Taking over document %s left in PROCESSING", document_id)
        else:
            self._store.set_status(document_id, DocumentStatus.PROCESSING)

        try:
            workspace_id = self._store.get_workspace_id(document_id)
            if text is None:
                text = self._store.get_document(document_id).text

            fragments = chunk_text(text, self.chunk_size)
            if not fragments:
                raise EmptyDocumentError(document_id)

            vectors = self._embedder.embed(fragments)
            if len(vectors) != len(fragments):
                raise EmbeddingCountMismatchError(expected=len(fragments), received=len(vectors))

            self._purge_chunks(document_id)
            self._store.insert_chunks(
                document_id,
                [
                    ChunkRecord(text=fragment, vector=vector, position=position)
                    for position, (fragment, vector) in enumerate(zip(fragments, vectors))
                ],
            )

            saved = self._store.list_chunks(document_id)
            if len(saved) != len(fragments):
                raise RagError(
                    f"Chunks not persisted for document {document_id!r}: "
                    f"expected {len(fragments)}, found {len(saved)}"
                )

            self._index.upsert(_index_entries(saved, workspace_id))
            self._store.set_status(document_id, DocumentStatus.READY)
        except Exception:
            logger.exception("Ingestion failed for document %s", document_id)
            self._mark_failed(document_id)
            raise

        logger.info("Indexed %d chunks for document %s", len(saved), document_id)
        return IngestionResult(
            document_id=document_id,
            workspace_id=workspace_id,
            chunks_indexed=len(saved),
        )

    def reindex_workspace(self, workspace_id: str) -> int:
        """Rebuild the index projection for every READY document.

        Vectors are taken from the persisted chunk rows, so nothing is
        re-embedded.  Returns the number of entries upserted.
        """
        total = 0
        for document in self._store.list_documents(workspace_id):
            if document.status is not DocumentStatus.READY:
                continue
            chunks = self._store.list_chunks(document.id)
            if chunks:
                self._index.upsert(_index_entries(chunks, workspace_id))
                total += len(chunks)
        logger.info("Reindexed %d chunks for workspace %s", total, workspace_id)
        return total

    def delete_document(self, document_id: str) -> None:
        """Remove a document's index entries, then the document and its chunks."""
        chunk_ids = [c.id for c in self._store.list_chunks(document_id)]
        if chunk_ids:
            self._index.delete(chunk_ids)
        self._store.delete_document(document_id)
        logger.info("Deleted document %s (%d chunks)", document_id, len(chunk_ids))

    # -- internals ------------------------------------------------------------

    def _purge_chunks(self, document_id: str) -> None:
        """Drop chunks left over from a previous ingestion of the document."""
        stale = [c.id for c in self._store.list_chunks(document_id)]
        if not stale:
            return
        self._index.delete(stale)
        self._store.delete_chunks(document_id)
        logger.info("Purged %d stale chunks for document %s", len(stale), document_id)

    def _mark_failed(self, document_id: str) -> None:
        try:
            self._store.set_status(document_id, DocumentStatus.FAILED)
        except Exception:
            logger.exception("Could not mark document %s as FAILED", document_id)
