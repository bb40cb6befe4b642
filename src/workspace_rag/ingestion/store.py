"""Document store — the persistence contract the pipelines rely on.

The store is the source of truth for document text, status, and chunk
rows.  :class:`InMemoryDocumentStore` is the reference implementation
used by the REST app's default wiring and by the tests; a database
backed store only needs to subclass :class:`DocumentStore`.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from workspace_rag.errors import DocumentNotFoundError
from workspace_rag.ingestion.models import (
    Chunk,
    ChunkRecord,
    Document,
    DocumentStatus,
    check_transition,
)


class DocumentStore(ABC):
    """Persistence interface for documents and their chunks."""

    @abstractmethod
    def create_document(self, workspace_id: str, title: str, text: str) -> Document:
        """Persist a new ``PENDING`` document and return it."""
        ...

    @abstractmethod
    def get_document(self, document_id: str) -> Document:
        """Return the document or raise :class:`DocumentNotFoundError`."""
        ...

    @abstractmethod
    def list_documents(self, workspace_id: str) -> list[Document]:
        """All documents owned by *workspace_id*, oldest first."""
        ...

    @abstractmethod
    def set_status(self, document_id: str, status: DocumentStatus) -> None:
        """Move the document to *status*, enforcing the lifecycle."""
        ...

    @abstractmethod
    def insert_chunks(self, document_id: str, records: list[ChunkRecord]) -> None:
        """Batch-insert chunk rows for *document_id*."""
        ...

    @abstractmethod
    def list_chunks(self, document_id: str) -> list[Chunk]:
        """Persisted chunks of *document_id*, ordered by position."""
        ...

    @abstractmethod
    def delete_chunks(self, document_id: str) -> list[str]:
        """Delete every chunk of *document_id*; return the deleted ids."""
        ...

    @abstractmethod
    def delete_document(self, document_id: str) -> None:
        """Delete the document and (cascade) its chunks."""
        ...

    def get_workspace_id(self, document_id: str) -> str:
        return self.get_document(document_id).workspace_id


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe, dictionary-backed :class:`DocumentStore`."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._chunks: dict[str, list[Chunk]] = {}
        self._lock = threading.Lock()

    def create_document(self, workspace_id: str, title: str, text: str) -> Document:
        document = Document(workspace_id=workspace_id, title=title, text=text)
        with self._lock:
            self._documents[document.id] = document
            self._chunks[document.id] = []
        return document.model_copy()

    def get_document(self, document_id: str) -> Document:
        with self._lock:
            return self._require(document_id).model_copy()

    def list_documents(self, workspace_id: str) -> list[Document]:
        with self._lock:
            docs = [d for d in self._documents.values() if d.workspace_id == workspace_id]
        return [d.model_copy() for d in sorted(docs, key=lambda d: d.created_at)]

    def set_status(self, document_id: str, status: DocumentStatus) -> None:
        with self._lock:
            document = self._require(document_id)
            check_transition(document.status, status)
            self._documents[document_id] = document.model_copy(update={"status": status})

    def insert_chunks(self, document_id: str, records: list[ChunkRecord]) -> None:
        with self._lock:
            self._require(document_id)
            rows = self._chunks[document_id]
            rows.extend(
                Chunk(
                    id=f"{document_id}-{record.position}",
                    document_id=document_id,
                    position=record.position,
                    text=record.text,
                    vector=list(record.vector),
                )
                for record in records
            )

    def list_chunks(self, document_id: str) -> list[Chunk]:
        with self._lock:
            self._require(document_id)
            return sorted(self._chunks[document_id], key=lambda c: c.position)

    def delete_chunks(self, document_id: str) -> list[str]:
        with self._lock:
            self._require(document_id)
            removed = self._chunks[document_id]
            self._chunks[document_id] = []
        return [c.id for c in removed]

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            self._require(document_id)
            del self._documents[document_id]
            del self._chunks[document_id]

    def _require(self, document_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document
