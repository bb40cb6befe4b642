"""Domain models for documents, chunks, and the document lifecycle."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from workspace_rag.errors import InvalidStatusTransitionError


class DocumentStatus(str, Enum):
    """Lifecycle of a document inside the ingestion pipeline."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"


ALLOWED_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.PENDING: frozenset({DocumentStatus.PROCESSING}),
    DocumentStatus.PROCESSING: frozenset({DocumentStatus.READY, DocumentStatus.FAILED}),
    # re-ingestion
    DocumentStatus.READY: frozenset({DocumentStatus.PROCESSING}),
    DocumentStatus.FAILED: frozenset({DocumentStatus.PROCESSING}),
}
"""Permitted ``current → target`` status changes."""


def check_transition(current: DocumentStatus, target: DocumentStatus) -> None:
    """Raise :class:`InvalidStatusTransitionError` unless the move is allowed."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current.value, target.value)


def _new_id() -> str:
    return uuid4().hex


class Document(BaseModel):
    """An uploaded document owned by a workspace.

    Attributes
    ----------
    id:
        Document identifier.
    workspace_id:
        Owning workspace; the scoping boundary for retrieval.
    title:
        Human-readable title (usually the uploaded file name).
    text:
        Extracted raw text.
    status:
        Current lifecycle state; written only by the ingestion pipeline.
    created_at:
        UTC creation timestamp.
    """

    id: str = Field(default_factory=_new_id)
    workspace_id: str
    title: str = ""
    text: str = ""
    status: DocumentStatus = DocumentStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChunkRecord(BaseModel):
    """A chunk as handed to the document store for insertion."""

    text: str
    vector: list[float]
    position: int


class Chunk(BaseModel):
    """A persisted chunk with its canonical id."""

    id: str
    document_id: str
    position: int
    text: str
    vector: list[float]

    model_config = {"frozen": True}
