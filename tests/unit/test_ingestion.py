"""Unit tests for the document store, status lifecycle, and IngestionPipeline."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from workspace_rag.errors import (
    DocumentNotFoundError,
    EmbeddingCountMismatchError,
    EmptyDocumentError,
    IndexUnavailableError,
    InvalidStatusTransitionError,
)
from workspace_rag.ingestion.embedder import Embedder, EmbeddingBackend
from workspace_rag.ingestion.models import ChunkRecord, DocumentStatus, check_transition
from workspace_rag.ingestion.pipeline import IngestionPipeline
from workspace_rag.ingestion.store import InMemoryDocumentStore
from workspace_rag.retrieval.memory_store import InMemoryVectorIndex

TEXT_1200 = ("word " * 240).strip()


class RecordingStore(InMemoryDocumentStore):
    """Remembers every status a document passes through."""

    def __init__(self) -> None:
        super().__init__()
        self.history: dict[str, list[DocumentStatus]] = {}

    def create_document(self, workspace_id: str, title: str, text: str):
        doc = super().create_document(workspace_id, title, text)
        self.history[doc.id] = [doc.status]
        return doc

    def set_status(self, document_id: str, status: DocumentStatus) -> None:
        super().set_status(document_id, status)
        self.history[document_id].append(status)


class ShortBackend(EmbeddingBackend):
    """Returns one vector fewer than requested."""

    def embed_batch(self, texts: list[str]) -> list[Any]:
        return [[1.0, 0.0]] * (len(texts) - 1)


class FailingIndex(InMemoryVectorIndex):
    def upsert(self, entries) -> None:
        raise IndexUnavailableError("index offline")


@pytest.fixture()
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def pipeline(recording_store, embedder, index) -> IngestionPipeline:
    return IngestionPipeline(recording_store, embedder, index, chunk_size=300)


# ── Status lifecycle ───────────────────────────────────────────────────


class TestStatusTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (DocumentStatus.PENDING, DocumentStatus.PROCESSING),
            (DocumentStatus.PROCESSING, DocumentStatus.READY),
            (DocumentStatus.PROCESSING, DocumentStatus.FAILED),
            (DocumentStatus.READY, DocumentStatus.PROCESSING),
            (DocumentStatus.FAILED, DocumentStatus.PROCESSING),
        ],
    )
    def test_allowed(self, current: DocumentStatus, target: DocumentStatus) -> None:
        check_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (DocumentStatus.PENDING, DocumentStatus.READY),
            (DocumentStatus.READY, DocumentStatus.FAILED),
            (DocumentStatus.FAILED, DocumentStatus.READY),
            (DocumentStatus.READY, DocumentStatus.PENDING),
        ],
    )
    def test_rejected(self, current: DocumentStatus, target: DocumentStatus) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            check_transition(current, target)


# ── Document store ─────────────────────────────────────────────────────


class TestInMemoryDocumentStore:
    def test_create_and_get(self, store: InMemoryDocumentStore) -> None:
        doc = store.create_document("ws-1", "faq.pdf", "text")
        fetched = store.get_document(doc.id)
        assert fetched.status is DocumentStatus.PENDING
        assert store.get_workspace_id(doc.id) == "ws-1"

    def test_missing_document(self, store: InMemoryDocumentStore) -> None:
        with pytest.raises(DocumentNotFoundError):
            store.get_workspace_id("nope")

    def test_set_status_enforces_lifecycle(self, store: InMemoryDocumentStore) -> None:
        doc = store.create_document("ws-1", "t", "x")
        with pytest.raises(InvalidStatusTransitionError):
            store.set_status(doc.id, DocumentStatus.READY)

    def test_chunks_listed_by_position(self, store: InMemoryDocumentStore) -> None:
        doc = store.create_document("ws-1", "t", "x")
        store.insert_chunks(
            doc.id,
            [ChunkRecord(text="b", vector=[1.0], position=1), ChunkRecord(text="a", vector=[1.0], position=0)],
        )
        chunks = store.list_chunks(doc.id)
        assert [c.position for c in chunks] == [0, 1]
        assert len({c.id for c in chunks}) == 2

    def test_delete_cascades_chunks(self, store: InMemoryDocumentStore) -> None:
        doc = store.create_document("ws-1", "t", "x")
        store.insert_chunks(doc.id, [ChunkRecord(text="a", vector=[1.0], position=0)])
        store.delete_document(doc.id)
        with pytest.raises(DocumentNotFoundError):
            store.list_chunks(doc.id)

    def test_list_documents_by_workspace(self, store: InMemoryDocumentStore) -> None:
        a = store.create_document("ws-1", "a", "x")
        store.create_document("ws-2", "b", "x")
        assert [d.id for d in store.list_documents("ws-1")] == [a.id]


# ── Ingestion pipeline ─────────────────────────────────────────────────


class TestIngestionPipeline:
    def test_happy_path_four_chunks(self, pipeline, recording_store, index, backend) -> None:
        doc = recording_store.create_document("ws-1", "doc.pdf", TEXT_1200)
        result = pipeline.ingest(doc.id, TEXT_1200)

        assert result.chunks_indexed == 4
        assert result.workspace_id == "ws-1"
        assert recording_store.history[doc.id] == [
            DocumentStatus.PENDING,
            DocumentStatus.PROCESSING,
            DocumentStatus.READY,
        ]
        chunks = recording_store.list_chunks(doc.id)
        assert [c.position for c in chunks] == [0, 1, 2, 3]
        assert len(index) == 4
        assert sum(len(call) for call in backend.calls) == 4

    def test_index_metadata_tags_workspace_and_document(self, pipeline, recording_store, index) -> None:
        doc = recording_store.create_document("ws-9", "doc", TEXT_1200)
        pipeline.ingest(doc.id)
        for chunk in recording_store.list_chunks(doc.id):
            entry = index.get(chunk.id)
            assert entry is not None
            assert entry.metadata["workspace_id"] == "ws-9"
            assert entry.metadata["document_id"] == doc.id
            assert entry.metadata["text"] == chunk.text
            assert entry.vector == chunk.vector

    def test_text_defaults_to_stored_text(self, pipeline, recording_store) -> None:
        doc = recording_store.create_document("ws-1", "doc", "short stored text")
        assert pipeline.ingest(doc.id).chunks_indexed == 1

    def test_embedding_count_mismatch_marks_failed(self, recording_store, index) -> None:
        pipeline = IngestionPipeline(recording_store, Embedder(ShortBackend()), index)
        doc = recording_store.create_document("ws-1", "doc", TEXT_1200)

        with pytest.raises(EmbeddingCountMismatchError):
            pipeline.ingest(doc.id)

        assert recording_store.get_document(doc.id).status is DocumentStatus.FAILED
        assert recording_store.list_chunks(doc.id) == []
        assert len(index) == 0

    def test_empty_document_marks_failed(self, pipeline, recording_store, backend) -> None:
        doc = recording_store.create_document("ws-1", "blank.pdf", "   ")
        with pytest.raises(EmptyDocumentError):
            pipeline.ingest(doc.id)
        assert recording_store.get_document(doc.id).status is DocumentStatus.FAILED
        assert backend.calls == []

    def test_index_failure_never_marks_ready(self, recording_store, embedder) -> None:
        pipeline = IngestionPipeline(recording_store, embedder, FailingIndex())
        doc = recording_store.create_document("ws-1", "doc", TEXT_1200)

        with pytest.raises(IndexUnavailableError):
            pipeline.ingest(doc.id)

        assert DocumentStatus.READY not in recording_store.history[doc.id]
        assert recording_store.get_document(doc.id).status is DocumentStatus.FAILED
        # chunks were persisted before the index call
        assert len(recording_store.list_chunks(doc.id)) == 4

    def test_unknown_document(self, pipeline) -> None:
        with pytest.raises(DocumentNotFoundError):
            pipeline.ingest("missing")

    def test_failed_status_write_does_not_mask_original_error(self, embedder, index) -> None:
        store = MagicMock(wraps=InMemoryDocumentStore())
        doc = store.create_document("ws-1", "doc", TEXT_1200)
        calls = {"n": 0}

        def set_status(document_id: str, status: DocumentStatus) -> None:
            calls["n"] += 1
            if status is DocumentStatus.FAILED:
                raise ConnectionError("database gone")

        store.set_status.side_effect = set_status
        store.get_workspace_id.side_effect = DocumentNotFoundError(doc.id)

        with pytest.raises(DocumentNotFoundError):
            IngestionPipeline(store, embedder, index).ingest(doc.id)
        assert calls["n"] == 2

    def test_reingestion_replaces_chunks(self, pipeline, recording_store, index) -> None:
        doc = recording_store.create_document("ws-1", "doc", TEXT_1200)
        pipeline.ingest(doc.id)
        result = pipeline.ingest(doc.id, "a much shorter replacement text")

        assert result.chunks_indexed == 1
        assert len(recording_store.list_chunks(doc.id)) == 1
        assert len(index) == 1
        assert recording_store.get_document(doc.id).status is DocumentStatus.READY

    def test_stuck_processing_document_rejected_without_force(self, pipeline, recording_store) -> None:
        doc = recording_store.create_document("ws-1", "doc", TEXT_1200)
        recording_store.set_status(doc.id, DocumentStatus.PROCESSING)

        with pytest.raises(InvalidStatusTransitionError):
            pipeline.ingest(doc.id)
        assert recording_store.get_document(doc.id).status is DocumentStatus.PROCESSING

    def test_force_takes_over_stuck_processing_document(self, pipeline, recording_store, index) -> None:
        doc = recording_store.create_document("ws-1", "doc", TEXT_1200)
        recording_store.set_status(doc.id, DocumentStatus.PROCESSING)

        result = pipeline.ingest(doc.id, force=True)

        assert result.chunks_indexed == 4
        assert len(index) == 4
        assert recording_store.history[doc.id] == [
            DocumentStatus.PENDING,
            DocumentStatus.PROCESSING,
            DocumentStatus.READY,
        ]

    def test_force_on_settled_document_is_plain_reingestion(self, pipeline, recording_store) -> None:
        doc = recording_store.create_document("ws-1", "doc", TEXT_1200)
        pipeline.ingest(doc.id)
        pipeline.ingest(doc.id, force=True)
        assert recording_store.history[doc.id][-2:] == [DocumentStatus.PROCESSING, DocumentStatus.READY]

    def test_reindex_workspace_rebuilds_projection(self, pipeline, recording_store, index, backend) -> None:
        ready = recording_store.create_document("ws-1", "a", TEXT_1200)
        pipeline.ingest(ready.id)
        failed = recording_store.create_document("ws-1", "b", "")
        with pytest.raises(EmptyDocumentError):
            pipeline.ingest(failed.id)
        other = recording_store.create_document("ws-2", "c", "other workspace text")
        pipeline.ingest(other.id)

        index.delete([c.id for c in recording_store.list_chunks(ready.id)])
        embed_calls = len(backend.calls)

        assert pipeline.reindex_workspace("ws-1") == 4
        assert len(index) == 5
        assert len(backend.calls) == embed_calls

    def test_delete_document_removes_index_entries(self, pipeline, recording_store, index) -> None:
        doc = recording_store.create_document("ws-1", "doc", TEXT_1200)
        pipeline.ingest(doc.id)
        pipeline.delete_document(doc.id)
        assert len(index) == 0
        with pytest.raises(DocumentNotFoundError):
            recording_store.get_document(doc.id)
