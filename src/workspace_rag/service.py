"""Service facade — the one object the serving layer talks to.

:class:`RagService` owns the collaborators (document store, embedder,
vector index, completion model) and exposes the use cases: upload and
ingest a document, answer a question, rebuild a workspace's index, and
delete a document.
"""

from __future__ import annotations

import logging
from typing import Any

from workspace_rag.agent.graph import build_graph, create_initial_state
from workspace_rag.agent.synthesizer import Answer, AnswerSynthesizer
from workspace_rag.config import Settings, settings
from workspace_rag.errors import RagError
from workspace_rag.ingestion.embedder import Embedder, build_embedder
from workspace_rag.ingestion.models import Document
from workspace_rag.ingestion.pipeline import IngestionPipeline, IngestionResult
from workspace_rag.ingestion.store import DocumentStore, InMemoryDocumentStore
from workspace_rag.retrieval import build_index
from workspace_rag.retrieval.base import VectorIndexBase
from workspace_rag.retrieval.retriever import RetrievalPipeline

logger = logging.getLogger(__name__)


class RagService:
    """Wire the ingestion and question-answering pipelines together.

    Parameters
    ----------
    store:
        Document store (source of truth).
    embedder:
        Shared by ingestion and retrieval so both use the same model.
    index:
        Shared vector index for all workspaces.
    synthesizer:
        Answer synthesiser; defaults to one backed by :func:`get_llm`.
    config:
        Tunables for chunking, retrieval, and the optional graph nodes.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: Embedder,
        index: VectorIndexBase,
        *,
        synthesizer: AnswerSynthesizer | None = None,
        config: Settings = settings,
    ) -> None:
        self.store = store
        self.index = index
        self.ingestion = IngestionPipeline(
            store,
            embedder,
            index,
            chunk_size=config.chunk_target_size,
        )
        self.retriever = RetrievalPipeline(
            embedder,
            index,
            candidate_k=config.retrieval_candidate_k,
            max_per_document=config.retrieval_max_per_document,
            context_size=config.retrieval_context_size,
        )
        self.synthesizer = synthesizer or AnswerSynthesizer()
        self._graph = build_graph(
            self.retriever,
            self.synthesizer,
            rewrite=config.enable_query_rewrite,
            rerank=config.enable_llm_rerank,
            rerank_top_n=config.rerank_top_n,
        )

    # -- documents ------------------------------------------------------------

    def upload_document(self, workspace_id: str, title: str, text: str) -> tuple[Document, IngestionResult]:
        """Create a document and ingest it synchronously.

        On failure the document stays in the store with status
        ``FAILED`` and the pipeline error propagates with its
        ``document_id`` set, so the caller can inspect or re-ingest it.
        """
        document = self.store.create_document(workspace_id, title, text)
        logger.info("Created document %s in workspace %s", document.id, workspace_id)
        try:
            result = self.ingestion.ingest(document.id, text)
        except RagError as exc:
            exc.document_id = document.id
            raise
        return self.store.get_document(document.id), result

    def ingest_document(self, document_id: str, *, force: bool = False) -> IngestionResult:
        """(Re-)ingest an existing document from its stored text.

        ``force`` takes over a document stuck in ``PROCESSING``.
        """
        return self.ingestion.ingest(document_id, force=force)

    def list_documents(self, workspace_id: str) -> list[Document]:
        return self.store.list_documents(workspace_id)

    def get_document(self, document_id: str) -> Document:
        return self.store.get_document(document_id)

    def delete_document(self, document_id: str) -> None:
        self.ingestion.delete_document(document_id)

    def reindex_workspace(self, workspace_id: str) -> int:
        return self.ingestion.reindex_workspace(workspace_id)

    # -- questions ------------------------------------------------------------

    def ask(self, question: str, workspace_id: str) -> Answer:
        """Answer *question* using only documents from *workspace_id*."""
        result: dict[str, Any] = self._graph.invoke(create_initial_state(question, workspace_id))
        return Answer(answer=result["answer"], sources=result.get("sources", []))


def build_service(config: Settings = settings) -> RagService:
    """Build a :class:`RagService` from settings (in-memory document store)."""
    return RagService(
        InMemoryDocumentStore(),
        build_embedder(config),
        build_index(config),
        config=config,
    )
