"""Retrieval pipeline — workspace-scoped semantic search with a diversity cap.

Usage::

    from workspace_rag.retrieval.retriever import RetrievalPipeline

    pipeline = RetrievalPipeline(embedder, index)
    matches  = pipeline.retrieve("What is our refund policy?", workspace_id="ws-1")
    for m in matches:
        print(m.document_id, m.score, m.text[:80])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from workspace_rag.retrieval.models import MetadataFilter, QueryMatch

if TYPE_CHECKING:
    from workspace_rag.ingestion.embedder import Embedder
    from workspace_rag.retrieval.base import VectorIndexBase

logger = logging.getLogger(__name__)


def filter_by_workspace(matches: list[QueryMatch], workspace_id: str) -> list[QueryMatch]:
    """Keep only matches whose metadata belongs to *workspace_id*."""
    return [m for m in matches if m.workspace_id == workspace_id]


def cap_per_document(matches: list[QueryMatch], max_per_document: int) -> list[QueryMatch]:
    """Keep at most *max_per_document* matches per ``document_id``.

    Groups are formed in first-seen order and each group keeps its
    incoming relevance order; nothing is re-sorted here.  Matches
    without a ``document_id`` are dropped.
    """
    groups: dict[str, list[QueryMatch]] = {}
    for match in matches:
        document_id = match.document_id
        if not document_id:
            logger.debug("Dropping match %s without document_id", match.id)
            continue
        group = groups.setdefault(document_id, [])
        if len(group) < max_per_document:
            group.append(match)
    return [m for group in groups.values() for m in group]


def rank_by_score(matches: list[QueryMatch]) -> list[QueryMatch]:
    """Stable sort by descending score."""
    return sorted(matches, key=lambda m: m.score, reverse=True)


class RetrievalPipeline:
    """Embed a question and pick a diverse, workspace-scoped context set.

    Parameters
    ----------
    embedder:
        Used to embed the question.
    index:
        Shared vector index holding every workspace's chunks.
    candidate_k:
        Oversized candidate count requested from the index, to leave
        room for the workspace filter and the per-document cap.
    max_per_document:
        Diversity cap — maximum fragments any one document contributes.
    context_size:
        Final number of matches handed to the synthesiser.
    push_down_filter:
        Also send the workspace predicate to the index.  The client-side
        filter is applied regardless.
    """

    def __init__(
        self,
        embedder: Embedder,
        index: VectorIndexBase,
        *,
        candidate_k: int = 50,
        max_per_document: int = 5,
        context_size: int = 15,
        push_down_filter: bool = True,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self.candidate_k = candidate_k
        self.max_per_document = max_per_document
        self.context_size = context_size
        self.push_down_filter = push_down_filter

    def retrieve(self, question: str, workspace_id: str) -> list[QueryMatch]:
        """Return up to ``context_size`` matches from *workspace_id*.

        An empty list means the workspace has nothing relevant indexed;
        it is not an error.
        """
        vector = self._embedder.embed_one(question)
        return self.retrieve_by_vector(vector, workspace_id)

    def retrieve_by_vector(self, vector: list[float], workspace_id: str) -> list[QueryMatch]:
        """Same as :meth:`retrieve` but accepts a pre-computed embedding."""
        filters = [MetadataFilter.equals("workspace_id", workspace_id)] if self.push_down_filter else None
        candidates = self._index.query(vector, top_k=self.candidate_k, filters=filters)

        scoped = filter_by_workspace(candidates, workspace_id)
        if not scoped:
            logger.info("No indexed chunks for workspace %s", workspace_id)
            return []

        diverse = cap_per_document(scoped, self.max_per_document)
        selected = rank_by_score(diverse)[: self.context_size]
        logger.info(
            "Retrieved %d candidates, %d in workspace %s, %d selected",
            len(candidates),
            len(scoped),
            workspace_id,
            len(selected),
        )
        return selected
