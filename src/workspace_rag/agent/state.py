"""Question-answering state — shared across all graph nodes."""

from __future__ import annotations

from typing import TypedDict

from workspace_rag.retrieval.models import QueryMatch


class QAState(TypedDict):
    """Typed state that flows through the question-answering graph.

    Attributes
    ----------
    question:
        The user's natural-language question, as asked.
    workspace_id:
        Workspace the answer must be grounded in.
    search_query:
        Text actually embedded for retrieval; equals ``question`` unless
        the ``rewrite_query`` node replaced it.
    matches:
        Retrieved (and possibly re-ranked) context matches.
    answer:
        The final answer, populated by the ``synthesize`` node.
    sources:
        The matches the answer was grounded on.
    """

    question: str
    workspace_id: str
    search_query: str
    matches: list[QueryMatch]
    answer: str
    sources: list[QueryMatch]
