"""Prompt templates for grounded question answering.

Every LLM call uses a dedicated prompt from this module.  Keeping
prompts in one place makes them easy to audit, version, and A/B test.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from workspace_rag.retrieval.models import QueryMatch

FALLBACK_ANSWER = "I don't know based on the provided documents."
"""Sentence the model must emit when the context lacks the answer."""

NO_DOCUMENTS_ANSWER = (
    "I don't have any documents in this workspace to answer your question. "
    "Please upload some documents first."
)
"""Canned reply when retrieval found nothing in the workspace."""

# ── 1. Grounded answer ────────────────────────────────────────────────

GROUNDED_SYSTEM = """\
You are a helpful AI assistant that answers questions strictly from the
documents supplied in the user's message. Never use outside knowledge.
"""


def build_context(matches: list[QueryMatch]) -> str:
    """Join match texts with blank-line separators."""
    return "\n\n".join(m.text for m in matches)


def build_grounded_prompt(question: str, matches: list[QueryMatch]) -> list[BaseMessage]:
    """Build the strict, context-only answer prompt."""
    user_msg = (
        "Use ONLY the context below to answer the user.\n"
        f'If the answer is not found, say: "{FALLBACK_ANSWER}"\n\n'
        f"Context:\n{build_context(matches)}\n\n"
        f"Question: {question}\n\n"
        "Answer:"
    )
    return [
        SystemMessage(content=GROUNDED_SYSTEM),
        HumanMessage(content=user_msg),
    ]


# ── 2. Query rewriting (optional) ─────────────────────────────────────

REWRITE_SYSTEM = "You rewrite questions for document retrieval."


def build_rewrite_prompt(question: str) -> list[BaseMessage]:
    """Ask the model for an explicit search query, not an answer."""
    return [
        SystemMessage(content=REWRITE_SYSTEM),
        HumanMessage(
            content=(
                "Rewrite the following user question into a precise and explicit search query.\n"
                "Do NOT answer the question.\n"
                "Return only the rewritten query.\n\n"
                f'User question:\n"{question}"'
            )
        ),
    ]


# ── 3. Re-ranking (optional) ──────────────────────────────────────────

RERANK_SYSTEM = "You are a ranking engine."


def build_rerank_prompt(question: str, matches: list[QueryMatch], top_n: int) -> list[BaseMessage]:
    """Ask the model for the *top_n* most relevant chunk ids as JSON."""
    listing = "\n\n".join(f"ID: {m.id}\nText: {m.text}" for m in matches)
    return [
        SystemMessage(content=RERANK_SYSTEM),
        HumanMessage(
            content=(
                "You are ranking document chunks for question answering.\n\n"
                f'Question:\n"{question}"\n\n'
                "Below are document chunks.\n"
                f"Return the {top_n} most relevant chunk IDs in JSON array format.\n"
                "ONLY return JSON. No explanation.\n\n"
                f"Chunks:\n{listing}"
            )
        ),
    ]
