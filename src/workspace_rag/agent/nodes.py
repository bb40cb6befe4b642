"""Graph nodes — each function is one step in the question-answering flow.

Node contract
-------------
* Accepts the full :class:`QAState` dict (plus injected collaborators).
* Returns a *partial* dict with **only the keys that changed**.
* No hidden global state, so every node is independently testable.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from workspace_rag.agent.llm import get_llm
from workspace_rag.agent.prompts import build_rerank_prompt, build_rewrite_prompt
from workspace_rag.agent.state import QAState
from workspace_rag.errors import SynthesisError

if TYPE_CHECKING:
    from workspace_rag.agent.synthesizer import AnswerSynthesizer
    from workspace_rag.retrieval.retriever import RetrievalPipeline

logger = logging.getLogger(__name__)


# ── 1. REWRITE QUERY (optional) ───────────────────────────────────────


def rewrite_query(state: QAState) -> dict[str, Any]:
    """Replace the search query with an explicit, retrieval-friendly one.

    Empty model output keeps the original question.
    """
    question = state["question"]
    try:
        response = get_llm(temperature=0.0).invoke(build_rewrite_prompt(question))
    except Exception as exc:
        raise SynthesisError(f"Query rewrite failed: {exc}") from exc

    rewritten = str(response.content).strip() or question
    logger.info("Rewrote query %r -> %r", question, rewritten)
    return {"search_query": rewritten}


# ── 2. RETRIEVE ───────────────────────────────────────────────────────


def retrieve(state: QAState, retriever: RetrievalPipeline) -> dict[str, Any]:
    """Run the workspace-scoped retrieval pipeline."""
    query = state.get("search_query") or state["question"]
    matches = retriever.retrieve(query, state["workspace_id"])
    return {"matches": matches}


# ── 3. RERANK (optional) ──────────────────────────────────────────────


def rerank(state: QAState, top_n: int = 7) -> dict[str, Any]:
    """Let the model pick the *top_n* most relevant matches.

    Selected matches keep their retrieval order.  Unparseable output (or
    an empty selection) falls back to the first *top_n* matches.
    """
    matches = state.get("matches", [])
    if not matches:
        return {"matches": []}

    try:
        response = get_llm(temperature=0.0).invoke(
            build_rerank_prompt(state["question"], matches, top_n)
        )
    except Exception as exc:
        raise SynthesisError(f"Rerank failed: {exc}") from exc

    ranked_ids = _parse_id_list(str(response.content))
    selected = [m for m in matches if m.id in ranked_ids][:top_n]
    if not selected:
        logger.warning("Rerank output unusable, keeping top %d by score", top_n)
        selected = matches[:top_n]
    return {"matches": selected}


# ── 4. SYNTHESIZE ─────────────────────────────────────────────────────


def synthesize(state: QAState, synthesizer: AnswerSynthesizer) -> dict[str, Any]:
    """Produce the grounded answer and its sources."""
    result = synthesizer.synthesize(state["question"], state.get("matches", []))
    return {"answer": result.answer, "sources": result.sources}


# ── ROUTING (conditional edge) ────────────────────────────────────────


def after_retrieve(state: QAState) -> str:
    """Skip re-ranking when there is nothing to rank."""
    return "rerank" if state.get("matches") else "synthesize"


# ── Internal helpers ───────────────────────────────────────────────────


def _parse_id_list(text: str) -> set[str]:
    """Best-effort parse of a JSON array of ids.

    Strips ```json … ``` wrappers before parsing; returns an empty set
    when the payload is not a JSON list.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        first_newline = cleaned.index("\n") if "\n" in cleaned else 3
        cleaned = cleaned[first_newline + 1 :]
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Could not parse rerank JSON: %.200s", text)
        return set()
    if not isinstance(parsed, list):
        return set()
    return {str(item) for item in parsed}
