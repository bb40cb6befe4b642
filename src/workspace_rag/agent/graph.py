"""LangGraph graph definition — the question-answering workflow.

This module wires the nodes defined in :mod:`workspace_rag.agent.nodes`
into a compiled :class:`StateGraph`:

1. **Rewrite** the question into an explicit search query (optional).
2. **Retrieve** workspace-scoped, diversity-capped matches.
3. **Rerank** the matches with the completion model (optional).
4. **Synthesise** a grounded answer with its sources.

The graph can be tested locally without any external infrastructure by
injecting an in-memory index, a fake embedder, and a stub LLM.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from langgraph.graph import END, StateGraph

from workspace_rag.agent import nodes
from workspace_rag.agent.state import QAState

if TYPE_CHECKING:
    from workspace_rag.agent.synthesizer import AnswerSynthesizer
    from workspace_rag.retrieval.retriever import RetrievalPipeline


def build_graph(
    retriever: RetrievalPipeline,
    synthesizer: AnswerSynthesizer,
    *,
    rewrite: bool = False,
    rerank: bool = False,
    rerank_top_n: int = 7,
) -> Any:
    """Construct and return the compiled question-answering graph.

    Graph topology (optional nodes in brackets)::

        START ─► [rewrite_query] ─► retrieve ─┬─► [rerank] ─┐
                                              │             ▼
                                              └──────► synthesize ─► END

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.invoke()``.
    """
    workflow = StateGraph(QAState)

    def _retrieve(state: QAState) -> dict[str, Any]:
        return nodes.retrieve(state, retriever)

    def _rerank(state: QAState) -> dict[str, Any]:
        return nodes.rerank(state, top_n=rerank_top_n)

    def _synthesize(state: QAState) -> dict[str, Any]:
        return nodes.synthesize(state, synthesizer)

    # -- Nodes ---------------------------------------------------------------
    workflow.add_node("retrieve", _retrieve)
    workflow.add_node("synthesize", _synthesize)
    if rewrite:
        workflow.add_node("rewrite_query", nodes.rewrite_query)
    if rerank:
        workflow.add_node("rerank", _rerank)

    # -- Edges ---------------------------------------------------------------
    if rewrite:
        workflow.set_entry_point("rewrite_query")
        workflow.add_edge("rewrite_query", "retrieve")
    else:
        workflow.set_entry_point("retrieve")

    if rerank:
        workflow.add_conditional_edges(
            "retrieve",
            nodes.after_retrieve,
            {"rerank": "rerank", "synthesize": "synthesize"},
        )
        workflow.add_edge("rerank", "synthesize")
    else:
        workflow.add_edge("retrieve", "synthesize")

    workflow.add_edge("synthesize", END)
    return workflow.compile()


def create_initial_state(question: str, workspace_id: str) -> dict[str, Any]:
    """Build the initial state dict for ``graph.invoke()``.

    Usage::

        graph = build_graph(retriever, synthesizer)
        result = graph.invoke(create_initial_state("What is the SLA?", "ws-1"))
        print(result["answer"])
    """
    return {
        "question": question,
        "workspace_id": workspace_id,
        "search_query": question,
        "matches": [],
        "answer": "",
        "sources": [],
    }
