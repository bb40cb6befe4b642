"""
Agent — grounded answer synthesis and the LangGraph question-answering flow.

Public API
----------
- :class:`AnswerSynthesizer` — grounded prompt + completion call.
- :class:`Answer` — answer text plus the matches it cites.
- :func:`build_graph` — compile the rewrite → retrieve → rerank → synthesise workflow.
- :func:`create_initial_state` — bootstrap the state dict for ``graph.invoke()``.
"""

from workspace_rag.agent.graph import build_graph, create_initial_state
from workspace_rag.agent.state import QAState
from workspace_rag.agent.synthesizer import Answer, AnswerSynthesizer

__all__ = [
    "Answer",
    "AnswerSynthesizer",
    "QAState",
    "build_graph",
    "create_initial_state",
]
