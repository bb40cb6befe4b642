"""Answer synthesis — grounded prompt + one completion call."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from workspace_rag.agent.llm import get_llm
from workspace_rag.agent.prompts import NO_DOCUMENTS_ANSWER, build_grounded_prompt
from workspace_rag.errors import SynthesisError
from workspace_rag.retrieval.models import QueryMatch

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


class Answer(BaseModel):
    """The model's answer plus the exact matches it was grounded on."""

    answer: str
    sources: list[QueryMatch] = Field(default_factory=list)


class AnswerSynthesizer:
    """Turn a question and its retrieved matches into a cited answer.

    Parameters
    ----------
    llm:
        Chat model to call.  Defaults to :func:`get_llm`, built on first
        use so that constructing the synthesiser needs no credentials.
    """

    def __init__(self, llm: BaseChatModel | None = None) -> None:
        self._llm = llm

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    def synthesize(self, question: str, matches: list[QueryMatch]) -> Answer:
        """Answer *question* from *matches* only.

        With no matches the canned "no documents" reply is returned and
        the model is not called.

        Raises
        ------
        SynthesisError
            When the completion call fails.  Not retried.
        """
        if not matches:
            return Answer(answer=NO_DOCUMENTS_ANSWER, sources=[])

        prompt = build_grounded_prompt(question, matches)
        try:
            response = self.llm.invoke(prompt)
        except Exception as exc:
            raise SynthesisError(f"Completion call failed: {exc}") from exc

        answer = response.content if isinstance(response.content, str) else str(response.content)
        logger.info("Synthesised answer (%d chars) from %d source(s)", len(answer), len(matches))
        return Answer(answer=answer, sources=list(matches))
