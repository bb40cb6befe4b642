"""Completion model factory.

Any OpenAI-compatible chat endpoint works: the OpenAI cloud API by
default, or Groq / a self-hosted vLLM server when ``LLM_BASE_URL`` is
set (e.g. ``https://api.groq.com/openai/v1``).
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_openai import ChatOpenAI

from workspace_rag.config import settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Return a chat model configured from :data:`settings`.

    Client-side retries are disabled; a failed call surfaces once as a
    :class:`~workspace_rag.errors.SynthesisError` and the caller decides
    whether to re-ask.
    """
    options: dict[str, Any] = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
        "timeout": settings.llm_timeout,
        "max_retries": 0,
    }
    if not settings.llm_base_url:
        return ChatOpenAI(api_key=settings.openai_api_key, **options)

    logger.info("Completion endpoint: %s", settings.llm_base_url)
    # self-hosted servers accept any key, but the client rejects an empty one
    return ChatOpenAI(base_url=settings.llm_base_url, api_key=settings.openai_api_key or "EMPTY", **options)
