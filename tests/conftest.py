"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from workspace_rag.ingestion.embedder import Embedder, EmbeddingBackend
from workspace_rag.ingestion.store import InMemoryDocumentStore
from workspace_rag.retrieval.memory_store import InMemoryVectorIndex

DIM = 8


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class HashingBackend(EmbeddingBackend):
    """Deterministic bag-of-words embedding backend.

    Each word lands in bucket ``sum(ord(c)) % DIM``; a constant last
    component keeps every vector non-zero.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def embed_batch(self, texts: list[str]) -> list[Any]:
        self.calls.append(list(texts))
        return [self.vectorize(t) for t in texts]

    @staticmethod
    def vectorize(text: str) -> list[float]:
        vec = [0.0] * DIM
        for word in text.lower().split():
            vec[sum(ord(c) for c in word) % (DIM - 1)] += 1.0
        vec[-1] = 1.0
        return vec


@pytest.fixture()
def backend() -> HashingBackend:
    return HashingBackend()


@pytest.fixture()
def embedder(backend: HashingBackend) -> Embedder:
    return Embedder(backend, batch_size=10, dimension=DIM)


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex("test")


def fake_llm_response(content: str) -> MagicMock:
    """Create a mock LLM response with the given content."""
    resp = MagicMock()
    resp.content = content
    return resp


@pytest.fixture()
def mock_llm() -> MagicMock:
    llm = MagicMock()
    llm.invoke.return_value = fake_llm_response("The refund window is 30 days.")
    return llm
