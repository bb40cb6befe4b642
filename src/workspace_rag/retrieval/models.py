"""Domain models for vector-index entries, query matches, and filters."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MetadataFilter(BaseModel):
    """Equality predicate on one metadata key, for vector-index queries.

    Attributes
    ----------
    field:
        The metadata key to filter on (e.g. ``"workspace_id"``).
    value:
        The value the key must equal.
    """

    field: str
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, value=value)

    def matches(self, metadata: dict[str, Any]) -> bool:
        """Evaluate the filter client-side against *metadata*."""
        return metadata.get(self.field) == self.value


class IndexEntry(BaseModel):
    """One vector plus metadata destined for the index.

    ``metadata`` carries at least ``text``, ``document_id`` and
    ``workspace_id``; the index treats it as an opaque bag.
    """

    id: str
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueryMatch(BaseModel):
    """An ephemeral similarity-search hit."""

    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.metadata.get("text") or ""

    @property
    def document_id(self) -> str | None:
        return self.metadata.get("document_id")

    @property
    def workspace_id(self) -> str | None:
        return self.metadata.get("workspace_id")

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.document_id}§{self.id} {self.score:.3f}] {self.text[:120]}…"
