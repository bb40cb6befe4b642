"""KServe custom model runtime for workspace-scoped question answering."""

from __future__ import annotations

from typing import Any

import kserve

from workspace_rag.service import RagService, build_service


class WorkspaceRAGModel(kserve.Model):
    """KServe-compatible model that wraps :meth:`RagService.ask`.

    This class implements the ``predict`` interface expected by KServe
    so the question-answering flow can be deployed as an
    ``InferenceService``.
    """

    def __init__(self, name: str = "workspace-rag", service: RagService | None = None) -> None:
        super().__init__(name)
        self.service = service
        self.ready = False

    def load(self) -> None:
        """Build the service (called once at startup)."""
        if self.service is None:
            self.service = build_service()
        self.ready = True

    def predict(self, payload: dict[str, Any], headers: dict[str, str] | None = None) -> dict:
        """Run inference — called on every request.

        Parameters
        ----------
        payload:
            ``{"instances": [{"question": "...", "workspace_id": "..."}]}``.
        headers:
            Optional HTTP headers.

        Returns
        -------
        dict
            ``{"predictions": [{"answer": "...", "sources": [...]}]}``
        """
        predictions = []
        for instance in payload.get("instances", []):
            answer = self.service.ask(instance.get("question", ""), instance.get("workspace_id", ""))
            predictions.append(
                {
                    "answer": answer.answer,
                    "sources": [
                        {"id": m.id, "score": m.score, "document_id": m.document_id}
                        for m in answer.sources
                    ],
                }
            )
        return {"predictions": predictions}


if __name__ == "__main__":
    model = WorkspaceRAGModel()
    model.load()
    kserve.ModelServer().start([model])
