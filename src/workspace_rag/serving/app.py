"""FastAPI application exposing ingestion and question answering over REST."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from workspace_rag.errors import (
    DocumentNotFoundError,
    EmptyDocumentError,
    RagError,
)
from workspace_rag.ingestion.models import Document, DocumentStatus
from workspace_rag.retrieval.models import QueryMatch
from workspace_rag.service import RagService, build_service

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Workspace RAG API",
    version="0.1.0",
    description="Upload documents into workspaces and ask grounded questions about them.",
)


@lru_cache(maxsize=1)
def get_service() -> RagService:
    """Process-wide service instance (overridable in tests)."""
    return build_service()


# ── Request / Response schemas ────────────────────────────────────────
class UploadRequest(BaseModel):
    """Document text extracted by the upload layer."""

    title: str = ""
    text: str


class DocumentResponse(BaseModel):
    id: str
    workspace_id: str
    title: str
    status: DocumentStatus
    chunks_indexed: int | None = None


class QueryRequest(BaseModel):
    """Incoming question from the user."""

    question: str = Field(min_length=1)


class SourceResponse(BaseModel):
    id: str
    score: float
    document_id: str | None = None
    text: str = ""


class QueryResponse(BaseModel):
    """Answer plus the fragments it was grounded on."""

    answer: str
    sources: list[SourceResponse] = []


class ReindexResponse(BaseModel):
    workspace_id: str
    chunks_indexed: int


def _source(match: QueryMatch) -> SourceResponse:
    return SourceResponse(id=match.id, score=match.score, document_id=match.document_id, text=match.text)


def _document(document: Document, chunks_indexed: int | None = None) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        workspace_id=document.workspace_id,
        title=document.title,
        status=document.status,
        chunks_indexed=chunks_indexed,
    )


# ── Error mapping ─────────────────────────────────────────────────────
@app.exception_handler(RagError)
async def rag_error_handler(request: Request, exc: RagError) -> JSONResponse:
    """Map the pipeline error taxonomy onto HTTP status codes."""
    if isinstance(exc, DocumentNotFoundError):
        status_code = 404
    elif isinstance(exc, EmptyDocumentError):
        status_code = 422
    elif exc.retryable:
        status_code = 503
    else:
        status_code = 500
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "detail": str(exc),
            "retryable": exc.retryable,
            "document_id": exc.document_id,
        },
    )


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
def health(service: RagService = Depends(get_service)) -> dict[str, str]:
    """Liveness probe; reports whether the vector index is reachable."""
    return {"status": "ok", "index": "ok" if service.index.health_check() else "unavailable"}


@app.post("/workspaces/{workspace_id}/documents", response_model=DocumentResponse, status_code=201)
def upload_document(
    workspace_id: str,
    request: UploadRequest,
    service: RagService = Depends(get_service),
) -> DocumentResponse:
    """Create a document and ingest it before responding."""
    document, result = service.upload_document(workspace_id, request.title, request.text)
    return _document(document, chunks_indexed=result.chunks_indexed)


@app.get("/documents/{document_id}", response_model=DocumentResponse)
def get_document(document_id: str, service: RagService = Depends(get_service)) -> DocumentResponse:
    return _document(service.get_document(document_id))


@app.get("/workspaces/{workspace_id}/documents", response_model=list[DocumentResponse])
def list_documents(workspace_id: str, service: RagService = Depends(get_service)) -> list[DocumentResponse]:
    """Every document in the workspace, whatever its status."""
    return [_document(d) for d in service.list_documents(workspace_id)]


@app.post("/documents/{document_id}/ingest", response_model=DocumentResponse)
def ingest_document(
    document_id: str,
    force: bool = False,
    service: RagService = Depends(get_service),
) -> DocumentResponse:
    """Re-run ingestion from the stored text (retry of a ``FAILED`` upload).

    ``?force=true`` also takes over a document stuck in ``PROCESSING``.
    """
    result = service.ingest_document(document_id, force=force)
    return _document(service.get_document(document_id), chunks_indexed=result.chunks_indexed)


@app.delete("/documents/{document_id}", status_code=204)
def delete_document(document_id: str, service: RagService = Depends(get_service)) -> None:
    service.delete_document(document_id)


@app.post("/workspaces/{workspace_id}/query", response_model=QueryResponse)
def query(
    workspace_id: str,
    request: QueryRequest,
    service: RagService = Depends(get_service),
) -> QueryResponse:
    """Answer a question from the workspace's documents."""
    answer = service.ask(request.question, workspace_id)
    return QueryResponse(answer=answer.answer, sources=[_source(m) for m in answer.sources])


@app.post("/workspaces/{workspace_id}/reindex", response_model=ReindexResponse)
def reindex(workspace_id: str, service: RagService = Depends(get_service)) -> ReindexResponse:
    """Rebuild the workspace's vector-index entries from persisted chunks."""
    return ReindexResponse(workspace_id=workspace_id, chunks_indexed=service.reindex_workspace(workspace_id))
