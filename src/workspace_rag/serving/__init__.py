"""
Serving — FastAPI application and KServe runtime.

This module exposes document ingestion and workspace-scoped question
answering over HTTP, either as a standalone container or as a KServe
InferenceService.
"""
