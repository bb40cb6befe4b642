"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="API key for the OpenAI-compatible completion endpoint")
    llm_model_name: str = Field(default="llama-3.3-70b-versatile", description="Completion model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for the completion API. Leave empty to use OpenAI cloud. "
            "Any OpenAI-compatible endpoint works, e.g. "
            "'https://api.groq.com/openai/v1'"
        ),
    )
    llm_temperature: float = 0.0
    llm_timeout: float = Field(default=60.0, description="Seconds before a completion call is abandoned")

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_backend: str = Field(default="local", description="'local' (sentence-transformers) or 'endpoint' (HF Inference)")
    huggingfacehub_api_token: str = ""
    embedding_dimension: int = Field(default=384, description="Expected vector length; 0 disables the check")
    embedding_batch_size: int = 10

    # Chunking
    chunk_target_size: int = 300

    # Vector index
    vector_backend: str = Field(default="chroma", description="'chroma' or 'memory'")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "workspace_rag"

    # Retrieval
    retrieval_candidate_k: int = 50
    retrieval_max_per_document: int = 5
    retrieval_context_size: int = 15

    # Optional query-answering extensions
    enable_query_rewrite: bool = False
    enable_llm_rerank: bool = False
    rerank_top_n: int = 7

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton: import `settings` wherever needed.
settings = Settings()
