"""Schemas for RAG configuration, retrieved chunks, and augmentation results."""

from pydantic import BaseModel, Field

from rag_middleware.core.errors import RAGErrorKind


class RAGConfig(BaseModel):
    """Connection parameters and feature flags for the RAG middleware. When enabled is false, no network calls occur."""

    host: str = Field("localhost", description="Bare host, host:port, or full http(s):// URL of the RAG service.")
    port: int = Field(8001, ge=1, le=65535, description="Port used when host carries no scheme.")
    max_results: int = Field(5, ge=1, description="Maximum chunks requested per query.")
    similarity_threshold: float = Field(0.3, ge=0.0, le=1.0, description="Minimum similarity for returned chunks.")
    include_tools: bool = Field(False, description="Ask the RAG service for tool suggestions.")
    timeout_ms: int = Field(5000, ge=1, description="Read/write timeout for RAG calls in milliseconds.")
    enabled: bool = Field(False, description="Master switch; disabled means no network access.")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "host": "https://rag.example.com",
                    "port": 8001,
                    "max_results": 5,
                    "similarity_threshold": 0.3,
                    "include_tools": False,
                    "timeout_ms": 5000,
                    "enabled": True,
                }
            ]
        }
    }


class ContextChunk(BaseModel):
    """A single retrieved passage with its source and relevance score."""

    content: str = ""
    source: str = "unknown"
    similarity: float = 0.0

    model_config = {"frozen": True}


class RetrievalResult(BaseModel):
    """
    Outcome of one augment_query call.

    Either success=True with the parsed fields populated (chunks may be empty),
    or success=False with error_message and error_kind set.
    latency_ms is measured locally; service_latency_ms is what the RAG service reported.
    """

    augmented_context: str = ""
    chunks: list[ContextChunk] = Field(default_factory=list)
    suggested_tools: list[str] = Field(default_factory=list)
    latency_ms: float = 0.0
    service_latency_ms: float = 0.0
    success: bool = False
    error_message: str = ""
    error_kind: RAGErrorKind | None = None

    @classmethod
    def failure(cls, kind: RAGErrorKind, message: str, latency_ms: float = 0.0) -> "RetrievalResult":
        return cls(success=False, error_kind=kind, error_message=message, latency_ms=latency_ms)
