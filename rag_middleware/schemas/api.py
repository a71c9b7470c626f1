"""Schemas for the /rag HTTP endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from rag_middleware.schemas.rag import RetrievalResult


class AugmentRequest(BaseModel):
    """Request body for POST /rag/augment."""

    query: str = Field("", description="User query to retrieve context for. Empty yields an 'Empty query' result.")
    session_id: str = Field("", description="Optional session ID forwarded to the RAG service.")


class PrepareRequest(BaseModel):
    """Request body for POST /rag/prepare: the chat messages about to be sent to the model."""

    messages: list[dict[str, Any]] = Field(..., description="Chat messages ({role, content}) in conversation order.")
    params: dict[str, Any] = Field(default_factory=dict, description="Request parameters; an explicit boolean rag_enabled overrides gating.")
    session_id: str = Field("", description="Optional session ID forwarded to the RAG service.")


class PrepareResponse(BaseModel):
    """Response for POST /rag/prepare."""

    messages: list[dict[str, Any]] = Field(..., description="Messages with context injected into the last user message.")
    rag_used: bool = Field(False, description="Whether gating allowed a RAG call for this request.")
    result: RetrievalResult | None = Field(None, description="Augmentation result when RAG was used.")


class HealthResponse(BaseModel):
    """Response for GET /rag/health."""

    enabled: bool
    healthy: bool
