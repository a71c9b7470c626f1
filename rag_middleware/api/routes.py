"""
API routes: expose the RAG middleware to the inference server and operators.

No logic here beyond marshalling; everything delegates to the middleware and
injection helpers. Augment/prepare always answer 200 with a structured result
so a broken RAG backend never turns into an HTTP error for the caller.
"""

import logging

from fastapi import APIRouter, Depends

from rag_middleware.schemas.api import AugmentRequest, HealthResponse, PrepareRequest, PrepareResponse
from rag_middleware.schemas.rag import RAGConfig, RetrievalResult
from rag_middleware.services.injection import prepare_chat_messages
from rag_middleware.services.middleware import RAGMiddleware, get_middleware

logger = logging.getLogger(__name__)
router = APIRouter()
rag_router = APIRouter(tags=["rag"])


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "RAG middleware running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- RAG ---

@rag_router.get(
    "/health",
    response_model=HealthResponse,
    summary="RAG service health",
    description="Whether RAG is enabled and the RAG service reports ready. Never errors; a broken backend reads as healthy=false.",
)
def rag_health(middleware: RAGMiddleware = Depends(get_middleware)) -> HealthResponse:
    enabled = middleware.enabled
    return HealthResponse(enabled=enabled, healthy=middleware.is_healthy())


@rag_router.post(
    "/augment",
    response_model=RetrievalResult,
    summary="Retrieve context for a query",
    description="Calls the RAG service and returns chunks, suggested tools, and latency. Failures come back as success=false.",
)
def rag_augment(body: AugmentRequest, middleware: RAGMiddleware = Depends(get_middleware)) -> RetrievalResult:
    logger.info("[api:rag_augment] IN  query_len=%d", len(body.query))
    return middleware.augment_query(body.query, body.session_id)


@rag_router.post(
    "/prepare",
    response_model=PrepareResponse,
    summary="Inject RAG context into chat messages",
    description="Gate, augment, and inject context into the last user message before inference.",
)
def rag_prepare(body: PrepareRequest, middleware: RAGMiddleware = Depends(get_middleware)) -> PrepareResponse:
    logger.info("[api:rag_prepare] IN  messages=%d", len(body.messages))
    messages, result = prepare_chat_messages(middleware, body.messages, body.params, body.session_id)
    return PrepareResponse(messages=messages, rag_used=result is not None, result=result)


@rag_router.get("/config", response_model=RAGConfig, summary="Current RAG configuration")
def get_rag_config(middleware: RAGMiddleware = Depends(get_middleware)) -> RAGConfig:
    return middleware.get_config()


@rag_router.put(
    "/config",
    response_model=RAGConfig,
    summary="Replace the RAG configuration",
    description="Atomically swaps the configuration; the HTTP client is rebuilt when host, port, or enabled change.",
)
def put_rag_config(body: RAGConfig, middleware: RAGMiddleware = Depends(get_middleware)) -> RAGConfig:
    middleware.update_config(body)
    return middleware.get_config()
