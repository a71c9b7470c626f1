"""
Request/response codec for the RAG service API.

Responsibility: Build the augment request body and turn response JSON into a
RetrievalResult. Every response field is optional; a missing or mistyped
field falls back to its empty value instead of failing the whole response.
"""

import logging
import math
from typing import Any

from rag_middleware.core.errors import ResponseParseError
from rag_middleware.schemas.rag import ContextChunk, RAGConfig, RetrievalResult

logger = logging.getLogger(__name__)


def build_augment_request(query: str, config: RAGConfig, session_id: str = "") -> dict[str, Any]:
    """Request body for POST /api/v1/llama/augment. session_id is only sent when non-empty."""
    body: dict[str, Any] = {
        "query": query,
        "max_results": config.max_results,
        "similarity_threshold": config.similarity_threshold,
        "include_tools": config.include_tools,
    }
    if session_id:
        body["session_id"] = session_id
    return body


def _str_field(data: dict, key: str, default: str) -> str:
    value = data.get(key)
    if isinstance(value, str):
        return value
    if value is not None:
        logger.debug("[codec] field %r is %s, expected string; using default", key, type(value).__name__)
    return default


def _float_field(data: dict, key: str, default: float) -> float:
    value = data.get(key)
    # bool is an int subclass; a true/false similarity is not a score
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            number = float(value)
        except OverflowError:
            # JSON integers are unbounded; one past float range is not a score
            number = math.inf
        if math.isfinite(number):
            return number
    if value is not None:
        logger.debug("[codec] field %r=%r is not a finite number; using default", key, value)
    return default


def parse_chunk(item: Any) -> ContextChunk | None:
    """One chunk object → ContextChunk, or None when the item is not an object."""
    if not isinstance(item, dict):
        return None
    return ContextChunk(
        content=_str_field(item, "content", ""),
        source=_str_field(item, "source", "unknown"),
        similarity=_float_field(item, "similarity", 0.0),
    )


def parse_augment_response(data: Any) -> RetrievalResult:
    """
    Parse a 200 response from the augment endpoint into a successful RetrievalResult.

    Chunks keep the order the service sent them in. Non-object chunks and
    non-string tool names are skipped. Raises ResponseParseError when the
    body is not a JSON object at all.
    """
    if not isinstance(data, dict):
        raise ResponseParseError(f"expected a JSON object, got {type(data).__name__}")

    chunks: list[ContextChunk] = []
    raw_chunks = data.get("chunks")
    if isinstance(raw_chunks, list):
        for i, item in enumerate(raw_chunks):
            chunk = parse_chunk(item)
            if chunk is None:
                logger.warning("[codec:parse_augment_response] skipping chunk %d: not an object", i)
                continue
            chunks.append(chunk)
    elif raw_chunks is not None:
        logger.warning("[codec:parse_augment_response] 'chunks' is %s, expected list", type(raw_chunks).__name__)

    tools: list[str] = []
    raw_tools = data.get("suggested_tools")
    if isinstance(raw_tools, list):
        tools = [t for t in raw_tools if isinstance(t, str)]
    elif raw_tools is not None:
        logger.warning("[codec:parse_augment_response] 'suggested_tools' is %s, expected list", type(raw_tools).__name__)

    result = RetrievalResult(
        augmented_context=_str_field(data, "augmented_context", ""),
        chunks=chunks,
        suggested_tools=tools,
        service_latency_ms=_float_field(data, "latency_ms", 0.0),
        success=True,
    )
    logger.info(
        "[codec:parse_augment_response] OUT chunks=%d tools=%d service_latency_ms=%.1f",
        len(result.chunks), len(result.suggested_tools), result.service_latency_ms,
    )
    return result


def parse_health_response(data: Any) -> bool:
    """Healthy only when the body is an object whose 'ready' field is true."""
    return isinstance(data, dict) and data.get("ready") is True
