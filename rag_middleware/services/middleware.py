"""
RAG middleware: augment chat queries with context from the remote RAG service.

Responsibility: Own the (config, transport handle) pair, call the augment and
health endpoints, and turn every failure into a RetrievalResult or False.
Nothing here raises past the public methods; callers proceed without context
when the RAG service is disabled, slow, or broken.

One lock guards config and handle and is held across each HTTP call, so at
most one RAG request is in flight per instance. Concurrent chat requests
serialize here; the configured timeout bounds how long each one waits.
"""

import logging
import threading
import time
from typing import Any

import httpx

from rag_middleware.core.config import AUGMENT_ENDPOINT, HEALTH_ENDPOINT, load_rag_config
from rag_middleware.core.errors import RAGErrorKind, ResponseParseError, TransportConfigError
from rag_middleware.schemas.rag import RAGConfig, RetrievalResult
from rag_middleware.services.codec import build_augment_request, parse_augment_response, parse_health_response
from rag_middleware.services.transport import TransportHandle, build_transport

logger = logging.getLogger(__name__)

TRANSPORT_FAILURE_MESSAGE = "Failed to get response from RAG service"


class RAGMiddleware:
    """Thread-safe client for the RAG service's augment and health endpoints."""

    def __init__(self, config: RAGConfig, transport: httpx.BaseTransport | None = None) -> None:
        self._config = config.model_copy()
        self._lock = threading.Lock()
        self._handle: TransportHandle | None = None
        # Test hook: route the client through e.g. httpx.MockTransport
        self._transport = transport
        if self._config.enabled:
            with self._lock:
                self._rebuild_transport()
            logger.info("[rag:init] RAG middleware initialized: %s:%d", self._config.host, self._config.port)
        else:
            logger.info("[rag:init] RAG middleware disabled")

    # --- config ---

    def get_config(self) -> RAGConfig:
        """Copy of the current configuration."""
        with self._lock:
            return self._config.model_copy()

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._config.enabled

    def update_config(self, config: RAGConfig) -> None:
        """
        Replace the configuration atomically. The transport is rebuilt only when
        host, port, or enabled changed and the new config is enabled; a disabling
        update keeps the old handle, which is never used while disabled.
        """
        with self._lock:
            previous = self._config
            need_reinit = (
                config.host != previous.host
                or config.port != previous.port
                or config.enabled != previous.enabled
            )
            self._config = config.model_copy()
            if need_reinit and self._config.enabled:
                self._rebuild_transport()
        logger.info(
            "[rag:update_config] enabled=%s host=%s port=%d reinit=%s",
            config.enabled, config.host, config.port, need_reinit and config.enabled,
        )

    def _rebuild_transport(self) -> None:
        """Swap in a fresh handle and close the old one. Caller holds the lock."""
        previous = self._handle
        try:
            self._handle = build_transport(self._config, transport=self._transport)
        except TransportConfigError as e:
            logger.error("[rag:transport] cannot build HTTP client: %s", e.message)
            self._handle = None
        if previous is not None:
            previous.close()

    def close(self) -> None:
        """Release the HTTP client. Later calls report a transport failure until config changes."""
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    # --- requests ---

    def _post_json(self, path: str, body: dict[str, Any]) -> Any | None:
        """POST body as JSON; parsed response JSON, or None on any transport failure. Caller holds the lock."""
        if self._handle is None:
            logger.error("[rag:request] HTTP client not initialized")
            return None
        try:
            response = self._handle.client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.error("[rag:request] HTTP request to %s failed: %s", path, e)
            return None
        if response.status_code != 200:
            logger.error("[rag:request] %s returned status %d: %s", path, response.status_code, response.text[:200])
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error("[rag:request] %s returned invalid JSON: %s", path, e)
            return None

    def augment_query(self, query: str, session_id: str = "") -> RetrievalResult:
        """
        Retrieve context for query. Never raises.

        Disabled or empty query short-circuit with no network call. Otherwise
        latency_ms is the measured duration of the whole call, success or not.
        """
        start = time.perf_counter()
        with self._lock:
            config = self._config
            if not config.enabled:
                return RetrievalResult.failure(RAGErrorKind.DISABLED, "RAG disabled")
            if not query:
                return RetrievalResult.failure(RAGErrorKind.EMPTY_QUERY, "Empty query")

            logger.info("[rag:augment_query] IN  query_len=%d session=%s", len(query), bool(session_id))
            logger.debug("[rag:augment_query] query=%r", query[:200])
            try:
                body = build_augment_request(query, config, session_id)
                data = self._post_json(AUGMENT_ENDPOINT, body)
                if data is None:
                    result = RetrievalResult.failure(RAGErrorKind.TRANSPORT, TRANSPORT_FAILURE_MESSAGE)
                else:
                    result = parse_augment_response(data)
            except ResponseParseError as e:
                logger.error("[rag:augment_query] error parsing RAG response: %s", e.message)
                result = RetrievalResult.failure(RAGErrorKind.PARSE, f"Parse error: {e.message}")
            except Exception as e:
                logger.exception("[rag:augment_query] RAG augmentation error")
                result = RetrievalResult.failure(RAGErrorKind.PARSE, f"Parse error: {e}")

        result.latency_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            "[rag:augment_query] OUT success=%s chunks=%d latency_ms=%.1f error=%r",
            result.success, len(result.chunks), result.latency_ms, result.error_message,
        )
        return result

    def is_healthy(self) -> bool:
        """True only when the RAG service answers its health check with ready=true. Never raises."""
        # Unlocked snapshot: a disabled instance must not queue behind an in-flight request
        if not self._config.enabled:
            return False
        with self._lock:
            if not self._config.enabled or self._handle is None:
                return False
            try:
                response = self._handle.client.get(HEALTH_ENDPOINT)
                if response.status_code != 200:
                    logger.warning("[rag:is_healthy] health check returned status %d", response.status_code)
                    return False
                return parse_health_response(response.json())
            except httpx.HTTPError as e:
                logger.warning("[rag:is_healthy] health check failed: %s", e)
                return False
            except ValueError as e:
                logger.warning("[rag:is_healthy] health check body is not JSON: %s", e)
                return False
            except Exception as e:
                logger.warning("[rag:is_healthy] health check error: %s", e)
                return False


_default_middleware: RAGMiddleware | None = None
_default_lock = threading.Lock()


def get_middleware() -> RAGMiddleware:
    """Process-wide middleware built from the environment on first use."""
    global _default_middleware
    with _default_lock:
        if _default_middleware is None:
            _default_middleware = RAGMiddleware(load_rag_config())
        return _default_middleware


def shutdown_middleware() -> None:
    """Close and forget the process-wide middleware, if one was built."""
    global _default_middleware
    with _default_lock:
        if _default_middleware is not None:
            _default_middleware.close()
            _default_middleware = None
            logger.info("[rag:shutdown] RAG middleware closed")
