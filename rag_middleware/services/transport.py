"""
Transport adapter: resolve the configured RAG host and build the HTTP client.

Responsibility: Turn RAGConfig.host/port into a scheme/host/port endpoint and
an httpx.Client with TLS (verified) or plaintext, plus read/write timeouts.
No network I/O happens here; the client connects lazily on first request.
"""

import logging
import os
import ssl
from dataclasses import dataclass, replace

import httpx

from rag_middleware.core.config import RAG_CA_CERT_PATH
from rag_middleware.core.errors import TransportConfigError
from rag_middleware.schemas.rag import RAGConfig

logger = logging.getLogger(__name__)

HTTPS_PREFIX = "https://"
HTTP_PREFIX = "http://"
HTTPS_DEFAULT_PORT = 443
HTTP_DEFAULT_PORT = 80

# Resolved once at import. httpx itself needs ssl, so an interpreter without
# TLS never gets this far; in practice the plaintext fallback is reached only
# when tests patch this flag to False.
TLS_SUPPORTED: bool = bool(getattr(ssl, "HAS_SNI", False))


@dataclass(frozen=True)
class Endpoint:
    """Immutable description of where the RAG service lives."""

    scheme: str
    host: str
    port: int

    @property
    def tls(self) -> bool:
        return self.scheme == "https"

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


@dataclass
class TransportHandle:
    """An endpoint plus the live client bound to it. Owned by one RAGMiddleware."""

    endpoint: Endpoint
    client: httpx.Client

    def close(self) -> None:
        self.client.close()


def resolve_endpoint(host: str, port: int) -> Endpoint:
    """
    Resolve a host string into an Endpoint.

    "https://x" forces TLS on 443 and "http://x" forces plaintext on 80, even
    when a different port is configured. Anything else is plaintext on the
    configured port, unless the host itself ends in ":<port>".
    One trailing slash is stripped.
    """
    raw = (host or "").strip()
    scheme = "http"
    resolved_port = port
    has_scheme = False

    if raw.startswith(HTTPS_PREFIX):
        scheme = "https"
        raw = raw[len(HTTPS_PREFIX):]
        resolved_port = HTTPS_DEFAULT_PORT
        has_scheme = True
    elif raw.startswith(HTTP_PREFIX):
        raw = raw[len(HTTP_PREFIX):]
        resolved_port = HTTP_DEFAULT_PORT
        has_scheme = True

    if raw.endswith("/"):
        raw = raw[:-1]

    if has_scheme and resolved_port != port:
        logger.warning(
            "[transport:resolve_endpoint] URL host %r uses port %d; configured port %d is ignored",
            host, resolved_port, port,
        )

    if not has_scheme and ":" in raw:
        host_part, _, port_part = raw.rpartition(":")
        # Leave bare IPv6 literals alone; "[::1]:8001" still splits
        if port_part.isdigit() and host_part and (":" not in host_part or host_part.endswith("]")):
            raw, resolved_port = host_part, int(port_part)

    if not raw:
        raise TransportConfigError(f"RAG host is empty (configured {host!r})")
    if "/" in raw:
        raise TransportConfigError(f"RAG host must not contain a path: {host!r}")
    return Endpoint(scheme=scheme, host=raw, port=resolved_port)


def timeout_from_ms(timeout_ms: int) -> httpx.Timeout:
    """Whole seconds plus millisecond remainder, applied to connect, read, write and pool."""
    seconds, millis = divmod(max(timeout_ms, 0), 1000)
    return httpx.Timeout(seconds + millis / 1000.0)


def _tls_context() -> ssl.SSLContext:
    """Verifying context: default trust store plus the system CA directory when present."""
    context = ssl.create_default_context()
    if RAG_CA_CERT_PATH and os.path.isdir(RAG_CA_CERT_PATH):
        context.load_verify_locations(capath=RAG_CA_CERT_PATH)
    return context


def build_transport(config: RAGConfig, transport: httpx.BaseTransport | None = None) -> TransportHandle:
    """
    Build a fresh TransportHandle for config. Each call replaces nothing by itself;
    the caller swaps it in and closes the previous handle.

    transport lets tests route requests to an httpx.MockTransport.
    Raises TransportConfigError when the host cannot form a URL.
    """
    endpoint = resolve_endpoint(config.host, config.port)
    verify: ssl.SSLContext | bool = True

    if endpoint.tls:
        if TLS_SUPPORTED:
            verify = _tls_context()
            logger.info("[transport:build] HTTPS client with certificate verification")
        else:
            logger.error("[transport:build] HTTPS requested but TLS support is not available; using plaintext")
            endpoint = replace(endpoint, scheme="http")

    logger.info("[transport:build] RAG connecting to %s", endpoint.base_url)
    try:
        client = httpx.Client(
            base_url=endpoint.base_url,
            timeout=timeout_from_ms(config.timeout_ms),
            verify=verify,
            transport=transport,
            headers={"Accept": "application/json"},
        )
    except httpx.InvalidURL as e:
        raise TransportConfigError(f"Invalid RAG host {config.host!r}: {e}") from e
    return TransportHandle(endpoint=endpoint, client=client)
