"""
Middleware configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and
middleware-wide constants. Keeps the rest of the package decoupled from how
config is sourced.
"""

import os

from dotenv import load_dotenv

from rag_middleware.schemas.rag import RAGConfig

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# RAG service connection (bare host, host:port, or full http(s):// URL)
RAG_HOST: str = os.getenv("RAG_HOST", "localhost").strip() or "localhost"
RAG_PORT: int = int(os.getenv("RAG_PORT", "8001"))

# Retrieval tuning (passed through to the RAG service on every request)
RAG_MAX_RESULTS: int = int(os.getenv("RAG_MAX_RESULTS", "5"))
RAG_SIMILARITY_THRESHOLD: float = float(os.getenv("RAG_SIMILARITY_THRESHOLD", "0.3"))
RAG_INCLUDE_TOOLS: bool = _env_bool("RAG_INCLUDE_TOOLS", False)

# Read/write timeout for RAG calls (milliseconds)
RAG_TIMEOUT_MS: int = int(os.getenv("RAG_TIMEOUT_MS", "5000"))

# Off by default: no network calls until explicitly enabled
RAG_ENABLED: bool = _env_bool("RAG_ENABLED", False)

# System CA directory trusted for https:// hosts
RAG_CA_CERT_PATH: str = os.getenv("RAG_CA_CERT_PATH", "/etc/ssl/certs").strip()

LOG_LEVEL: str = os.getenv("RAG_LOG_LEVEL", "INFO").strip().upper() or "INFO"

# RAG service API
AUGMENT_ENDPOINT: str = "/api/v1/llama/augment"
HEALTH_ENDPOINT: str = "/api/v1/llama/health"

# Prefix of the fallback injection when no retrieved context is available
SYSTEM_NOTE_PREFIX: str = "[System Note] Current date: "


def load_rag_config() -> RAGConfig:
    """Build a validated RAGConfig from the environment-derived constants."""
    return RAGConfig(
        host=RAG_HOST,
        port=RAG_PORT,
        max_results=RAG_MAX_RESULTS,
        similarity_threshold=RAG_SIMILARITY_THRESHOLD,
        include_tools=RAG_INCLUDE_TOOLS,
        timeout_ms=RAG_TIMEOUT_MS,
        enabled=RAG_ENABLED,
    )
