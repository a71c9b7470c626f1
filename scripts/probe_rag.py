#!/usr/bin/env python3
"""
Probe a RAG service the way the middleware talks to it.

Loads RAG_* settings from the environment (.env supported), forces RAG on,
checks /api/v1/llama/health, and optionally runs one augmentation and prints
the context block that would be injected.

Run from project root:

    python scripts/probe_rag.py
    python scripts/probe_rag.py --host https://rag.example.com "What is the leave policy?"
"""

import argparse
import logging
import sys
from pathlib import Path

# Project root on path so "rag_middleware" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from rag_middleware.core.config import LOG_LEVEL, load_rag_config
from rag_middleware.services.injection import format_rag_context
from rag_middleware.services.middleware import RAGMiddleware


def main() -> int:
    parser = argparse.ArgumentParser(description="Check a RAG service and run a sample augmentation.")
    parser.add_argument("query", nargs="?", default="", help="Query to augment (health check only when omitted).")
    parser.add_argument("--host", help="Override RAG_HOST (bare host, host:port, or http(s):// URL).")
    parser.add_argument("--port", type=int, help="Override RAG_PORT.")
    parser.add_argument("--timeout-ms", type=int, help="Override RAG_TIMEOUT_MS.")
    parser.add_argument("--session-id", default="", help="Session ID forwarded to the RAG service.")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL)

    overrides: dict = {"enabled": True}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.timeout_ms is not None:
        overrides["timeout_ms"] = args.timeout_ms
    config = load_rag_config().model_copy(update=overrides)

    middleware = RAGMiddleware(config)
    try:
        healthy = middleware.is_healthy()
        print(f"RAG service {config.host} healthy: {healthy}")
        if not args.query:
            return 0 if healthy else 1

        result = middleware.augment_query(args.query, args.session_id)
        if not result.success:
            print(f"Augmentation failed ({result.error_kind.value}): {result.error_message}")
            return 1
        print(f"Chunks: {len(result.chunks)}  latency: {result.latency_ms:.1f} ms")
        if result.suggested_tools:
            print("Suggested tools: " + ", ".join(result.suggested_tools))
        print(format_rag_context(result.chunks) or result.augmented_context or "(no context)")
        return 0
    finally:
        middleware.close()


if __name__ == "__main__":
    sys.exit(main())
