"""
Context injection: gate, format, and splice retrieved context into chat messages.

Responsibility: Pure helpers the inference pipeline calls around augment_query:
should_use_rag → augment_query → format_rag_context → inject_context_into_messages.
prepare_chat_messages chains them for callers that want a single call.
"""

import copy
import logging
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from rag_middleware.core.config import SYSTEM_NOTE_PREFIX
from rag_middleware.schemas.rag import ContextChunk, RetrievalResult
from rag_middleware.services.middleware import RAGMiddleware

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "[Retrieved Context]"
CONTEXT_FOOTER = "[End Retrieved Context]"
USER_QUERY_SEPARATOR = "\n\nUser Query: "


def _is_user_message(message: Any) -> bool:
    return isinstance(message, dict) and message.get("role") == "user"


def should_use_rag(messages: Any, params: Mapping[str, Any] | None) -> bool:
    """
    Decide whether a chat turn should be augmented.

    An explicit boolean params["rag_enabled"] wins outright. Otherwise RAG is
    used iff messages is a non-empty list containing at least one user message.
    """
    params = params or {}
    if "rag_enabled" in params:
        override = params["rag_enabled"]
        if isinstance(override, bool):
            return override
        logger.warning("[injection:should_use_rag] ignoring non-boolean rag_enabled=%r", override)

    if not isinstance(messages, list) or not messages:
        return False
    return any(_is_user_message(m) for m in messages)


def _format_similarity(similarity: float) -> str:
    # Six significant digits, trailing zeros dropped: 0.85 -> "0.85", 1.0 -> "1"
    return f"{similarity:g}"


def format_rag_context(chunks: Sequence[ContextChunk | Mapping[str, Any]]) -> str:
    """
    Render chunks as a context block for the prompt.

    [Retrieved Context]

    [Source 1: doc.pdf (relevance: 0.85)]
    chunk text

    [End Retrieved Context]

    Empty input gives "". Downstream prompt consumers depend on this exact layout.
    """
    if not chunks:
        return ""
    parts = [CONTEXT_HEADER + "\n"]
    for i, chunk in enumerate(chunks, 1):
        if not isinstance(chunk, ContextChunk):
            chunk = ContextChunk.model_validate(dict(chunk))
        parts.append(f"\n[Source {i}: {chunk.source} (relevance: {_format_similarity(chunk.similarity)})]\n")
        parts.append(chunk.content + "\n")
    parts.append("\n" + CONTEXT_FOOTER + "\n")
    return "".join(parts)


def _date_note(today: date | None = None) -> str:
    today = today or date.today()
    return SYSTEM_NOTE_PREFIX + today.strftime("%Y-%m-%d")


def inject_context_into_messages(messages: Any, rag_context: str, today: date | None = None) -> Any:
    """
    Prepend context to the last user message; returns a new list, input untouched.

    With empty rag_context a "[System Note] Current date: YYYY-MM-DD" line is
    injected instead. Content becomes: injection + "\\n\\nUser Query: " + original.
    List-of-parts content gets a leading text part carrying the same prefix.
    Non-list input, or a list with no user message, comes back unchanged.
    """
    injection = rag_context or _date_note(today)

    if not isinstance(messages, list):
        return messages

    modified = copy.deepcopy(messages)
    for message in reversed(modified):
        if not _is_user_message(message):
            continue
        content = message.get("content")
        if isinstance(content, list):
            message["content"] = [{"type": "text", "text": injection + USER_QUERY_SEPARATOR}] + content
        else:
            message["content"] = injection + USER_QUERY_SEPARATOR + (content if isinstance(content, str) else "")
        break
    return modified


def extract_last_user_query(messages: Any) -> str:
    """Text of the last user message; text parts are joined with spaces for list content."""
    if not isinstance(messages, list):
        return ""
    for message in reversed(messages):
        if not _is_user_message(message):
            continue
        content = message.get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            texts = [
                p.get("text", "")
                for p in content
                if isinstance(p, dict) and p.get("type") == "text" and isinstance(p.get("text"), str)
            ]
            return " ".join(t for t in texts if t)
        return ""
    return ""


def prepare_chat_messages(
    middleware: RAGMiddleware,
    messages: Any,
    params: Mapping[str, Any] | None = None,
    session_id: str = "",
) -> tuple[Any, RetrievalResult | None]:
    """
    Run the full pipeline for one chat request.

    Returns (messages, None) untouched when gating says no. Otherwise augments
    with the last user query and injects the formatted chunks (or the service's
    augmented_context when no chunks came back). A failed augmentation injects
    the date note so the model still sees the current date.
    """
    if not should_use_rag(messages, params):
        logger.info("[injection:prepare] gating skipped RAG")
        return messages, None

    query = extract_last_user_query(messages)
    result = middleware.augment_query(query, session_id)
    context = ""
    if result.success:
        context = format_rag_context(result.chunks) or result.augmented_context
    else:
        logger.info("[injection:prepare] continuing without RAG context: %s", result.error_message)
    return inject_context_into_messages(messages, context), result
