"""
Middleware errors and failure kinds.

RAGErrorKind tags a failed RetrievalResult so callers can tell a disabled
middleware from a broken RAG service without parsing messages.
TransportConfigError is raised while building the HTTP client and never
escapes the middleware's public methods.
"""

from enum import Enum


class RAGErrorKind(str, Enum):
    """Why an augmentation did not produce context."""

    DISABLED = "disabled"
    EMPTY_QUERY = "empty_query"
    TRANSPORT = "transport"
    PARSE = "parse"


class TransportConfigError(Exception):
    """Raised when the configured host cannot be turned into an HTTP client."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ResponseParseError(Exception):
    """Raised when a RAG service response body has an unusable shape."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
