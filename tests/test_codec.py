"""
Unit tests for the RAG request/response codec.
"""

import pytest

from rag_middleware.core.errors import ResponseParseError
from rag_middleware.schemas.rag import ContextChunk, RAGConfig
from rag_middleware.services.codec import (
    build_augment_request,
    parse_augment_response,
    parse_chunk,
    parse_health_response,
)


class TestBuildAugmentRequest:
    """Tests for build_augment_request()."""

    def test_body_carries_config_values(self) -> None:
        config = RAGConfig(max_results=3, similarity_threshold=0.5, include_tools=True)
        assert build_augment_request("what is rag", config) == {
            "query": "what is rag",
            "max_results": 3,
            "similarity_threshold": 0.5,
            "include_tools": True,
        }

    def test_session_id_only_when_present(self) -> None:
        config = RAGConfig()
        assert "session_id" not in build_augment_request("q", config, "")
        assert build_augment_request("q", config, "sess-1")["session_id"] == "sess-1"


class TestParseAugmentResponse:
    """Tests for parse_augment_response()."""

    def test_three_chunks_keep_order_and_scores(self) -> None:
        data = {
            "augmented_context": "ctx",
            "latency_ms": 12.5,
            "chunks": [
                {"content": "first", "source": "a.pdf", "similarity": 0.91},
                {"content": "second", "source": "b.txt", "similarity": 0.7234567},
                {"content": "third", "source": "c.md", "similarity": 0.3},
            ],
            "suggested_tools": ["calculator", "web_search"],
        }
        result = parse_augment_response(data)
        assert result.success is True
        assert result.error_kind is None
        assert result.chunks == [
            ContextChunk(content="first", source="a.pdf", similarity=0.91),
            ContextChunk(content="second", source="b.txt", similarity=0.7234567),
            ContextChunk(content="third", source="c.md", similarity=0.3),
        ]
        assert result.suggested_tools == ["calculator", "web_search"]
        assert result.augmented_context == "ctx"
        assert result.service_latency_ms == 12.5

    def test_empty_object_is_success_with_defaults(self) -> None:
        result = parse_augment_response({})
        assert result.success is True
        assert result.chunks == []
        assert result.suggested_tools == []
        assert result.augmented_context == ""
        assert result.service_latency_ms == 0.0

    def test_missing_chunk_fields_default(self) -> None:
        result = parse_augment_response({"chunks": [{}]})
        assert result.chunks == [ContextChunk(content="", source="unknown", similarity=0.0)]

    def test_mistyped_fields_fall_back_per_field(self) -> None:
        data = {
            "augmented_context": 42,
            "latency_ms": "fast",
            "chunks": [
                {"content": "ok", "source": None, "similarity": "high"},
                "not a chunk",
                {"content": ["x"], "source": "s", "similarity": True},
            ],
            "suggested_tools": ["search", 7, None, "calc"],
        }
        result = parse_augment_response(data)
        assert result.success is True
        assert result.augmented_context == ""
        assert result.service_latency_ms == 0.0
        assert result.chunks == [
            ContextChunk(content="ok", source="unknown", similarity=0.0),
            ContextChunk(content="", source="s", similarity=0.0),
        ]
        assert result.suggested_tools == ["search", "calc"]

    def test_non_list_chunks_ignored(self) -> None:
        result = parse_augment_response({"chunks": {"content": "x"}, "suggested_tools": "calc"})
        assert result.chunks == []
        assert result.suggested_tools == []

    def test_integer_similarity_accepted(self) -> None:
        assert parse_chunk({"similarity": 1}).similarity == 1.0

    def test_similarity_beyond_float_range_defaults(self) -> None:
        result = parse_augment_response({"chunks": [{"content": "big", "source": "s", "similarity": 10**400}]})
        assert result.success is True
        assert result.chunks == [ContextChunk(content="big", source="s", similarity=0.0)]

    @pytest.mark.parametrize("data", [[1, 2, 3], "text", 3.5, None])
    def test_non_object_body_raises(self, data) -> None:
        with pytest.raises(ResponseParseError):
            parse_augment_response(data)


def test_health_requires_ready_true() -> None:
    assert parse_health_response({"ready": True}) is True
    assert parse_health_response({"ready": False}) is False
    assert parse_health_response({"status": "ok"}) is False
    assert parse_health_response({"ready": "yes"}) is False
    assert parse_health_response(["ready"]) is False
