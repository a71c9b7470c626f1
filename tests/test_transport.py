"""
Unit tests for the transport adapter: host resolution, timeouts, TLS setup.

No network: clients are built but never used to send requests.
"""

import logging
import ssl
from unittest.mock import patch

import httpx
import pytest

from rag_middleware.core.errors import TransportConfigError
from rag_middleware.schemas.rag import RAGConfig
from rag_middleware.services.transport import (
    Endpoint,
    build_transport,
    resolve_endpoint,
    timeout_from_ms,
)


class TestResolveEndpoint:
    """Tests for resolve_endpoint()."""

    def test_https_url_forces_tls_and_443(self) -> None:
        assert resolve_endpoint("https://x.com", 8001) == Endpoint(scheme="https", host="x.com", port=443)

    def test_http_url_strips_trailing_slash_and_forces_80(self) -> None:
        assert resolve_endpoint("http://x.com/", 8001) == Endpoint(scheme="http", host="x.com", port=80)

    def test_bare_host_uses_configured_port(self) -> None:
        assert resolve_endpoint("localhost", 8001) == Endpoint(scheme="http", host="localhost", port=8001)

    def test_only_one_trailing_slash_is_stripped(self) -> None:
        # "x.com/" keeps a slash, which is then rejected as a path
        with pytest.raises(TransportConfigError):
            resolve_endpoint("https://x.com//", 443)

    def test_bare_host_with_port_uses_that_port(self) -> None:
        assert resolve_endpoint("rag.internal:9000", 8001) == Endpoint(scheme="http", host="rag.internal", port=9000)

    def test_bracketed_ipv6_with_port(self) -> None:
        assert resolve_endpoint("[::1]:9000", 8001) == Endpoint(scheme="http", host="[::1]", port=9000)

    def test_url_form_ignores_configured_port_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="rag_middleware.services.transport"):
            endpoint = resolve_endpoint("https://rag.example.com", 8443)
        assert endpoint.port == 443
        assert "8443" in caplog.text

    def test_empty_host_raises(self) -> None:
        with pytest.raises(TransportConfigError):
            resolve_endpoint("", 8001)
        with pytest.raises(TransportConfigError):
            resolve_endpoint("https://", 8001)

    def test_host_with_path_raises(self) -> None:
        with pytest.raises(TransportConfigError):
            resolve_endpoint("https://rag.example.com/api", 8001)

    def test_endpoint_properties(self) -> None:
        endpoint = Endpoint(scheme="https", host="x.com", port=443)
        assert endpoint.tls is True
        assert endpoint.base_url == "https://x.com:443"


def test_timeout_splits_ms_into_seconds() -> None:
    timeout = timeout_from_ms(2500)
    assert timeout.read == 2.5
    assert timeout.write == 2.5
    assert timeout.connect == 2.5
    assert timeout_from_ms(1000).read == 1.0


class TestBuildTransport:
    """Tests for build_transport()."""

    def test_plaintext_client(self) -> None:
        handle = build_transport(RAGConfig(host="localhost", port=8001, timeout_ms=1500))
        try:
            assert handle.endpoint == Endpoint(scheme="http", host="localhost", port=8001)
            assert handle.client.base_url.host == "localhost"
            assert handle.client.base_url.port == 8001
            assert handle.client.timeout.read == 1.5
        finally:
            handle.close()
        assert handle.client.is_closed

    def test_https_client_keeps_scheme(self) -> None:
        handle = build_transport(RAGConfig(host="https://rag.example.com/"))
        try:
            assert handle.endpoint.tls
            assert handle.client.base_url.scheme == "https"
            assert handle.client.base_url.host == "rag.example.com"
        finally:
            handle.close()

    def test_tls_unavailable_falls_back_to_plaintext(self, caplog: pytest.LogCaptureFixture) -> None:
        with patch("rag_middleware.services.transport.TLS_SUPPORTED", False), caplog.at_level(logging.ERROR):
            handle = build_transport(RAGConfig(host="https://rag.example.com"))
        try:
            assert handle.endpoint == Endpoint(scheme="http", host="rag.example.com", port=443)
            assert handle.client.base_url.scheme == "http"
        finally:
            handle.close()
        assert "TLS support is not available" in caplog.text

    def test_tls_context_verifies_certificates(self) -> None:
        from rag_middleware.services.transport import _tls_context

        with patch("rag_middleware.services.transport.RAG_CA_CERT_PATH", "/nonexistent/certs"):
            context = _tls_context()
        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname is True

    def test_injected_transport_is_used(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"ready": True})

        handle = build_transport(RAGConfig(host="rag.internal", port=9000), transport=httpx.MockTransport(handler))
        try:
            handle.client.get("/api/v1/llama/health")
        finally:
            handle.close()
        assert seen == ["http://rag.internal:9000/api/v1/llama/health"]
