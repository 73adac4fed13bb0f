"""Tests for client identifier extraction."""

from types import SimpleNamespace

from starlette.datastructures import Headers

from newsletter.core.client_ip import get_client_identifier, resolve_client_identifier


class TestResolveClientIdentifier:
    def test_forwarded_for_wins(self) -> None:
        headers = Headers({"X-Forwarded-For": "9.9.9.9", "X-Real-IP": "8.8.8.8"})
        assert resolve_client_identifier(headers, "10.0.0.1") == "9.9.9.9"

    def test_real_ip_used_without_forwarded_for(self) -> None:
        headers = Headers({"X-Real-IP": "8.8.8.8"})
        assert resolve_client_identifier(headers, "10.0.0.1") == "8.8.8.8"

    def test_remote_address_used_verbatim(self) -> None:
        assert resolve_client_identifier(Headers({}), "10.0.0.1:54321") == "10.0.0.1:54321"

    def test_empty_headers_are_skipped(self) -> None:
        headers = Headers({"X-Forwarded-For": "", "X-Real-IP": ""})
        assert resolve_client_identifier(headers, "10.0.0.1") == "10.0.0.1"

    def test_header_lookup_is_case_insensitive(self) -> None:
        headers = Headers({"x-forwarded-for": "9.9.9.9"})
        assert resolve_client_identifier(headers, "10.0.0.1") == "9.9.9.9"

    def test_forwarded_chain_is_not_split(self) -> None:
        headers = Headers({"X-Forwarded-For": "9.9.9.9, 10.0.0.2"})
        assert resolve_client_identifier(headers, "10.0.0.1") == "9.9.9.9, 10.0.0.2"


class TestGetClientIdentifier:
    def test_uses_transport_host(self) -> None:
        request = SimpleNamespace(headers=Headers({}), client=SimpleNamespace(host="127.0.0.1"))
        assert get_client_identifier(request) == "127.0.0.1"

    def test_unknown_when_client_missing(self) -> None:
        request = SimpleNamespace(headers=Headers({}), client=None)
        assert get_client_identifier(request) == "unknown"

    def test_prefers_proxy_headers(self) -> None:
        request = SimpleNamespace(
            headers=Headers({"X-Real-IP": "8.8.8.8"}),
            client=SimpleNamespace(host="127.0.0.1"),
        )
        assert get_client_identifier(request) == "8.8.8.8"
