"""Tests for services/completion.py, the completion endpoint client."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from services.completion import FALLBACK_REPLY, CompletionClient, EndpointConfig
from services.errors import UpstreamFailure

URL = "https://flowise.test/api/v1/prediction/abc"


def _client(handler) -> CompletionClient:
    return CompletionClient(httpx.Client(transport=httpx.MockTransport(handler)))


class TestEndpointConfig:
    def test_blank_url_is_not_configured(self):
        assert not EndpointConfig(url="").is_configured
        assert not EndpointConfig(url="   ").is_configured
        assert EndpointConfig(url=URL).is_configured

    def test_default_timeout_from_settings(self):
        from config import settings

        assert EndpointConfig(url=URL).timeout == settings.COMPLETION_TIMEOUT_SECONDS

    def test_explicit_timeout(self):
        assert EndpointConfig(url=URL, timeout=5).timeout == 5

    def test_headers_without_credential(self):
        assert "Authorization" not in EndpointConfig(url=URL).headers()

    def test_headers_with_credential(self):
        assert EndpointConfig(url=URL, credential="k").headers()["Authorization"] == "Bearer k"


class TestComplete:
    def test_posts_message_and_returns_response(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"response": "hi there"})

        reply = _client(handler).complete(EndpointConfig(url=URL, credential="sk-1"), "hello")

        assert reply == "hi there"
        assert seen == {"method": "POST", "url": URL, "body": {"message": "hello"}, "auth": "Bearer sk-1"}

    def test_no_auth_header_without_credential(self):
        def handler(request):
            assert "Authorization" not in request.headers
            return httpx.Response(200, json={"response": "ok"})

        assert _client(handler).complete(EndpointConfig(url=URL), "hello") == "ok"

    @pytest.mark.parametrize("body", [{}, {"response": None}, {"response": ""}, {"response": 7}, ["x"]])
    def test_fallback_when_response_missing(self, body):
        client = _client(lambda request: httpx.Response(200, json=body))
        assert client.complete(EndpointConfig(url=URL), "hello") == FALLBACK_REPLY

    @pytest.mark.parametrize("status", [400, 401, 404, 500, 503])
    def test_non_success_status(self, status):
        client = _client(lambda request: httpx.Response(status, text="nope"))
        with pytest.raises(UpstreamFailure) as exc:
            client.complete(EndpointConfig(url=URL), "hello")
        assert str(status) in exc.value.message

    def test_non_json_body(self):
        client = _client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(UpstreamFailure):
            client.complete(EndpointConfig(url=URL), "hello")

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamFailure):
            _client(handler).complete(EndpointConfig(url=URL), "hello")

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(UpstreamFailure) as exc:
            _client(handler).complete(EndpointConfig(url=URL, timeout=1), "hello")
        assert "timed out" in exc.value.message

    @patch("services.completion.httpx.post")
    def test_module_level_post_without_client(self, mock_post):
        """Without an injected client the request goes through httpx.post in a single call."""
        mock_post.return_value = httpx.Response(200, json={"response": "ok"})

        reply = CompletionClient().complete(EndpointConfig(url=URL, timeout=3), "hello")

        assert reply == "ok"
        mock_post.assert_called_once_with(
            URL,
            json={"message": "hello"},
            headers={"Content-Type": "application/json"},
            timeout=3,
        )

    def test_injected_client_is_used_instead_of_module_post(self):
        client = _client(lambda request: httpx.Response(200, json={"response": "from client"}))
        with patch("services.completion.httpx.post") as mock_post:
            assert client.complete(EndpointConfig(url=URL), "hello") == "from client"
        mock_post.assert_not_called()
