"""Tests for the assistant clients."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from openai import APIConnectionError, BadRequestError

from workspace_chat.ai.client import (
    AssistantClient,
    ClientSettings,
    HttpAssistantClient,
    OpenAIAssistantClient,
    build_assistant_client,
)
from workspace_chat.ai.replies import extract_reply
from workspace_chat.chat.errors import AssistantRequestError
from workspace_chat.services.settings import Settings


def _settings(**overrides: Any) -> ClientSettings:
    values: dict[str, Any] = {
        "base_url": "http://assistant.test/api",
        "chat_path": "/chat",
        "max_retries": 3,
        "retry_min_seconds": 0,
        "retry_max_seconds": 0,
    }
    values.update(overrides)
    return ClientSettings(**values)


def _http_client(handler: Any, **overrides: Any) -> HttpAssistantClient:
    return HttpAssistantClient(_settings(**overrides), transport=httpx.MockTransport(handler))


# =============================================================================
# HttpAssistantClient
# =============================================================================


class TestHttpAssistantClient:
    """Tests for the REST client."""

    @pytest.mark.asyncio
    async def test_posts_message_and_returns_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"reply": "Hi there"}})

        client = _http_client(handler, api_key="secret")
        body = await client.send_message("Hello")
        await client.aclose()

        assert body == {"data": {"reply": "Hi there"}}
        [request] = seen
        assert request.method == "POST"
        assert str(request.url) == "http://assistant.test/api/chat"
        assert json.loads(request.content) == {"message": "Hello"}
        assert request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_body_passed_through_untouched(self) -> None:
        """Shape normalization happens downstream."""
        client = _http_client(lambda request: httpx.Response(200, json={"response": 42}))
        body = await client.send_message("Hello")
        assert body == {"response": 42}
        assert extract_reply(body) is None

    @pytest.mark.asyncio
    async def test_http_error_status_raises(self) -> None:
        client = _http_client(lambda request: httpx.Response(502, text="bad gateway"))

        with pytest.raises(AssistantRequestError) as excinfo:
            await client.send_message("Hello")

        assert excinfo.value.status_code == 502
        assert excinfo.value.details["body"] == "bad gateway"

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self) -> None:
        client = _http_client(lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(AssistantRequestError):
            await client.send_message("Hello")

    @pytest.mark.asyncio
    async def test_retries_transport_errors(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) < 3:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"response": "finally"})

        body = await _http_client(handler).send_message("Hello")

        assert body == {"response": "finally"}
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(AssistantRequestError):
            await _http_client(handler, max_retries=2).send_message("Hello")
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_status_errors_not_retried(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            return httpx.Response(500)

        with pytest.raises(AssistantRequestError):
            await _http_client(handler).send_message("Hello")
        assert len(attempts) == 1

    def test_url_join(self) -> None:
        client = _http_client(lambda r: httpx.Response(200), base_url="http://x/api/", chat_path="chat")
        assert client.url == "http://x/api/chat"

    def test_satisfies_protocol(self) -> None:
        client = _http_client(lambda r: httpx.Response(200))
        assert isinstance(client, AssistantClient)


# =============================================================================
# OpenAIAssistantClient
# =============================================================================


class _FakeCompletions:
    def __init__(self, outcomes: list[Any]) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class _FakeOpenAI:
    def __init__(self, outcomes: list[Any]) -> None:
        self.completions = _FakeCompletions(outcomes)
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


_REQUEST = httpx.Request("POST", "http://assistant.test/v1/chat/completions")


class TestOpenAIAssistantClient:
    """Tests for the OpenAI-compatible client."""

    @pytest.mark.asyncio
    async def test_wraps_reply_in_structured_shape(self) -> None:
        fake = _FakeOpenAI([_completion("Summary text")])
        client = OpenAIAssistantClient(_settings(model="test-model"), client=fake)  # type: ignore[arg-type]

        body = await client.send_message("Summarize")

        assert body == {"data": {"reply": "Summary text"}}
        [call] = fake.completions.calls
        assert call["model"] == "test-model"
        assert call["messages"][0]["role"] == "system"
        assert call["messages"][1] == {"role": "user", "content": "Summarize"}

    @pytest.mark.asyncio
    async def test_empty_choices(self) -> None:
        fake = _FakeOpenAI([SimpleNamespace(choices=[])])
        client = OpenAIAssistantClient(_settings(), client=fake)  # type: ignore[arg-type]
        body = await client.send_message("Hi")
        assert extract_reply(body) is None

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self) -> None:
        fake = _FakeOpenAI([APIConnectionError(request=_REQUEST), _completion("ok")])
        client = OpenAIAssistantClient(_settings(), client=fake)  # type: ignore[arg-type]

        body = await client.send_message("Hi")

        assert body == {"data": {"reply": "ok"}}
        assert len(fake.completions.calls) == 2

    @pytest.mark.asyncio
    async def test_status_error_becomes_assistant_error(self) -> None:
        error = BadRequestError(
            "bad request", response=httpx.Response(400, request=_REQUEST), body=None
        )
        fake = _FakeOpenAI([error])
        client = OpenAIAssistantClient(_settings(), client=fake)  # type: ignore[arg-type]

        with pytest.raises(AssistantRequestError) as excinfo:
            await client.send_message("Hi")

        assert excinfo.value.status_code == 400
        assert len(fake.completions.calls) == 1

    @pytest.mark.asyncio
    async def test_aclose_closes_underlying_client(self) -> None:
        fake = _FakeOpenAI([])
        client = OpenAIAssistantClient(_settings(), client=fake)  # type: ignore[arg-type]
        await client.aclose()
        assert fake.closed is True


# =============================================================================
# Factory
# =============================================================================


class TestBuildAssistantClient:
    def test_http_backend(self) -> None:
        client = build_assistant_client(Settings(backend="http", chat_path="/ask"))
        assert isinstance(client, HttpAssistantClient)
        assert client.url.endswith("/ask")

    def test_openai_backend(self) -> None:
        client = build_assistant_client(Settings(backend="openai", api_key="sk-test"))
        assert isinstance(client, OpenAIAssistantClient)
        assert client.settings.api_key == "sk-test"

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            build_assistant_client(Settings(backend="carrier-pigeon"))

    def test_client_settings_from_settings(self) -> None:
        settings = Settings(request_timeout=5.0, max_retries=7, default_headers={"X-Team": "hr"})
        client_settings = ClientSettings.from_settings(settings)
        assert client_settings.request_timeout == 5.0
        assert client_settings.max_retries == 7
        assert client_settings.default_headers == {"X-Team": "hr"}
