"""Async assistant clients used by the request coordinator."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Protocol, runtime_checkable

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, RateLimitError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..chat.errors import AssistantRequestError

if TYPE_CHECKING:  # pragma: no cover
    from ..services.settings import Settings

LOGGER = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a CV assistant. Help the user with resumes, job descriptions "
    "and matching candidates to roles."
)


@runtime_checkable
class AssistantClient(Protocol):
    """Remote assistant boundary: one text message in, one raw response out."""

    async def send_message(self, text: str) -> Any:
        ...


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure an assistant client."""

    base_url: str
    chat_path: str = "/chat"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    request_timeout: float | None = 30.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ClientSettings":
        return cls(
            base_url=settings.base_url,
            chat_path=settings.chat_path,
            api_key=settings.api_key,
            model=settings.model,
            system_prompt=settings.system_prompt or DEFAULT_SYSTEM_PROMPT,
            request_timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            retry_min_seconds=settings.retry_min_seconds,
            retry_max_seconds=settings.retry_max_seconds,
            default_headers=dict(settings.default_headers or {}),
            debug_logging=settings.debug_logging,
        )


class _RetryingClient:
    """Shared retry policy and resource handling for the concrete clients."""

    _retry_on: tuple[type[BaseException], ...] = ()

    def __init__(self, settings: ClientSettings, client: Any) -> None:
        self._settings = settings
        self._client = client

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception_type(self._retry_on),
        )

    async def aclose(self) -> None:
        """Close the underlying transport to release network resources."""

        close = getattr(self._client, "aclose", None) or getattr(self._client, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result


class HttpAssistantClient(_RetryingClient):
    """REST client posting ``{"message": text}`` to the assistant endpoint.

    The decoded JSON body is returned untouched; shape normalization happens
    in :mod:`workspace_chat.ai.replies`.
    """

    _retry_on = (httpx.TransportError, httpx.TimeoutException)

    def __init__(
        self,
        settings: ClientSettings,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(settings, client or self._build_client(settings, transport))

    @property
    def url(self) -> str:
        return _join_url(self._settings.base_url, self._settings.chat_path)

    async def send_message(self, text: str) -> Any:
        """POST ``text`` to the chat endpoint and return the decoded body.

        Raises:
            AssistantRequestError: On HTTP status >= 400, an undecodable body,
                or when transport errors persist after retries.
        """

        payload = {"message": text}
        LOGGER.debug("HttpAssistantClient.send_message: POST %s (%d chars)", self.url, len(text))
        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self._client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise AssistantRequestError(
                f"Assistant request failed: {exc}",
                details={"url": self.url},
            ) from exc

        if response.status_code >= 400:
            raise AssistantRequestError(
                f"Assistant responded with HTTP {response.status_code}",
                status_code=response.status_code,
                details={"url": self.url, "body": response.text[:500]},
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise AssistantRequestError(
                "Assistant response was not valid JSON",
                status_code=response.status_code,
                details={"url": self.url},
            ) from exc
        if self._settings.debug_logging:
            LOGGER.debug("Assistant response body: %s", body)
        return body

    @staticmethod
    def _build_client(
        settings: ClientSettings,
        transport: httpx.AsyncBaseTransport | None,
    ) -> httpx.AsyncClient:
        headers: Dict[str, str] = dict(settings.default_headers or {})
        if settings.api_key:
            headers.setdefault("Authorization", f"Bearer {settings.api_key}")
        return httpx.AsyncClient(
            timeout=settings.request_timeout,
            headers=headers,
            transport=transport,
        )


class OpenAIAssistantClient(_RetryingClient):
    """Chat-completions client for OpenAI-compatible endpoints.

    Each message is sent as a single completion under a fixed system prompt;
    the reply is wrapped as ``{"data": {"reply": <content>}}``.
    """

    _retry_on = (APIConnectionError, APITimeoutError, RateLimitError, httpx.TimeoutException)

    def __init__(self, settings: ClientSettings, *, client: AsyncOpenAI | None = None) -> None:
        super().__init__(settings, client or self._build_client(settings))

    async def send_message(self, text: str) -> Any:
        payload = {
            "model": self._settings.model,
            "messages": [
                {"role": "system", "content": self._settings.system_prompt},
                {"role": "user", "content": text},
            ],
        }
        LOGGER.debug(
            "OpenAIAssistantClient.send_message: model=%s (%d chars)",
            self._settings.model,
            len(text),
        )
        try:
            async for attempt in self._retrying():
                with attempt:
                    completion = await self._client.chat.completions.create(**payload)
        except APIStatusError as exc:
            raise AssistantRequestError(
                f"Assistant responded with HTTP {exc.status_code}",
                status_code=exc.status_code,
            ) from exc
        except (APIConnectionError, httpx.TimeoutException) as exc:
            raise AssistantRequestError(f"Assistant request failed: {exc}") from exc

        content = None
        choices = getattr(completion, "choices", None) or []
        if choices:
            content = getattr(choices[0].message, "content", None)
        return {"data": {"reply": content}}

    @staticmethod
    def _build_client(settings: ClientSettings) -> AsyncOpenAI:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            max_retries=0,
            default_headers=headers,
        )


def build_assistant_client(settings: "Settings") -> HttpAssistantClient | OpenAIAssistantClient:
    """Create the assistant client selected by ``settings.backend``."""

    client_settings = ClientSettings.from_settings(settings)
    backend = (settings.backend or "http").strip().lower()
    if backend == "openai":
        return OpenAIAssistantClient(client_settings)
    if backend == "http":
        return HttpAssistantClient(client_settings)
    raise ValueError(f"Unknown assistant backend: {settings.backend!r}")


def _join_url(base_url: str, path: str) -> str:
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


__all__ = [
    "AssistantClient",
    "ClientSettings",
    "DEFAULT_SYSTEM_PROMPT",
    "HttpAssistantClient",
    "OpenAIAssistantClient",
    "build_assistant_client",
]
