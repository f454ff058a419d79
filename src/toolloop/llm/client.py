"""Built-in OpenAI-compatible httpx client with tenacity retry.

Provides a sync HTTP client that posts to a full chat-completions URL
(e.g. ``https://host/v1/chat/completions``) and returns a parsed
:class:`~toolloop.protocols.ChatResponse`.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import httpx
import tenacity

from toolloop.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)
from toolloop.models.config import (
    API_KEY_ENV_VAR,
    DEFAULT_API_URL,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
)
from toolloop.protocols import ChatResponse, Message

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toolloop.toolkit.models import ToolDefinition

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_AUTH_ERROR_STATUS_CODES = {401, 403}


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable.

    Retryable: 429, 500, 502, 503, 504, connection errors, timeouts.
    Not retryable: 401, 403, 400, other client errors.
    """
    if isinstance(exc, LLMAuthError):
        return False
    if isinstance(exc, LLMRateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.TimeoutException))


class OpenAIClient:
    """Sync httpx client for OpenAI-compatible chat completions.

    Implements the LLMClient protocol. Retries transient failures (429,
    5xx, connection errors, timeouts) with exponential backoff and fails
    immediately on authentication errors (401, 403).

    A body with an ``error`` object is *not* retried or raised: it is
    returned as an error ``ChatResponse`` so the caller can report the
    API's own message.

    Usage::

        with OpenAIClient(api_key="sk-...") as client:
            response = client.send([Message.user("Hello")])
            print(response.content)
    """

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = 120.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API key. Falls back to the OPENAI_API_KEY env var.
            url: Full chat-completions endpoint URL. Falls back to the
                TOOLLOOP_URL env var, then to the hosted default.
            model: Model name sent with every request.
            temperature: Default sampling temperature.
            timeout: Per-request timeout in seconds.
            max_retries: Maximum attempts for retryable errors.
            transport: Optional httpx transport (tests use MockTransport).

        Raises:
            LLMConfigError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or os.environ.get(API_KEY_ENV_VAR, "")
        if not self._api_key:
            raise LLMConfigError(
                f"No API key provided. Pass api_key= or set {API_KEY_ENV_VAR} "
                "environment variable."
            )
        self._url = url or os.environ.get("TOOLLOOP_URL", DEFAULT_API_URL)
        self._model = model
        self._temperature = temperature
        self._timeout = timeout
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def model(self) -> str:
        return self._model

    def build_payload(
        self,
        messages: Sequence[Message | dict],
        tools: Sequence[ToolDefinition] | None = None,
        *,
        include_tools: bool = True,
        model: str | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """Build the JSON request body.

        ``tools`` and ``tool_choice`` are only attached when
        ``include_tools`` is set and there is at least one tool.
        """
        payload: dict[str, Any] = {
            "model": model or self._model,
            "messages": [
                m.to_openai() if isinstance(m, Message) else m for m in messages
            ],
        }
        if include_tools and tools:
            payload["tools"] = [t.to_openai() for t in tools]
            payload["tool_choice"] = "auto"
        payload["temperature"] = self._temperature if temperature is None else temperature
        payload["stream"] = False
        return payload

    def send(
        self,
        messages: Sequence[Message | dict],
        tools: Sequence[ToolDefinition] | None = None,
        *,
        include_tools: bool = True,
        model: str | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        """Send a chat completion request with retry.

        Uses tenacity.Retrying programmatically (not as decorator) so that
        max_retries is configurable per-instance.

        Returns:
            ChatResponse. ``is_error`` is set when the body carried an
            ``error`` object.

        Raises:
            LLMAuthError: On 401/403 (no retry).
            LLMRateLimitError: On 429 after all retries exhausted.
            LLMTimeoutError: If every attempt timed out.
            LLMResponseError: On a body that is not a JSON object or does
                not have the chat-completions shape.
            httpx.HTTPError: On other transport failures.
        """
        payload = self.build_payload(
            messages,
            tools,
            include_tools=include_tools,
            model=model,
            temperature=temperature,
        )
        logger.debug("Request to %s: %s", self._url, payload)
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=(
                tenacity.wait_exponential(multiplier=1, min=1, max=30)
                + tenacity.wait_random(0, 2)
            ),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            data = retryer(self._do_send, payload)
        except httpx.TimeoutException as exc:
            raise LLMTimeoutError(self._timeout, self._url) from exc
        logger.debug("Response: %s", data)
        try:
            return ChatResponse.from_openai(data)
        except ValueError as exc:
            raise LLMResponseError(
                f"Unexpected response format: {exc}. Response: {str(data)[:500]}"
            ) from exc

    def _do_send(self, payload: dict[str, Any]) -> dict:
        """Execute a single request (no retry)."""
        response = self._client.post(self._url, json=payload)

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise LLMAuthError(response.status_code, response.text)

        data = self._decode(response)

        # An error object is the API's answer, not a transport failure
        if isinstance(data, dict) and data.get("error"):
            return data

        if response.status_code == 429:
            retry_after_raw = response.headers.get("Retry-After")
            retry_after: float | None = None
            if retry_after_raw is not None:
                try:
                    retry_after = float(retry_after_raw)
                except (ValueError, TypeError):
                    pass
            raise LLMRateLimitError(
                f"Rate limited: HTTP 429 - {response.text}",
                retry_after=retry_after,
            )

        response.raise_for_status()

        if not isinstance(data, dict):
            raise LLMResponseError(
                f"Unexpected response format: expected a JSON object. "
                f"Response: {response.text[:500]}"
            )
        return data

    @staticmethod
    def _decode(response: httpx.Response) -> object:
        try:
            return response.json()
        except ValueError:
            if response.is_success:
                raise LLMResponseError(
                    f"Response is not valid JSON: {response.text[:500]}"
                ) from None
            return None

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
