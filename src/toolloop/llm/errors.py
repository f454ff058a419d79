"""Errors raised by the chat-completions client.

These cover transport-level failures only.  A response body carrying an
``error`` object is not an exception: it comes back as a
:class:`~toolloop.protocols.ChatResponse` with ``error`` set, and the
orchestrator decides what to do with it.
"""

from __future__ import annotations

from toolloop.exceptions import ToolloopError


class LLMClientError(ToolloopError):
    """Base for all LLM client errors."""


class LLMConfigError(LLMClientError):
    """Missing or invalid client configuration (e.g., no API key)."""


class LLMAuthError(LLMClientError):
    """Authentication failed (401/403). Never retried."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Authentication failed: HTTP {status_code} - {body}")


class LLMRateLimitError(LLMClientError):
    """Still rate limited (429) after all retries.

    Attributes:
        retry_after: Seconds the server asked us to wait (Retry-After
            header), or None if not provided.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class LLMTimeoutError(LLMClientError):
    """The request did not complete within the configured timeout."""

    def __init__(self, timeout: float, url: str) -> None:
        self.timeout = timeout
        self.url = url
        super().__init__(f"Request to {url} timed out after {timeout}s")


class LLMResponseError(LLMClientError):
    """Response body is not the JSON shape the chat-completions API promises."""
