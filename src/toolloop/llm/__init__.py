"""Chat-completions client infrastructure for toolloop.

Provides an OpenAI-compatible HTTP client, the pluggable client protocol,
and the transport error hierarchy.
"""

from toolloop.llm.client import OpenAIClient
from toolloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)
from toolloop.llm.protocols import LLMClient

__all__ = [
    "OpenAIClient",
    "LLMClient",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMResponseError",
    "LLMTimeoutError",
]
