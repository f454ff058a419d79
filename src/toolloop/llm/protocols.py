"""LLM client protocol.

Defines the pluggable interface the orchestrator and the condenser talk
to.  The built-in OpenAIClient implements it; tests substitute scripted
fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toolloop.protocols import ChatResponse, Message
    from toolloop.toolkit.models import ToolDefinition


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for pluggable chat-completions clients.

    Any object with send() and close() methods matching this signature works.
    """

    def send(
        self,
        messages: Sequence[Message | dict],
        tools: Sequence[ToolDefinition] | None = None,
        *,
        include_tools: bool = True,
        model: str | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        """Send messages, return the parsed response."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
