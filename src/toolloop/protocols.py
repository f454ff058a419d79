"""Core data types for toolloop.

Frozen dataclasses for the conversation (Message, ToolCall), for what the
chat-completions API returns (ChatResponse, TokenUsage), and the Tool
protocol every tool implementation satisfies.
"""

from __future__ import annotations

import json as _json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, TypedDict, runtime_checkable

if TYPE_CHECKING:
    from toolloop.toolkit.models import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant", "tool"]


class _ToolCallOpenAIFunction(TypedDict):
    """OpenAI function sub-object."""

    name: str
    arguments: str


class ToolCallOpenAIDict(TypedDict):
    """OpenAI wire format for a single tool call."""

    id: str
    type: str
    function: _ToolCallOpenAIFunction


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model.

    ``arguments`` is the parsed JSON object (key order as the model wrote
    it).  ``raw_arguments`` keeps the original string so the assistant turn
    can be echoed back to the API unchanged.
    """

    id: str
    name: str
    arguments: dict = field(default_factory=dict)
    raw_arguments: str = "{}"
    type: str = "function"

    @classmethod
    def from_openai(cls, tc: dict) -> ToolCall:
        """Parse from OpenAI/compatible format.

        Malformed argument JSON is logged and treated as an empty object;
        the tool then reports its own missing-argument error to the model.
        """
        func = tc.get("function") or {}
        name = func.get("name", "")
        raw_args = func.get("arguments")
        if raw_args is None or raw_args == "":
            raw_args = "{}"
        if isinstance(raw_args, dict):
            arguments = raw_args
            raw_args = _json.dumps(raw_args)
        else:
            try:
                arguments = _json.loads(raw_args)
            except (_json.JSONDecodeError, TypeError):
                logger.warning("Malformed JSON in tool call arguments for %s", name)
                arguments = {}
            if not isinstance(arguments, dict):
                logger.warning("Tool call arguments for %s are not an object", name)
                arguments = {}
        return cls(
            id=tc.get("id", ""),
            name=name,
            arguments=arguments,
            raw_arguments=raw_args,
            type=tc.get("type", "function"),
        )

    def to_openai(self) -> ToolCallOpenAIDict:
        """Serialize to OpenAI wire format."""
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.name,
                "arguments": self.raw_arguments,
            },
        }


@dataclass(frozen=True)
class Message:
    """One turn of the conversation.

    ``tool_calls`` is only set on assistant turns that request tools and
    ``tool_call_id`` only on tool turns.
    """

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: tuple[ToolCall, ...] = ()) -> Message:
        return cls(role="assistant", content=content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_openai(self) -> dict[str, Any]:
        """Serialize to the chat-completions message shape."""
        msg: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            msg["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            msg["tool_call_id"] = self.tool_call_id
        return msg


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported by an LLM API response."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_openai(cls, usage: dict | None) -> TokenUsage | None:
        """Build from a ``usage`` block; missing counts are treated as 0.

        ``total_tokens`` is recomputed from the two parts rather than
        trusted from the server.
        """
        if not isinstance(usage, dict):
            return None
        prompt = _token_count(usage.get("prompt_tokens"))
        completion = _token_count(usage.get("completion_tokens"))
        return cls(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
        )


def _token_count(value: object) -> int:
    """A usage count as int; anything non-numeric counts as 0."""
    if isinstance(value, bool):
        return 0
    try:
        return max(0, int(value or 0))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 0


@dataclass(frozen=True)
class ChatResponse:
    """One chat-completions response, either a success or an error object.

    Attributes:
        content: Assistant text ("" when absent).
        tool_calls: Tool invocations the model requested, in model order.
        usage: Token usage, or None if the server did not report it.
        error: The API's error message when the body carried ``error``.
        raw: The decoded response body.
    """

    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    usage: TokenUsage | None = None
    error: str | None = None
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def from_openai(cls, data: dict) -> ChatResponse:
        """Parse a decoded response body.

        A body with an ``error`` field becomes an error response even if it
        also carries choices.

        Raises:
            ValueError: If the body does not have the chat-completions shape
                (choices, message, content or tool_calls of the wrong type).
        """
        usage = TokenUsage.from_openai(data.get("usage"))
        if data.get("error"):
            return cls(error=_error_message(data["error"]), usage=usage, raw=data)

        choices = data.get("choices") or []
        if not isinstance(choices, list):
            raise ValueError(f"choices must be a list, got {type(choices).__name__}")
        message: object = {}
        if choices:
            if not isinstance(choices[0], dict):
                raise ValueError(f"choice must be an object, got {type(choices[0]).__name__}")
            message = choices[0].get("message") or {}
        if not isinstance(message, dict):
            raise ValueError(f"message must be an object, got {type(message).__name__}")
        content = message.get("content") or ""
        if not isinstance(content, str):
            raise ValueError(f"content must be a string, got {type(content).__name__}")
        raw_calls = message.get("tool_calls") or []
        if not isinstance(raw_calls, list) or not all(
            isinstance(tc, dict) and isinstance(tc.get("function") or {}, dict) for tc in raw_calls
        ):
            raise ValueError("tool_calls must be a list of tool call objects")
        return cls(
            content=content,
            tool_calls=tuple(ToolCall.from_openai(tc) for tc in raw_calls),
            usage=usage,
            raw=data,
        )

    def to_message(self) -> Message:
        """The assistant turn to append to the transcript."""
        return Message.assistant(self.content, self.tool_calls)


def _error_message(error: object) -> str:
    if isinstance(error, dict):
        message = error.get("message")
        if message:
            return str(message)
        return "Unknown error"
    if isinstance(error, str) and error:
        return error
    return "Unknown error"


@runtime_checkable
class Tool(Protocol):
    """Anything the executor can invoke on the model's behalf.

    Concrete kinds (external script, in-process function) are chosen when
    the tool is registered; the executor only ever sees this interface.
    """

    @property
    def definition(self) -> ToolDefinition:
        """Name, description and parameter schema shown to the model."""
        ...

    def invoke(self, arguments: dict, *, timeout: float | None = None) -> ToolResult:
        """Run the tool and return its captured result. Must not raise."""
        ...
