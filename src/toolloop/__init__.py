"""toolloop: drive an OpenAI-compatible model through a tool-calling loop.

Tools are plain executables in a folder.  The model sees their
self-described schemas, asks for calls, and gets their output back,
with multi-part output condensed chunk by chunk before it is appended.
"""

from toolloop._version import __version__

# Core entry point
from toolloop.orchestrator import (
    Orchestrator,
    OrchestratorConfig,
    SessionOutcome,
    SessionResult,
    SessionState,
    StepResult,
    Transcript,
)

# Data model
from toolloop.protocols import ChatResponse, Message, TokenUsage, Tool, ToolCall
from toolloop.models import SessionConfig, UsageAccumulator

# Tools
from toolloop.toolkit import (
    DirectRunner,
    DockerRunner,
    FunctionTool,
    ScriptTool,
    ToolDefinition,
    ToolExecutor,
    ToolRegistry,
    ToolResult,
    build_cli_args,
    discover,
)

# Condensing
from toolloop.operations import (
    MIN_CHUNK_BYTES,
    RESULT_SEPARATOR,
    Condenser,
    condense,
    split_chunks,
)

# LLM client
from toolloop.llm import LLMClient, OpenAIClient

# Exceptions
from toolloop.exceptions import (
    CondenseError,
    ConfigurationError,
    OrchestratorError,
    ToolloopError,
    ToolRegistrationError,
    ToolsFolderNotFoundError,
)
from toolloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)

__all__ = [
    "__version__",
    "Orchestrator",
    "OrchestratorConfig",
    "SessionOutcome",
    "SessionResult",
    "SessionState",
    "StepResult",
    "Transcript",
    "ChatResponse",
    "Message",
    "TokenUsage",
    "Tool",
    "ToolCall",
    "SessionConfig",
    "UsageAccumulator",
    "DirectRunner",
    "DockerRunner",
    "FunctionTool",
    "ScriptTool",
    "ToolDefinition",
    "ToolExecutor",
    "ToolRegistry",
    "ToolResult",
    "build_cli_args",
    "discover",
    "MIN_CHUNK_BYTES",
    "RESULT_SEPARATOR",
    "Condenser",
    "condense",
    "split_chunks",
    "LLMClient",
    "OpenAIClient",
    "ToolloopError",
    "ConfigurationError",
    "ToolsFolderNotFoundError",
    "ToolRegistrationError",
    "CondenseError",
    "OrchestratorError",
    "LLMClientError",
    "LLMConfigError",
    "LLMAuthError",
    "LLMRateLimitError",
    "LLMResponseError",
    "LLMTimeoutError",
]
