"""Orchestrator configuration types.

Provides SessionState, SessionOutcome and OrchestratorConfig for the
tool-calling loop.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from toolloop.models.config import DEFAULT_MAX_ITERATIONS, DEFAULT_TOOL_TIMEOUT

if TYPE_CHECKING:
    from toolloop.models.usage import UsageAccumulator
    from toolloop.orchestrator.models import StepResult


class SessionState(str, enum.Enum):
    """States the loop moves through during one session.

    ``DONE``, ``FAILED`` and ``MAX_ITERATIONS`` are terminal.
    """

    AWAITING_RESPONSE = "awaiting_response"
    PROCESSING_TOOL_CALLS = "processing_tool_calls"
    DONE = "done"
    FAILED = "failed"
    MAX_ITERATIONS = "max_iterations"


class SessionOutcome(str, enum.Enum):
    """How a finished session ended, as reported to the user.

    - ``COMPLETED``: the model produced a final answer.
    - ``EMPTY``: the model answered with neither content nor tool calls.
    - ``MAX_ITERATIONS``: the iteration budget ran out first.
    - ``FAILED``: the chat API returned an error or could not be reached.
    """

    COMPLETED = "completed"
    EMPTY = "empty"
    MAX_ITERATIONS = "max_iterations"
    FAILED = "failed"


@dataclass
class OrchestratorConfig:
    """Configuration for the tool-calling loop.

    Mutable dataclass -- callers may adjust settings between runs.

    Attributes:
        max_iterations: Maximum chat API round trips per session.
        system_prompt: Optional system message placed before the prompt.
        model: Model override (None = the client's default).
        temperature: Temperature override (None = the client's default).
        tool_timeout: Wall-clock limit per tool execution, in seconds.
        condense_results: Run separated tool output through the condenser.
        summary_workers: Thread pool size for chunk summarization.
        on_step: Callback invoked after each tool call completes.
        on_finish: Callback invoked exactly once with the session's token
            totals, on every exit path.
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    system_prompt: str | None = None
    model: str | None = None
    temperature: float | None = None
    tool_timeout: float | None = DEFAULT_TOOL_TIMEOUT
    condense_results: bool = True
    summary_workers: int = 1
    on_step: Callable[[StepResult], None] | None = None
    on_finish: Callable[[UsageAccumulator], None] | None = None
