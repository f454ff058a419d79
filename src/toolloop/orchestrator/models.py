"""Orchestrator result models.

Provides StepResult and SessionResult, the immutable records of what the
loop did.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from toolloop.orchestrator.config import SessionOutcome, SessionState

if TYPE_CHECKING:
    from toolloop.models.usage import UsageAccumulator
    from toolloop.protocols import Message, ToolCall
    from toolloop.toolkit.models import ToolResult


@dataclass(frozen=True)
class StepResult:
    """Result of a single tool call within an iteration.

    Attributes:
        iteration: 1-based iteration the call belongs to.
        tool_call: The call as the model issued it.
        result: Raw execution result.
        content: What was appended to the transcript (after condensing).
    """

    iteration: int
    tool_call: ToolCall
    result: ToolResult
    content: str

    @property
    def success(self) -> bool:
        return self.result.success

    @property
    def condensed(self) -> bool:
        return self.content != self.result.content


@dataclass(frozen=True)
class SessionResult:
    """Final result of an orchestration session.

    Frozen: the result is immutable once the run completes.
    """

    outcome: SessionOutcome
    state: SessionState
    final_answer: str | None = None
    error: str | None = None
    iterations: int = 0
    steps: tuple[StepResult, ...] = ()
    transcript: tuple[Message, ...] = ()
    usage: UsageAccumulator | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        """True for a final answer, including an empty one."""
        return self.outcome in (SessionOutcome.COMPLETED, SessionOutcome.EMPTY)

    @property
    def tool_calls(self) -> int:
        return len(self.steps)
