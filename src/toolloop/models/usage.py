"""Session-wide token accounting."""

from __future__ import annotations

from dataclasses import dataclass

from toolloop.protocols import TokenUsage


@dataclass
class UsageAccumulator:
    """Running token totals for one orchestration session.

    Mutable, owned by the orchestrator and written only from its thread.
    ``calls`` counts API responses that reported usage.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    calls: int = 0

    def add(self, usage: TokenUsage | None) -> None:
        if usage is None:
            return
        self.prompt_tokens += usage.prompt_tokens
        self.completion_tokens += usage.completion_tokens
        self.total_tokens += usage.prompt_tokens + usage.completion_tokens
        self.calls += 1

    def snapshot(self) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
            total_tokens=self.total_tokens,
        )

    def __str__(self) -> str:
        return (
            f"Prompt: {self.prompt_tokens}, "
            f"Completion: {self.completion_tokens}, "
            f"Total: {self.total_tokens}"
        )
