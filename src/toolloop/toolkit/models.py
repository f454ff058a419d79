"""Toolkit data models.

Frozen dataclasses for tool definitions and execution results.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    """A single tool definition for LLM consumption.

    Attributes:
        name: Tool name, unique within a registry (e.g. "calculate").
        description: Natural-language description shown to the model.
        parameters: JSON Schema dict describing accepted arguments.
    """

    name: str
    description: str
    parameters: dict

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format.

        Returns:
            Dict with "type": "function" and nested "function" object.
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True)
class ToolResult:
    """Structured result from executing a tool.

    Attributes:
        tool_name: Name of the tool that was requested.
        success: True when the tool ran and exited zero.
        output: Captured stdout and stderr, interleaved as produced.
        error: Short failure description ("" on success).
        exit_code: Process exit status, or None when nothing ran.
        timed_out: True when the tool was killed for exceeding its timeout.
    """

    tool_name: str
    success: bool
    output: str = ""
    error: str = ""
    exit_code: int | None = None
    timed_out: bool = False

    @property
    def content(self) -> str:
        """Text handed to the model as the tool message content.

        A failing tool's own output is what the model needs to see; the
        short error is only used when the tool printed nothing.  Output of a
        non-zero exit ends with an ``(exit status N)`` line so the model can
        tell it apart from a successful run.
        """
        if self.success:
            return self.output
        if self.output and not self.timed_out:
            if self.exit_code is None:
                return self.output
            output = self.output.rstrip("\n")
            return f"{output}\n(exit status {self.exit_code})"
        if self.timed_out and self.output:
            return f"Error: {self.error}\n{self.output}"
        return f"Error: {self.error}"
