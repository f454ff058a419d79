"""ToolExecutor: dispatches model tool calls to registered tools.

Provides a single ``execute()`` method that resolves the tool by name,
invokes it with the provided arguments under a timeout, and returns a
structured ``ToolResult``.  It never raises for tool problems: unknown
names, crashes, non-zero exits and timeouts all come back as failed
results for the model to read.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from toolloop.models.config import DEFAULT_TOOL_TIMEOUT
from toolloop.toolkit.models import ToolResult

if TYPE_CHECKING:
    from toolloop.toolkit.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Runs tool calls against a registry.

    Usage::

        executor = ToolExecutor(registry, timeout=30)
        result = executor.execute("calculate", {"expression": "25 * 4"})
        print(result.content)
    """

    def __init__(self, registry: ToolRegistry, *, timeout: float | None = DEFAULT_TOOL_TIMEOUT) -> None:
        self._registry = registry
        self._timeout = timeout

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def execute(self, tool_name: str, arguments: dict) -> ToolResult:
        """Execute a tool by name with the given arguments.

        Args:
            tool_name: Name of the tool to execute.
            arguments: Argument object from the model, in the model's key order.

        Returns:
            ToolResult with success/failure status and captured output.
        """
        tool = self._registry.get(tool_name)
        if tool is None:
            logger.warning("Tool script not found for %s", tool_name)
            return ToolResult(
                tool_name=tool_name,
                success=False,
                error=f"Tool script not found for {tool_name}",
            )
        try:
            return tool.invoke(arguments, timeout=self._timeout)
        except Exception as exc:
            # Tool implementations should not raise; keep the session alive if one does
            logger.debug("Tool %s raised: %s", tool_name, exc, exc_info=True)
            return ToolResult(
                tool_name=tool_name,
                success=False,
                error=f"{type(exc).__name__}: {exc}",
            )

    def available_tools(self) -> list[str]:
        """Return the names of all available tools."""
        return self._registry.names()
