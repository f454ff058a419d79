"""Toolkit: discovering, describing and running tools for the model.

Provides tool definitions, the registry that discovers tool programs, the
process runners, and the executor that dispatches tool calls.
"""

from toolloop.toolkit.executor import ToolExecutor
from toolloop.toolkit.models import ToolDefinition, ToolResult
from toolloop.toolkit.registry import ToolRegistry, discover
from toolloop.toolkit.sandbox import DirectRunner, DockerRunner
from toolloop.toolkit.tools import FunctionTool, ScriptTool, build_cli_args

__all__ = [
    "ToolDefinition",
    "ToolResult",
    "ToolRegistry",
    "ToolExecutor",
    "ScriptTool",
    "FunctionTool",
    "DirectRunner",
    "DockerRunner",
    "build_cli_args",
    "discover",
]
