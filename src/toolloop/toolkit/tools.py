"""Concrete Tool implementations.

``ScriptTool`` wraps an external program that follows the tool protocol
(``--name``/``--description``/``--parameters`` metadata flags, then
``--<key> <value>`` pairs for a real invocation).  ``FunctionTool`` wraps a
Python callable for tools that live in-process.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from toolloop.exceptions import ToolRegistrationError
from toolloop.toolkit.models import ToolDefinition, ToolResult
from toolloop.toolkit.sandbox import DirectRunner, query_stdout

if TYPE_CHECKING:
    from collections.abc import Callable

    from toolloop.toolkit.sandbox import Runner

logger = logging.getLogger(__name__)

METADATA_FLAGS = ("name", "description", "parameters")


def format_arg_value(value: object) -> str:
    """Render one JSON argument value as a single argv word."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


def build_cli_args(arguments: dict) -> list[str]:
    """Flatten a JSON object into ``--key value`` pairs.

    Pairs follow the object's own key order; no sorting is applied.

    >>> build_cli_args({"lat": 52.52, "lon": 13.41})
    ['--lat', '52.52', '--lon', '13.41']
    """
    args: list[str] = []
    for key, value in arguments.items():
        args.append(f"--{key}")
        args.append(format_arg_value(value))
    return args


def parse_parameters(raw: str, *, candidate: str) -> dict:
    """Parse a tool's ``--parameters`` output into a schema dict.

    Raises:
        ToolRegistrationError: If ``raw`` is not a JSON object.
    """
    try:
        schema = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ToolRegistrationError(candidate, f"invalid parameters JSON ({exc.msg})") from exc
    if not isinstance(schema, dict):
        raise ToolRegistrationError(candidate, "parameters JSON is not an object")
    return schema


class ScriptTool:
    """A tool backed by an executable program."""

    def __init__(self, path: Path, definition: ToolDefinition, *, runner: Runner | None = None) -> None:
        self.path = path
        self._definition = definition
        self._runner = runner or DirectRunner()

    @classmethod
    def from_script(
        cls,
        path: Path,
        *,
        runner: Runner | None = None,
        timeout: float | None = 10.0,
    ) -> ScriptTool:
        """Introspect ``path`` via its metadata flags.

        Raises:
            ToolRegistrationError: If any field is empty, the schema is not
                a JSON object, or the program cannot be queried.
        """
        values: dict[str, str] = {}
        for flag in METADATA_FLAGS:
            try:
                values[flag] = query_stdout(path, f"--{flag}", timeout=timeout)
            except subprocess.TimeoutExpired as exc:
                raise ToolRegistrationError(str(path), f"--{flag} timed out after {timeout}s") from exc
            except OSError as exc:
                raise ToolRegistrationError(str(path), f"cannot run --{flag}: {exc}") from exc

        missing = [flag for flag in METADATA_FLAGS if not values[flag]]
        if missing:
            raise ToolRegistrationError(str(path), f"empty {', '.join(missing)}")

        definition = ToolDefinition(
            name=values["name"],
            description=values["description"],
            parameters=parse_parameters(values["parameters"], candidate=values["name"]),
        )
        return cls(path, definition, runner=runner)

    @property
    def definition(self) -> ToolDefinition:
        return self._definition

    def invoke(self, arguments: dict, *, timeout: float | None = None) -> ToolResult:
        name = self._definition.name
        args = build_cli_args(arguments)
        try:
            run = self._runner.run(self.path, args, timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            partial = exc.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            logger.warning("Tool %s timed out after %ss", name, timeout)
            return ToolResult(
                tool_name=name,
                success=False,
                output=partial,
                error=f"Tool {name} timed out after {timeout}s",
                timed_out=True,
            )
        except OSError as exc:
            logger.warning("Tool %s could not be started: %s", name, exc)
            return ToolResult(
                tool_name=name,
                success=False,
                error=f"Tool {name} could not be started: {exc}",
            )

        if run.returncode != 0:
            logger.info("Tool %s exited with status %d", name, run.returncode)
            return ToolResult(
                tool_name=name,
                success=False,
                output=run.output,
                error=f"{name} exited with status {run.returncode}",
                exit_code=run.returncode,
            )
        return ToolResult(tool_name=name, success=True, output=run.output, exit_code=0)

    def __repr__(self) -> str:
        return f"<ScriptTool {self._definition.name} at {self.path}>"


class FunctionTool:
    """A tool backed by a Python callable.

    The callable receives the arguments as keyword arguments; its return
    value is converted with ``str()``.  Timeouts are not enforced for
    in-process tools.
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: dict,
        handler: Callable[..., object],
    ) -> None:
        self._definition = ToolDefinition(name=name, description=description, parameters=parameters)
        self._handler = handler

    @property
    def definition(self) -> ToolDefinition:
        return self._definition

    def invoke(self, arguments: dict, *, timeout: float | None = None) -> ToolResult:
        name = self._definition.name
        try:
            result = self._handler(**arguments)
        except Exception as exc:
            logger.debug("Tool %s failed: %s", name, exc, exc_info=True)
            return ToolResult(
                tool_name=name,
                success=False,
                error=f"{type(exc).__name__}: {exc}",
            )
        return ToolResult(tool_name=name, success=True, output=str(result))

    def __repr__(self) -> str:
        return f"<FunctionTool {self._definition.name}>"
