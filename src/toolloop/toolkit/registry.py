"""ToolRegistry: the set of tools offered to the model for one session.

Tools are discovered once at startup by introspecting every executable in
the tools folder.  Bad candidates are logged and skipped so that one broken
script never takes the session down.  Names are unique: the first tool to
claim a name keeps it and later claimants are rejected.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from toolloop.exceptions import ToolRegistrationError, ToolsFolderNotFoundError
from toolloop.models.config import DEFAULT_TOOL_PATTERN
from toolloop.toolkit.tools import ScriptTool

if TYPE_CHECKING:
    from collections.abc import Iterator

    from toolloop.protocols import Tool
    from toolloop.toolkit.models import ToolDefinition
    from toolloop.toolkit.sandbox import Runner

logger = logging.getLogger(__name__)


def iter_candidates(directory: Path, pattern: str = DEFAULT_TOOL_PATTERN) -> Iterator[Path]:
    """Yield executable regular files matching ``pattern``, sorted by name."""
    for path in sorted(directory.glob(pattern)):
        if not path.is_file():
            continue
        if not os.access(path, os.X_OK):
            logger.debug("Skipping non-executable %s", path)
            continue
        yield path


class ToolRegistry:
    """Ordered, name-unique collection of tools.

    Usage::

        registry = ToolRegistry.discover(Path("./tools"))
        for definition in registry.definitions():
            print(definition.name)
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._rejected: list[ToolRegistrationError] = []

    @classmethod
    def discover(
        cls,
        directory: Path | str,
        *,
        pattern: str = DEFAULT_TOOL_PATTERN,
        runner: Runner | None = None,
        timeout: float | None = 10.0,
    ) -> ToolRegistry:
        """Build a registry from the tool programs in ``directory``.

        Each candidate is queried with --name, --description and
        --parameters.  Candidates with an empty field, a parameters value
        that is not a JSON object, or a failing metadata query are
        rejected with a warning.

        Args:
            directory: Folder holding the tool programs.
            pattern: Glob for candidate file names.
            runner: How registered tools will be executed (direct when None).
            timeout: Per-query timeout for the metadata flags.

        Raises:
            ToolsFolderNotFoundError: If ``directory`` is not a directory.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ToolsFolderNotFoundError(str(directory))

        registry = cls()
        for path in iter_candidates(directory, pattern):
            try:
                tool = ScriptTool.from_script(path, runner=runner, timeout=timeout)
            except ToolRegistrationError as exc:
                registry._reject(exc)
                continue
            registry.register(tool)
        return registry

    def register(self, tool: Tool, *, strict: bool = False) -> bool:
        """Add ``tool`` unless its name is already taken.

        Returns:
            True if registered, False if rejected as a duplicate.

        Raises:
            ToolRegistrationError: On a duplicate when ``strict`` is set.
        """
        name = tool.definition.name
        if name in self._tools:
            exc = ToolRegistrationError(
                repr(tool), f"duplicate name {name!r} (already provided by {self._tools[name]!r})"
            )
            if strict:
                raise exc
            self._reject(exc)
            return False
        self._tools[name] = tool
        logger.debug("Registered tool: %s", name)
        return True

    def _reject(self, exc: ToolRegistrationError) -> None:
        self._rejected.append(exc)
        logger.warning("%s", exc)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]

    def to_openai(self) -> list[dict]:
        return [d.to_openai() for d in self.definitions()]

    @property
    def rejected(self) -> list[ToolRegistrationError]:
        """Registration failures, in the order they happened."""
        return list(self._rejected)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())


def discover(directory: Path | str, **kwargs: object) -> list[ToolDefinition]:
    """Return the tool definitions found in ``directory``."""
    return ToolRegistry.discover(directory, **kwargs).definitions()  # type: ignore[arg-type]
