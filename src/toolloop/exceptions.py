"""Toolloop exception hierarchy.

All toolloop-specific exceptions inherit from ToolloopError.  Only
configuration errors and primary API errors abort a session; tool and
summarization failures are folded into the transcript instead of raised.
"""


class ToolloopError(Exception):
    """Base exception for all toolloop errors."""


class ConfigurationError(ToolloopError):
    """Raised when a session cannot start (missing key, tools folder, ...)."""


class ToolsFolderNotFoundError(ConfigurationError):
    """Raised when the tools folder does not exist or is not a directory."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Tools folder not found: {path}")


class ToolRegistrationError(ToolloopError):
    """Raised when a tool candidate cannot be registered.

    The registry catches this internally and logs the rejection; it only
    escapes when registering with ``strict=True``.
    """

    def __init__(self, candidate: str, reason: str) -> None:
        self.candidate = candidate
        self.reason = reason
        super().__init__(f"Cannot register tool {candidate}: {reason}")


class CondenseError(ToolloopError):
    """Raised when a single chunk cannot be summarized.

    The condenser catches this per chunk and keeps the raw text, so it
    never reaches the orchestrator.
    """

    def __init__(self, message: str, usage: object = None) -> None:
        self.usage = usage
        super().__init__(message)


class OrchestratorError(ToolloopError):
    """Raised for orchestrator misconfiguration (not for API failures)."""
