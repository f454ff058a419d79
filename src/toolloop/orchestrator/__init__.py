"""Tool-calling orchestration loop.

Provides the Orchestrator, its configuration, the append-only transcript
and the result models.
"""

from toolloop.orchestrator.config import OrchestratorConfig, SessionOutcome, SessionState
from toolloop.orchestrator.loop import Orchestrator
from toolloop.orchestrator.models import SessionResult, StepResult
from toolloop.orchestrator.transcript import Transcript

__all__ = [
    "Orchestrator",
    "OrchestratorConfig",
    "SessionOutcome",
    "SessionResult",
    "SessionState",
    "StepResult",
    "Transcript",
]
