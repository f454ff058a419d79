"""Core tool-calling loop.

Provides the Orchestrator class: send the transcript and tool definitions
to the chat API, execute any tool calls the model makes, append their
(condensed) results, and repeat until the model answers, the API fails,
or the iteration budget is spent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from toolloop.exceptions import OrchestratorError
from toolloop.llm.errors import LLMClientError
from toolloop.models.usage import UsageAccumulator
from toolloop.operations.condense import Condenser
from toolloop.orchestrator.config import OrchestratorConfig, SessionOutcome, SessionState
from toolloop.orchestrator.models import SessionResult, StepResult
from toolloop.orchestrator.transcript import Transcript
from toolloop.protocols import Message
from toolloop.toolkit.executor import ToolExecutor

if TYPE_CHECKING:
    from toolloop.llm.protocols import LLMClient
    from toolloop.protocols import ChatResponse, ToolCall
    from toolloop.toolkit.registry import ToolRegistry

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs one tool-calling session per :meth:`run` call.

    Each session owns its transcript and its token accumulator; nothing is
    shared between runs except the client and the registry.

    Usage::

        registry = ToolRegistry.discover("./tools")
        with OpenAIClient(api_key="sk-...") as client:
            result = Orchestrator(client, registry).run("Calculate 25 * 4")
        print(result.final_answer)
    """

    def __init__(
        self,
        client: LLMClient,
        registry: ToolRegistry,
        *,
        config: OrchestratorConfig | None = None,
        executor: ToolExecutor | None = None,
    ) -> None:
        """Create an orchestrator.

        Raises:
            OrchestratorError: If max_iterations or summary_workers is below 1.
        """
        self._client = client
        self._registry = registry
        self._config = config or OrchestratorConfig()
        if self._config.max_iterations < 1:
            raise OrchestratorError(
                f"max_iterations must be at least 1, got {self._config.max_iterations}"
            )
        if self._config.summary_workers < 1:
            raise OrchestratorError(
                f"summary_workers must be at least 1, got {self._config.summary_workers}"
            )
        self._executor = executor or ToolExecutor(registry, timeout=self._config.tool_timeout)
        self._state = SessionState.AWAITING_RESPONSE

    @property
    def state(self) -> SessionState:
        """State of the current (or most recent) session."""
        return self._state

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, prompt: str) -> SessionResult:
        """Run a session for ``prompt``.

        Only API failures end the session early; tool failures are handed
        to the model as tool results.  Token totals are reported through
        ``config.on_finish`` exactly once, however the session ends.

        Returns:
            SessionResult describing how the session ended.
        """
        usage = UsageAccumulator()
        transcript = Transcript()
        if self._config.system_prompt:
            transcript.append(Message.system(self._config.system_prompt))
        transcript.append(Message.user(prompt))

        condenser = Condenser(
            self._client,
            usage=usage,
            model=self._config.model,
            temperature=self._config.temperature,
            max_workers=self._config.summary_workers,
        )
        tools = self._registry.definitions()
        steps: list[StepResult] = []
        final_answer: str | None = None
        error: str | None = None
        outcome = SessionOutcome.MAX_ITERATIONS
        iteration = 0
        self._state = SessionState.AWAITING_RESPONSE

        try:
            while iteration < self._config.max_iterations:
                iteration += 1
                logger.info("Iteration %d/%d", iteration, self._config.max_iterations)

                try:
                    response = self._call_llm(transcript, tools)
                except (LLMClientError, httpx.HTTPError) as exc:
                    error = f"API request failed: {exc}"
                    break
                usage.add(response.usage)
                if response.usage is not None:
                    logger.info(
                        "Tokens: prompt=%d, completion=%d",
                        response.usage.prompt_tokens,
                        response.usage.completion_tokens,
                    )

                if response.is_error:
                    error = f"API error: {response.error}"
                    break

                if response.tool_calls:
                    transcript.append(response.to_message())
                    self._state = SessionState.PROCESSING_TOOL_CALLS
                    logger.info("Processing %d tool call(s)...", len(response.tool_calls))
                    for tc in response.tool_calls:
                        step = self._run_tool_call(tc, iteration, condenser)
                        transcript.append(Message.tool(tc.id, step.content))
                        steps.append(step)
                        self._notify_step(step)
                    self._state = SessionState.AWAITING_RESPONSE
                    continue

                final_answer = response.content
                if final_answer:
                    outcome = SessionOutcome.COMPLETED
                else:
                    logger.warning("No content in response")
                    outcome = SessionOutcome.EMPTY
                self._state = SessionState.DONE
                break

            if error is not None:
                self._state = SessionState.FAILED
                outcome = SessionOutcome.FAILED
                logger.info("Session failed: %s", error)
            elif self._state is not SessionState.DONE:
                self._state = SessionState.MAX_ITERATIONS
                logger.warning(
                    "Reached maximum iterations (%d)", self._config.max_iterations
                )
        finally:
            self._finish(usage)

        return SessionResult(
            outcome=outcome,
            state=self._state,
            final_answer=final_answer,
            error=error,
            iterations=iteration,
            steps=tuple(steps),
            transcript=transcript.messages,
            usage=usage,
        )

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    def _call_llm(self, transcript: Transcript, tools: list) -> ChatResponse:
        """Send the transcript with the tool definitions attached.

        Transport retries happen inside the client; whatever it still
        raises ends the session.
        """
        return self._client.send(
            transcript.messages,
            tools,
            include_tools=True,
            model=self._config.model,
            temperature=self._config.temperature,
        )

    def _run_tool_call(self, tc: ToolCall, iteration: int, condenser: Condenser) -> StepResult:
        """Execute one tool call and condense its output."""
        logger.info("Executing tool: %s", tc.name)
        logger.debug("Arguments: %s", tc.raw_arguments)
        result = self._executor.execute(tc.name, tc.arguments)
        content = result.content
        logger.info("Tool result: %s...", content[:100])
        if self._config.condense_results:
            content = condenser.condense(content)
        return StepResult(iteration=iteration, tool_call=tc, result=result, content=content)

    def _notify_step(self, step: StepResult) -> None:
        if self._config.on_step is None:
            return
        try:
            self._config.on_step(step)
        except Exception:
            logger.debug("on_step callback error", exc_info=True)

    def _finish(self, usage: UsageAccumulator) -> None:
        logger.debug("Done. Total tokens - %s", usage)
        if self._config.on_finish is None:
            return
        try:
            self._config.on_finish(usage)
        except Exception:
            logger.debug("on_finish callback error", exc_info=True)
