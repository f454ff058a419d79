"""toolloop CLI -- run one tool-calling session from the terminal.

This module is never imported from toolloop/__init__.py.  It is only
loaded via the ``toolloop`` entry point defined in pyproject.toml.

Exit codes:
    0  the model produced a final answer (also when that answer is empty)
    1  configuration error or fatal API error
    2  usage error (e.g. no prompt)
    3  the iteration budget ran out before a final answer
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click
from pydantic import ValidationError

from toolloop.cli.formatting import (
    format_error,
    format_outcome,
    format_step,
    format_tools,
    format_usage,
    format_warning,
    get_console,
    setup_logging,
)
from toolloop.exceptions import ConfigurationError
from toolloop.models.config import (
    API_KEY_ENV_VAR,
    DEFAULT_API_URL,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOOL_PATTERN,
    DEFAULT_TOOL_TIMEOUT,
    SessionConfig,
)
from toolloop.orchestrator.config import SessionOutcome

if TYPE_CHECKING:
    from rich.console import Console

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_MAX_ITERATIONS = 3

_EXIT_CODES = {
    SessionOutcome.COMPLETED: EXIT_OK,
    SessionOutcome.EMPTY: EXIT_OK,
    SessionOutcome.MAX_ITERATIONS: EXIT_MAX_ITERATIONS,
    SessionOutcome.FAILED: EXIT_FAILURE,
}


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=(
        "Examples:\n\n"
        "  toolloop \"What's the weather in Paris?\"\n\n"
        "  toolloop -t /path/to/tools -m 5 \"Calculate 25 * 4\""
    ),
)
@click.argument("prompt")
@click.option(
    "-t", "--tools-folder",
    type=click.Path(path_type=Path),
    default=Path("./tools"),
    envvar="TOOLLOOP_TOOLS_FOLDER",
    show_default=True,
    help="Folder containing tool scripts.",
)
@click.option(
    "-m", "--max-iterations",
    type=int,
    default=DEFAULT_MAX_ITERATIONS,
    show_default=True,
    help="Maximum tool calling iterations.",
)
@click.option(
    "-u", "--url",
    default=DEFAULT_API_URL,
    envvar="TOOLLOOP_URL",
    show_default=True,
    help="Chat completions endpoint.",
)
@click.option(
    "-k", "--key",
    "api_key",
    default=None,
    envvar=API_KEY_ENV_VAR,
    help=f"API key (default: from {API_KEY_ENV_VAR}).",
)
@click.option(
    "-M", "--model",
    default=DEFAULT_MODEL,
    envvar="TOOLLOOP_MODEL",
    show_default=True,
    help="Model name.",
)
@click.option(
    "-T", "--temperature",
    type=float,
    default=DEFAULT_TEMPERATURE,
    show_default=True,
    help="Temperature for generation.",
)
@click.option(
    "--tool-timeout",
    type=float,
    default=DEFAULT_TOOL_TIMEOUT,
    show_default=True,
    help="Seconds a tool may run before it is killed.",
)
@click.option(
    "--sandbox-image",
    default=None,
    envvar="TOOLLOOP_SANDBOX_IMAGE",
    help="Run tools inside this docker image instead of on the host.",
)
@click.option(
    "--pattern",
    default=DEFAULT_TOOL_PATTERN,
    show_default=True,
    help="Glob for tool program file names.",
)
@click.option(
    "--summary-workers",
    type=int,
    default=1,
    show_default=True,
    help="Summarize up to this many result chunks concurrently.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
def main(
    prompt: str,
    tools_folder: Path,
    max_iterations: int,
    url: str,
    api_key: str | None,
    model: str,
    temperature: float,
    tool_timeout: float,
    sandbox_image: str | None,
    pattern: str,
    summary_workers: int,
    verbose: bool,
) -> None:
    """AI tool calling system that executes scripts as tools.

    Sends PROMPT to an OpenAI-compatible chat completions endpoint, runs
    the tools the model asks for, and prints the final answer.
    """
    if not prompt.strip():
        raise click.UsageError("No prompt provided. Use -h for help.")

    console = get_console()
    setup_logging(console, verbose=verbose)

    try:
        config = SessionConfig(
            api_url=url,
            api_key=api_key or "",
            model=model,
            temperature=temperature,
            max_iterations=max_iterations,
            tools_folder=tools_folder,
            tool_pattern=pattern,
            tool_timeout=tool_timeout,
            sandbox_image=sandbox_image,
            summary_workers=summary_workers,
            verbose=verbose,
        )
        config.validate_for_run()
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(part) for part in err["loc"])
            format_error(f"Invalid {field}: {err['msg']}", console)
        raise SystemExit(EXIT_FAILURE) from None
    except ConfigurationError as e:
        format_error(str(e), console)
        raise SystemExit(EXIT_FAILURE) from None

    raise SystemExit(run_session(prompt, config, console))


def run_session(prompt: str, config: SessionConfig, console: Console) -> int:
    """Discover tools, run the loop, print the answer; return the exit code."""
    from toolloop.llm.client import OpenAIClient
    from toolloop.llm.errors import LLMClientError
    from toolloop.orchestrator import Orchestrator, OrchestratorConfig
    from toolloop.toolkit.registry import ToolRegistry
    from toolloop.toolkit.sandbox import DockerRunner

    console.print("[green]Starting tool calling session...[/green]")
    runner = DockerRunner(config.sandbox_image) if config.sandbox_image else None
    try:
        registry = ToolRegistry.discover(
            config.tools_folder,
            pattern=config.tool_pattern,
            runner=runner,
        )
    except ConfigurationError as e:
        format_error(str(e), console)
        return EXIT_FAILURE

    format_tools(registry, console, folder=str(config.tools_folder))
    if not len(registry):
        format_warning(f"No valid tools found in {config.tools_folder}", console)

    orchestrator_config = OrchestratorConfig(
        max_iterations=config.max_iterations,
        tool_timeout=config.tool_timeout,
        summary_workers=config.summary_workers,
        on_step=(lambda step: format_step(step, console)) if config.verbose else None,
        on_finish=lambda usage: format_usage(usage, console),
    )
    try:
        client = OpenAIClient(
            api_key=config.api_key,
            url=config.api_url,
            model=config.model,
            temperature=config.temperature,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
        )
    except LLMClientError as e:
        format_error(str(e), console)
        return EXIT_FAILURE

    with client:
        result = Orchestrator(client, registry, config=orchestrator_config).run(prompt)

    format_outcome(result, console)
    if result.outcome is SessionOutcome.COMPLETED:
        click.echo(result.final_answer)
    return _EXIT_CODES[result.outcome]
