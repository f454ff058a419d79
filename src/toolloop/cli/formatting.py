"""Rich formatting helpers for the toolloop CLI.

Progress, warnings and token totals go to stderr; only the final answer
is written to stdout, so the command composes in pipelines.  Rich
auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from toolloop.models.usage import UsageAccumulator
    from toolloop.orchestrator.models import SessionResult, StepResult
    from toolloop.toolkit.registry import ToolRegistry


def get_console(*, stderr: bool = True) -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=stderr)


def setup_logging(console: Console, *, verbose: bool = False) -> None:
    """Route toolloop's log records through rich on ``console``.

    INFO shows the per-iteration progress; ``verbose`` adds DEBUG records
    (request and response bodies, executed command lines).
    """
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger("toolloop")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def format_warning(message: str, console: Console) -> None:
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False)


def format_tools(registry: ToolRegistry, console: Console, *, folder: str = "") -> None:
    """Display the registered tools."""
    if folder:
        console.print(f"Tools folder: {escape(folder)}", highlight=False)
    console.print(f"Found {len(registry)} tools", highlight=False)
    if not len(registry):
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Tool", style="cyan")
    table.add_column("Parameters", style="dim")
    table.add_column("Description")
    for definition in registry.definitions():
        props = definition.parameters.get("properties")
        if not isinstance(props, dict):
            props = {}
        required = definition.parameters.get("required")
        required = {r for r in required if isinstance(r, str)} if isinstance(required, list) else set()
        params = ", ".join(f"{p}*" if p in required else p for p in props)
        table.add_row(definition.name, escape(params), escape(definition.description))
    console.print(table)


def format_step(step: StepResult, console: Console, *, max_chars: int = 200) -> None:
    """Display one executed tool call."""
    status = "[green]ok[/green]" if step.success else "[red]failed[/red]"
    preview = step.content if len(step.content) <= max_chars else step.content[:max_chars] + "..."
    suffix = " [dim](condensed)[/dim]" if step.condensed else ""
    console.print(
        f"[cyan]{escape(step.tool_call.name)}[/cyan] "
        f"{escape(step.tool_call.raw_arguments)} -> {status}{suffix}",
        highlight=False,
    )
    if preview:
        console.print(f"  [dim]{escape(preview)}[/dim]", highlight=False)


def format_usage(usage: UsageAccumulator, console: Console) -> None:
    """Display session token totals."""
    console.print(
        f"[green]Done. Total tokens - Prompt: {usage.prompt_tokens}, "
        f"Completion: {usage.completion_tokens}, Total: {usage.total_tokens}[/green]",
        highlight=False,
    )


def format_outcome(result: SessionResult, console: Console) -> None:
    """Display how the session ended. The answer itself goes to stdout."""
    from toolloop.orchestrator.config import SessionOutcome

    if result.outcome is SessionOutcome.COMPLETED:
        console.print("[green]Final response:[/green]")
    elif result.outcome is SessionOutcome.FAILED:
        format_error(result.error or "Session failed", console)
    # EMPTY and MAX_ITERATIONS were already logged as warnings by the loop
