"""Shared console output for CLI commands.

User-facing progress goes through one rich console wrapper so that the
deployment pipeline and the commands print with the same markers.
Diagnostics (command lines, build attempts, patch decisions) go to
loguru instead; see ``shared.logging``.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import TYPE_CHECKING

import typer
from rich.console import Console, ConsoleRenderable
from rich.panel import Panel
from rich.status import Status
from rich.table import Table

from ..deployment.errors import DeploymentError

if TYPE_CHECKING:
    from ..deployment.kustomize_deployer import DeploymentRun

# Final component state -> summary cell
_STATE_LABELS = {
    "succeeded": "[green]deployed[/green]",
    "failed": "[red]failed[/red]",
    "pending": "[dim]not attempted[/dim]",
}


class CLIConsole:
    """Rich console wrapper for consistent CLI output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def status(self, status: str) -> Status:
        return self.console.status(status)

    def info(self, msg: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {msg}")

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def detail(self, msg: str) -> None:
        """Print a dimmed, indented follow-up line."""
        self.console.print(f"[dim]  {msg}[/dim]")

    def handle_error(
        self, message: str, details: str | None = None, exit_code: int = 1
    ) -> None:
        """Print an error with an optional details panel, then exit.

        Args:
            message: Error message to display
            details: Optional recovery details or tool output
            exit_code: Exit code to use
        """
        self.console.print(f"\n[bold red]❌ {message}[/bold red]\n")
        if details:
            self.console.print(Panel(details, title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def print_header(self, title: str, style: str = "blue") -> None:
        self.console.print(
            Panel.fit(
                f"[bold {style}]{title}[/bold {style}]",
                border_style=style,
            )
        )

    def print_subheader(self, title: str) -> None:
        self.console.print(f"\n[bold underline]{title}[/bold underline]\n")

    def print_run_summary(self, run: DeploymentRun) -> None:
        """Print one row per selected component with its final state.

        Failed components also show the step they failed in; components
        after a failure are listed as not attempted.
        """
        table = Table(title=f"Deployment Summary (platform: {run.platform})")
        table.add_column("Component", style="cyan")
        table.add_column("Role")
        table.add_column("Image")
        table.add_column("Status")

        for outcome in run.outcomes:
            status = _STATE_LABELS.get(outcome.state.value, outcome.state.value)
            if outcome.failed_in is not None:
                status = f"{status} [dim]({outcome.failed_in.value})[/dim]"
            table.add_row(
                outcome.component.name,
                outcome.component.role.value,
                str(outcome.reference) if outcome.reference else "-",
                status,
            )

        self.console.print()
        self.console.print(table)


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Decorator to wrap command functions with standard error handling.

    DeploymentError exits with code 1 after printing its message and
    details; an interrupt exits with code 130.

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except DeploymentError as e:
            console.handle_error(e.message, e.details)
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


# Shared console instance for consistent output
console = CLIConsole()
