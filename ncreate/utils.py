"""Shared console helpers for ncreate.

All user-facing output goes through the two Rich consoles defined here:
``console`` for normal output and ``err_console`` (stderr) for errors and
warnings.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ncreate.scaffolder.materializer import MaterializeResult, PlannedAction

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary project name to a safe directory name.

    Examples::

        sanitize_name("Todo App (Flask)") -> "todo-app-flask"
        sanitize_name("  ../etc  ")       -> "etc"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def display_path(path: Path, base: Path | None = None) -> str:
    """Show *path* relative to *base* (default: cwd) when it lies below it."""
    base = base or Path.cwd()
    try:
        return os.path.relpath(path, base) if path.is_relative_to(base) else str(path)
    except ValueError:
        return str(path)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}", highlight=False)


def print_warning(message: str) -> None:
    """Print a yellow warning message to stderr."""
    err_console.print(f"[bold yellow]{escape(message)}[/bold yellow]", highlight=False)


def print_plan_table(actions: list[PlannedAction], title: str = "Plan") -> None:
    """Print what a plan would do, one row per entry."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Action", style="dim", no_wrap=True)
    table.add_column("Path")
    table.add_column("Mode", no_wrap=True)

    for action in actions:
        verb = "skip" if action.skip else f"create {action.kind}"
        mode = "+x" if getattr(action.entry, "executable", False) else ""
        table.add_row(verb, escape(display_path(action.target)), mode)

    console.print(table)


def print_result(result: MaterializeResult, verbose: bool = False) -> None:
    """Summarise a finished materialization."""
    if verbose:
        for path in result.created:
            console.print(f"  [green]created[/green] {escape(display_path(path))}", highlight=False)
        for path in result.skipped:
            console.print(f"  [yellow]skipped[/yellow] {escape(display_path(path))}", highlight=False)

    summary = f"Created {len(result.created)} path(s) under {escape(display_path(result.root))}"
    if result.skipped:
        summary += f", skipped {len(result.skipped)} existing"
    print_success(summary)
