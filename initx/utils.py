"""Shared utility functions for initx.

Provides the Rich consoles used for all user-facing output, small output
helpers, and async command execution for post-scaffold hooks.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: Mapping[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously without a shell.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A timeout is reported as
        returncode ``-1`` with an explanatory stderr.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_entry(action: str, path: str | Path) -> None:
    """Print one progress line, e.g. ``» Writing file src/main.rs``."""
    console.print(f"» [dim]{action}[/dim] [bright_cyan]{escape(str(path))}[/bright_cyan]")


def print_summary_table(data: Mapping[str, object], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_template_table(rows: Iterable[tuple[str, str, str]], title: str) -> None:
    """Print the ``initx list`` table of (id, aliases, description) rows."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Template", style="bold", no_wrap=True)
    table.add_column("Aliases", style="italic dim")
    table.add_column("Description")

    for template_id, aliases, description in rows:
        table.add_row(template_id, aliases, description)

    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}", highlight=False)


def print_warning(message: str) -> None:
    """Print a yellow warning message to stderr."""
    err_console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
