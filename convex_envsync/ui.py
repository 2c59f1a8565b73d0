"""Console output for the sync, diff and jwt-keys workflows.

Workflows report per-key outcomes here; ``logger`` calls stay for
diagnostics.  Only key names and redacted summaries are passed in, never
variable values.
"""

from __future__ import annotations

from typing import Dict, Iterable

from rich.console import Console
from rich.panel import Panel

console = Console(highlight=False)

_MARKS = {
    "ok": "[bold green]✓[/]",
    "fail": "[bold red]✗[/]",
    "warn": "[bold yellow]⚠[/]",
    "step": "[bold cyan]›[/]",
    "info": "[dim]·[/]",
}


def _line(mark: str, msg: str) -> None:
    console.print(f"  {_MARKS[mark]} {msg}")


def phase(title: str) -> None:
    """Header printed once per command (``SYNC``, ``DIFF``, ``JWT KEYS``)."""
    console.print()
    console.print(f"[bold blue]── {title} ──[/]")


def ok(msg: str) -> None:
    """A key that was applied or is already in sync."""
    _line("ok", msg)


def fail(msg: str) -> None:
    """A key whose remote call failed."""
    _line("fail", f"[red]{msg}[/]")


def warn(msg: str) -> None:
    """Skipped, drifted or unattempted keys."""
    _line("warn", f"[yellow]{msg}[/]")


def step(msg: str) -> None:
    _line("step", msg)


def info(msg: str) -> None:
    _line("info", f"[dim]{msg}[/]")


def details(pairs: Dict[str, str]) -> None:
    """Indented ``name: value`` rows, e.g. a redacted credential summary."""
    for key, value in pairs.items():
        console.print(f"    [bold]{key}[/]: {value}")


def error_msg(msg: str) -> None:
    """Input or credential problem that stops the command before any remote call."""
    console.print(f"[bold red]ERROR:[/] {msg}")


def _panel(title: str, body: str, colour: str) -> None:
    console.print()
    console.print(
        Panel(body, title=f"[bold {colour}]{title}[/]", border_style=colour, padding=(1, 2))
    )


def success_panel(title: str, body: str) -> None:
    _panel(title, body, "green")


def error_panel(title: str, body: str) -> None:
    """Closing summary for a command that ends with a non-zero exit code."""
    _panel(title, body, "red")


def key_list(keys: Iterable[str]) -> str:
    """Comma-joined key names, or ``(none)``."""
    keys = list(keys)
    return ", ".join(keys) if keys else "(none)"
