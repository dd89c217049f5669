"""Rich console setup and build progress helpers."""

from __future__ import annotations

import logging
from typing import Protocol

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from .models import ControllerState, ToolResult

console = Console()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logger with Rich handler."""
    level = logging.DEBUG if verbose else (logging.ERROR if quiet else logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


# ---------------------------------------------------------------------------
# Build callbacks protocol
# ---------------------------------------------------------------------------


class BuildCallbacks(Protocol):
    """Protocol for build progress reporting."""

    def on_state(self, state: ControllerState) -> None: ...
    def on_pass_start(self, label: str, number: int) -> None: ...
    def on_pass_end(self, result: ToolResult) -> None: ...
    def on_report(self, text: str) -> None: ...
    def on_warning(self, message: str) -> None: ...
    def on_error(self, message: str) -> None: ...


class RichCallbacks:
    """Rich-based implementation of BuildCallbacks."""

    def __init__(self, *, show_report: bool = True) -> None:
        self.show_report = show_report

    def on_state(self, state: ControllerState) -> None:
        console.print(f"  [dim]state:[/] {state.value}")

    def on_pass_start(self, label: str, number: int) -> None:
        console.print(f"  [yellow]Pass {number}:[/] {label}")

    def on_pass_end(self, result: ToolResult) -> None:
        if result.timed_out:
            console.print(f"  [red]{result.kind.value} timed out[/]")
        elif result.failed:
            console.print(f"  [dim]{result.kind.value} exit status {result.exit_status}[/]")

    def on_report(self, text: str) -> None:
        if self.show_report and text:
            # Transcript text may contain [brackets]; never interpret it as markup
            console.print(Text(text))

    def on_warning(self, message: str) -> None:
        console.print(f"  [yellow]WARNING:[/] {message}")

    def on_error(self, message: str) -> None:
        console.print(f"  [red]ERROR:[/] {message}")


class NullCallbacks:
    """Silent callbacks for library use and tests."""

    def on_state(self, state: ControllerState) -> None:
        pass

    def on_pass_start(self, label: str, number: int) -> None:
        pass

    def on_pass_end(self, result: ToolResult) -> None:
        pass

    def on_report(self, text: str) -> None:
        pass

    def on_warning(self, message: str) -> None:
        pass

    def on_error(self, message: str) -> None:
        pass
