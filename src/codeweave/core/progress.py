"""User-facing status output for CLI commands.

Status lines go to stderr through a shared rich console, so stdout stays
free for the unified diff of a dry run.

Usage::

    from codeweave.core.progress import status, task

    with task("Weaving IAppService") as progress:
        result = ops.weave_aspect(...)
        progress.detail = pluralize(result.implementations, "implementation")
    # ✓ Weaving IAppService: 7 implementations (0.4s)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from types import TracebackType

import structlog
from rich.console import Console

log = structlog.get_logger()

_console = Console(stderr=True)

_PREFIXES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}


@dataclass
class TaskProgress:
    """Handle yielded by task(); detail is appended to the completion line."""

    name: str
    detail: str = ""
    _start: float = field(default=0.0, repr=False)

    def __enter__(self) -> TaskProgress:
        status(f"{self.name}...", style="none")
        self._start = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        elapsed = time.perf_counter() - self._start
        if exc is not None:
            if isinstance(exc, Exception):
                status(f"{self.name} failed: {exc}", style="error")
                log.debug(
                    "task.failed", task=self.name, elapsed_s=round(elapsed, 3), error=str(exc)
                )
            return
        suffix = f": {self.detail}" if self.detail else ""
        status(f"{self.name}{suffix} ({elapsed:.1f}s)", style="success")
        log.debug("task.done", task=self.name, elapsed_s=round(elapsed, 3))


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print one styled line to stderr."""
    _console.print(f"{' ' * indent}{_PREFIXES.get(style, '')}{message}", highlight=False)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """'1 file', '3 files'; plural defaults to singular + 's'."""
    return f"{count} {singular if count == 1 else (plural or singular + 's')}"


def task(name: str) -> TaskProgress:
    """Announce a named step, then report success or failure with its timing.

    Exceptions propagate unchanged, frozen error types included.
    """
    return TaskProgress(name)
