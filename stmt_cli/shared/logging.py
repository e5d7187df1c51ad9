"""Rich-backed log facade for the stmt-rules command line."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from rich.console import Console
from rich.theme import Theme
from rich.traceback import install

install(show_locals=False)

_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "finding": "magenta",
        "error": "bold red",
        "success": "bold green",
        "debug": "dim",
    }
)

# stdout carries payloads (CSV/JSON/Markdown); every diagnostic line goes to stderr.
# Highlighting stays off so bank ids and amounts are printed without injected styles.
_payload_console = Console(theme=_THEME, highlight=False)
_diagnostic_console = Console(stderr=True, theme=_THEME, highlight=False)


@dataclass(slots=True)
class Logger:
    """Console logger used by CLI commands; library code logs via ``logging``."""

    verbose: bool = False
    max_findings: int = 20

    @property
    def console(self) -> Console:
        return _payload_console

    def info(self, message: str) -> None:
        self._emit(message, "info")

    def success(self, message: str) -> None:
        self._emit(message, "success")

    def warning(self, message: str) -> None:
        self._emit(message, "warning")

    def error(self, message: str) -> None:
        self._emit(message, "error")

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit(message, "debug")

    def findings(self, title: str, lines: Iterable[str]) -> int:
        """Print a titled list of findings, truncated unless verbose. Returns the count."""

        items = list(lines)
        if not items:
            return 0
        self._emit(f"{title} ({len(items)})", "warning")
        limit = len(items) if self.verbose else self.max_findings
        for line in items[:limit]:
            self._emit(f"  - {line}", "finding")
        if len(items) > limit:
            self._emit(f"  ... {len(items) - limit} more (use --verbose to list all)", "finding")
        return len(items)

    def _emit(self, message: str, style: str) -> None:
        _diagnostic_console.print(message, style=style, markup=False)


def get_logger(verbose: bool = False) -> Logger:
    """Return a configured Logger instance."""
    return Logger(verbose=verbose)
