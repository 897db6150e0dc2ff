"""Console output formatting utilities for buildgraph."""

from __future__ import annotations

import sys
import threading
from typing import Iterable, Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug
        # steps report from worker threads
        self._lock = threading.Lock()

    def _out(self, *lines: str, err: bool = False) -> None:
        stream = sys.stderr if err else sys.stdout
        with self._lock:
            for line in lines:
                print(line, file=stream)

    def print_build_started(
        self,
        project: str,
        target: str,
        optimize: str,
        steps: Iterable[str],
    ) -> None:
        """Print build start information."""
        self._out(
            "\nBUILD STARTED",
            f"Project: {project}",
            f"Target: {target}",
            f"Optimize: {optimize}",
            f"Steps: {', '.join(steps)}",
            "",
        )

    def print_step(self, name: str) -> None:
        """Print step start message."""
        self._out(f"STEP: {name}")

    def print_success(self, name: str) -> None:
        """Print success message (debug mode only, to keep builds quiet)."""
        if self.debug:
            self._out(f"DONE: {name}")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
        stderr: str = "",
    ) -> None:
        """
        Print failure message.

        Args:
            name: Step name
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
            stderr: Captured tool stderr, shown in full in debug mode
        """
        lines = [f"STEP FAILED: {name}"]
        if exit_code is not None:
            lines.append(f"Exit code: {exit_code}")
        if hint:
            lines.append(f"Hint: {hint}")
        if self.debug:
            lines.append(f"Error details: {reason}")
            if stderr:
                lines.append(stderr.rstrip())
        else:
            lines.append(f"Error: {reason.splitlines()[0] if reason else 'Unknown error'}")
            if stderr:
                lines.extend(stderr.rstrip().splitlines()[-10:])
        self._out(*lines, err=True)

    def print_steps(self, steps: Iterable[tuple[str, str]]) -> None:
        """Print the list of requestable steps."""
        rows = list(steps)
        width = max((len(name) for name, _ in rows), default=0)
        self._out("Steps:")
        for name, description in rows:
            self._out(f"  {name.ljust(width)}  {description}")

    def print_results(self, results: dict[str, str], requested: Iterable[str]) -> None:
        """Print final results summary for the requested steps."""
        lines = ["\n" + "=" * 40, "RESULTS", "=" * 40]
        for name in requested:
            status = results.get(name, "unknown")
            lines.append(f"  {name}: {'SUCCESS' if status == 'ok' else status.upper()}")
        failed = sorted(n for n, s in results.items() if s == "failed")
        if failed:
            lines.append(f"  failed steps: {', '.join(failed)}")
        self._out(*lines)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """Print structured error message."""
        lines = [f"\nERROR: {title}", message]
        if details:
            lines.extend(f"  {detail}" for detail in details)
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._out(*lines, err=True)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            self._out(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._out(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._out(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
