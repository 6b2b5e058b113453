"""Console output formatting utilities for pipewright."""

from __future__ import annotations

import sys
import threading
import traceback
from typing import Optional, TextIO

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


class Console:
    """
    Centralized console output formatting.

    One instance is created per run and handed to everything that prints.
    Writes are serialized, so steps running on different threads never
    interleave partial lines.
    """

    def __init__(
        self,
        debug: bool = False,
        level: str = "info",
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            level: Minimum level for debug/info/warning messages
            out: Stream for regular output (defaults to stdout)
            err: Stream for errors and debug output (defaults to stderr)
        """
        self.debug = debug
        self.level = LEVELS["debug"] if debug else LEVELS[level]
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self._lock = threading.Lock()

    def _print(self, message: str = "", *, err: bool = False) -> None:
        stream = self.err if err else self.out
        with self._lock:
            print(message, file=stream, flush=True)

    def enabled(self, level: str) -> bool:
        return LEVELS[level] >= self.level

    def print_header(self, title: str) -> None:
        """Print a section header."""
        self._print(f"\n{title}\n" + "-" * len(title))

    def print_run_started(
        self,
        workflow: str,
        pipeline_count: int,
        step_count: int,
        build_id: str,
    ) -> None:
        """Print run start information."""
        self._print(
            "\nRUN STARTED\n"
            f"Workflow: {workflow}\n"
            f"Build: {build_id}\n"
            f"Pipelines: {pipeline_count}\n"
            f"Steps: {step_count}\n"
        )

    def print_pipeline_start(self, name: str) -> None:
        self._print(f"\nPIPELINE STARTED: {name}")

    def print_batch(self, pipeline: str, index: int, names: list[str]) -> None:
        self._print(f"=== [{pipeline}] Batch {index}: {names} ===")

    def print_step(self, name: str) -> None:
        """Print step start message."""
        self._print(f"STEP: {name}")

    def print_success(self, name: str, duration: Optional[float] = None) -> None:
        """Print success message."""
        took = f" ({duration:.1f}s)" if duration is not None else ""
        self._print(f"✓ {name}{took}")

    def print_skipped(self, name: str, reason: str) -> None:
        self._print(f"⏭ {name} (skipped: {reason})")

    def print_failure(self, name: str, reason: str, hint: Optional[str] = None) -> None:
        """
        Print failure message.

        Args:
            name: Step or pipeline name
            reason: Failure reason/error message
            hint: Optional hint for user
        """
        lines = [f"✗ STEP FAILED: {name}"]
        if hint:
            lines.append(f"Hint: {hint}")
        if self.debug:
            lines.append(f"Error details: {reason}")
        else:
            # first line only outside debug mode
            lines.append(f"Error: {reason.splitlines()[0] if reason else 'Unknown error'}")
        self._print("\n".join(lines))

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        lines = ["", "=" * 40, "RESULTS", "=" * 40]
        for name, status in results.items():
            lines.append(f"  {name}: {status.upper() if status != 'ok' else 'SUCCESS'}")
        self._print("\n".join(lines))

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"\nERROR: {title}", message]
        for detail in details or []:
            lines.append(f"  {detail}")
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._print("\n".join(lines), err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            self._print(text.rstrip(), err=True)
        else:
            self._print(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        if self.enabled("info"):
            self._print(message)

    def print_warning(self, message: str) -> None:
        if self.enabled("warning"):
            self._print(f"[WARN] {message}", err=True)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug level enabled)."""
        if self.enabled("debug"):
            self._print(f"[DEBUG] {message}", err=True)

    def line_writer(self, prefix: str, *, err: bool = False) -> "LineWriter":
        """A text stream that prints every complete line with prefix."""
        return LineWriter(self, prefix, err=err)


class LineWriter:
    """Minimal writable text stream used as a step's stdout/stderr. Has no fileno()."""

    def __init__(self, console: Console, prefix: str, *, err: bool = False):
        self.console = console
        self.prefix = prefix
        self.err = err
        self._buf = ""

    def write(self, s: str) -> int:
        self._buf += s
        while "\n" in self._buf:
            line, self._buf = self._buf.split("\n", 1)
            self.console._print(f"[{self.prefix}] {line}", err=self.err)
        return len(s)

    def flush(self) -> None:
        if self._buf:
            line, self._buf = self._buf, ""
            self.console._print(f"[{self.prefix}] {line}", err=self.err)

    def writable(self) -> bool:
        return True
