"""Console logging and verbosity levels for workshop-pack runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from rich.console import Console

from workshop_pack.core.models import Probe, ProbeResult, WriteDecision


class Verbosity(IntEnum):
    """Verbosity levels for console output."""

    QUIET = 0     # warnings and errors only
    VERBOSE = 1   # + per-file status, probe results, tips
    DEBUG = 2     # + commands and URLs


@dataclass
class RunLog:
    """Tally of what a run did."""

    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def record(self, decision: WriteDecision) -> None:
        if decision.written:
            self.written.append(decision.path)
        else:
            self.skipped.append(decision.path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "written": list(self.written),
            "skipped": list(self.skipped),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }


def setup_logging(verbose: bool) -> None:
    """Configure stdlib logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


class ScaffoldLogger:
    """User-facing output for a scaffold run.

    Status lines go to stdout only at ``Verbosity.VERBOSE`` or above;
    warnings and errors always go to stderr. The verbosity is passed in
    explicitly rather than by redirecting the process's streams.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.QUIET,
        console: Console | None = None,
        err_console: Console | None = None,
    ):
        self.verbosity = verbosity
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)
        self.run_log = RunLog()

    @property
    def verbose(self) -> bool:
        return self.verbosity >= Verbosity.VERBOSE

    def _console_print(self, message: str, min_verbosity: Verbosity) -> None:
        if self.verbosity >= min_verbosity:
            self.console.print(message)

    def info(self, message: str) -> None:
        self._console_print(message, Verbosity.VERBOSE)

    def debug(self, message: str) -> None:
        self._console_print(f"[dim]{message}[/dim]", Verbosity.DEBUG)

    def warning(self, message: str) -> None:
        self.run_log.warnings.append(message)
        self.err_console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        self.run_log.errors.append(message)
        self.err_console.print(f"[red]Error:[/red] {message}")

    # -- Write events --

    def decision(self, decision: WriteDecision, note: str = "") -> None:
        """Log one materialize outcome."""
        self.run_log.record(decision)
        suffix = f" {note}" if note else ""
        if decision.written:
            self.info(f"[green]Wrote:[/green] {decision.path}{suffix}")
        else:
            self.info(f"[cyan]Exists (skipping):[/cyan] {decision.path} [dim](use -f to overwrite)[/dim]")

    def mirrored(self, decision: WriteDecision, source_label: str, dest_label: str) -> None:
        """Log one mirror outcome."""
        self.run_log.record(decision)
        if decision.written:
            self.info(f"[green]Mirrored:[/green] {source_label} -> {dest_label}")
        else:
            self.info(f"[cyan]Exists (skipping):[/cyan] {decision.path} [dim](use -f to overwrite)[/dim]")

    # -- Probe events --

    def probe(self, probe: Probe) -> None:
        """Log one smoke-test probe."""
        style = {
            ProbeResult.PASS: "green",
            ProbeResult.FAIL: "red",
            ProbeResult.SKIPPED: "dim",
        }[probe.result]
        detail = f" {probe.detail}" if probe.detail else ""
        self.info(f"  [{style}]{probe.result.value:<7}[/{style}] {probe.kind.value} {probe.target}{detail}")
