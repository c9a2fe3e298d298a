"""Bounded external command execution for firewall and process tooling."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# Firewall tools usually live here and are often missing from a user PATH.
SBIN_DIRS = ("/usr/sbin", "/sbin")


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command.

    ``returncode`` is None when the command could not run at all
    (binary missing or timed out).
    """

    args: tuple[str, ...]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def missing(self) -> bool:
        return self.returncode is None and not self.timed_out


class CommandRunner:
    """Runs commands with a hard timeout and never raises for tool failures."""

    def __init__(self, use_sudo: bool | None = None):
        if use_sudo is None:
            use_sudo = os.geteuid() != 0 and shutil.which("sudo") is not None
        self.use_sudo = use_sudo

    def locate(self, name: str) -> str | None:
        """Full path of a tool, or None when it is not installed."""
        search = os.pathsep.join([os.environ.get("PATH", ""), *SBIN_DIRS])
        return shutil.which(name, path=search)

    def run(
        self,
        args: list[str] | tuple[str, ...],
        timeout: float = DEFAULT_TIMEOUT,
        privileged: bool = False,
    ) -> CommandResult:
        cmd = list(args)
        if privileged and self.use_sudo:
            # -n: fail instead of prompting for a password
            cmd = ["sudo", "-n", *cmd]
        logger.debug("Running: %s (timeout %.1fs)", " ".join(cmd), timeout)
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.debug("Timed out: %s", " ".join(cmd))
            return CommandResult(tuple(cmd), None, timed_out=True)
        except (FileNotFoundError, PermissionError):
            logger.debug("Command not found: %s", cmd[0])
            return CommandResult(tuple(cmd), None)
        return CommandResult(tuple(cmd), proc.returncode, proc.stdout or "", proc.stderr or "")
