"""Idempotent file writes — create when absent, overwrite only when forced."""

from __future__ import annotations

from pathlib import Path

from workshop_pack.core.errors import atomic_write
from workshop_pack.core.logging import ScaffoldLogger
from workshop_pack.core.models import WriteAction, WriteDecision


def plan_write(path: Path, force: bool) -> WriteDecision:
    """Decide whether ``path`` should be written.

    Only existence and ``force`` matter; existing content is never compared,
    so operator edits survive a re-run without ``force``.
    """
    existed = path.exists()
    action = WriteAction.WRITTEN if (force or not existed) else WriteAction.SKIPPED
    return WriteDecision(path=str(path), existed_before=existed, forced=force, action=action)


def write_payload(path: Path, payload: bytes) -> None:
    """Write ``payload`` verbatim, creating parent directories.

    Filesystem errors propagate: a target that cannot be written ends the run.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write(path, payload)


def materialize(
    path: str | Path,
    payload: bytes,
    force: bool,
    log: ScaffoldLogger | None = None,
) -> WriteDecision:
    """Write ``payload`` to ``path`` unless it exists and ``force`` is off."""
    path = Path(path)
    decision = plan_write(path, force)
    if decision.written:
        write_payload(path, payload)
    if log is not None:
        log.decision(decision)
    return decision
