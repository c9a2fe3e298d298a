"""Aggregate the mirrored rules into a single AGENTS.md document."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from workshop_pack.core.logging import ScaffoldLogger
from workshop_pack.core.models import WriteDecision
from workshop_pack.scaffold.materialize import plan_write, write_payload

AGGREGATE_TITLE = b"# Workspace Rules (AGENTS.md)"


def _strip_carriage_returns(body: bytes) -> bytes:
    # Only a line-final \r goes; a \r inside a line is content.
    return b"\n".join(line[:-1] if line.endswith(b"\r") else line for line in body.split(b"\n"))


def aggregate(dest_names: Iterable[str], dest_dir: str | Path) -> bytes:
    """Render the combined document.

    Sections follow ``dest_names`` order; names with no file in
    ``dest_dir`` are left out. File bodies are copied as bytes, so rules
    edited in any encoding pass through unchanged.
    """
    dest_dir = Path(dest_dir)
    parts = [AGGREGATE_TITLE, b"\n\n"]
    for name in dest_names:
        path = dest_dir / name
        if not path.is_file():
            continue
        body = _strip_carriage_returns(path.read_bytes())
        parts.append(b"## " + name.encode("utf-8") + b"\n\n" + body + b"\n")
    return b"".join(parts)


def write_aggregate(
    dest_names: Iterable[str],
    dest_dir: str | Path,
    output_path: str | Path,
    force: bool,
    log: ScaffoldLogger | None = None,
) -> WriteDecision:
    """Write the aggregate under the usual create/skip/overwrite policy."""
    output_path = Path(output_path)
    decision = plan_write(output_path, force)
    if decision.written:
        write_payload(output_path, aggregate(dest_names, dest_dir))
    if log is not None:
        log.decision(decision)
    return decision
