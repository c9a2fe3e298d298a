"""Mirror memory-bank documents into the rules directory under new names."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from workshop_pack.core.logging import ScaffoldLogger
from workshop_pack.core.models import MirrorPair, WriteDecision
from workshop_pack.scaffold.materialize import plan_write, write_payload


def mirror_pair(
    pair: MirrorPair,
    source_dir: Path,
    dest_dir: Path,
    force: bool,
    log: ScaffoldLogger,
) -> WriteDecision | None:
    """Copy one source to its destination. Returns None when the source is missing.

    The decision is keyed on the destination alone: a destination that
    exists is kept even when its source was just rewritten.
    """
    source = source_dir / pair.source_name
    if not source.is_file():
        log.warning(f"missing source file {source} (skipped)")
        return None

    dest = dest_dir / pair.dest_name
    decision = plan_write(dest, force)
    if decision.written:
        write_payload(dest, source.read_bytes())
    log.mirrored(
        decision,
        f"{source_dir.name}/{pair.source_name}",
        f"{dest_dir.name}/{pair.dest_name}",
    )
    return decision


def mirror(
    pairs: Iterable[MirrorPair],
    source_dir: str | Path,
    dest_dir: str | Path,
    force: bool,
    log: ScaffoldLogger | None = None,
) -> list[WriteDecision]:
    """Mirror every pair in declared order.

    Pairs with a missing source are skipped with a warning and leave no
    entry in the returned list.
    """
    log = log or ScaffoldLogger()
    source_dir = Path(source_dir)
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)

    decisions: list[WriteDecision] = []
    for pair in pairs:
        decision = mirror_pair(pair, source_dir, dest_dir, force, log)
        if decision is not None:
            decisions.append(decision)
    return decisions
