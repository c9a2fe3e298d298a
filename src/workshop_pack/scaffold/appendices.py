"""Learnings appendices — dated sections appended once to memory-bank documents.

Each section is identified by its heading line. A document that already
contains the heading is left alone, so repeated runs never duplicate a
section; a forced rewrite of the document brings the section back.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from workshop_pack.core.logging import ScaffoldLogger
from workshop_pack.core.models import Appendix, AppendixAction, AppendixResult, MirrorPair, WriteDecision
from workshop_pack.scaffold.mirror import mirror_pair
from workshop_pack.scaffold.render import TemplateRenderer


def apply_appendix(
    appendix: Appendix,
    memory_dir: Path,
    renderer: TemplateRenderer | None = None,
) -> AppendixResult:
    target = memory_dir / appendix.target_name
    if not target.is_file():
        return AppendixResult(appendix, AppendixAction.MISSING_TARGET)

    marker = appendix.marker.encode("utf-8")
    # Compared as bytes: operator edits need not be UTF-8.
    if any(line.strip() == marker for line in target.read_bytes().splitlines()):
        return AppendixResult(appendix, AppendixAction.PRESENT)

    payload = renderer.render(appendix.payload) if renderer else appendix.payload
    with target.open("ab") as fh:
        fh.write(payload)
    return AppendixResult(appendix, AppendixAction.APPENDED)


def apply_appendices(
    appendices: Iterable[Appendix],
    memory_dir: str | Path,
    renderer: TemplateRenderer | None = None,
    log: ScaffoldLogger | None = None,
) -> list[AppendixResult]:
    """Append every section not yet present, in order."""
    log = log or ScaffoldLogger()
    memory_dir = Path(memory_dir)
    results = []
    for appendix in appendices:
        result = apply_appendix(appendix, memory_dir, renderer)
        if result.action is AppendixAction.APPENDED:
            log.info(f"[green]Appended:[/green] {appendix.marker} -> {appendix.target_name}")
        elif result.action is AppendixAction.MISSING_TARGET:
            log.warning(f"missing {memory_dir / appendix.target_name}; learnings not appended")
        else:
            log.debug(f"Already present: {appendix.marker}")
        results.append(result)
    return results


def refresh_mirrors(
    results: Iterable[AppendixResult],
    pairs: Iterable[MirrorPair],
    memory_dir: str | Path,
    rules_dir: str | Path,
    log: ScaffoldLogger | None = None,
) -> dict[str, WriteDecision]:
    """Force-mirror every document that just gained a section.

    Returns the write decisions keyed by destination name.
    """
    log = log or ScaffoldLogger()
    changed = {r.appendix.target_name for r in results if r.action is AppendixAction.APPENDED}
    if not changed:
        return {}
    rules_dir = Path(rules_dir)
    rules_dir.mkdir(parents=True, exist_ok=True)
    refreshed: dict[str, WriteDecision] = {}
    for pair in pairs:
        if pair.source_name in changed:
            decision = mirror_pair(pair, Path(memory_dir), rules_dir, True, log)
            if decision is not None:
                refreshed[pair.dest_name] = decision
    return refreshed
