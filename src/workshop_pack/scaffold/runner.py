"""Scaffold runner — resolve defaults, write artifacts, mirror and aggregate.

Order of a run:

1. resolve defaults from workshop-config.yaml (before the template is written)
2. write the memory bank
3. append learnings and re-mirror the documents that changed
4. mirror the remaining memory-bank documents into the rules directory
5. aggregate the rules into AGENTS.md
6. write the config template, prompt guide and env defaults
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from workshop_pack.core.errors import ScaffoldError
from workshop_pack.core.logging import ScaffoldLogger
from workshop_pack.core.models import (
    AppendixResult,
    ArtifactSpec,
    ResolvedConfig,
    WriteDecision,
)
from workshop_pack.scaffold import catalog
from workshop_pack.scaffold.aggregate import write_aggregate
from workshop_pack.scaffold.appendices import apply_appendices, refresh_mirrors
from workshop_pack.scaffold.defaults import export_defaults, resolve
from workshop_pack.scaffold.materialize import materialize
from workshop_pack.scaffold.mirror import mirror
from workshop_pack.scaffold.render import RenderMode, TemplateRenderer

logger = logging.getLogger(__name__)


@dataclass
class ScaffoldResult:
    """Everything a scaffold run decided."""

    dest: Path
    config: ResolvedConfig
    exported: dict[str, str] = field(default_factory=dict)
    artifacts: list[WriteDecision] = field(default_factory=list)
    appendices: list[AppendixResult] = field(default_factory=list)
    refreshed: dict[str, WriteDecision] = field(default_factory=dict)
    mirrors: list[WriteDecision] = field(default_factory=list)
    aggregate: WriteDecision | None = None

    @property
    def refreshed_mirrors(self) -> list[str]:
        """Rules destinations rewritten because their document gained learnings."""
        return list(self.refreshed)

    @property
    def decisions(self) -> list[WriteDecision]:
        extra = [self.aggregate] if self.aggregate is not None else []
        return self.artifacts + list(self.refreshed.values()) + self.mirrors + extra


def prepare_target(dest: str | Path) -> Path:
    """Return the absolute target directory, creating it if needed."""
    path = Path(dest).expanduser().resolve()
    if path.exists() and not path.is_dir():
        raise ScaffoldError(f"Target {path} exists and is not a directory")
    path.mkdir(parents=True, exist_ok=True)
    return path


def _write_all(
    artifacts: tuple[ArtifactSpec, ...],
    dest: Path,
    force: bool,
    renderer: TemplateRenderer,
    log: ScaffoldLogger,
) -> list[WriteDecision]:
    return [
        materialize(dest / artifact.relative_path, renderer.render(artifact.payload, artifact.category), force, log)
        for artifact in artifacts
    ]


def run_scaffold(
    dest: str | Path,
    force: bool = False,
    config_path: str | Path | None = None,
    render_mode: RenderMode = RenderMode.LITERAL,
    log: ScaffoldLogger | None = None,
    export: bool = True,
) -> ScaffoldResult:
    """Scaffold the workshop pack into ``dest``.

    Raises OSError (or ScaffoldError) when the target cannot be written;
    everything else is recovered and logged.
    """
    log = log or ScaffoldLogger()
    target = prepare_target(dest)
    config_file = Path(config_path) if config_path else target / catalog.CONFIG_NAME

    config = resolve(config_file, log)
    result = ScaffoldResult(dest=target, config=config)
    if export:
        result.exported = export_defaults(config)
    log.debug(f"Exported defaults: {sorted(result.exported)}")

    renderer = TemplateRenderer(render_mode, config)
    memory_dir = target / catalog.MEMORY_BANK_DIR
    rules_dir = target / catalog.RULES_DIR

    result.artifacts.extend(_write_all(catalog.memory_bank_artifacts(), target, force, renderer, log))
    log.info("Memory bank setup complete.")

    result.appendices = apply_appendices(catalog.load_appendices(), memory_dir, renderer, log)
    result.refreshed = refresh_mirrors(
        result.appendices, catalog.MIRROR_PAIRS, memory_dir, rules_dir, log,
    )

    # Pairs refreshed above are already current; one decision per destination.
    pending = [pair for pair in catalog.MIRROR_PAIRS if pair.dest_name not in result.refreshed]
    result.mirrors = mirror(pending, memory_dir, rules_dir, force, log)
    result.aggregate = write_aggregate(
        [pair.dest_name for pair in catalog.MIRROR_PAIRS],
        rules_dir,
        target / catalog.AGGREGATE_NAME,
        force,
        log,
    )

    result.artifacts.extend(_write_all(catalog.support_artifacts(), target, force, renderer, log))
    logger.debug("Scaffold of %s finished: %d decisions", target, len(result.decisions))
    return result
