"""workshop-pack — scaffold the recipe workshop memory bank and rules.

Usage:
    from workshop_pack import run_scaffold

    result = run_scaffold("./my-workshop", force=False)
    for decision in result.decisions:
        print(decision.action, decision.path)
"""

from workshop_pack.core.models import (
    ArtifactCategory,
    ArtifactSpec,
    MirrorPair,
    Probe,
    ResolvedConfig,
    WriteDecision,
)
from workshop_pack.ops.ports import open_ports
from workshop_pack.ops.smoke import run_smoke_test
from workshop_pack.scaffold.aggregate import aggregate
from workshop_pack.scaffold.defaults import resolve
from workshop_pack.scaffold.materialize import materialize
from workshop_pack.scaffold.mirror import mirror
from workshop_pack.scaffold.runner import ScaffoldResult, run_scaffold

__all__ = [
    "ArtifactCategory",
    "ArtifactSpec",
    "MirrorPair",
    "Probe",
    "ResolvedConfig",
    "ScaffoldResult",
    "WriteDecision",
    "aggregate",
    "materialize",
    "mirror",
    "open_ports",
    "resolve",
    "run_scaffold",
    "run_smoke_test",
]

__version__ = "0.1.0"
