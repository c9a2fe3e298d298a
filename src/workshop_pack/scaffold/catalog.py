"""Fixed catalog of generated files, mirror pairs and learnings appendices.

Payloads live as bundled files under ``workshop_pack/templates``; the
catalog only records where each one is written and in what order.
"""

from __future__ import annotations

from pathlib import Path

from workshop_pack.core.models import Appendix, ArtifactCategory, ArtifactSpec, MirrorPair

MEMORY_BANK_DIR = "memory-bank"
RULES_DIR = ".clinerules"
AGGREGATE_NAME = "AGENTS.md"
CONFIG_NAME = "workshop-config.yaml"

# (relative_path, template file, category) in write order.
MEMORY_BANK_TEMPLATES: tuple[tuple[str, str, ArtifactCategory], ...] = tuple(
    (f"{MEMORY_BANK_DIR}/{name}", f"{MEMORY_BANK_DIR}/{name}", ArtifactCategory.DOC)
    for name in (
        "projectbrief.md",
        "productContext.md",
        "systemPatterns.md",
        "techContext.md",
        "activeContext.md",
        "streamlitStandards.md",
        "containerStandards.md",
        "genaiStandards.md",
        "woolworthsStandards.md",
        "systemdStandards.md",
        "devopsStandards.md",
        "mcpStandards.md",
    )
)

# Written after the rules directory and AGENTS.md.
SUPPORT_TEMPLATES: tuple[tuple[str, str, ArtifactCategory], ...] = (
    (CONFIG_NAME, "workshop-config.yaml", ArtifactCategory.CONFIG),
    ("recipe-guide.json", "recipe-guide.json", ArtifactCategory.GUIDE),
    (".env", "dotenv.env", ArtifactCategory.ENV),
)

MIRROR_PAIRS: tuple[MirrorPair, ...] = (
    MirrorPair("activeContext.md", "00-active-context.md"),
    MirrorPair("projectbrief.md", "01-project-brief.md"),
    MirrorPair("systemPatterns.md", "02-system-patterns.md"),
    MirrorPair("techContext.md", "03-tech-context.md"),
    MirrorPair("productContext.md", "04-product-context.md"),
    MirrorPair("genaiStandards.md", "05-genai-service-standard.md"),
    MirrorPair("woolworthsStandards.md", "06-woolworths-service-standard.md"),
    MirrorPair("streamlitStandards.md", "07-streamlit-app-standard.md"),
    MirrorPair("containerStandards.md", "08-container-standards.md"),
    MirrorPair("systemdStandards.md", "09-systemd-services.md"),
    MirrorPair("devopsStandards.md", "10-devops-standards.md"),
    MirrorPair("mcpStandards.md", "11-mcp-standards.md"),
)

# (template file, target document) in append order.
APPENDIX_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("01-systemPatterns.md", "systemPatterns.md"),
    ("02-techContext.md", "techContext.md"),
    ("03-systemPatterns.md", "systemPatterns.md"),
    ("04-techContext.md", "techContext.md"),
    ("05-woolworthsStandards.md", "woolworthsStandards.md"),
    ("06-woolworthsStandards.md", "woolworthsStandards.md"),
    ("07-streamlitStandards.md", "streamlitStandards.md"),
    ("08-systemdStandards.md", "systemdStandards.md"),
)


def get_templates_root() -> Path:
    """Return the path to the bundled templates directory."""
    return Path(__file__).resolve().parent.parent / "templates"


def _load(entries: tuple[tuple[str, str, ArtifactCategory], ...]) -> tuple[ArtifactSpec, ...]:
    pack = get_templates_root() / "pack"
    return tuple(
        ArtifactSpec(relative_path=rel, payload=(pack / template).read_bytes(), category=category)
        for rel, template, category in entries
    )


def memory_bank_artifacts() -> tuple[ArtifactSpec, ...]:
    return _load(MEMORY_BANK_TEMPLATES)


def support_artifacts() -> tuple[ArtifactSpec, ...]:
    return _load(SUPPORT_TEMPLATES)


def load_catalog() -> tuple[ArtifactSpec, ...]:
    """Every artifact, in write order."""
    return memory_bank_artifacts() + support_artifacts()


def load_appendices() -> tuple[Appendix, ...]:
    """Learnings sections; each marker is the section's first line."""
    root = get_templates_root() / "appendices"
    appendices = []
    for template, target in APPENDIX_TEMPLATES:
        payload = (root / template).read_bytes()
        marker = payload.decode("utf-8").splitlines()[0].strip()
        appendices.append(Appendix(target_name=target, marker=marker, payload=payload))
    return tuple(appendices)
