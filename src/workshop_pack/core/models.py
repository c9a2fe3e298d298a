"""Core data models for workshop-pack."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum


class ArtifactCategory(str, Enum):
    """What kind of generated file an artifact is."""

    DOC = "doc"
    CONFIG = "config"
    GUIDE = "guide"
    ENV = "env"


@dataclass(frozen=True)
class ArtifactSpec:
    """One generated file with fixed content."""

    relative_path: str  # "memory-bank/projectbrief.md"
    payload: bytes
    category: ArtifactCategory


class WriteAction(str, Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class WriteDecision:
    """Outcome of one create/skip/overwrite decision."""

    path: str
    existed_before: bool
    forced: bool
    action: WriteAction

    @property
    def written(self) -> bool:
        return self.action is WriteAction.WRITTEN


@dataclass(frozen=True)
class MirrorPair:
    """Copy ``source_name`` from the memory bank to ``dest_name`` in the rules directory."""

    source_name: str
    dest_name: str


# Exported name for each ResolvedConfig field, in export order.
EXPORT_NAMES = {
    "service_endpoint": "OCI_SERVICE_ENDPOINT",
    "auth_mode": "OCI_AUTH_MODE",
    "compartment_id": "OCI_COMPARTMENT_OCID",
    "model_id": "LLM_MODEL_ID",
    "temperature": "LLM_TEMPERATURE",
    "top_p": "LLM_TOP_P",
    "max_tokens": "LLM_MAX_TOKENS",
    "api_base_path": "API_BASE_PATH",
    "api_port": "API_PORT",
    "streamlit_port": "STREAMLIT_PORT",
    "docker_registry": "DOCKER_REGISTRY",
    "docker_tag": "DOCKER_TAG",
}


@dataclass(frozen=True)
class ResolvedConfig:
    """Flat defaults derived from workshop-config.yaml.

    Every field is optional; ``None`` means absent.
    """

    service_endpoint: str | None = None
    auth_mode: str | None = None
    compartment_id: str | None = None
    model_id: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    api_base_path: str | None = None
    api_port: int | None = None
    streamlit_port: int | None = None
    docker_registry: str | None = None
    docker_tag: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when no field was resolved."""
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_env(self) -> dict[str, str]:
        """Map present fields to their exported variable names."""
        env: dict[str, str] = {}
        for name, var in EXPORT_NAMES.items():
            value = getattr(self, name)
            if value is not None:
                env[var] = str(value)
        return env


class ProbeKind(str, Enum):
    PROCESS = "process"
    PORT = "port"
    HTTP = "http"


class ProbeResult(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Probe:
    """A single bounded smoke-test check."""

    kind: ProbeKind
    target: str
    timeout_seconds: float
    result: ProbeResult
    detail: str = ""

    @property
    def passed(self) -> bool:
        return self.result is ProbeResult.PASS


class RuleOutcome(str, Enum):
    """Outcome of ensuring one firewall rule."""

    APPLIED = "applied"
    ALREADY_PRESENT = "already-present"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


@dataclass(frozen=True)
class Appendix:
    """A dated learnings section appended once to a memory-bank document."""

    target_name: str  # "systemPatterns.md"
    marker: str  # heading line that identifies the section
    payload: bytes


class AppendixAction(str, Enum):
    APPENDED = "appended"
    PRESENT = "present"
    MISSING_TARGET = "missing-target"


@dataclass(frozen=True)
class AppendixResult:
    appendix: Appendix
    action: AppendixAction


@dataclass
class SmokeState:
    """Discoveries threaded through the smoke-test probe sequence."""

    listening_ports: list[int] = field(default_factory=list)
    discovered_ui_port: int | None = None
    public_ip: str | None = None
