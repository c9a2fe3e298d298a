"""Default resolution — workshop-config.yaml > built-in defaults > absent.

A missing or unreadable file resolves to an all-absent config. A readable
file degrades field by field: a missing key takes its built-in default
(or stays absent when it has none) and a value of the wrong type leaves
only that field absent.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, MutableMapping
from pathlib import Path
from typing import Any

import yaml

from workshop_pack.core.logging import ScaffoldLogger
from workshop_pack.core.models import ResolvedConfig

logger = logging.getLogger(__name__)

_MISSING = object()

# field -> (section, key, built-in default or _MISSING, coercion)
FIELD_SOURCES: dict[str, tuple[str, str, Any, Callable[[Any], Any]]] = {
    "service_endpoint": ("oci", "service_endpoint", _MISSING, str),
    "auth_mode": ("oci", "auth_mode", "instance_principals", str),
    "compartment_id": ("oci", "compartment_ocid", _MISSING, str),
    "model_id": ("llm", "model_id", _MISSING, str),
    "temperature": ("llm", "temperature", 0.7, float),
    "top_p": ("llm", "top_p", 0.9, float),
    "max_tokens": ("llm", "max_tokens", 2000, int),
    "api_base_path": ("api", "base_path", "/api/v1", str),
    "api_port": ("api", "port", 8010, int),
    "streamlit_port": ("streamlit", "port", 8501, int),
    "docker_registry": ("docker", "registry", _MISSING, str),
    "docker_tag": ("docker", "tag", "latest", str),
}


def _coerce(value: Any, coercion: Callable[[Any], Any]) -> Any:
    if isinstance(value, (dict, list)):
        raise TypeError(f"expected a scalar, got {type(value).__name__}")
    if coercion is int and isinstance(value, bool):
        raise TypeError("expected an integer, got a boolean")
    if coercion is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected an integer, got {value}")
    return coercion(value)


def resolve(config_path: str | Path, log: ScaffoldLogger | None = None) -> ResolvedConfig:
    """Resolve defaults from a workshop-config.yaml file."""
    log = log or ScaffoldLogger()
    path = Path(config_path)

    if not path.exists():
        log.info(
            f"{path.name} not found in {path.parent}. A template will be created; "
            "populate it and re-run. No defaults exported."
        )
        return ResolvedConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError, UnicodeDecodeError) as e:
        log.error(f"Could not read {path}: {e}. No defaults exported.")
        return ResolvedConfig()

    if data is None:
        data = {}
    if not isinstance(data, dict):
        log.error(f"{path} does not contain a mapping. No defaults exported.")
        return ResolvedConfig()

    values: dict[str, Any] = {}
    for name, (section, key, default, coercion) in FIELD_SOURCES.items():
        block = data.get(section)
        if not isinstance(block, dict):
            block = {}
        raw = block.get(key, _MISSING)
        if raw is _MISSING or raw is None:
            values[name] = None if default is _MISSING else default
            continue
        try:
            values[name] = _coerce(raw, coercion)
        except (TypeError, ValueError) as e:
            log.warning(f"Ignoring {section}.{key} in {path.name}: {e}")
            values[name] = None

    # An empty string means "not set" for text fields.
    for name, value in values.items():
        if isinstance(value, str) and not value.strip():
            values[name] = None

    resolved = ResolvedConfig(**values)
    logger.debug("Resolved defaults from %s: %s", path, resolved)
    return resolved


def export_defaults(
    config: ResolvedConfig,
    environ: MutableMapping[str, str] | None = None,
) -> dict[str, str]:
    """Publish the present values as environment variables.

    Returns the exported mapping.
    """
    target = os.environ if environ is None else environ
    exported = config.to_env()
    target.update(exported)
    return exported
