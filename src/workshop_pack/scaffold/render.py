"""Payload rendering — literal passthrough or ``$NAME`` substitution.

Generated documents carry shell-style placeholders such as ``$API_PORT``.
In literal mode they are written as-is. In substitute mode the exported
names of the resolved defaults replace them; anything unknown, and
expressions like ``${API_PORT:-8010}``, are left untouched.
"""

from __future__ import annotations

from enum import Enum
from string import Template

from workshop_pack.core.models import ArtifactCategory, ResolvedConfig

# Config and env files are templates for the operator, never rendered.
RENDERED_CATEGORIES = frozenset({ArtifactCategory.DOC, ArtifactCategory.GUIDE})


class RenderMode(str, Enum):
    LITERAL = "literal"
    SUBSTITUTE = "substitute"


class TemplateRenderer:
    """Turns an artifact payload into the bytes to write."""

    def __init__(self, mode: RenderMode = RenderMode.LITERAL, config: ResolvedConfig | None = None):
        self.mode = mode
        self.values = (config or ResolvedConfig()).to_env()

    def render(self, payload: bytes, category: ArtifactCategory = ArtifactCategory.DOC) -> bytes:
        if self.mode is RenderMode.LITERAL or category not in RENDERED_CATEGORIES:
            return payload
        if not self.values:
            return payload
        text = payload.decode("utf-8")
        return Template(text).safe_substitute(self.values).encode("utf-8")
