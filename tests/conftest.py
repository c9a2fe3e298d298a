"""Shared test fixtures for workshop-pack."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from tests.helpers.fakes import CapturingLogger
from workshop_pack.config import reset_settings


@pytest.fixture(autouse=True)
def isolated_environ():
    """Runs export defaults into os.environ; undo that after every test."""
    with patch.dict(os.environ):
        for var in ("VERBOSE", "API_PORT", "API_BASE_PATH"):
            os.environ.pop(var, None)
        reset_settings()
        yield
    reset_settings()


@pytest.fixture
def log():
    return CapturingLogger()


@pytest.fixture
def target(tmp_path):
    """Empty scaffold target directory."""
    path = tmp_path / "workshop"
    path.mkdir()
    return path
