"""Shared fixtures for runner tests."""

from pathlib import Path

import pytest


@pytest.fixture
def template(tmp_path: Path) -> Path:
    """Template project directory."""
    project = tmp_path / "template"
    (project / "backend").mkdir(parents=True)
    (project / "backend" / "main.ts").write_text("export {};")
    return project
