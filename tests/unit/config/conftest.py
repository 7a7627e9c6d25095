"""Shared fixtures for configuration tests."""

from pathlib import Path

import pytest
import yaml


def write_yaml(path: Path, data: object) -> Path:
    """Write ``data`` as YAML, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Create a minimal config directory with one model, one agent and one task."""
    base = tmp_path / "config"
    write_yaml(
        base / "models.yaml",
        {
            "models": [
                {
                    "id": "claude-sonnet",
                    "provider": "anthropic",
                    "display_name": "Claude Sonnet",
                    "model_id": "claude-sonnet-4-5-20250929",
                    "pricing": {"input_per_million": 3.0, "output_per_million": 15.0},
                },
                {
                    "id": "gpt-4o",
                    "provider": "openai",
                    "display_name": "GPT-4o",
                    "model_id": "gpt-4o",
                },
            ]
        },
    )
    write_yaml(
        base / "agents.yaml",
        {
            "agents": [
                {"id": "claude-code", "display_name": "Claude Code", "provider": "cli-anthropic"},
                {"id": "gemini-cli", "display_name": "Gemini CLI", "provider": "cli-google"},
            ]
        },
    )
    write_yaml(
        base / "tasks" / "j01.yaml",
        {
            "id": "j01",
            "name": "Code Generation",
            "supported_languages": ["nodejs", "java"],
            "evaluation_type": "test-execution",
            "prompt_template": "Write code in {language}",
            "tests": {"implementation_files": {"nodejs": "users.js", "java": "Users.java"}},
        },
    )
    return base
