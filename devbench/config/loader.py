"""Configuration loader for devbench.

This module provides the ConfigLoader class for loading YAML configuration:

    config/defaults.yaml    (optional - run, judge and timeout defaults)
    config/models.yaml      (hosted API models)
    config/agents.yaml      (local CLI agents)
    config/tasks/*.yaml     (declarative task definitions)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import (
    AgentEntry,
    ConfigurationError,
    DefaultsConfig,
    ModelEntry,
    TaskDefinition,
)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Values in override take precedence. Nested dicts are merged recursively.
    Lists are replaced entirely (not appended).

    Args:
        base: Base dictionary
        override: Override dictionary (values take precedence)

    Returns:
        Merged dictionary

    """
    result = base.copy()

    for key, value in override.items():
        if value is None:
            continue

        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _select(ids: list[str], available: dict[str, Any], kind: str, source: str) -> list[Any]:
    """Resolve ``ids`` against ``available`` keeping the requested order.

    A single ``"all"`` selects every entry in file order.
    """
    if ids == ["all"]:
        return list(available.values())
    selected = []
    for entry_id in ids:
        if entry_id not in available:
            raise ConfigurationError(f"Unknown {kind}: {entry_id}. Check {source}.")
        selected.append(available[entry_id])
    return selected


class ConfigLoader:
    """Load configuration files for devbench.

    Example:
        loader = ConfigLoader("config")
        models = loader.resolve_models(["claude-sonnet", "gpt-4o"])
        agents = loader.resolve_agents(["claude-code"])
        definitions = loader.load_tasks()

    """

    def __init__(self, base_path: str | Path | None = None) -> None:
        """Initialize the ConfigLoader.

        Args:
            base_path: Directory holding the YAML files. Defaults to ./config.

        """
        if base_path is None:
            self.base_path = Path.cwd() / "config"
        else:
            self.base_path = Path(base_path)

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load a YAML file.

        Args:
            path: Path to YAML file

        Returns:
            Parsed YAML content as dict

        Raises:
            ConfigurationError: If file cannot be read or parsed

        """
        try:
            with open(path) as f:
                content = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")
        except PermissionError:
            raise ConfigurationError(f"Permission denied reading: {path}")

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")
        return content

    def _load_yaml_optional(self, path: Path) -> dict[str, Any] | None:
        """Load a YAML file if it exists."""
        if not path.exists():
            return None
        return self._load_yaml(path)

    # -------------------------------------------------------------------------
    # Defaults
    # -------------------------------------------------------------------------

    def load_defaults(self, overrides: dict[str, Any] | None = None) -> DefaultsConfig:
        """Load config/defaults.yaml merged with optional overrides.

        A missing defaults file yields the built-in defaults.
        """
        data = self._load_yaml_optional(self.base_path / "defaults.yaml") or {}
        if overrides:
            data = _deep_merge(data, overrides)
        try:
            return DefaultsConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid defaults configuration: {e}") from e

    # -------------------------------------------------------------------------
    # Executors
    # -------------------------------------------------------------------------

    def load_models(self) -> dict[str, ModelEntry]:
        """Load config/models.yaml keyed by model id, in file order."""
        path = self.base_path / "models.yaml"
        data = self._load_yaml(path)
        entries: dict[str, ModelEntry] = {}
        for raw in data.get("models") or []:
            try:
                entry = ModelEntry.model_validate(raw)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid model entry in {path}: {e}") from e
            if entry.id in entries:
                raise ConfigurationError(f"Duplicate model id '{entry.id}' in {path}")
            entries[entry.id] = entry
        return entries

    def load_agents(self) -> dict[str, AgentEntry]:
        """Load config/agents.yaml keyed by agent id, in file order."""
        path = self.base_path / "agents.yaml"
        data = self._load_yaml(path)
        entries: dict[str, AgentEntry] = {}
        for raw in data.get("agents") or []:
            try:
                entry = AgentEntry.model_validate(raw)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid agent entry in {path}: {e}") from e
            if entry.id in entries:
                raise ConfigurationError(f"Duplicate agent id '{entry.id}' in {path}")
            entries[entry.id] = entry
        return entries

    def resolve_models(self, ids: list[str]) -> list[ModelEntry]:
        """Resolve model ids (or ``["all"]``) to entries."""
        if not ids:
            return []
        return _select(ids, self.load_models(), "model", "config/models.yaml")

    def resolve_agents(self, ids: list[str]) -> list[AgentEntry]:
        """Resolve agent ids (or ``["all"]``) to entries."""
        if not ids:
            return []
        return _select(ids, self.load_agents(), "agent", "config/agents.yaml")

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def load_tasks(self) -> list[TaskDefinition]:
        """Load every config/tasks/*.yaml definition, sorted by task id."""
        tasks_dir = self.base_path / "tasks"
        if not tasks_dir.is_dir():
            raise ConfigurationError(f"Task directory not found: {tasks_dir}")

        definitions: dict[str, TaskDefinition] = {}
        for path in sorted(tasks_dir.glob("*.yaml")):
            try:
                definition = TaskDefinition.model_validate(self._load_yaml(path))
            except ValidationError as e:
                raise ConfigurationError(f"Invalid task definition in {path}: {e}") from e
            if definition.id in definitions:
                raise ConfigurationError(f"Duplicate task id '{definition.id}' in {path}")
            definitions[definition.id] = definition

        return sorted(definitions.values(), key=lambda d: d.id)
