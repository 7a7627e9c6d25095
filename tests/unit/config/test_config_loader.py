"""Tests for ConfigLoader."""

from pathlib import Path

import pytest
import yaml

from devbench.config import ConfigLoader, ConfigurationError
from devbench.config.loader import _deep_merge
from devbench.core.results import EvaluationType, Language


def write_yaml(path: Path, data: object) -> None:
    """Write ``data`` as YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False))


class TestDeepMerge:
    """Tests for _deep_merge."""

    def test_nested_merge(self) -> None:
        """Test nested dicts merge and scalars override."""
        base = {"a": 1, "judge": {"model_id": "x", "max_tokens": 10}}
        merged = _deep_merge(base, {"judge": {"max_tokens": 20}, "b": 2})
        assert merged == {"a": 1, "b": 2, "judge": {"model_id": "x", "max_tokens": 20}}

    def test_none_ignored(self) -> None:
        """Test None values do not override."""
        assert _deep_merge({"a": 1}, {"a": None}) == {"a": 1}

    def test_lists_replaced(self) -> None:
        """Test lists are replaced, not appended."""
        assert _deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}


class TestLoadDefaults:
    """Tests for load_defaults."""

    def test_missing_file_uses_builtins(self, tmp_path: Path) -> None:
        """Test built-in defaults without defaults.yaml."""
        defaults = ConfigLoader(tmp_path).load_defaults()
        assert defaults.runs_per_combo == 3
        assert defaults.max_concurrent == 3
        assert defaults.timeouts.test_seconds == 60

    def test_file_and_overrides(self, tmp_path: Path) -> None:
        """Test overrides are merged over the file."""
        write_yaml(tmp_path / "defaults.yaml", {"runs_per_combo": 5, "timeouts": {"test_seconds": 90}})
        defaults = ConfigLoader(tmp_path).load_defaults({"timeouts": {"build_seconds": 300}})
        assert defaults.runs_per_combo == 5
        assert defaults.timeouts.test_seconds == 90
        assert defaults.timeouts.build_seconds == 300

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Test invalid defaults raise ConfigurationError."""
        write_yaml(tmp_path / "defaults.yaml", {"runs_per_combo": 0})
        with pytest.raises(ConfigurationError, match="Invalid defaults"):
            ConfigLoader(tmp_path).load_defaults()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test malformed YAML raises ConfigurationError."""
        (tmp_path / "defaults.yaml").write_text("runs_per_combo: [unclosed")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigLoader(tmp_path).load_defaults()


class TestExecutors:
    """Tests for model and agent loading."""

    def test_load_models_in_file_order(self, config_dir: Path) -> None:
        """Test models keep file order."""
        models = ConfigLoader(config_dir).load_models()
        assert list(models) == ["claude-sonnet", "gpt-4o"]
        assert models["claude-sonnet"].pricing.output_per_million == 15.0

    def test_resolve_all(self, config_dir: Path) -> None:
        """Test 'all' selects every model."""
        assert len(ConfigLoader(config_dir).resolve_models(["all"])) == 2

    def test_resolve_keeps_requested_order(self, config_dir: Path) -> None:
        """Test explicit ids resolve in the requested order."""
        entries = ConfigLoader(config_dir).resolve_models(["gpt-4o", "claude-sonnet"])
        assert [e.id for e in entries] == ["gpt-4o", "claude-sonnet"]

    def test_resolve_empty(self, config_dir: Path) -> None:
        """Test no ids select nothing."""
        assert ConfigLoader(config_dir).resolve_agents([]) == []

    def test_unknown_model(self, config_dir: Path) -> None:
        """Test unknown ids raise."""
        with pytest.raises(ConfigurationError, match="Unknown model: nope"):
            ConfigLoader(config_dir).resolve_models(["nope"])

    def test_unknown_agent(self, config_dir: Path) -> None:
        """Test unknown agent ids raise."""
        with pytest.raises(ConfigurationError, match="Unknown agent: nope"):
            ConfigLoader(config_dir).resolve_agents(["nope"])

    def test_duplicate_model(self, tmp_path: Path) -> None:
        """Test duplicate model ids raise."""
        entry = {"id": "m", "provider": "openai", "display_name": "M", "model_id": "m"}
        write_yaml(tmp_path / "models.yaml", {"models": [entry, entry]})
        with pytest.raises(ConfigurationError, match="Duplicate model id"):
            ConfigLoader(tmp_path).load_models()

    def test_invalid_agent_id(self, tmp_path: Path) -> None:
        """Test agents must be one of the supported CLIs."""
        write_yaml(
            tmp_path / "agents.yaml",
            {"agents": [{"id": "cursor", "display_name": "Cursor", "provider": "x"}]},
        )
        with pytest.raises(ConfigurationError, match="Invalid agent entry"):
            ConfigLoader(tmp_path).load_agents()

    def test_missing_models_file(self, tmp_path: Path) -> None:
        """Test a missing models.yaml raises."""
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigLoader(tmp_path).load_models()


class TestLoadTasks:
    """Tests for load_tasks."""

    def test_loads_definitions(self, config_dir: Path) -> None:
        """Test task YAML becomes TaskDefinitions."""
        (definition,) = ConfigLoader(config_dir).load_tasks()
        assert definition.id == "j01"
        assert definition.evaluation_type == EvaluationType.TEST_EXECUTION
        assert definition.supported_languages == [Language.NODEJS, Language.JAVA]
        assert definition.tests is not None
        assert definition.tests.fail_score == 1.0

    def test_sorted_by_id(self, config_dir: Path) -> None:
        """Test tasks are returned sorted by id."""
        write_yaml(
            config_dir / "tasks" / "a.yaml",
            {
                "id": "j00",
                "name": "First",
                "supported_languages": ["nodejs"],
                "evaluation_type": "rubric",
                "prompt_template": "Review",
                "rubric": {"criteria": [{"name": "c", "max_points": 1, "description": "d"}]},
            },
        )
        ids = [d.id for d in ConfigLoader(config_dir).load_tasks()]
        assert ids == ["j00", "j01"]

    def test_invalid_task(self, config_dir: Path) -> None:
        """Test strategy sections are required."""
        write_yaml(
            config_dir / "tasks" / "bad.yaml",
            {
                "id": "j99",
                "name": "Bad",
                "supported_languages": ["nodejs"],
                "evaluation_type": "rubric",
                "prompt_template": "x",
            },
        )
        with pytest.raises(ConfigurationError, match="requires 'rubric'"):
            ConfigLoader(config_dir).load_tasks()

    def test_missing_task_dir(self, tmp_path: Path) -> None:
        """Test a missing tasks/ directory raises."""
        with pytest.raises(ConfigurationError, match="Task directory not found"):
            ConfigLoader(tmp_path).load_tasks()


class TestShippedConfig:
    """The repository's own config directory loads cleanly."""

    CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"

    def test_shipped_tasks_load(self) -> None:
        """Test every shipped task definition validates."""
        definitions = ConfigLoader(self.CONFIG_DIR).load_tasks()
        ids = [d.id for d in definitions]
        assert "j01" in ids
        assert "j26" in ids

    def test_shipped_executors_load(self) -> None:
        """Test shipped models and agents validate."""
        loader = ConfigLoader(self.CONFIG_DIR)
        assert loader.load_models()
        assert set(loader.load_agents()) == {"claude-code", "gemini-cli", "codex-cli"}
        assert loader.load_defaults().judge.provider == "anthropic"
