"""Shared fixtures for evaluation tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from devbench.config.models import RubricCriterion, RubricSpec
from devbench.evaluation.strategies import EvaluationServices


@pytest.fixture
def rubric() -> RubricSpec:
    """Five one-point criteria, passing at three."""
    return RubricSpec(
        criteria=[
            RubricCriterion(name=f"c{i}", max_points=1, description=f"criterion {i}")
            for i in range(1, 6)
        ],
        pass_threshold=3,
    )


@pytest.fixture
def services(tmp_path: Path) -> EvaluationServices:
    """Services with mocked runners and judge."""
    code_runner = MagicMock()
    code_runner.run_tests = AsyncMock()
    e2e_runner = MagicMock()
    e2e_runner.run_e2e = AsyncMock()
    judge = MagicMock()
    judge.score = AsyncMock()
    return EvaluationServices(
        code_runner=code_runner,
        e2e_runner=e2e_runner,
        fixtures_dir=tmp_path,
        judge=judge,
    )
