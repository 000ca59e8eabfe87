"""Test configuration and fixtures."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from skill_workflow_engine.workflow.active_run import ActiveRunStore
from skill_workflow_engine.workflow.loader import WorkflowDirectory
from skill_workflow_engine.workflow.run_store import WorkflowRunStore
from skill_workflow_engine.workflow.runner import WorkflowRunner


@pytest.fixture
def workflows_dir(tmp_path: Path) -> Path:
    """Provide an empty workflow directory."""
    path = tmp_path / ".claude" / "workflows"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def write_workflow(workflows_dir: Path) -> Callable[[dict[str, Any]], Path]:
    """Write a workflow document as `<name>.workflow.yaml`."""

    def _write(document: dict[str, Any]) -> Path:
        path = workflows_dir / f"{document['name']}.workflow.yaml"
        path.write_text(yaml.safe_dump(document, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def run_store(tmp_path: Path) -> WorkflowRunStore:
    """Provide a run log under a temporary planning directory."""
    return WorkflowRunStore(tmp_path / ".planning" / "patterns" / "workflow-runs.jsonl")


@pytest.fixture
def active_runs(tmp_path: Path) -> ActiveRunStore:
    """Provide an active-run pointer store under a temporary planning directory."""
    return ActiveRunStore(tmp_path / ".planning" / "hooks" / "work-state.json")


@pytest.fixture
def make_runner(
    workflows_dir: Path,
    run_store: WorkflowRunStore,
    active_runs: ActiveRunStore,
) -> Callable[..., WorkflowRunner]:
    """Build a fresh runner over the same on-disk stores.

    Each call returns a new instance, which is how tests simulate a restart.
    """

    def _make(**overrides: Any) -> WorkflowRunner:
        kwargs: dict[str, Any] = {
            "run_store": WorkflowRunStore(run_store.path),
            "active_runs": ActiveRunStore(active_runs.path),
            "load_workflow": WorkflowDirectory(workflows_dir),
            "skill_exists": lambda _name: True,
        }
        kwargs.update(overrides)
        return WorkflowRunner(**kwargs)

    return _make


@pytest.fixture
def linear_workflow() -> dict[str, Any]:
    """A three-step `lint -> test -> build` workflow document."""
    return {
        "name": "ci",
        "version": 1,
        "steps": [
            {"id": "lint", "skill": "linter"},
            {"id": "test", "skill": "tester", "needs": ["lint"]},
            {"id": "build", "skill": "builder", "needs": ["test"]},
        ],
    }
