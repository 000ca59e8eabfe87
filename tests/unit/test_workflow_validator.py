"""Unit tests for the step graph and workflow validation."""

from __future__ import annotations

from typing import Any

from skill_workflow_engine.workflow.dag import WorkflowDAG
from skill_workflow_engine.workflow.models import WorkflowDefinition
from skill_workflow_engine.workflow.validator import validate_workflow


def _always(_name: str) -> bool:
    return True


def _never(_name: str) -> bool:
    return False


def _workflow(steps: list[dict[str, Any]]) -> WorkflowDefinition:
    return WorkflowDefinition.from_mapping({"name": "test-workflow", "steps": steps})


def test_linear_workflow_is_valid_with_execution_order() -> None:
    wf = _workflow(
        [
            {"id": "lint", "skill": "linter"},
            {"id": "test", "skill": "tester", "needs": ["lint"]},
            {"id": "build", "skill": "builder", "needs": ["test"]},
        ]
    )

    result = validate_workflow(wf, _always)

    assert result.valid is True
    assert result.errors == []
    assert result.execution_order == ["lint", "test", "build"]


def test_order_follows_needs_not_declaration() -> None:
    wf = _workflow(
        [
            {"id": "deploy", "skill": "d", "needs": ["build"]},
            {"id": "build", "skill": "b"},
        ]
    )

    assert validate_workflow(wf, _always).execution_order == ["build", "deploy"]


def test_diamond_keeps_declaration_order_between_independent_steps() -> None:
    wf = _workflow(
        [
            {"id": "A", "skill": "s"},
            {"id": "B", "skill": "s"},
            {"id": "C", "skill": "s", "needs": ["A", "B"]},
        ]
    )

    assert validate_workflow(wf, _always).execution_order == ["A", "B", "C"]


def test_ties_broken_by_declaration_order() -> None:
    wf = _workflow(
        [
            {"id": "root", "skill": "s"},
            {"id": "z", "skill": "s", "needs": ["root"]},
            {"id": "y", "skill": "s"},
            {"id": "x", "skill": "s", "needs": ["z"]},
        ]
    )

    assert validate_workflow(wf, _always).execution_order == ["root", "z", "y", "x"]


def test_validation_is_deterministic() -> None:
    wf = _workflow(
        [
            {"id": "a", "skill": "s"},
            {"id": "b", "skill": "s", "needs": ["a"]},
            {"id": "c", "skill": "s", "needs": ["a"]},
            {"id": "d", "skill": "s", "needs": ["b", "c"]},
        ]
    )

    first = validate_workflow(wf, _always)
    second = validate_workflow(wf, _always)
    assert first.execution_order == second.execution_order == ["a", "b", "c", "d"]


def test_unknown_skill() -> None:
    wf = _workflow([{"id": "lint", "skill": "code-linter"}])

    result = validate_workflow(wf, _never)

    assert result.valid is False
    assert result.errors == ['Step "lint" references unknown skill "code-linter"']


def test_only_missing_skills_are_reported() -> None:
    wf = _workflow(
        [
            {"id": "a", "skill": "real-skill"},
            {"id": "b", "skill": "fake-skill", "needs": ["a"]},
        ]
    )

    result = validate_workflow(wf, lambda name: name == "real-skill")

    assert result.valid is False
    assert len(result.errors) == 1
    assert "fake-skill" in result.errors[0]


def test_skill_lookup_happens_once_per_skill() -> None:
    calls: list[str] = []

    def exists(name: str) -> bool:
        calls.append(name)
        return False

    wf = _workflow([{"id": "a", "skill": "shared"}, {"id": "b", "skill": "shared"}])
    result = validate_workflow(wf, exists)

    assert calls == ["shared"]
    assert len(result.errors) == 2


def test_unknown_step_reference() -> None:
    wf = _workflow([{"id": "deploy", "skill": "deployer", "needs": ["bild", "Z"]}])

    result = validate_workflow(wf, _always)

    assert result.valid is False
    assert result.errors == [
        'Step "deploy" needs unknown step "bild"',
        'Step "deploy" needs unknown step "Z"',
    ]
    assert result.execution_order == ["deploy"]


def test_cycle_is_reported_with_its_steps() -> None:
    wf = _workflow(
        [
            {"id": "lint", "skill": "linter", "needs": ["test"]},
            {"id": "test", "skill": "tester", "needs": ["lint"]},
        ]
    )

    result = validate_workflow(wf, _always)

    assert result.valid is False
    assert result.execution_order is None
    assert result.errors == ["Circular dependency detected: lint -> test -> lint"]


def test_self_dependency_is_a_cycle() -> None:
    result = validate_workflow(_workflow([{"id": "a", "skill": "s", "needs": ["a"]}]), _always)

    assert result.valid is False
    assert any("Circular" in e for e in result.errors)


def test_errors_accumulate_across_checks() -> None:
    wf = _workflow(
        [
            {"id": "a", "skill": "missing-skill", "needs": ["nonexistent", "c"]},
            {"id": "b", "skill": "real-skill", "needs": ["a"]},
            {"id": "c", "skill": "real-skill", "needs": ["b"]},
        ]
    )

    result = validate_workflow(wf, lambda name: name == "real-skill")

    assert result.valid is False
    assert any('"nonexistent"' in e for e in result.errors)
    assert any("unknown skill" in e and "missing-skill" in e for e in result.errors)
    assert any(e.startswith("Circular") for e in result.errors)
    assert result.execution_order is None


def test_dag_neighbours() -> None:
    wf = _workflow(
        [
            {"id": "a", "skill": "s"},
            {"id": "b", "skill": "s", "needs": ["a", "ghost"]},
        ]
    )
    dag = WorkflowDAG.from_steps(wf.steps)

    assert dag.step_ids == ["a", "b"]
    assert dag.dependencies("b") == ["a"]
    assert dag.dependents("a") == ["b"]
    cycles = dag.detect_cycles()
    assert cycles.has_cycle is False
    assert cycles.cycle == []
