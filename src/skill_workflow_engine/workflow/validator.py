"""Validate a resolved workflow and compute its execution order.

All problems are collected; validation never stops at the first error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .dag import WorkflowDAG
from .models import ValidationResult, WorkflowDefinition

logger = logging.getLogger(__name__)

SkillExists = Callable[[str], bool]


def validate_workflow(definition: WorkflowDefinition, skill_exists: SkillExists) -> ValidationResult:
    """Check step references, skill references and acyclicity.

    Args:
        definition: A workflow with `extends` already resolved.
        skill_exists: Returns whether a skill name refers to an installed skill.

    Returns:
        The accumulated errors and, when the step graph is acyclic, the
        execution order.
    """

    errors: list[str] = []
    known_ids = set(definition.step_ids())

    for step in definition.steps:
        for dep in step.needs:
            if dep not in known_ids:
                errors.append(f'Step "{step.id}" needs unknown step "{dep}"')

    skill_cache: dict[str, bool] = {}
    for step in definition.steps:
        if step.skill not in skill_cache:
            skill_cache[step.skill] = bool(skill_exists(step.skill))
        if not skill_cache[step.skill]:
            errors.append(f'Step "{step.id}" references unknown skill "{step.skill}"')

    cycle_result = WorkflowDAG.from_steps(definition.steps).detect_cycles()
    if cycle_result.has_cycle:
        errors.append(f"Circular dependency detected: {' -> '.join(cycle_result.cycle)}")

    if errors:
        logger.debug(
            "Workflow %r failed validation with %d error(s)",
            definition.name,
            len(errors),
        )

    return ValidationResult(
        valid=not errors,
        errors=errors,
        execution_order=cycle_result.topological_order,
    )
