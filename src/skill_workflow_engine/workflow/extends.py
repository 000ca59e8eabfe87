"""Resolve `extends` inheritance chains into a single definition.

Merge rule, applied root ancestor first and walking toward the child:

- a step whose id is already present replaces the accumulated step in place
  (the whole step, fields are not merged);
- a step with a new id is appended.

Top-level `description` and `version` come from the most specific definition
that sets them explicitly. The resolved definition keeps the child's name and
has no `extends`.

Failures are returned as :class:`ExtendsFailure` values rather than raised so
callers can report them without unwinding.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .models import WorkflowDefinition, WorkflowStep

WorkflowLoader = Callable[[str], WorkflowDefinition | None]


@dataclass(frozen=True, slots=True)
class ResolvedWorkflow:
    definition: WorkflowDefinition
    chain: list[str]


@dataclass(frozen=True, slots=True)
class ExtendsFailure:
    error: str


def resolve_extends(
    definition: WorkflowDefinition, load_workflow: WorkflowLoader
) -> ResolvedWorkflow | ExtendsFailure:
    """Merge `definition` with its ancestors."""

    lineage = _collect_lineage(definition, load_workflow)
    if isinstance(lineage, ExtendsFailure):
        return lineage

    if len(lineage) == 1:
        return ResolvedWorkflow(
            definition=definition.model_copy(update={"extends": None}),
            chain=[definition.name],
        )

    steps: list[WorkflowStep] = []
    positions: dict[str, int] = {}
    description: str | None = None
    version: int | None = None

    for ancestor in lineage:
        for step in ancestor.steps:
            index = positions.get(step.id)
            if index is None:
                positions[step.id] = len(steps)
                steps.append(step)
            else:
                steps[index] = step

        explicit = ancestor.model_fields_set
        if "description" in explicit and ancestor.description is not None:
            description = ancestor.description
        if "version" in explicit:
            version = ancestor.version

    resolved = definition.model_copy(
        update={
            "extends": None,
            "steps": steps,
            "description": description,
            "version": version if version is not None else definition.version,
        }
    )
    return ResolvedWorkflow(definition=resolved, chain=[d.name for d in lineage])


def _collect_lineage(
    definition: WorkflowDefinition, load_workflow: WorkflowLoader
) -> list[WorkflowDefinition] | ExtendsFailure:
    """Return the chain of definitions ordered root ancestor first."""

    lineage = [definition]
    seen = [definition.name]
    current = definition

    while current.extends:
        parent_name = current.extends
        if parent_name in seen:
            path = " -> ".join([*seen, parent_name])
            return ExtendsFailure(error=f"Circular extends chain: {path}")

        parent = load_workflow(parent_name)
        if parent is None:
            return ExtendsFailure(
                error=f'Parent workflow "{parent_name}" not found (extended by "{current.name}")'
            )

        # A loaded file may carry a different `name`; the chain is keyed by the
        # name it was requested under.
        if parent.name != parent_name:
            parent = parent.model_copy(update={"name": parent_name})

        lineage.append(parent)
        seen.append(parent_name)
        current = parent

    lineage.reverse()
    return lineage
