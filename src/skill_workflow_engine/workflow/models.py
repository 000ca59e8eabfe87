"""Workflow definition model.

A workflow is a named, versioned list of steps. Each step names a skill (an
opaque capability resolved by the caller) and the ids of the steps that must
complete before it becomes eligible.

The model is structural only: referential integrity and acyclicity are checked
by :mod:`skill_workflow_engine.workflow.validator` after `extends` resolution,
because a child workflow may legitimately depend on steps it inherits.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class WorkflowDefinitionError(ValueError):
    """Raised when a workflow document cannot be turned into a definition."""


class WorkflowStep(BaseModel):
    """A single unit of work in a workflow."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    skill: str = Field(min_length=1)
    description: str | None = None
    needs: list[str] = Field(default_factory=list)


class WorkflowDefinition(BaseModel):
    """In-memory representation of a parsed workflow document."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    version: int = 1
    description: str | None = None
    extends: str | None = None
    steps: list[WorkflowStep] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_step_ids(self) -> WorkflowDefinition:
        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                raise ValueError(f'Duplicate step id "{step.id}" in workflow "{self.name}"')
            seen.add(step.id)
        return self

    @classmethod
    def from_mapping(cls, data: Any) -> WorkflowDefinition:
        """Build a definition from a parsed document (YAML/JSON mapping).

        Raises:
            WorkflowDefinitionError: if required fields are missing or malformed.
        """

        if not isinstance(data, Mapping):
            raise WorkflowDefinitionError(
                f"Workflow document must be a mapping, got {type(data).__name__}"
            )
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            name = data.get("name") or "<unnamed>"
            raise WorkflowDefinitionError(f'Invalid workflow "{name}": {_summarise(exc)}') from exc

    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def get_step(self, step_id: str) -> WorkflowStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


class ValidationResult(BaseModel):
    """Outcome of validating a resolved workflow.

    `execution_order` is only set when the step graph is acyclic.
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)
    execution_order: list[str] | None = None


def _summarise(exc: ValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)
