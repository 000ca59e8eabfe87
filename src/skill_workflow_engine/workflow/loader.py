"""File-backed workflow and skill lookups.

Workflows live as `<name>.workflow.yaml` files in a single directory. The
classes here are the default `load_workflow` / `skill_exists` collaborators
handed to the runner; callers may substitute any callable with the same
signature.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import WorkflowDefinition, WorkflowDefinitionError

logger = logging.getLogger(__name__)

WORKFLOW_FILE_SUFFIX = ".workflow.yaml"


def parse_workflow_yaml(text: str) -> WorkflowDefinition:
    """Parse a YAML workflow document.

    Raises:
        WorkflowDefinitionError: on YAML syntax errors or an invalid document.
    """

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkflowDefinitionError(f"Workflow YAML is not parseable: {exc}") from exc
    return WorkflowDefinition.from_mapping(data)


def load_workflow_file(path: Path) -> WorkflowDefinition | None:
    """Load a workflow file, returning None if it is missing or malformed."""

    if not path.is_file():
        logger.debug("Workflow file not found: %s", path)
        return None
    try:
        return parse_workflow_yaml(path.read_text(encoding="utf-8"))
    except WorkflowDefinitionError as exc:
        logger.warning("Could not load workflow %s: %s", path, exc)
        return None


@dataclass(frozen=True, slots=True)
class WorkflowDirectory:
    """Resolve workflows by name from a directory of YAML files."""

    root: Path

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}{WORKFLOW_FILE_SUFFIX}"

    def load(self, name: str) -> WorkflowDefinition | None:
        return load_workflow_file(self.path_for(name))

    def __call__(self, name: str) -> WorkflowDefinition | None:
        return self.load(name)

    def list_names(self) -> list[str]:
        """Return workflow names in a stable (sorted) order."""

        if not self.root.is_dir():
            return []
        names = [
            p.name[: -len(WORKFLOW_FILE_SUFFIX)]
            for p in self.root.iterdir()
            if p.is_file() and p.name.endswith(WORKFLOW_FILE_SUFFIX)
        ]
        return sorted(names)


@dataclass(frozen=True, slots=True)
class SkillDirectory:
    """Skill existence check backed by a directory of installed skills.

    A skill exists when `<root>/<name>/` is a directory. With no root, every
    skill name is accepted.
    """

    root: Path | None = None

    def __call__(self, name: str) -> bool:
        if self.root is None:
            return True
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            return False
        return (self.root / name).is_dir()
