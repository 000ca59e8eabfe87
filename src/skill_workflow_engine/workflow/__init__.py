"""Workflow definitions, validation and the step-by-step runner.

The runner is a state tracker rather than an executor: callers perform each
step themselves and report progress, and the runner keeps the run log and
the active-run pointer consistent enough to resume after a crash.
"""

from .active_run import ActiveRunPointer, ActiveRunStore, CorruptActiveRunError
from .dag import CycleResult, WorkflowDAG
from .events import RunEvent
from .extends import ExtendsFailure, ResolvedWorkflow, resolve_extends
from .loader import SkillDirectory, WorkflowDirectory, load_workflow_file, parse_workflow_yaml
from .models import ValidationResult, WorkflowDefinition, WorkflowDefinitionError, WorkflowStep
from .run_store import RunHistory, WorkflowRunStore
from .runner import (
    ActiveRunExistsError,
    ResumePoint,
    RunStarted,
    RunStatus,
    UnknownRunError,
    WorkflowNotFoundError,
    WorkflowResolutionError,
    WorkflowRunError,
    WorkflowRunner,
    WorkflowValidationError,
)
from .validator import validate_workflow

__all__ = [
    "ActiveRunExistsError",
    "ActiveRunPointer",
    "ActiveRunStore",
    "CorruptActiveRunError",
    "CycleResult",
    "ExtendsFailure",
    "ResolvedWorkflow",
    "ResumePoint",
    "RunEvent",
    "RunHistory",
    "RunStarted",
    "RunStatus",
    "SkillDirectory",
    "UnknownRunError",
    "ValidationResult",
    "WorkflowDAG",
    "WorkflowDefinition",
    "WorkflowDefinitionError",
    "WorkflowDirectory",
    "WorkflowNotFoundError",
    "WorkflowResolutionError",
    "WorkflowRunError",
    "WorkflowRunStore",
    "WorkflowRunner",
    "WorkflowStep",
    "WorkflowValidationError",
    "load_workflow_file",
    "parse_workflow_yaml",
    "resolve_extends",
    "validate_workflow",
]
