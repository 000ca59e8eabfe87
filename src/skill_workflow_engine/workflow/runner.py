"""Step-by-step workflow runner with crash recovery.

The runner tracks state; it does not execute steps. A caller (typically an
agent loop) drives each run explicitly:

    started = runner.start("deploy")
    for step_id in started.steps:
        runner.advance_step(started.run_id, step_id)
        ...  # do the work
        runner.complete_step(started.run_id, step_id)

Two records are kept:

- the run log (:class:`WorkflowRunStore`), an append-only history of step
  events;
- the active-run pointer (:class:`ActiveRunStore`), the single record naming
  the run in progress and its completed steps.

`complete_step` appends to the log first and only then rewrites the pointer.
A crash between the two leaves the log one step ahead of the pointer; resume
follows the pointer, so that step is signalled again. Step completion handlers
must therefore be idempotent.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from skill_workflow_engine.config import ActiveRunPolicy, WorkflowSettings

from .active_run import ActiveRunPointer, ActiveRunStore
from .dag import WorkflowDAG
from .events import RunEvent, RunEventKind
from .extends import ExtendsFailure, resolve_extends
from .loader import SkillDirectory, WorkflowDirectory
from .models import WorkflowDefinition
from .run_store import WorkflowRunStore
from .validator import validate_workflow

logger = logging.getLogger(__name__)


class WorkflowRunError(RuntimeError):
    """Base class for runner failures."""


class WorkflowNotFoundError(WorkflowRunError):
    def __init__(self, name: str) -> None:
        super().__init__(f'Could not load workflow "{name}"')
        self.name = name


class WorkflowResolutionError(WorkflowRunError):
    def __init__(self, name: str, error: str) -> None:
        super().__init__(f'Extends resolution failed for workflow "{name}": {error}')
        self.name = name
        self.error = error


class WorkflowValidationError(WorkflowRunError):
    def __init__(self, name: str, errors: list[str]) -> None:
        super().__init__(f'Workflow "{name}" validation failed: {", ".join(errors)}')
        self.name = name
        self.errors = list(errors)


class ActiveRunExistsError(WorkflowRunError):
    def __init__(self, pointer: ActiveRunPointer) -> None:
        super().__init__(
            f'Workflow "{pointer.workflow_name}" is already running (run {pointer.run_id}); '
            "resume or finish it before starting another"
        )
        self.pointer = pointer


class UnknownRunError(WorkflowRunError):
    def __init__(self, run_id: str) -> None:
        super().__init__(f"Unknown workflow run: {run_id}")
        self.run_id = run_id


@dataclass(frozen=True, slots=True)
class RunStarted:
    run_id: str
    steps: list[str]


@dataclass(frozen=True, slots=True)
class ResumePoint:
    run_id: str
    workflow_name: str
    remaining_steps: list[str]


@dataclass(frozen=True, slots=True)
class RunStatus:
    run_id: str
    workflow_name: str
    completed: list[str]
    remaining: list[str]
    current: str | None


class WorkflowRunner:
    """Drive workflow runs and keep their crash-recovery state current.

    Args:
        run_store: Append-only step event log.
        active_runs: Store for the single active-run pointer.
        load_workflow: Returns a definition by name, or None if there is none.
        skill_exists: Returns whether a skill name is installed.
        active_run_policy: What `start` does when a run is already active.
    """

    def __init__(
        self,
        *,
        run_store: WorkflowRunStore,
        active_runs: ActiveRunStore,
        load_workflow: Callable[[str], WorkflowDefinition | None],
        skill_exists: Callable[[str], bool],
        active_run_policy: ActiveRunPolicy = "reject",
    ) -> None:
        self._run_store = run_store
        self._active_runs = active_runs
        self._load_workflow = load_workflow
        self._skill_exists = skill_exists
        self._policy = active_run_policy

    @classmethod
    def from_settings(cls, settings: WorkflowSettings) -> WorkflowRunner:
        """Wire the file-backed collaborators described by `settings`."""

        return cls(
            run_store=WorkflowRunStore(settings.run_log_path),
            active_runs=ActiveRunStore(settings.active_run_path),
            load_workflow=WorkflowDirectory(settings.workflows_dir),
            skill_exists=SkillDirectory(settings.skills_dir),
            active_run_policy=settings.active_run_policy,
        )

    def start(self, workflow_name: str) -> RunStarted:
        """Begin a new run of `workflow_name`.

        Loads, resolves and validates the workflow, then records the new run in
        the active-run pointer. No run events are written.

        Raises:
            WorkflowNotFoundError, WorkflowResolutionError, WorkflowValidationError:
                the workflow cannot be run; nothing is written.
            ActiveRunExistsError: another run is active and the policy is `reject`.
        """

        order = self._execution_order(workflow_name)

        existing = self._active_runs.load()
        if existing is not None:
            if self._policy == "reject":
                raise ActiveRunExistsError(existing)
            logger.warning(
                "Replacing active run %s of workflow %r",
                existing.run_id,
                existing.workflow_name,
                extra={"run_id": existing.run_id, "workflow": existing.workflow_name},
            )

        run_id = str(uuid.uuid4())
        self._active_runs.save(
            ActiveRunPointer(
                workflow_name=workflow_name,
                run_id=run_id,
                completed_steps=(),
                current_step=order[0],
            )
        )
        logger.info(
            "Started workflow %r with %d step(s)",
            workflow_name,
            len(order),
            extra={"run_id": run_id, "workflow": workflow_name},
        )
        return RunStarted(run_id=run_id, steps=order)

    def advance_step(self, run_id: str, step_id: str) -> RunEvent:
        """Record that a step has started. The pointer is not changed."""

        return self._append(run_id, step_id, "started")

    def complete_step(self, run_id: str, step_id: str) -> RunEvent:
        """Record that a step has completed and move the pointer on.

        When the last step completes, the pointer is cleared. Completing a step
        that is already complete is harmless. Skills are not re-checked, and a
        step id outside the workflow is logged without touching the pointer.
        """

        event = self._append(run_id, step_id, "completed")

        pointer = self._active_runs.load()
        if pointer is None or pointer.run_id != run_id:
            logger.debug(
                "Run %s is not the active run; pointer left unchanged",
                run_id,
                extra={"run_id": run_id, "step_id": step_id},
            )
            return event

        order = self._step_order(pointer.workflow_name)
        if step_id not in order:
            logger.warning(
                "Step %r is not part of workflow %r; pointer left unchanged",
                step_id,
                pointer.workflow_name,
                extra={"run_id": run_id, "workflow": pointer.workflow_name, "step_id": step_id},
            )
            return event

        done = set(pointer.completed_steps) | {step_id}
        next_step = next((s for s in order if s not in done), None)

        if next_step is None:
            self._active_runs.clear()
            logger.info(
                "Workflow %r finished",
                pointer.workflow_name,
                extra={"run_id": run_id, "workflow": pointer.workflow_name},
            )
        else:
            self._active_runs.save(pointer.with_completed(step_id, next_step=next_step))
        return event

    def fail_step(self, run_id: str, step_id: str, error: str) -> RunEvent:
        """Record a step failure.

        The pointer is kept so the run can be retried or resumed.
        """

        return self._append(run_id, step_id, "failed", error=error)

    def resume(self) -> ResumePoint | None:
        """Return where the active run left off, or None if there is none.

        The pointer decides which steps are done. The workflow is re-loaded and
        re-validated to recompute the execution order.
        """

        pointer = self._active_runs.load()
        if pointer is None:
            return None

        order = self._execution_order(pointer.workflow_name)
        completed = set(pointer.completed_steps)
        remaining = [s for s in order if s not in completed]
        logger.info(
            "Resuming workflow %r with %d step(s) remaining",
            pointer.workflow_name,
            len(remaining),
            extra={"run_id": pointer.run_id, "workflow": pointer.workflow_name},
        )
        return ResumePoint(
            run_id=pointer.run_id,
            workflow_name=pointer.workflow_name,
            remaining_steps=remaining,
        )

    def get_status(self, run_id: str) -> RunStatus:
        """Summarise a run from its logged events.

        Raises:
            UnknownRunError: the run is neither active nor in the log.
        """

        workflow_name = self._workflow_name_for(run_id)
        completed = self._run_store.get_completed_steps(run_id)
        order = self._step_order(workflow_name)
        done = set(completed)
        remaining = [s for s in order if s not in done]
        return RunStatus(
            run_id=run_id,
            workflow_name=workflow_name,
            completed=completed,
            remaining=remaining,
            current=remaining[0] if remaining else None,
        )

    def _append(
        self, run_id: str, step_id: str, kind: RunEventKind, *, error: str | None = None
    ) -> RunEvent:
        event = RunEvent(
            run_id=run_id,
            workflow_name=self._workflow_name_for(run_id),
            step_id=step_id,
            event=kind,
            error=error,
        )
        self._run_store.append(event)
        logger.info(
            "Step %r %s",
            step_id,
            kind,
            extra={"run_id": run_id, "workflow": event.workflow_name, "step_id": step_id},
        )
        return event

    def _workflow_name_for(self, run_id: str) -> str:
        pointer = self._active_runs.load()
        if pointer is not None and pointer.run_id == run_id:
            return pointer.workflow_name
        entries = self._run_store.get_run_entries(run_id)
        if entries:
            return entries[0].workflow_name
        raise UnknownRunError(run_id)

    def _resolve(self, workflow_name: str) -> WorkflowDefinition:
        definition = self._load_workflow(workflow_name)
        if definition is None:
            raise WorkflowNotFoundError(workflow_name)

        resolved = resolve_extends(definition, self._load_workflow)
        if isinstance(resolved, ExtendsFailure):
            raise WorkflowResolutionError(workflow_name, resolved.error)
        return resolved.definition

    def _step_order(self, workflow_name: str) -> list[str]:
        """Order the steps of a running workflow without re-checking skills."""

        cycles = WorkflowDAG.from_steps(self._resolve(workflow_name).steps).detect_cycles()
        if cycles.topological_order is None:
            raise WorkflowValidationError(
                workflow_name, [f"Circular dependency detected: {' -> '.join(cycles.cycle)}"]
            )
        return cycles.topological_order

    def _execution_order(self, workflow_name: str) -> list[str]:
        result = validate_workflow(self._resolve(workflow_name), self._skill_exists)
        if not result.valid or result.execution_order is None:
            raise WorkflowValidationError(workflow_name, result.errors)
        return result.execution_order
