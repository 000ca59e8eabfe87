"""Append-only NDJSON log of workflow step events.

One file holds the events of every run. Lines are only ever appended; a run's
history is the ordered subset of lines carrying its `run_id`.

Reads are tolerant: a missing file is an empty log, and lines that are not
valid events (truncated writes, hand edits) are skipped.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from .events import RunEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunHistory:
    run_id: str
    entries: list[RunEvent]

    @property
    def started_at(self) -> datetime:
        return min(e.timestamp for e in self.entries)


@dataclass
class WorkflowRunStore:
    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _read_unlocked(self) -> list[RunEvent]:
        if not self.path.exists():
            return []

        events: list[RunEvent] = []
        # Binary mode: a torn append can split a multibyte character.
        with open(self.path, "rb") as f:
            for lineno, raw in enumerate(f, start=1):
                line = raw.strip()
                if not line:
                    continue
                try:
                    events.append(RunEvent.model_validate_json(line.decode("utf-8")))
                except (UnicodeDecodeError, ValidationError):
                    logger.debug("Skipping unreadable run log line %s:%d", self.path, lineno)
        return events

    def append(self, event: RunEvent) -> None:
        """Durably append one event.

        Errors are not caught: a failed append must reach the caller.
        """

        line = event.to_json_line() + "\n"
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)
                f.flush()
                os.fsync(f.fileno())

    def read_all(self) -> list[RunEvent]:
        with self._lock:
            return self._read_unlocked()

    def get_run_entries(self, run_id: str) -> list[RunEvent]:
        return [e for e in self.read_all() if e.run_id == run_id]

    def get_completed_steps(self, run_id: str) -> list[str]:
        """Step ids with at least one `completed` event, in first-completion order."""

        completed: list[str] = []
        for entry in self.get_run_entries(run_id):
            if entry.event == "completed" and entry.step_id not in completed:
                completed.append(entry.step_id)
        return completed

    def list_runs(self, workflow_name: str | None = None) -> list[str]:
        """Run ids in the order they first appear in the log."""

        runs: list[str] = []
        seen: set[str] = set()
        for entry in self.read_all():
            if workflow_name is not None and entry.workflow_name != workflow_name:
                continue
            if entry.run_id not in seen:
                seen.add(entry.run_id)
                runs.append(entry.run_id)
        return runs

    def get_latest_run(self, workflow_name: str) -> RunHistory | None:
        """Return the most recently started run of a workflow.

        A run's start is the timestamp of its earliest event. When two runs
        started at the same instant, the one appended later wins.
        """

        events = self.read_all()
        matching = {e.run_id for e in events if e.workflow_name == workflow_name}
        if not matching:
            return None

        histories: dict[str, list[RunEvent]] = {}
        for entry in events:
            if entry.run_id in matching:
                histories.setdefault(entry.run_id, []).append(entry)

        latest: RunHistory | None = None
        for run_id, entries in histories.items():
            candidate = RunHistory(run_id=run_id, entries=entries)
            if latest is None or candidate.started_at >= latest.started_at:
                latest = candidate
        return latest
