"""Persisted pointer to the single in-progress workflow run.

The pointer tells a restarted process which workflow run to resume and which
of its steps are already done. There is exactly one slot: at most one run is
active at a time.

On disk the pointer is a JSON document::

    {
      "workflow": {
        "name": "deploy",
        "run_id": "…",
        "completed_steps": ["lint"],
        "current_step": "test"
      },
      "saved_at": "2026-01-01T00:00:00+00:00"
    }

with `"workflow": null` once the run has finished. Other top-level keys are
left untouched so the file can be shared with other session state.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class CorruptActiveRunError(ValueError):
    """The pointer file exists but cannot be understood.

    This is never silently ignored: doing so would lose crash-recovery state.
    """


@dataclass(frozen=True, slots=True)
class ActiveRunPointer:
    workflow_name: str
    run_id: str
    completed_steps: tuple[str, ...] = field(default_factory=tuple)
    current_step: str | None = None

    def to_json(self) -> dict[str, object]:
        return {
            "name": self.workflow_name,
            "run_id": self.run_id,
            "completed_steps": list(self.completed_steps),
            "current_step": self.current_step,
        }

    @staticmethod
    def from_json(obj: object) -> ActiveRunPointer:
        if not isinstance(obj, dict):
            raise CorruptActiveRunError(f"Active run record must be an object, got {obj!r}")

        name = obj.get("name")
        run_id = obj.get("run_id")
        if not isinstance(name, str) or not name:
            raise CorruptActiveRunError("Active run record is missing 'name'")
        if not isinstance(run_id, str) or not run_id:
            raise CorruptActiveRunError("Active run record is missing 'run_id'")

        completed_raw = obj.get("completed_steps", [])
        if not isinstance(completed_raw, list) or not all(
            isinstance(s, str) for s in completed_raw
        ):
            raise CorruptActiveRunError("Active run 'completed_steps' must be a list of strings")

        current_raw = obj.get("current_step")
        if current_raw is not None and not isinstance(current_raw, str):
            raise CorruptActiveRunError("Active run 'current_step' must be a string or null")

        return ActiveRunPointer(
            workflow_name=name,
            run_id=run_id,
            completed_steps=tuple(completed_raw),
            current_step=current_raw,
        )

    def with_completed(self, step_id: str, *, next_step: str | None) -> ActiveRunPointer:
        completed = self.completed_steps
        if step_id not in completed:
            completed = (*completed, step_id)
        return ActiveRunPointer(
            workflow_name=self.workflow_name,
            run_id=self.run_id,
            completed_steps=completed,
            current_step=next_step,
        )


class ActiveRunStore:
    """Read and atomically replace the active-run pointer file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CorruptActiveRunError(f"Active run file is not valid JSON: {self._path}") from exc
        if not isinstance(raw, dict):
            raise CorruptActiveRunError(f"Active run file must hold a JSON object: {self._path}")
        return raw

    def load(self) -> ActiveRunPointer | None:
        """Return the active run, or None when no workflow is in progress."""

        record = self._read_document().get("workflow")
        if record is None:
            return None
        return ActiveRunPointer.from_json(record)

    def save(self, pointer: ActiveRunPointer | None) -> None:
        """Replace the pointer; None marks that no workflow is active."""

        document = self._read_document()
        document["workflow"] = pointer.to_json() if pointer is not None else None
        document["saved_at"] = datetime.now(tz=UTC).isoformat()
        self._write_atomic(json.dumps(document, indent=2, ensure_ascii=False) + "\n")

    def clear(self) -> None:
        self.save(None)

    def _write_atomic(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Active run pointer written to %s", self._path)
