from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

RunEventKind = Literal["started", "completed", "failed"]


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class RunEvent(BaseModel):
    """A record that one step of one run started, completed or failed.

    Events are immutable once appended. The ordered events of a run are the
    history of that run.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str = Field(min_length=1)
    workflow_name: str
    step_id: str = Field(min_length=1)
    event: RunEventKind
    timestamp: datetime = Field(default_factory=_utc_now)
    error: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def to_json_line(self) -> str:
        return self.model_dump_json(exclude_none=True)
