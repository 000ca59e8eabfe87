"""Configuration for the workflow engine.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

All paths are relative to the current working directory unless given as
absolute paths. The defaults match the layout a project uses when workflows
live next to the code they orchestrate.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ActiveRunPolicy = Literal["reject", "overwrite"]


class WorkflowSettings(BaseSettings):
    """Settings for the workflow engine.

    Environment variables:
    - LOG_LEVEL                          (optional)
    - SKILL_WORKFLOWS_DIR                (optional)
    - SKILL_WORKFLOWS_SKILLS_DIR         (optional)
    - SKILL_WORKFLOWS_RUN_LOG            (optional)
    - SKILL_WORKFLOWS_ACTIVE_RUN         (optional)
    - SKILL_WORKFLOWS_ACTIVE_RUN_POLICY  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WorkflowSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    workflows_dir: Path = Field(
        default=Path(".claude/workflows"),
        validation_alias="SKILL_WORKFLOWS_DIR",
        description="Directory holding `<name>.workflow.yaml` definitions",
    )

    skills_dir: Path | None = Field(
        default=None,
        validation_alias="SKILL_WORKFLOWS_SKILLS_DIR",
        description=(
            "Directory holding one sub-directory per installed skill. "
            "When unset, every skill reference is accepted."
        ),
    )

    run_log_path: Path = Field(
        default=Path(".planning/patterns/workflow-runs.jsonl"),
        validation_alias="SKILL_WORKFLOWS_RUN_LOG",
        description="Append-only NDJSON log of step lifecycle events",
    )

    active_run_path: Path = Field(
        default=Path(".planning/hooks/work-state.json"),
        validation_alias="SKILL_WORKFLOWS_ACTIVE_RUN",
        description="File holding the single active-run pointer used for crash recovery",
    )

    active_run_policy: ActiveRunPolicy = Field(
        default="reject",
        validation_alias="SKILL_WORKFLOWS_ACTIVE_RUN_POLICY",
        description=(
            "What `start` does when another run is already active: "
            "'reject' raises, 'overwrite' replaces the pointer."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not level:
            raise ValueError("LOG_LEVEL must not be empty")
        return level
