#!/usr/bin/env python3
"""Programmatic workflow run example.

This demonstrates driving the runner directly:

* load settings from `.env`
* start (or resume) a workflow found in `.claude/workflows/<name>.workflow.yaml`
* report each step as started and completed

Steps are not executed here; a real caller does the work between
`advance_step` and `complete_step`.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from skill_workflow_engine.config import WorkflowSettings
from skill_workflow_engine.logging import configure_logging
from skill_workflow_engine.workflow import WorkflowRunError, WorkflowRunner


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a skill workflow (programmatic example).")
    parser.add_argument("name", nargs="?", help="Workflow name, e.g. 'deploy'")
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Resume the interrupted run instead of starting a new one",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = WorkflowSettings()
    configure_logging(settings.log_level)
    runner = WorkflowRunner.from_settings(settings)

    try:
        if args.resume:
            point = runner.resume()
            if point is None:
                print("No interrupted workflow found to resume")
                return 1
            run_id, steps = point.run_id, point.remaining_steps
        else:
            if not args.name:
                print("A workflow name is required unless --resume is given")
                return 2
            started = runner.start(args.name)
            run_id, steps = started.run_id, started.steps
    except WorkflowRunError as exc:
        print(str(exc))
        return 1

    for step_id in steps:
        runner.advance_step(run_id, step_id)
        print(f"Running step {step_id}")
        runner.complete_step(run_id, step_id)

    print(f"Run {run_id} completed {len(steps)} step(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
