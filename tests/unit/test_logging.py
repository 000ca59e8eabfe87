"""Unit tests for structured JSON logging."""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Iterator

import pytest

from skill_workflow_engine.logging import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_json_formatter_lifts_run_identifiers() -> None:
    record = logging.LogRecord(
        name="skill_workflow_engine.workflow.runner",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Step %r %s",
        args=("lint", "completed"),
        exc_info=None,
    )
    record.run_id = "run-1"
    record.step_id = "lint"
    record.attempt = 2

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "skill_workflow_engine.workflow.runner"
    assert payload["message"] == "Step 'lint' completed"
    assert payload["run_id"] == "run-1"
    assert payload["step_id"] == "lint"
    assert "workflow" not in payload
    assert payload["extra"] == {"attempt": 2}


def test_configure_logging_writes_json_lines(restore_root_logger: None) -> None:
    stream = io.StringIO()
    configure_logging("debug", stream=stream)

    logging.getLogger("skill_workflow_engine.test").debug(
        "hello", extra={"workflow": "ci"}
    )

    line = stream.getvalue().strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["message"] == "hello"
    assert payload["workflow"] == "ci"
    assert "extra" not in payload
    assert len(logging.getLogger().handlers) == 1
