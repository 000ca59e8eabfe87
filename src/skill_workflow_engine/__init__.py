"""Skill workflow engine.

Runs declarative, DAG-shaped workflows of skills one step at a time:
- workflow definitions loaded from YAML, with `extends` inheritance
- validation of step references, skill references and cycles
- a deterministic execution order
- an append-only run log and an active-run pointer for crash recovery
"""

__version__ = "0.1.0"

from skill_workflow_engine.config import WorkflowSettings

__all__ = ["__version__", "WorkflowSettings"]
