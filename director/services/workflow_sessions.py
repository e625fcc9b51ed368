"""
In-memory store of live workflows, keyed by workflow id.

Workflows hold open chat sessions and running tasks, so they live in the
process that created them and do not survive a restart.
"""

import logging
import uuid
from typing import Optional

from ..orchestrator.state import WorkflowMachine

logger = logging.getLogger(__name__)

_workflows: dict[str, WorkflowMachine] = {}


def create_workflow(client=None) -> tuple[str, WorkflowMachine]:
    """Start a fresh workflow at scenario selection."""
    workflow_id = str(uuid.uuid4())
    machine = WorkflowMachine(client=client)
    _workflows[workflow_id] = machine
    logger.debug("Created workflow: %s (%d active)", workflow_id, len(_workflows))
    return workflow_id, machine


def get_workflow(workflow_id: str) -> Optional[WorkflowMachine]:
    return _workflows.get(workflow_id)


def remove_workflow(workflow_id: str) -> bool:
    """Reset (cancelling in-flight calls) and forget a workflow."""
    machine = _workflows.pop(workflow_id, None)
    if machine is None:
        return False
    machine.reset()
    logger.debug("Removed workflow: %s (%d active)", workflow_id, len(_workflows))
    return True


def clear_workflows() -> None:
    for workflow_id in list(_workflows):
        remove_workflow(workflow_id)
