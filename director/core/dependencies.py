"""
FastAPI dependencies. Injected into route handlers.
"""

from fastapi import HTTPException, status

from ..orchestrator.state import WorkflowMachine
from ..services.workflow_sessions import get_workflow


def get_model_client():
    """The process-wide Gemini director client. Overridden in tests."""
    from ..services.gemini import get_director_client
    return get_director_client()


def require_workflow(workflow_id: str) -> WorkflowMachine:
    """Resolve the workflow named in the path, or 404."""
    machine = get_workflow(workflow_id)
    if machine is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Workflow '{workflow_id}' not found",
        )
    return machine
