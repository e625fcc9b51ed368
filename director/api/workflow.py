"""
Workflow API — one brief per workflow id, driven step by step.

GET    /v1/scenarios                                    — scenario cards
POST   /v1/workflows                                    — new workflow
GET    /v1/workflows/{id}                               — current state
DELETE /v1/workflows/{id}                               — drop workflow
POST   /v1/workflows/{id}/scenario                      — pick a scenario
PATCH  /v1/workflows/{id}/fields/{field_id}             — set one attribute
POST   /v1/workflows/{id}/fields/{field_id}/targets     — toggle extraction target
PUT    /v1/workflows/{id}/fields/{field_id}/image       — attach (and analyze) an image
DELETE /v1/workflows/{id}/fields/{field_id}/image       — remove the image
POST   /v1/workflows/{id}/fields/{field_id}/suggestion  — AI suggestion for a text field
POST   /v1/workflows/{id}/preview                       — produce the brief summary
POST   /v1/workflows/{id}/back                          — preview → configure
POST   /v1/workflows/{id}/production                    — run the shoot
POST   /v1/workflows/{id}/messages                      — post-production chat
POST   /v1/workflows/{id}/reset                         — back to scenario selection
POST   /v1/workflows/{id}/credentials                   — re-authenticate the model client

Production and chat requests wait for the reply to be dispatched, then return
the full state with the new turns.
"""

import asyncio
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ..core.dependencies import get_model_client, require_workflow
from ..orchestrator.registry import get_catalog
from ..orchestrator.state import WorkflowMachine
from ..services.workflow_sessions import create_workflow, remove_workflow

logger = logging.getLogger(__name__)

workflow_router = APIRouter(tags=["workflow"])


class WorkflowResponse(BaseModel):
    workflow_id: str
    stage: str
    scenario: Optional[dict] = None
    fields: list[dict] = []
    missing: list[str] = []
    brief_summary: str = ""
    busy: bool = False
    last_error: Optional[str] = None
    credentials_required: bool = False
    session_id: Optional[str] = None
    turns: list[dict] = []


class SelectScenarioRequest(BaseModel):
    scenario_id: str


class FieldUpdateRequest(BaseModel):
    attribute: str
    value: Any = None


class ToggleTargetRequest(BaseModel):
    target: str


class AttachImageRequest(BaseModel):
    image: str                  # data URI or bare base64 (JPEG assumed)
    analyze: bool = True        # fill the field's text with a description


class MessageRequest(BaseModel):
    message: str


class CredentialsRequest(BaseModel):
    api_key: Optional[str] = None


def _state(workflow_id: str, machine: WorkflowMachine) -> WorkflowResponse:
    return WorkflowResponse(workflow_id=workflow_id, **machine.describe())


async def _settle(task: asyncio.Task) -> None:
    """Wait for a production/chat turn. Cancellation by a concurrent reset is not an error."""
    await asyncio.wait({task})
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Workflow turn failed unexpectedly: %s", exc)
        raise exc


# ── Scenarios ────────────────────────────────────────────────────────

@workflow_router.get("/scenarios")
async def list_scenarios():
    return {"scenarios": get_catalog().get_scenario_descriptions()}


# ── Workflow lifecycle ───────────────────────────────────────────────

@workflow_router.post("/workflows", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
async def create(client=Depends(get_model_client)):
    workflow_id, machine = create_workflow(client=client)
    return _state(workflow_id, machine)


@workflow_router.get("/workflows/{workflow_id}", response_model=WorkflowResponse)
async def get_state(workflow_id: str, machine: WorkflowMachine = Depends(require_workflow)):
    return _state(workflow_id, machine)


@workflow_router.delete("/workflows/{workflow_id}")
async def delete(workflow_id: str):
    if not remove_workflow(workflow_id):
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return {"deleted": workflow_id}


@workflow_router.post("/workflows/{workflow_id}/reset", response_model=WorkflowResponse)
async def reset(workflow_id: str, machine: WorkflowMachine = Depends(require_workflow)):
    machine.reset()
    return _state(workflow_id, machine)


@workflow_router.post("/workflows/{workflow_id}/credentials", response_model=WorkflowResponse)
async def reauthenticate(
    workflow_id: str,
    request: CredentialsRequest,
    machine: WorkflowMachine = Depends(require_workflow),
):
    machine.reauthenticate(request.api_key)
    return _state(workflow_id, machine)


# ── Configure ────────────────────────────────────────────────────────

@workflow_router.post("/workflows/{workflow_id}/scenario", response_model=WorkflowResponse)
async def select_scenario(
    workflow_id: str,
    request: SelectScenarioRequest,
    machine: WorkflowMachine = Depends(require_workflow),
):
    machine.select_scenario(request.scenario_id)
    return _state(workflow_id, machine)


@workflow_router.patch("/workflows/{workflow_id}/fields/{field_id}", response_model=WorkflowResponse)
async def update_field(
    workflow_id: str,
    field_id: str,
    request: FieldUpdateRequest,
    machine: WorkflowMachine = Depends(require_workflow),
):
    machine.update_field(field_id, request.attribute, request.value)
    return _state(workflow_id, machine)


@workflow_router.post("/workflows/{workflow_id}/fields/{field_id}/targets", response_model=WorkflowResponse)
async def toggle_target(
    workflow_id: str,
    field_id: str,
    request: ToggleTargetRequest,
    machine: WorkflowMachine = Depends(require_workflow),
):
    machine.toggle_extraction_target(field_id, request.target)
    return _state(workflow_id, machine)


@workflow_router.put("/workflows/{workflow_id}/fields/{field_id}/image", response_model=WorkflowResponse)
async def attach_image(
    workflow_id: str,
    field_id: str,
    request: AttachImageRequest,
    machine: WorkflowMachine = Depends(require_workflow),
):
    machine.attach_image(field_id, request.image)
    if request.analyze:
        await machine.analyze_field_image(field_id)
    return _state(workflow_id, machine)


@workflow_router.delete("/workflows/{workflow_id}/fields/{field_id}/image", response_model=WorkflowResponse)
async def clear_image(
    workflow_id: str,
    field_id: str,
    machine: WorkflowMachine = Depends(require_workflow),
):
    machine.clear_image(field_id)
    return _state(workflow_id, machine)


@workflow_router.post("/workflows/{workflow_id}/fields/{field_id}/suggestion", response_model=WorkflowResponse)
async def suggest(
    workflow_id: str,
    field_id: str,
    machine: WorkflowMachine = Depends(require_workflow),
):
    await machine.suggest_field(field_id)
    return _state(workflow_id, machine)


# ── Brief ────────────────────────────────────────────────────────────

@workflow_router.post("/workflows/{workflow_id}/preview", response_model=WorkflowResponse)
async def preview(workflow_id: str, machine: WorkflowMachine = Depends(require_workflow)):
    result = await machine.proceed_to_preview()
    if result.missing:
        raise HTTPException(
            status_code=422,
            detail={"error": result.error, "missing": result.missing},
        )
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return _state(workflow_id, machine)


@workflow_router.post("/workflows/{workflow_id}/back", response_model=WorkflowResponse)
async def back(workflow_id: str, machine: WorkflowMachine = Depends(require_workflow)):
    machine.go_back()
    return _state(workflow_id, machine)


# ── Production ───────────────────────────────────────────────────────

@workflow_router.post("/workflows/{workflow_id}/production", response_model=WorkflowResponse)
async def start_production(workflow_id: str, machine: WorkflowMachine = Depends(require_workflow)):
    await _settle(machine.start_production())
    return _state(workflow_id, machine)


@workflow_router.post("/workflows/{workflow_id}/messages", response_model=WorkflowResponse)
async def send_message(
    workflow_id: str,
    request: MessageRequest,
    machine: WorkflowMachine = Depends(require_workflow),
):
    await _settle(machine.send_message(request.message))
    return _state(workflow_id, machine)
