"""
Workflow state machine — drives one brief from scenario choice to production.

  select-scenario → configure-modules ⇄ preview-brief → post-production
        ↑                                                    │
        └──────────────────────── reset() ───────────────────┘

Validation problems come back synchronously (StepResult, FieldUpdateError,
InvalidTransition). Remote calls are bound to the epoch they started in:
reset() bumps the epoch and cancels every tracked task, so a late summary,
suggestion or chat reply can never land in a fresh workflow.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..core.config import get_settings
from ..core.errors import (
    CredentialError,
    FieldUpdateError,
    InputRejected,
    InvalidTransition,
    ModelCallError,
    WorkflowBusy,
)
from ..core.guardrails import check_input
from ..models.conversation import ConversationLog, model_turn, user_turn
from ..models.field import Field, find_field, set_field_attribute, toggle_extraction_target
from ..models.scenario import Scenario
from ..services.media import decode_payload
from ..services.prompt_compiler import (
    START_FILMING_MESSAGE,
    compile_analysis_request,
    compile_execute_request,
    compile_suggestion_request,
    compile_summary_request,
    selected_aspect_ratio,
)
from .dispatcher import DispatchOutcome, ResponseDispatcher
from .registry import ScenarioCatalog, get_catalog

logger = logging.getLogger(__name__)

PRODUCTION_FAILED_MESSAGE = "Production run failed, please check the API connection."
CHAT_FAILED_MESSAGE = "Communication error, please check your network connection."
SUMMARY_FAILED_MESSAGE = "Could not produce the brief summary, please try again."


class WorkflowStage(str, Enum):
    SELECT_SCENARIO = "select-scenario"
    CONFIGURE_MODULES = "configure-modules"
    PREVIEW_BRIEF = "preview-brief"
    POST_PRODUCTION = "post-production"


@dataclass
class StepResult:
    """Outcome of a step that validates before it calls out."""

    ok: bool
    stage: WorkflowStage
    missing: list[str] = field(default_factory=list)   # labels of empty required fields
    error: Optional[str] = None
    summary: str = ""


@dataclass(frozen=True)
class WorkflowState:
    """Read-only snapshot of a machine."""

    stage: WorkflowStage
    scenario: Optional[Scenario]
    fields: tuple[Field, ...]
    brief_summary: str
    busy: bool
    last_error: Optional[str]
    credentials_required: bool


class WorkflowMachine:
    """
    One user's brief and its production conversation.

    `client` is anything shaped like GeminiDirectorClient: open_session(),
    async generate_text(prompt, images) and async generate_image(prompt, ratio).
    start_production() and send_message() need a running event loop; they
    return the asyncio.Task doing the remote work.
    """

    def __init__(
        self,
        client=None,
        catalog: Optional[ScenarioCatalog] = None,
        language: Optional[str] = None,
    ):
        if client is None:
            from ..services.gemini import get_director_client
            client = get_director_client()
        self._client = client
        self._catalog = catalog or get_catalog()
        self._language = language or get_settings().brief_language
        self._dispatcher = ResponseDispatcher(client)

        self.stage = WorkflowStage.SELECT_SCENARIO
        self.scenario: Optional[Scenario] = None
        self.fields: list[Field] = []
        self.brief_summary = ""
        self.log = ConversationLog()
        self.session = None
        self.busy = False
        self.last_error: Optional[str] = None
        self.credentials_required = False

        self._epoch = 0
        self._tasks: set[asyncio.Task] = set()
        self._field_calls: set[str] = set()

    # ── Guards ───────────────────────────────────────────────────────

    def _require_stage(self, operation: str, *stages: WorkflowStage) -> None:
        if self.stage not in stages:
            raise InvalidTransition(
                f"'{operation}' is not allowed in stage '{self.stage.value}'"
            )

    def _require_credentials(self) -> None:
        if self.credentials_required:
            raise CredentialError("Re-authentication is required before calling the model again")

    def _on_credential_error(self, exc: CredentialError) -> None:
        logger.warning("Model rejected credentials, blocking further calls: %s", exc)
        self.credentials_required = True
        self.last_error = str(exc)

    def _move_to(self, stage: WorkflowStage) -> None:
        logger.info("Workflow stage %s → %s", self.stage.value, stage.value)
        self.stage = stage

    # ── Task tracking ────────────────────────────────────────────────

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _tracked(self, coro):
        """Await `coro` as a tracked task, so reset() can cancel it."""
        return await self._spawn(coro)

    # ── Scenario & fields ────────────────────────────────────────────

    def select_scenario(self, scenario_id: str) -> Scenario:
        self._require_stage("select_scenario", WorkflowStage.SELECT_SCENARIO)
        scenario, fields = self._catalog.select(scenario_id)
        self.scenario = scenario
        self.fields = fields
        self.brief_summary = ""
        self.last_error = None
        self._move_to(WorkflowStage.CONFIGURE_MODULES)
        return scenario

    def update_field(self, field_id: str, attribute: str, value) -> Field:
        """Set one attribute. Images go through the same checks as attach_image()."""
        self._require_stage("update_field", WorkflowStage.CONFIGURE_MODULES)
        if attribute == "image":
            if value is None:
                return self.clear_image(field_id)
            return self.attach_image(field_id, value)
        return self._set(field_id, attribute, value)

    def _set(self, field_id: str, attribute: str, value) -> Field:
        self.fields = set_field_attribute(self.fields, field_id, attribute, value)
        return find_field(self.fields, field_id)

    def toggle_extraction_target(self, field_id: str, target: str) -> Field:
        self._require_stage("toggle_extraction_target", WorkflowStage.CONFIGURE_MODULES)
        self.fields = toggle_extraction_target(self.fields, field_id, target)
        return find_field(self.fields, field_id)

    def attach_image(self, field_id: str, image: str) -> Field:
        """Attach a data URI (or bare base64 JPEG payload) to a field."""
        self._require_stage("attach_image", WorkflowStage.CONFIGURE_MODULES)
        target = find_field(self.fields, field_id)
        if not target.image_upload_allowed:
            raise FieldUpdateError(f"Field '{field_id}' does not accept images")
        if not isinstance(image, str) or not image.strip():
            raise FieldUpdateError(f"Image for '{field_id}' must be a non-empty data URI")
        try:
            decode_payload(image)
        except ValueError as e:
            raise FieldUpdateError(f"Image for '{field_id}' is not valid base64: {e}") from e
        return self._set(field_id, "image", image)

    def clear_image(self, field_id: str) -> Field:
        self._require_stage("clear_image", WorkflowStage.CONFIGURE_MODULES)
        return self._set(field_id, "image", None)

    def visible_fields(self) -> list[Field]:
        if self.scenario is None:
            return []
        return self.scenario.visible(self.fields)

    def missing_required(self) -> list[str]:
        return [f.label for f in self.fields if f.required and not f.text.strip()]

    # ── Single-shot helpers ──────────────────────────────────────────

    async def _field_call(self, field_id: str, prompt: str, images=()) -> Optional[Field]:
        """Run one text call for a field and write the answer into its text."""
        if field_id in self._field_calls:
            raise WorkflowBusy(f"A request for field '{field_id}' is already running")
        self._require_credentials()

        epoch = self._epoch
        self._field_calls.add(field_id)
        try:
            answer = await self._tracked(self._client.generate_text(prompt, images))
        except asyncio.CancelledError:
            if epoch != self._epoch:
                return None
            raise
        except CredentialError as e:
            self._on_credential_error(e)
            raise
        except ModelCallError as e:
            logger.error("Field call for '%s' failed: %s", field_id, e)
            raise
        finally:
            if epoch == self._epoch:
                self._field_calls.discard(field_id)

        if epoch != self._epoch or self.stage != WorkflowStage.CONFIGURE_MODULES:
            logger.info("Discarding late answer for field '%s'", field_id)
            return None
        answer = (answer or "").strip()
        if answer:
            self.fields = set_field_attribute(self.fields, field_id, "text", answer)
        return find_field(self.fields, field_id)

    async def suggest_field(self, field_id: str) -> Optional[Field]:
        """Replace a text field's value with a short professional suggestion."""
        self._require_stage("suggest_field", WorkflowStage.CONFIGURE_MODULES)
        target = find_field(self.fields, field_id)
        if target.is_choice:
            raise FieldUpdateError(f"Field '{field_id}' is a choice field")
        prompt = compile_suggestion_request(self.scenario, target, self.fields, self._language)
        return await self._field_call(field_id, prompt)

    async def analyze_field_image(self, field_id: str) -> Optional[Field]:
        """Describe the image attached to a field and store it as the field's text."""
        self._require_stage("analyze_field_image", WorkflowStage.CONFIGURE_MODULES)
        target = find_field(self.fields, field_id)
        if not target.has_image:
            raise FieldUpdateError(f"Field '{field_id}' has no image to analyze")
        prompt = compile_analysis_request(self.scenario, target, self._language)
        return await self._field_call(field_id, prompt, (target.image,))

    # ── Brief ────────────────────────────────────────────────────────

    async def proceed_to_preview(self) -> StepResult:
        self._require_stage("proceed_to_preview", WorkflowStage.CONFIGURE_MODULES)
        if self.busy:
            raise WorkflowBusy("The brief summary is already being produced")

        missing = self.missing_required()
        if missing:
            return StepResult(
                ok=False,
                stage=self.stage,
                missing=missing,
                error=f"Please fill in the required fields: {', '.join(missing)}",
            )
        self._require_credentials()

        request = compile_summary_request(self.scenario, self.fields, self._language)
        epoch = self._epoch
        self.busy = True
        self.last_error = None
        try:
            summary = await self._tracked(self._client.generate_text(request.text, request.images))
        except asyncio.CancelledError:
            if epoch != self._epoch:
                return StepResult(ok=False, stage=self.stage, error="The workflow was reset")
            raise
        except CredentialError as e:
            self._on_credential_error(e)
            raise
        except ModelCallError as e:
            logger.error("Brief summary failed: %s", e)
            summary = ""
        finally:
            if epoch == self._epoch:
                self.busy = False

        if epoch != self._epoch:
            return StepResult(ok=False, stage=self.stage, error="The workflow was reset")

        summary = (summary or "").strip()
        if not summary:
            self.last_error = SUMMARY_FAILED_MESSAGE
            return StepResult(ok=False, stage=self.stage, error=SUMMARY_FAILED_MESSAGE)

        self.brief_summary = summary
        self._move_to(WorkflowStage.PREVIEW_BRIEF)
        return StepResult(ok=True, stage=self.stage, summary=summary)

    def go_back(self) -> None:
        self._require_stage("go_back", WorkflowStage.PREVIEW_BRIEF)
        self.brief_summary = ""
        self._move_to(WorkflowStage.CONFIGURE_MODULES)

    # ── Production ───────────────────────────────────────────────────

    def start_production(self) -> asyncio.Task:
        self._require_stage("start_production", WorkflowStage.PREVIEW_BRIEF)
        if self.busy:
            raise WorkflowBusy("Production is already starting")
        self._require_credentials()

        request = compile_execute_request(self.scenario, self.fields, self.brief_summary)
        self._move_to(WorkflowStage.POST_PRODUCTION)
        self.session = self._client.open_session()
        self.log.append(user_turn(START_FILMING_MESSAGE, request.images))
        logger.info(
            "Production started: scenario=%s images=%d session=%s",
            self.scenario.id, len(request.images), self.session.id,
        )
        return self._begin_turn(request.text, request.images, PRODUCTION_FAILED_MESSAGE)

    def send_message(self, text: str) -> asyncio.Task:
        self._require_stage("send_message", WorkflowStage.POST_PRODUCTION)
        if self.busy:
            raise WorkflowBusy("Still waiting for the previous reply")
        check = check_input(text)
        if not check.allowed:
            raise InputRejected(check.reason)
        self._require_credentials()

        self.log.append(user_turn(text))
        return self._begin_turn(text, (), CHAT_FAILED_MESSAGE)

    def _begin_turn(self, text: str, images, failure_message: str) -> asyncio.Task:
        self.busy = True
        return self._spawn(self._run_turn(self.session, text, images, self._epoch, failure_message))

    async def _run_turn(
        self,
        session,
        text: str,
        images,
        epoch: int,
        failure_message: str,
    ) -> Optional[DispatchOutcome]:
        """Send one chat message and dispatch the reply. None when the send itself failed."""
        try:
            try:
                reply = await session.send(text, images)
            except CredentialError as e:
                self._on_credential_error(e)
                self.log.append(model_turn(f"Authorization failed: {e}. Re-authenticate to continue."))
                return None
            except ModelCallError as e:
                logger.error("Chat call failed: %s", e)
                self.log.append(model_turn(failure_message))
                return None

            if epoch != self._epoch:
                return None
            try:
                return await self._dispatcher.dispatch(
                    reply, self.log, selected_aspect_ratio(self.fields)
                )
            except CredentialError as e:
                self._on_credential_error(e)
                return DispatchOutcome.ACTION_FAILED
        finally:
            if epoch == self._epoch:
                self.busy = False

    # ── Lifecycle ────────────────────────────────────────────────────

    def reset(self) -> None:
        """Back to scenario selection from any stage, dropping in-flight work."""
        self._epoch += 1
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._field_calls.clear()
        if self.session is not None:
            self.session.close()
            self.session = None

        self.scenario = None
        self.fields = []
        self.brief_summary = ""
        self.log.clear()
        self.busy = False
        self.last_error = None
        self._move_to(WorkflowStage.SELECT_SCENARIO)

    def reauthenticate(self, api_key: Optional[str] = None) -> None:
        self._client.reauthenticate(api_key)
        self.credentials_required = False
        self.last_error = None
        if self.session is not None:
            self.session.close()
            self.session = self._client.open_session()
        logger.info("Re-authenticated model client")

    # ── Snapshots ────────────────────────────────────────────────────

    @property
    def state(self) -> WorkflowState:
        return WorkflowState(
            stage=self.stage,
            scenario=self.scenario,
            fields=tuple(self.fields),
            brief_summary=self.brief_summary,
            busy=self.busy,
            last_error=self.last_error,
            credentials_required=self.credentials_required,
        )

    def describe(self) -> dict:
        state = self.state
        visible = {f.id for f in state.scenario.visible(state.fields)} if state.scenario else set()
        return {
            "stage": state.stage.value,
            "scenario": state.scenario.describe() if state.scenario else None,
            "fields": [
                {**f.to_dict(), "visible": f.id in visible} for f in state.fields
            ],
            "missing": [f.label for f in state.fields if f.required and not f.text.strip()],
            "brief_summary": state.brief_summary,
            "busy": state.busy,
            "last_error": state.last_error,
            "credentials_required": state.credentials_required,
            "session_id": self.session.id if self.session is not None else None,
            "turns": self.log.to_list(),
        }
