"""
Response dispatcher — routes one model reply into the conversation log.

  received → no-op                         (nothing to show)
           → prose-appended                (text only)
           → action-in-flight → succeeded  (placeholder, then image turn)
                              → failed     (placeholder, then error turn)

Only the first recognized action of a reply is acted upon, so one reply
produces at most one artifact. Unrecognized actions are ignored. Nothing is
retried and the placeholder turn is never edited: results are new turns.
"""

import logging
from enum import Enum
from typing import Optional

from ..core.errors import CredentialError, ModelCallError
from ..core.guardrails import check_output
from ..models.conversation import ConversationLog, model_turn
from ..models.reply import ActionRequest, AspectRatio, ModelReply, PRODUCE_IMAGE
from ..services.media import wrap_png

logger = logging.getLogger(__name__)


class DispatchOutcome(str, Enum):
    NO_OP = "no_op"
    PROSE_APPENDED = "prose_appended"
    ACTION_SUCCEEDED = "action_succeeded"
    ACTION_FAILED = "action_failed"


class ResponseDispatcher:
    """
    Applies model replies to a ConversationLog.

    `image_producer` is anything with `async generate_image(prompt, aspect_ratio) -> str`
    returning a raw base64 payload.
    """

    def __init__(self, image_producer):
        self._image_producer = image_producer

    async def dispatch(
        self,
        reply: ModelReply,
        log: ConversationLog,
        default_aspect_ratio: Optional[AspectRatio] = None,
    ) -> DispatchOutcome:
        action = reply.first_recognized_action()
        prose = _clean_prose(reply.text)

        if action is None:
            if reply.actions:
                logger.info(
                    "Ignoring unrecognized action(s): %s",
                    ", ".join(a.name for a in reply.actions),
                )
            if not prose:
                return DispatchOutcome.NO_OP
            log.append(model_turn(prose))
            return DispatchOutcome.PROSE_APPENDED

        skipped = len(reply.actions) - 1
        if skipped:
            logger.info("Reply carried %d extra action(s); only the first recognized one runs", skipped)

        # Prose that came with the action (e.g. the poster prompt system) is
        # kept, ahead of the placeholder.
        if prose:
            log.append(model_turn(prose))

        if action.name == PRODUCE_IMAGE:
            return await self._produce_image(action, log, default_aspect_ratio)

        return DispatchOutcome.NO_OP

    async def _produce_image(
        self,
        action: ActionRequest,
        log: ConversationLog,
        default_aspect_ratio: Optional[AspectRatio],
    ) -> DispatchOutcome:
        instruction = action.instruction
        log.append(model_turn(f"**[Action]** Shooting...\n\nPrompt: {instruction}", placeholder=True))

        try:
            ratio = _resolve_aspect_ratio(action, default_aspect_ratio)
            if not instruction:
                raise ValueError("the request carried no prompt")
        except ValueError as e:
            logger.warning("Rejected image request: %s", e)
            log.append(model_turn(f"Production error: could not generate the image. {e}"))
            return DispatchOutcome.ACTION_FAILED

        logger.info("Producing image: ratio=%s prompt=%s...", ratio.value, instruction[:80])
        try:
            payload = await self._image_producer.generate_image(instruction, ratio)
        except CredentialError as e:
            log.append(model_turn(f"Production error: could not generate the image. {e}"))
            raise
        except ModelCallError as e:
            log.append(model_turn(f"Production error: could not generate the image. {e}"))
            return DispatchOutcome.ACTION_FAILED

        log.append(model_turn("Shot complete.", output_image=wrap_png(payload)))
        return DispatchOutcome.ACTION_SUCCEEDED


def _resolve_aspect_ratio(
    action: ActionRequest,
    default_aspect_ratio: Optional[AspectRatio],
) -> AspectRatio:
    raw = action.aspect_ratio
    if raw is None or raw == "":
        return default_aspect_ratio or AspectRatio.SQUARE
    try:
        return AspectRatio.parse(raw)
    except ValueError:
        raise ValueError(f"unsupported aspect ratio {raw!r}") from None


def _clean_prose(text: str) -> str:
    text = (text or "").strip()
    if not text:
        return ""
    checked = check_output(text)
    return checked.modified_input or text
