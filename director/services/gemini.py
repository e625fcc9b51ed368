"""
Gemini model client — chat sessions, single-shot text and image production.

Async wrapper around the sync google-genai SDK: every blocking SDK call runs
in a worker thread via asyncio.to_thread.

Calls are made exactly once. SDK failures are translated into
ModelCallError, or CredentialError when Gemini says the key is not accepted.
"""

import asyncio
import base64
import logging
import time
import uuid
from typing import Optional, Sequence

from ..core.config import get_settings
from ..core.errors import CredentialError, DirectorError, ModelCallError
from ..models.reply import ActionRequest, AspectRatio, ModelReply
from .media import decode_payload
from .prompt_compiler import PRODUCE_IMAGE_TOOL, SYSTEM_INSTRUCTION

logger = logging.getLogger(__name__)


_gemini_client = None
_api_key_override: Optional[str] = None

CREDENTIAL_STATUS_CODES = {401, 403}
CREDENTIAL_MARKERS = ("API key not valid", "API_KEY_INVALID", "PERMISSION_DENIED")


def _get_gemini_client():
    """Lazy-load and cache the google-genai client as a singleton.

    The client MUST stay cached while chat sessions are alive: if it gets
    garbage-collected its internal httpx connection closes and open chats
    fail with "Cannot send a request, as the client has been closed."
    """
    global _gemini_client
    if _gemini_client is not None:
        return _gemini_client
    from google import genai
    api_key = _api_key_override or get_settings().gemini_api_key
    if not api_key:
        raise CredentialError("GEMINI_API_KEY is required to reach the model")
    _gemini_client = genai.Client(api_key=api_key)
    return _gemini_client


def reset_client(api_key: Optional[str] = None) -> None:
    """Drop the cached client; the next call builds one with `api_key` (or the configured key)."""
    global _gemini_client, _api_key_override
    _gemini_client = None
    _api_key_override = api_key or None
    logger.info("Gemini client reset (override key=%s)", "yes" if _api_key_override else "no")


def translate_error(exc: Exception) -> ModelCallError:
    """Map an SDK/transport exception onto the service's error taxonomy."""
    from google.genai import errors as genai_errors

    message = str(exc)
    if isinstance(exc, genai_errors.APIError):
        code = getattr(exc, "code", None)
        if code in CREDENTIAL_STATUS_CODES or any(m in message for m in CREDENTIAL_MARKERS):
            return CredentialError(f"Gemini rejected the credentials ({code}): {message}")
        return ModelCallError(f"Gemini error {code}: {message}")
    if isinstance(exc, TimeoutError):
        return ModelCallError(f"Gemini call timed out: {message}")
    return ModelCallError(message or exc.__class__.__name__)


# ── Response parsing ─────────────────────────────────────────────────


def _response_parts(response) -> list:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def parse_reply(response) -> ModelReply:
    """Collect prose and function calls (in order) from the first candidate."""
    texts: list[str] = []
    actions: list[ActionRequest] = []
    for part in _response_parts(response):
        if getattr(part, "thought", False):
            continue
        call = getattr(part, "function_call", None)
        if call is not None and getattr(call, "name", None):
            actions.append(ActionRequest(name=call.name, args=dict(call.args or {})))
        elif getattr(part, "text", None):
            texts.append(part.text)
    return ModelReply(text="".join(texts).strip(), actions=tuple(actions))


def extract_image_payload(response) -> str:
    """Base64 payload of the first inline image in a response."""
    for part in _response_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            data = inline.data
            if isinstance(data, bytes):
                return base64.b64encode(data).decode("utf-8")
            return data
    raise ModelCallError("Image generation failed: the model returned no image")


# ── Sync functions (run in executor for async compatibility) ─────────


def _build_parts(text: str, images: Sequence[str]) -> list:
    from google.genai import types

    parts = []
    for image in images:
        data, mime_type = decode_payload(image)
        parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
    parts.append(types.Part.from_text(text=text))
    return parts


def _sync_create_chat():
    """Create a multi-turn chat with the director system instruction and image tool."""
    from google.genai import types

    settings = get_settings()
    client = _get_gemini_client()
    return client.chats.create(
        model=settings.chat_model,
        config=types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            tools=[types.Tool(function_declarations=[types.FunctionDeclaration(**PRODUCE_IMAGE_TOOL)])],
            temperature=settings.chat_temperature,
        ),
    )


def _sync_send_message(chat, text: str, images: Sequence[str]):
    return chat.send_message(_build_parts(text, images))


def _sync_generate_text(prompt: str, images: Sequence[str]) -> str:
    client = _get_gemini_client()
    contents = _build_parts(prompt, images) if images else prompt
    response = client.models.generate_content(
        model=get_settings().text_model,
        contents=contents,
    )
    return parse_reply(response).text


def _sync_generate_image(prompt: str, aspect_ratio: str) -> str:
    from google.genai import types

    settings = get_settings()
    client = _get_gemini_client()
    response = client.models.generate_content(
        model=settings.image_model,
        contents=[prompt],
        config=types.GenerateContentConfig(
            image_config=types.ImageConfig(
                aspect_ratio=aspect_ratio,
                image_size=settings.image_size,
            ),
        ),
    )
    return extract_image_payload(response)


async def _call(label: str, fn, *args):
    """Run one blocking SDK call in a thread. One attempt, errors translated."""
    start = time.monotonic()
    try:
        result = await asyncio.to_thread(fn, *args)
    except DirectorError:
        raise
    except Exception as e:
        elapsed = time.monotonic() - start
        logger.error("Gemini %s failed after %.1fs: %s", label, elapsed, e)
        raise translate_error(e) from e
    logger.info("Gemini %s: %dms", label, int((time.monotonic() - start) * 1000))
    return result


# ── Async public API ─────────────────────────────────────────────────


class ChatSession:
    """
    Explicit handle on one server-side conversation.

    Opened when production starts, closed when the workflow resets. The SDK
    chat object is created lazily on the first send.
    """

    def __init__(self):
        self.id = str(uuid.uuid4())
        self._chat = None
        self.closed = False

    async def send(self, text: str, images: Sequence[str] = ()) -> ModelReply:
        if self.closed:
            raise ModelCallError("Chat session is closed")
        if self._chat is None:
            self._chat = await _call("chat.create", _sync_create_chat)
        response = await _call("chat.send", _sync_send_message, self._chat, text, list(images))
        return parse_reply(response)

    def close(self) -> None:
        self._chat = None
        self.closed = True
        logger.debug("Closed chat session %s", self.id)


class GeminiDirectorClient:
    """The three call shapes the workflow needs: chat, single-shot text, image."""

    def open_session(self) -> ChatSession:
        return ChatSession()

    async def generate_text(self, prompt: str, images: Sequence[str] = ()) -> str:
        """Single-shot prose: brief summaries, field suggestions, image analysis."""
        return await _call("generate_text", _sync_generate_text, prompt, list(images))

    async def generate_image(self, prompt: str, aspect_ratio: AspectRatio) -> str:
        """Produce one image. Returns its raw base64 payload (no data-URI prefix)."""
        return await _call("generate_image", _sync_generate_image, prompt, AspectRatio(aspect_ratio).value)

    def reauthenticate(self, api_key: Optional[str] = None) -> None:
        reset_client(api_key)


_director_client: Optional[GeminiDirectorClient] = None


def get_director_client() -> GeminiDirectorClient:
    global _director_client
    if _director_client is None:
        _director_client = GeminiDirectorClient()
    return _director_client
