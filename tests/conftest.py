import asyncio
import uuid

import pytest

from director.core.errors import ModelCallError
from director.models.reply import ModelReply
from director.orchestrator.registry import ScenarioCatalog
from director.orchestrator.state import WorkflowMachine
from director.scenarios.templates import SCENARIOS
from director.services.media import encode_bytes

PNG_PAYLOAD = "iVBORw0KGgoAAAANSUhEUg=="
JPEG_URI = encode_bytes(b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")


class FakeSession:
    def __init__(self, client: "FakeDirectorClient"):
        self.id = str(uuid.uuid4())
        self.client = client
        self.sent: list[tuple[str, tuple]] = []
        self.closed = False

    async def send(self, text, images=()):
        if self.closed:
            raise ModelCallError("Chat session is closed")
        self.sent.append((text, tuple(images)))
        if self.client.hold is not None:
            await self.client.hold.wait()
        return _next(self.client.replies, ModelReply())

    def close(self):
        self.closed = True


class FakeDirectorClient:
    """
    Scripted stand-in for GeminiDirectorClient.

    Each queue holds return values or exceptions, consumed in order. An empty
    text queue echoes the prompt back, so a summary always mentions the brief.
    Setting `hold` to an asyncio.Event parks every call until it is set.
    """

    def __init__(self, replies=(), texts=(), images=()):
        self.replies = list(replies)
        self.texts = list(texts)
        self.images = list(images)
        self.text_calls: list[tuple[str, tuple]] = []
        self.image_calls: list[tuple[str, object]] = []
        self.sessions: list[FakeSession] = []
        self.reauth_keys: list = []
        self.hold = None

    def open_session(self):
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    async def generate_text(self, prompt, images=()):
        self.text_calls.append((prompt, tuple(images)))
        if self.hold is not None:
            await self.hold.wait()
        return _next(self.texts, f"Brief: {prompt}")

    async def generate_image(self, prompt, aspect_ratio):
        self.image_calls.append((prompt, aspect_ratio))
        return _next(self.images, PNG_PAYLOAD)

    def reauthenticate(self, api_key=None):
        self.reauth_keys.append(api_key)


def _next(queue, default):
    if not queue:
        return default
    item = queue.pop(0)
    if isinstance(item, BaseException):
        raise item
    return item


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def fake_client():
    return FakeDirectorClient()


@pytest.fixture
def catalog():
    return ScenarioCatalog(SCENARIOS)


@pytest.fixture
def machine(fake_client, catalog):
    return WorkflowMachine(client=fake_client, catalog=catalog, language="English")
