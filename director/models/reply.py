"""
What the chat model sends back: optional prose plus zero or more action requests.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

# Wire name of the "produce image" function declared to the chat model
PRODUCE_IMAGE = "generate_image"

RECOGNIZED_ACTIONS = {PRODUCE_IMAGE}


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    CLASSIC_PORTRAIT = "3:4"
    CLASSIC_LANDSCAPE = "4:3"
    ADVERTISING = "4:5"

    @classmethod
    def parse(cls, value: Any) -> "AspectRatio":
        """Strict lookup; raises ValueError for anything outside the enum."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unsupported aspect ratio: {value!r}")
        return cls(value.strip())


@dataclass(frozen=True)
class ActionRequest:
    """A structured directive extracted from a model reply."""

    name: str
    args: dict = field(default_factory=dict)

    @property
    def recognized(self) -> bool:
        return self.name in RECOGNIZED_ACTIONS

    @property
    def instruction(self) -> str:
        value = self.args.get("prompt")
        return value.strip() if isinstance(value, str) else ""

    @property
    def aspect_ratio(self) -> Optional[str]:
        """Raw ratio as sent by the model; validated by the dispatcher."""
        return self.args.get("aspectRatio") or self.args.get("aspect_ratio")


@dataclass(frozen=True)
class ModelReply:
    text: str = ""
    actions: tuple[ActionRequest, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and not self.actions

    def first_recognized_action(self) -> Optional[ActionRequest]:
        for action in self.actions:
            if action.recognized:
                return action
        return None
