"""
Conversation log for the post-production chat.

Turns are immutable. The log only ever grows: every append swaps the whole
tuple for a new one that differs by a single trailing turn, so readers holding
a snapshot never observe a half-applied change.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str
    images: tuple[str, ...] = ()          # input images (data URIs)
    output_image: Optional[str] = None    # produced image (data URI)
    placeholder: bool = False             # "still generating" marker
    id: str = field(default_factory=new_uuid)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "images": list(self.images),
            "output_image": self.output_image,
            "placeholder": self.placeholder,
            "created_at": self.created_at.isoformat(),
        }


def user_turn(content: str, images: tuple[str, ...] = ()) -> Turn:
    return Turn(role=Role.USER, content=content, images=tuple(images))


def model_turn(content: str, output_image: Optional[str] = None, placeholder: bool = False) -> Turn:
    return Turn(role=Role.MODEL, content=content, output_image=output_image, placeholder=placeholder)


class ConversationLog:
    """Ordered, append-only sequence of turns."""

    def __init__(self):
        self._turns: tuple[Turn, ...] = ()

    def append(self, turn: Turn) -> Turn:
        self._turns = self._turns + (turn,)
        return turn

    def clear(self) -> None:
        """Drop every turn. Only used when the whole workflow is reset."""
        self._turns = ()

    @property
    def turns(self) -> tuple[Turn, ...]:
        return self._turns

    def last(self) -> Optional[Turn]:
        return self._turns[-1] if self._turns else None

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self):
        return iter(self._turns)

    def to_list(self) -> list[dict]:
        return [t.to_dict() for t in self._turns]
