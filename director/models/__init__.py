"""
Domain models. Imported here so callers can use `from director.models import ...`.
"""

from .field import (
    Field, FieldKind, ConsistencySettings,
    text_field, choice_field, set_field_attribute, toggle_extraction_target, find_field,
)
from .conversation import ConversationLog, Role, Turn, user_turn, model_turn
from .reply import ActionRequest, AspectRatio, ModelReply, PRODUCE_IMAGE
from .scenario import Scenario

__all__ = [
    "Scenario",
    "Field", "FieldKind", "ConsistencySettings",
    "text_field", "choice_field", "set_field_attribute", "toggle_extraction_target", "find_field",
    "ConversationLog", "Role", "Turn", "user_turn", "model_turn",
    "ActionRequest", "AspectRatio", "ModelReply", "PRODUCE_IMAGE",
]
