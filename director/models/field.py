"""
Field model — one configurable input unit of a shoot brief.

A Field is a tagged variant:
  - kind="text":   free text plus an optional attached image
  - kind="choice": discrete slider over `options` with a zero-based `selected_index`

The field with id "consistency" is a choice field that also carries
ConsistencySettings. Each member of those settings is only meaningful for
one selected index (0 → extraction targets, 1 → time offset, 2 → tweak notes).

Fields are frozen. Edits go through set_field_attribute(), which returns a new
list with exactly one Field replaced (copy-on-write).
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from ..core.errors import FieldUpdateError

CONSISTENCY_FIELD_ID = "consistency"

EXTRACTION_TARGETS = ("Face", "Expression", "Pose", "Outfit", "Scene", "Lighting & tone")

# Selected index of the consistency field → which sub-setting is live
CONSISTENCY_INSPIRATION = 0
CONSISTENCY_TIME_SHIFT = 1
CONSISTENCY_TWEAKS = 2

TIME_OFFSET_MIN = -30   # years
TIME_OFFSET_MAX = 30
TIME_OFFSET_STEP = 5


class FieldKind(str, Enum):
    TEXT = "text"
    CHOICE = "choice"


@dataclass(frozen=True)
class ConsistencySettings:
    """Nested sub-mode of the consistency field."""

    extraction_targets: tuple[str, ...] = ()
    time_offset: int = 0
    tweak_notes: str = ""

    def __post_init__(self):
        unknown = [t for t in self.extraction_targets if t not in EXTRACTION_TARGETS]
        if unknown:
            raise ValueError(f"Unknown extraction target(s): {', '.join(unknown)}")
        if len(set(self.extraction_targets)) != len(self.extraction_targets):
            raise ValueError("Extraction targets must not repeat")
        if not TIME_OFFSET_MIN <= self.time_offset <= TIME_OFFSET_MAX:
            raise ValueError(
                f"Time offset {self.time_offset} outside {TIME_OFFSET_MIN}..{TIME_OFFSET_MAX} years"
            )
        if self.time_offset % TIME_OFFSET_STEP:
            raise ValueError(f"Time offset must be a multiple of {TIME_OFFSET_STEP} years")

    def describe_time_offset(self) -> str:
        if self.time_offset == 0:
            return "present day"
        if self.time_offset > 0:
            return f"+{self.time_offset} years (older)"
        return f"{self.time_offset} years (younger)"


@dataclass(frozen=True)
class Field:
    id: str
    label: str
    placeholder: str = ""
    text: str = ""
    image: Optional[str] = None               # data URI: data:<mime>;base64,<payload>
    required: bool = False
    image_upload_allowed: bool = True
    kind: FieldKind = FieldKind.TEXT
    options: tuple[str, ...] = ()
    selected_index: int = 0
    consistency: Optional[ConsistencySettings] = None

    def __post_init__(self):
        if self.kind == FieldKind.CHOICE:
            if not self.options:
                raise ValueError(f"Choice field '{self.id}' needs at least one option")
            if not 0 <= self.selected_index < len(self.options):
                raise ValueError(
                    f"Selected index {self.selected_index} out of range for "
                    f"'{self.id}' ({len(self.options)} options)"
                )
        elif self.options or self.consistency is not None or self.selected_index != 0:
            raise ValueError(
                f"Text field '{self.id}' cannot carry options, a selected index or consistency settings"
            )

        if self.image is not None and not self.image_upload_allowed:
            raise ValueError(f"Field '{self.id}' does not accept images")

        if self.consistency is not None and self.id != CONSISTENCY_FIELD_ID:
            raise ValueError(f"Only the '{CONSISTENCY_FIELD_ID}' field carries consistency settings")

    @property
    def is_choice(self) -> bool:
        return self.kind == FieldKind.CHOICE

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    @property
    def selected_option(self) -> Optional[str]:
        if not self.is_choice:
            return None
        return self.options[self.selected_index]

    def display_value(self) -> str:
        """What the field contributes to a brief: option label for choices, text otherwise."""
        if self.is_choice:
            return self.selected_option
        return self.text.strip()

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "label": self.label,
            "placeholder": self.placeholder,
            "kind": self.kind.value,
            "text": self.text,
            "image": self.image,
            "required": self.required,
            "image_upload_allowed": self.image_upload_allowed,
        }
        if self.is_choice:
            data["options"] = list(self.options)
            data["selected_index"] = self.selected_index
        if self.consistency is not None:
            data["consistency"] = {
                "extraction_targets": list(self.consistency.extraction_targets),
                "time_offset": self.consistency.time_offset,
                "tweak_notes": self.consistency.tweak_notes,
            }
        return data


def text_field(
    id: str,
    label: str,
    placeholder: str = "",
    required: bool = False,
    image_upload_allowed: bool = True,
) -> Field:
    return Field(
        id=id,
        label=label,
        placeholder=placeholder,
        required=required,
        image_upload_allowed=image_upload_allowed,
    )


def choice_field(id: str, label: str, options: Sequence[str], selected_index: int = 0) -> Field:
    consistency = ConsistencySettings() if id == CONSISTENCY_FIELD_ID else None
    return Field(
        id=id,
        label=label,
        kind=FieldKind.CHOICE,
        options=tuple(options),
        selected_index=selected_index,
        image_upload_allowed=False,
        consistency=consistency,
    )


# ── Copy-on-write mutation ────────────────────────────────────────────

# attribute → accepted value type(s)
EDITABLE_ATTRIBUTES: dict[str, Any] = {
    "text": str,
    "image": (str, type(None)),
    "selected_index": int,
    "extraction_targets": (list, tuple),
    "time_offset": int,
    "tweak_notes": str,
}

CONSISTENCY_ATTRIBUTES = {"extraction_targets", "time_offset", "tweak_notes"}


def find_field(fields: Sequence[Field], field_id: str) -> Field:
    for f in fields:
        if f.id == field_id:
            return f
    raise FieldUpdateError(f"Unknown field '{field_id}'")


def _index_of(fields: Sequence[Field], field_id: str) -> int:
    for i, f in enumerate(fields):
        if f.id == field_id:
            return i
    raise FieldUpdateError(f"Unknown field '{field_id}'")


def _check_type(attribute: str, value: Any) -> None:
    expected = EDITABLE_ATTRIBUTES.get(attribute)
    if expected is None:
        raise FieldUpdateError(f"Attribute '{attribute}' is not editable")
    # bool is an int subclass; a checkbox value must not land in a slider
    if expected is int and isinstance(value, bool):
        raise FieldUpdateError(f"Attribute '{attribute}' expects int, got bool")
    if not isinstance(value, expected):
        raise FieldUpdateError(
            f"Attribute '{attribute}' got {type(value).__name__}"
        )
    if attribute == "extraction_targets" and not all(isinstance(t, str) for t in value):
        raise FieldUpdateError("Extraction targets must be strings")


def set_field_attribute(
    fields: Sequence[Field],
    field_id: str,
    attribute: str,
    value: Any,
) -> list[Field]:
    """
    Return a new field list where only `field_id` has `attribute` set to `value`.

    Every other Field in the result is the same object as in `fields`.
    Raises FieldUpdateError on an unknown field/attribute, a type mismatch, or a
    value that would break the field's invariants (e.g. out-of-range index).
    """
    index = _index_of(fields, field_id)
    _check_type(attribute, value)
    target = fields[index]

    try:
        if attribute in CONSISTENCY_ATTRIBUTES:
            if target.consistency is None:
                raise FieldUpdateError(f"Field '{field_id}' has no consistency settings")
            if attribute == "extraction_targets":
                value = tuple(value)
            settings = dataclasses.replace(target.consistency, **{attribute: value})
            updated = dataclasses.replace(target, consistency=settings)
        else:
            updated = dataclasses.replace(target, **{attribute: value})
    except FieldUpdateError:
        raise
    except ValueError as e:
        raise FieldUpdateError(str(e)) from e

    result = list(fields)
    result[index] = updated
    return result


def toggle_extraction_target(fields: Sequence[Field], field_id: str, target: str) -> list[Field]:
    """Add `target` to the consistency selection, or remove it if already selected."""
    current = find_field(fields, field_id)
    if current.consistency is None:
        raise FieldUpdateError(f"Field '{field_id}' has no consistency settings")
    selected = current.consistency.extraction_targets
    if target in selected:
        updated = tuple(t for t in selected if t != target)
    else:
        updated = selected + (target,)
    return set_field_attribute(fields, field_id, "extraction_targets", updated)
