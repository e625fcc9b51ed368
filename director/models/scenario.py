"""
Scenario — a named shoot-type template bundling an ordered set of fields.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .field import CONSISTENCY_FIELD_ID, Field


@dataclass(frozen=True)
class Scenario:
    id: str
    label: str
    icon: str
    fields: tuple[Field, ...]
    # Primary subject/product field. An image attached here reveals the
    # consistency field and travels with the summary request.
    anchor_field_id: str = "subject"
    # Ask the summary call for a product-information extraction report
    # (instead of a plain brief) when the anchor carries an image.
    extraction_report: bool = False

    def field_ids(self) -> list[str]:
        return [f.id for f in self.fields]

    def get_field(self, field_id: str) -> Optional[Field]:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def anchor(self, fields: Sequence[Field]) -> Optional[Field]:
        """The live copy of the anchor field within a working field list."""
        for f in fields:
            if f.id == self.anchor_field_id:
                return f
        return None

    def visible(self, fields: Sequence[Field]) -> list[Field]:
        """
        Fields shown while configuring.

        The consistency field only makes sense once there is a reference
        image to be consistent with, so it stays hidden until the anchor
        field holds one.
        """
        anchor = self.anchor(fields)
        anchor_has_image = anchor is not None and anchor.has_image
        return [
            f for f in fields
            if f.id != CONSISTENCY_FIELD_ID or anchor_has_image
        ]

    def describe(self) -> dict:
        """Structured description for the selection screen."""
        return {
            "id": self.id,
            "label": self.label,
            "icon": self.icon,
            "fields": self.field_ids(),
        }
