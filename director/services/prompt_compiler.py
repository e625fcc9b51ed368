"""
Prompt compiler — turns the live field set into model instructions.

Two main requests:
  - summary:  short brief-writing request (one optional identity image)
  - execute:  EXECUTE_FILMING bundle embedding the confirmed brief, one
              labeled line per field, and every attached image in field order

Plus the single-shot helpers used while configuring (suggestion, image
analysis), the chat system instruction and the image tool declaration.

Everything here is pure: no I/O, no state.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..models.field import (
    CONSISTENCY_INSPIRATION,
    CONSISTENCY_TIME_SHIFT,
    CONSISTENCY_TWEAKS,
    Field,
)
from ..models.reply import PRODUCE_IMAGE, AspectRatio
from ..models.scenario import Scenario

IMAGE_ATTACHED_MARKER = "[image attached]"

START_FILMING_MESSAGE = (
    "**[System]**: Start filming. Produce the full prompt system and imagery from the brief."
)

SYSTEM_INSTRUCTION = """
Role: You are a top-tier AI commercial photography director and prompt architect.

Workflow:
1. **Pre-production**: the user describes the shoot through configuration modules.
2. **Filming**:
   - When you receive "EXECUTE_FILMING" and the scenario is "Advertising Poster", produce the complete prompt system.
   - Write detailed prompts (Chinese and English) for a series of 10 posters, each with layout notes.
   - At the same time, call `generate_image` to produce "Poster 01 - Key Visual".
   - For every other scenario, write the shot prompt and call `generate_image` for the hero shot.
3. **Advertising Poster rules**:
   - **Fidelity**: stress "strictly reproduce the uploaded product details" in every prompt, including packaging, logo and materials.
   - **Layout**: every poster states its bilingual typography arrangement (stacked, side by side or separated).
   - **Series**: key visual, lifestyle scene, concept visual, detail close-ups (x4), brand story, spec sheet, usage guide.
4. **Post-production**: when the user asks for changes to a generated image, use the tool or confirm details in conversation.
"""

PRODUCE_IMAGE_TOOL = {
    "name": PRODUCE_IMAGE,
    "description": "Generates a high-quality commercial image based on a specific prompt.",
    "parameters": {
        "type": "OBJECT",
        "properties": {
            "prompt": {
                "type": "STRING",
                "description": "Detailed English prompt for image generation.",
            },
            "aspectRatio": {
                "type": "STRING",
                "description": "Aspect ratio.",
                "enum": [r.value for r in AspectRatio],
            },
        },
        "required": ["prompt"],
    },
}


@dataclass(frozen=True)
class CompiledRequest:
    text: str
    images: tuple[str, ...] = ()


# ── Field rendering ──────────────────────────────────────────────────

def consistency_detail(f: Field) -> str:
    """Sub-mode value that applies to the consistency field's selected index, or ''."""
    settings = f.consistency
    if settings is None:
        return ""
    if f.selected_index == CONSISTENCY_INSPIRATION and settings.extraction_targets:
        return "extract: " + ", ".join(settings.extraction_targets)
    if f.selected_index == CONSISTENCY_TIME_SHIFT:
        return "time shift: " + settings.describe_time_offset()
    if f.selected_index == CONSISTENCY_TWEAKS and settings.tweak_notes.strip():
        return "allowed tweaks: " + settings.tweak_notes.strip()
    return ""


def render_value(f: Field) -> str:
    """Option label for choice fields (plus consistency detail), trimmed text otherwise."""
    value = f.display_value()
    detail = consistency_detail(f)
    if detail:
        value = f"{value} ({detail})"
    return value


def _line(label: str, value: str) -> str:
    return f"【{label}】: {value}\n"


# ── Summary request ──────────────────────────────────────────────────

def compile_summary_request(
    scenario: Scenario,
    fields: Sequence[Field],
    language: str = "Traditional Chinese",
) -> CompiledRequest:
    """
    Build the brief-summary request.

    Every non-empty visible field becomes one labeled line. A field holding only
    an image is listed with a marker. The anchor field's image (if any) is the
    one image sent along.
    """
    text = f'Context: commercial photography project "{scenario.label}".\n'
    for f in scenario.visible(fields):
        value = render_value(f)
        if value or f.has_image:
            text += _line(f.label, value or IMAGE_ATTACHED_MARKER)

    anchor = scenario.anchor(fields)
    identity_image = anchor.image if anchor is not None and anchor.has_image else None

    if scenario.extraction_report and identity_image:
        text += (
            "\nTask: First extract the product information from the image, then write the complete "
            "pre-production confirmation report on that basis. The report covers: brand name, product "
            "type, selling points, colour scheme, visual style suggestions and bilingual layout "
            f"suggestions. Write in {language} and include an [Identification Report] section."
        )
    else:
        text += (
            "\nTask: Consolidate the above into one flowing, professional pre-production brief "
            f"paragraph. Write in {language} with a professional tone."
        )

    return CompiledRequest(text=text, images=(identity_image,) if identity_image else ())


# ── Execute request ──────────────────────────────────────────────────

def compile_execute_request(
    scenario: Scenario,
    fields: Sequence[Field],
    brief_summary: str,
) -> CompiledRequest:
    """
    Build the EXECUTE_FILMING bundle.

    Fields are serialized in scenario order; that order is also the order of
    the attached images.
    """
    text = (
        "Instruction: EXECUTE_FILMING\n\n"
        f"Scenario: {scenario.label}\n"
        "Full pre-production brief:\n"
        f"{brief_summary}\n\n"
    )
    images: list[str] = []

    for f in scenario.visible(fields):
        if f.has_image:
            images.append(f.image)
            text += f"[Reference attachment: {f.label}]\n"
        if f.is_choice:
            text += _line(f.label, render_value(f))
        elif f.text.strip():
            text += _line(f.label, f.text.strip())

    return CompiledRequest(text=text, images=tuple(images))


# ── Single-shot helpers ──────────────────────────────────────────────

def compile_suggestion_request(
    scenario: Scenario,
    target: Field,
    fields: Sequence[Field],
    language: str = "Traditional Chinese",
) -> str:
    """Ask for a short professional rewrite/suggestion for one text field."""
    others = [
        _line(f.label, render_value(f)).rstrip("\n")
        for f in scenario.visible(fields)
        if f.id != target.id and render_value(f)
    ]
    prompt = (
        f'Context: commercial photography director. Scenario "{scenario.label}".\n'
        f'Task: give a professional suggestion for the "{target.label}" module in at most '
        f"50 words, written in {language}. Reply with the suggestion only.\n"
        f'Input: "{target.text.strip()}"\n'
    )
    if others:
        prompt += "Other settings:\n" + "\n".join(others) + "\n"
    return prompt


def compile_analysis_request(
    scenario: Scenario,
    target: Field,
    language: str = "Traditional Chinese",
) -> str:
    """Ask for a description of the image attached to one field."""
    return (
        f'Analyze this image specifically for "【{target.label}】" in the context of '
        f'"{scenario.label}". Return a concise descriptive paragraph in {language}. '
        "Focus on technical terms."
    )


def selected_aspect_ratio(fields: Sequence[Field]) -> Optional[AspectRatio]:
    """Aspect ratio chosen on the brief's "ratio" field, if it names a supported one."""
    for f in fields:
        if f.id == "ratio" and f.is_choice:
            token = f.selected_option.split(" ", 1)[0]
            try:
                return AspectRatio.parse(token)
            except ValueError:
                return None
    return None
