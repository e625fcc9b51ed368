"""
Static scenario catalog — one template per shoot type.

Templates are never edited at runtime; the registry hands out deep copies.
"""

from ..models.field import choice_field, text_field
from ..models.scenario import Scenario

RATIO_OPTIONS = (
    "1:1 (Square)",
    "4:3 (Landscape)",
    "3:4 (Portrait)",
    "16:9 (Widescreen)",
    "9:16 (Story)",
)

CONSISTENCY_OPTIONS = (
    "Inspiration (extract elements)",
    "Time shift",
    "Minor tweaks allowed",
    "Fully identical",
)


def _ratio(selected_index: int = 0):
    return choice_field("ratio", "Aspect Ratio", RATIO_OPTIONS, selected_index)


def _camera(placeholder: str):
    return text_field("camera", "Camera", placeholder, image_upload_allowed=False)


def _consistency():
    return choice_field("consistency", "Consistency", CONSISTENCY_OPTIONS)


AD_POSTER = Scenario(
    id="ad-poster",
    label="Advertising Poster",
    icon="🎨",
    extraction_report=True,
    fields=(
        text_field(
            "subject", "Product Image",
            "Upload a high-resolution product shot; brand, selling points and visual traits are extracted automatically...",
            required=True,
        ),
        choice_field("style", "Visual Style", (
            "Magazine", "Watercolor", "Tech", "Retro film", "Nordic minimal", "Neon cyber", "Organic",
        )),
        choice_field("typography", "Typography", (
            "Serif headline", "Glassmorphism", "3D embossed", "Handwritten", "Neon outline", "Minimal whitespace",
        )),
        text_field("extra", "Extra", "Need a model? Scene type? Data visualisation? Anything else..."),
        _ratio(4),
    ),
)

PRODUCT = Scenario(
    id="product",
    label="Product Photography",
    icon="🛍️",
    fields=(
        text_field("subject", "Subject", "Product name, brand, key features...", required=True),
        text_field("material", "Material", "Polished metal, rough leather, clear glass..."),
        choice_field("composition", "Composition", (
            "Front", "45° high", "Flat lay", "Low angle", "Macro", "Fisheye",
        ), selected_index=1),
        text_field("lighting", "Lighting", "Rim light, softbox, high contrast, moody..."),
        text_field("fluid", "Fluid", "Smoke, splashes, powder explosion?"),
        _camera("Focal length (e.g. 50mm), aperture (f/2.8)..."),
        _ratio(),
    ),
)

MODEL_SHOWCASE = Scenario(
    id="model-showcase",
    label="Model Showcase",
    icon="💃",
    anchor_field_id="model",
    fields=(
        text_field("product", "Product", "Clothing, accessories, cosmetics...", required=True),
        text_field("model", "Model", "Features, style, ethnicity...", required=True),
        _consistency(),
        choice_field("composition", "Composition", (
            "Full body", "Three-quarter", "Close-up", "Low angle", "High angle", "Fisheye",
        )),
        text_field("pose", "Interaction", "Pose description..."),
        text_field("lighting", "Lighting", "Fashion light, soft light..."),
        _camera("Lens, film stock..."),
        _ratio(2),
    ),
)

FOOD = Scenario(
    id="food",
    label="Food & Beverage",
    icon="🍔",
    fields=(
        text_field("subject", "Food", "Burger, steak, drinks...", required=True),
        choice_field("composition", "Composition", (
            "45° standard", "top-down", "eye level", "macro", "wide", "fisheye",
        )),
        text_field("plating", "Plating", "Tableware, garnish..."),
        text_field("lighting", "Lighting", "Natural window light..."),
        _camera("Focal length, depth of field..."),
        _ratio(),
    ),
)

PORTRAIT = Scenario(
    id="portrait",
    label="Portrait",
    icon="👤",
    fields=(
        text_field("subject", "Character", "Describe the person in detail...", required=True),
        _consistency(),
        choice_field("composition", "Composition", (
            "Face close-up", "Half body", "Full body", "Low angle", "High angle", "Fisheye",
        ), selected_index=1),
        text_field("clothing", "Clothing", "Outfit details, materials or accessories..."),
        text_field("expression", "Expression", "Demeanour, gaze, emotion..."),
        text_field("lighting", "Lighting", "Soft or hard light, warm or cool tones..."),
        _camera("Focal length, aperture, film grain..."),
        _ratio(),
    ),
)

INTERIOR = Scenario(
    id="interior",
    label="Interior Design",
    icon="🏠",
    anchor_field_id="space",
    fields=(
        text_field("space", "Space", "Living room, office...", required=True),
        text_field("style", "Style", "Design style: Nordic, industrial, Japanese..."),
        choice_field("composition", "Composition", (
            "Wide panorama", "One-point perspective", "Two-point perspective", "Detail", "45° high", "Fisheye",
        )),
        text_field("elements", "Elements", "Furniture layout, decor, plants..."),
        text_field("lighting", "Lighting & Time", "Dawn, afternoon sun, interior lamps..."),
        _camera("Wide-angle lens, depth of field..."),
        _ratio(),
    ),
)

CUSTOM = Scenario(
    id="custom",
    label="Quick Shot",
    icon="⚡",
    anchor_field_id="requirements",
    fields=(
        text_field("requirements", "Brief", "One sentence; the rest is filled in for you...", required=True),
        _camera("Set professional camera parameters for precise control..."),
        _ratio(),
    ),
)

SCENARIOS: tuple[Scenario, ...] = (
    AD_POSTER,
    PRODUCT,
    MODEL_SHOWCASE,
    FOOD,
    PORTRAIT,
    INTERIOR,
    CUSTOM,
)
