"""
Image payload helpers.

Images cross every boundary as data-URI strings: data:<media-type>;base64,<payload>.
The model client wants the raw payload; turns store the full URI.
"""

import base64
import binascii

DEFAULT_MIME_TYPE = "image/jpeg"
PRODUCED_MIME_TYPE = "image/png"


def split_data_uri(value: str) -> tuple[str, str]:
    """
    Split a data URI into (mime_type, base64_payload).

    A bare base64 string (no prefix) is accepted and reported as DEFAULT_MIME_TYPE.
    """
    if "," not in value:
        return DEFAULT_MIME_TYPE, value.strip()

    header, payload = value.split(",", 1)
    mime_type = header
    if mime_type.startswith("data:"):
        mime_type = mime_type[len("data:"):]
    mime_type = mime_type.split(";", 1)[0].strip()
    return mime_type or DEFAULT_MIME_TYPE, payload.strip()


def strip_prefix(value: str) -> str:
    """Return only the base64 payload of a data URI."""
    return split_data_uri(value)[1]


def decode_payload(value: str) -> tuple[bytes, str]:
    """Decode a data URI (or bare base64) into (bytes, mime_type)."""
    mime_type, payload = split_data_uri(value)
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError) as e:
        raise ValueError("Invalid base64 image payload") from e


def wrap_png(payload: str) -> str:
    """Wrap a produced image's base64 payload for storage in a turn."""
    return f"data:{PRODUCED_MIME_TYPE};base64,{payload}"


def encode_bytes(data: bytes, mime_type: str = PRODUCED_MIME_TYPE) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('utf-8')}"
