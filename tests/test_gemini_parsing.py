from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from director.core.errors import CredentialError, ModelCallError
from director.services.gemini import extract_image_payload, parse_reply, translate_error


def _response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def _text(text, thought=False):
    return SimpleNamespace(text=text, thought=thought, function_call=None, inline_data=None)


def _call(name, **args):
    return SimpleNamespace(text=None, thought=False, function_call=SimpleNamespace(name=name, args=args),
                           inline_data=None)


def test_parse_reply_collects_prose_and_actions() -> None:
    reply = parse_reply(_response(
        _text("thinking about light", thought=True),
        _text("Here is the plan. "),
        _call("generate_image", prompt="burger", aspectRatio="4:5"),
        _text("Shooting now."),
    ))
    assert reply.text == "Here is the plan. Shooting now."
    assert [a.name for a in reply.actions] == ["generate_image"]
    assert reply.actions[0].instruction == "burger"
    assert reply.actions[0].aspect_ratio == "4:5"


def test_parse_reply_handles_empty_response() -> None:
    assert parse_reply(SimpleNamespace(candidates=[])).is_empty
    assert parse_reply(SimpleNamespace(candidates=None)).is_empty


def test_extract_image_payload_encodes_bytes() -> None:
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=b"\x89PNG", mime_type="image/png"))
    assert extract_image_payload(_response(_text("caption"), part)) == "iVBORw=="


def test_extract_image_payload_without_image() -> None:
    with pytest.raises(ModelCallError):
        extract_image_payload(_response(_text("no image today")))


def test_translate_error_credentials() -> None:
    error = genai_errors.ClientError(
        400, {"error": {"code": 400, "message": "API key not valid. Please pass a valid API key.",
                        "status": "INVALID_ARGUMENT"}},
    )
    assert isinstance(translate_error(error), CredentialError)

    error = genai_errors.ClientError(403, {"error": {"code": 403, "message": "denied", "status": "PERMISSION_DENIED"}})
    assert isinstance(translate_error(error), CredentialError)


def test_translate_error_other_failures() -> None:
    error = genai_errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
    translated = translate_error(error)
    assert isinstance(translated, ModelCallError)
    assert not isinstance(translated, CredentialError)
    assert isinstance(translate_error(TimeoutError("slow")), ModelCallError)
    assert "boom" in str(translate_error(RuntimeError("boom")))
