import pytest

from director.core.errors import FieldUpdateError
from director.models.field import (
    CONSISTENCY_FIELD_ID,
    ConsistencySettings,
    Field,
    FieldKind,
    choice_field,
    find_field,
    set_field_attribute,
    text_field,
    toggle_extraction_target,
)


def _fields():
    return [
        text_field("subject", "Subject", required=True),
        choice_field("composition", "Composition", ("A", "B", "C")),
        choice_field(CONSISTENCY_FIELD_ID, "Consistency", ("x", "y", "z", "w")),
        text_field("camera", "Camera", image_upload_allowed=False),
    ]


def test_set_attribute_replaces_exactly_one_field() -> None:
    fields = _fields()
    result = set_field_attribute(fields, "subject", "text", "red sneaker")

    assert len(result) == len(fields)
    assert [f.id for f in result] == [f.id for f in fields]
    assert result[0].text == "red sneaker"
    assert fields[0].text == ""
    for before, after in zip(fields[1:], result[1:]):
        assert before is after


def test_set_attribute_on_each_editable_attribute() -> None:
    fields = _fields()
    assert set_field_attribute(fields, "composition", "selected_index", 2)[1].selected_option == "C"
    assert set_field_attribute(fields, "subject", "image", "data:image/jpeg;base64,AAAA")[0].has_image
    updated = set_field_attribute(fields, CONSISTENCY_FIELD_ID, "time_offset", 10)
    assert updated[2].consistency.time_offset == 10
    updated = set_field_attribute(updated, CONSISTENCY_FIELD_ID, "tweak_notes", "new hair colour")
    assert updated[2].consistency.tweak_notes == "new hair colour"
    assert updated[2].consistency.time_offset == 10


def test_unknown_field_or_attribute_is_rejected() -> None:
    fields = _fields()
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, "nope", "text", "x")
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, "subject", "label", "Renamed")
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, "subject", "required", False)


def test_type_mismatch_is_rejected() -> None:
    fields = _fields()
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, "subject", "text", 42)
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, "composition", "selected_index", "2")
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, "composition", "selected_index", True)


def test_out_of_range_index_is_rejected() -> None:
    fields = _fields()
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, "composition", "selected_index", 3)
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, "composition", "selected_index", -1)


def test_consistency_attributes_need_consistency_field() -> None:
    with pytest.raises(FieldUpdateError):
        set_field_attribute(_fields(), "composition", "time_offset", 5)


def test_text_field_cannot_take_selected_index_out_of_its_variant() -> None:
    with pytest.raises(FieldUpdateError):
        set_field_attribute(_fields(), "subject", "selected_index", 7)
    with pytest.raises(FieldUpdateError):
        set_field_attribute(_fields(), "camera", "selected_index", 1)
    with pytest.raises(ValueError):
        Field(id="subject", label="Subject", selected_index=2)
    with pytest.raises(ValueError):
        Field(id="subject", label="Subject", options=("a",))
    with pytest.raises(ValueError):
        Field(id="x", label="X", kind=FieldKind.CHOICE)


def test_only_consistency_field_carries_settings() -> None:
    assert choice_field(CONSISTENCY_FIELD_ID, "C", ("a",)).consistency == ConsistencySettings()
    assert choice_field("composition", "C", ("a",)).consistency is None
    with pytest.raises(ValueError):
        Field(id="style", label="S", kind=FieldKind.CHOICE, options=("a",),
              consistency=ConsistencySettings())


def test_choice_fields_do_not_accept_images() -> None:
    assert choice_field("ratio", "Ratio", ("1:1",)).image_upload_allowed is False
    with pytest.raises(FieldUpdateError):
        set_field_attribute(_fields(), "composition", "image", "data:image/jpeg;base64,AAAA")
    with pytest.raises(FieldUpdateError):
        set_field_attribute(_fields(), "camera", "image", "data:image/jpeg;base64,AAAA")
    assert set_field_attribute(_fields(), "camera", "image", None)[3].image is None


def test_toggle_extraction_target_adds_then_removes() -> None:
    fields = toggle_extraction_target(_fields(), CONSISTENCY_FIELD_ID, "Face")
    fields = toggle_extraction_target(fields, CONSISTENCY_FIELD_ID, "Pose")
    assert find_field(fields, CONSISTENCY_FIELD_ID).consistency.extraction_targets == ("Face", "Pose")

    fields = toggle_extraction_target(fields, CONSISTENCY_FIELD_ID, "Face")
    assert find_field(fields, CONSISTENCY_FIELD_ID).consistency.extraction_targets == ("Pose",)


def test_unknown_extraction_target_is_rejected() -> None:
    with pytest.raises(FieldUpdateError):
        toggle_extraction_target(_fields(), CONSISTENCY_FIELD_ID, "Shoes")


def test_time_offset_stays_on_the_slider() -> None:
    fields = _fields()
    assert set_field_attribute(fields, CONSISTENCY_FIELD_ID, "time_offset", -30)[2].consistency.time_offset == -30
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, CONSISTENCY_FIELD_ID, "time_offset", 35)
    with pytest.raises(FieldUpdateError):
        set_field_attribute(fields, CONSISTENCY_FIELD_ID, "time_offset", 7)


def test_time_offset_description() -> None:
    assert ConsistencySettings(time_offset=0).describe_time_offset() == "present day"
    assert ConsistencySettings(time_offset=10).describe_time_offset() == "+10 years (older)"
    assert ConsistencySettings(time_offset=-5).describe_time_offset() == "-5 years (younger)"


def test_to_dict_includes_variant_payload() -> None:
    fields = _fields()
    assert "options" not in fields[0].to_dict()
    choice = fields[1].to_dict()
    assert choice["options"] == ["A", "B", "C"]
    assert choice["selected_index"] == 0
    assert fields[2].to_dict()["consistency"]["time_offset"] == 0
