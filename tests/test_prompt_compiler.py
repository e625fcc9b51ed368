from conftest import JPEG_URI

from director.models.field import set_field_attribute, toggle_extraction_target
from director.models.reply import PRODUCE_IMAGE, AspectRatio
from director.services.prompt_compiler import (
    IMAGE_ATTACHED_MARKER,
    PRODUCE_IMAGE_TOOL,
    compile_analysis_request,
    compile_execute_request,
    compile_suggestion_request,
    compile_summary_request,
    render_value,
    selected_aspect_ratio,
)


def _food(catalog, **texts):
    scenario, fields = catalog.select("food")
    for field_id, text in texts.items():
        fields = set_field_attribute(fields, field_id, "text", text)
    return scenario, fields


def test_choice_renders_option_label_not_index(catalog) -> None:
    scenario, fields = _food(catalog, subject="burger")
    fields = set_field_attribute(fields, "composition", "selected_index", 1)
    request = compile_summary_request(scenario, fields, "English")
    assert "【Composition】: top-down\n" in request.text
    assert "【Composition】: 1" not in request.text


def test_summary_lists_only_non_empty_fields(catalog) -> None:
    scenario, fields = _food(catalog, subject="  burger  ", lighting="")
    request = compile_summary_request(scenario, fields, "English")
    assert request.text.startswith('Context: commercial photography project "Food & Beverage".')
    assert "【Food】: burger\n" in request.text
    assert "Lighting" not in request.text
    assert "Write in English" in request.text
    assert request.images == ()


def test_summary_marks_image_only_fields_and_sends_anchor_image(catalog) -> None:
    scenario, fields = _food(catalog)
    fields = set_field_attribute(fields, "subject", "image", JPEG_URI)
    fields = set_field_attribute(fields, "plating", "image", JPEG_URI)
    request = compile_summary_request(scenario, fields)
    assert f"【Food】: {IMAGE_ATTACHED_MARKER}" in request.text
    assert f"【Plating】: {IMAGE_ATTACHED_MARKER}" in request.text
    assert request.images == (JPEG_URI,)


def test_ad_poster_asks_for_extraction_report_with_image(catalog) -> None:
    scenario, fields = catalog.select("ad-poster")
    plain = compile_summary_request(scenario, fields)
    assert "Identification Report" not in plain.text

    fields = set_field_attribute(fields, "subject", "image", JPEG_URI)
    report = compile_summary_request(scenario, fields)
    assert "Identification Report" in report.text


def test_consistency_hidden_until_anchor_has_image(catalog) -> None:
    scenario, fields = catalog.select("portrait")
    fields = set_field_attribute(fields, "subject", "text", "a violinist")
    assert "Consistency" not in compile_summary_request(scenario, fields).text

    fields = set_field_attribute(fields, "subject", "image", JPEG_URI)
    assert "【Consistency】: Inspiration (extract elements)" in compile_summary_request(scenario, fields).text


def test_consistency_detail_follows_selected_index(catalog) -> None:
    _, fields = catalog.select("portrait")
    fields = toggle_extraction_target(fields, "consistency", "Face")
    fields = set_field_attribute(fields, "consistency", "time_offset", 20)
    consistency = fields[1]
    assert render_value(consistency) == "Inspiration (extract elements) (extract: Face)"

    fields = set_field_attribute(fields, "consistency", "selected_index", 1)
    assert render_value(fields[1]) == "Time shift (time shift: +20 years (older))"

    fields = set_field_attribute(fields, "consistency", "selected_index", 3)
    assert render_value(fields[1]) == "Fully identical"


def test_execute_bundle_keeps_field_order_for_images(catalog) -> None:
    scenario, fields = catalog.select("model-showcase")
    first = "data:image/png;base64,AAAA"
    fields = set_field_attribute(fields, "product", "image", first)
    fields = set_field_attribute(fields, "model", "image", JPEG_URI)
    fields = set_field_attribute(fields, "model", "text", "tall, short hair")
    request = compile_execute_request(scenario, fields, "A bright summer look.")

    assert request.text.startswith("Instruction: EXECUTE_FILMING\n\n")
    assert "A bright summer look." in request.text
    assert request.images == (first, JPEG_URI)
    assert request.text.index("[Reference attachment: Product]") < request.text.index(
        "[Reference attachment: Model]"
    )
    assert "【Model】: tall, short hair\n" in request.text
    assert "【Aspect Ratio】: 3:4 (Portrait)\n" in request.text
    assert "【Product】:" not in request.text


def test_suggestion_and_analysis_prompts_name_the_field(catalog) -> None:
    scenario, fields = _food(catalog, subject="burger", lighting="window light")
    lighting = fields[3]
    suggestion = compile_suggestion_request(scenario, lighting, fields, "English")
    assert '"Lighting"' in suggestion
    assert 'Input: "window light"' in suggestion
    assert "【Food】: burger" in suggestion

    analysis = compile_analysis_request(scenario, fields[0], "English")
    assert "【Food】" in analysis
    assert "Food & Beverage" in analysis


def test_selected_aspect_ratio_reads_ratio_field(catalog) -> None:
    _, fields = catalog.select("ad-poster")
    assert selected_aspect_ratio(fields) is AspectRatio.PORTRAIT
    fields = set_field_attribute(fields, "ratio", "selected_index", 1)
    assert selected_aspect_ratio(fields) is AspectRatio.CLASSIC_LANDSCAPE
    assert selected_aspect_ratio([]) is None


def test_tool_declaration_matches_action_name() -> None:
    assert PRODUCE_IMAGE_TOOL["name"] == PRODUCE_IMAGE
    assert PRODUCE_IMAGE_TOOL["parameters"]["required"] == ["prompt"]
    assert "4:5" in PRODUCE_IMAGE_TOOL["parameters"]["properties"]["aspectRatio"]["enum"]


def test_hidden_consistency_field_is_left_out_of_both_requests(catalog) -> None:
    scenario, fields = catalog.select("portrait")
    fields = set_field_attribute(fields, "subject", "text", "a violinist")
    fields = set_field_attribute(fields, "consistency", "selected_index", 1)
    fields = set_field_attribute(fields, "consistency", "time_offset", 10)

    summary = compile_summary_request(scenario, fields)
    execute = compile_execute_request(scenario, fields, "Warm stage portrait.")
    for text in (summary.text, execute.text):
        assert "Consistency" not in text
        assert "time shift" not in text
    assert "【Character】: a violinist\n" in execute.text
