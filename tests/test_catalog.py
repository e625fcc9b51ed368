import pytest

from director.core.errors import UnknownScenarioError
from director.models.field import set_field_attribute
from director.orchestrator.registry import ScenarioCatalog, get_catalog
from director.scenarios.templates import SCENARIOS


def test_catalog_lists_scenarios_in_order(catalog) -> None:
    ids = [s.id for s in catalog.list_scenarios()]
    assert ids == ["ad-poster", "product", "model-showcase", "food", "portrait", "interior", "custom"]
    assert "food" in catalog
    assert "burger" not in catalog


def test_unknown_scenario_raises(catalog) -> None:
    with pytest.raises(UnknownScenarioError):
        catalog.select("wedding")
    with pytest.raises(KeyError):
        catalog.get("Food")


@pytest.mark.parametrize("first", [s.id for s in SCENARIOS])
def test_selection_never_leaks_between_scenarios(catalog, first) -> None:
    _, fields = catalog.select(first)
    for f in list(fields):
        if not f.is_choice:
            fields = set_field_attribute(fields, f.id, "text", "edited")

    for other in catalog.list_scenarios():
        _, fresh = catalog.select(other.id)
        assert fresh == list(other.fields)
        assert all(f.text == "" for f in fresh)


def test_selection_returns_independent_copies(catalog) -> None:
    scenario, first = catalog.select("portrait")
    _, second = catalog.select("portrait")
    assert first == second
    assert all(a is not b for a, b in zip(first, second))
    assert all(a is not b for a, b in zip(first, scenario.fields))


def test_food_template_shape(catalog) -> None:
    scenario = catalog.get("food")
    subject = scenario.get_field("subject")
    composition = scenario.get_field("composition")
    assert subject.required
    assert composition.options[1] == "top-down"
    assert scenario.get_field("camera").image_upload_allowed is False


def test_consistency_only_in_identity_scenarios(catalog) -> None:
    with_consistency = {s.id for s in catalog.list_scenarios() if s.get_field("consistency")}
    assert with_consistency == {"portrait", "model-showcase"}


def test_every_scenario_has_a_required_anchor(catalog) -> None:
    for scenario in catalog.list_scenarios():
        anchor = scenario.get_field(scenario.anchor_field_id)
        assert anchor is not None, scenario.id
        assert anchor.required


def test_register_overwrites_by_id() -> None:
    catalog = ScenarioCatalog(SCENARIOS[:2])
    catalog.register(SCENARIOS[0])
    assert catalog.get_scenario_ids() == ["ad-poster", "product"]
    assert catalog.get_scenario_descriptions()[0]["fields"][0] == "subject"


def test_global_catalog_is_shared() -> None:
    assert get_catalog() is get_catalog()
    assert "custom" in get_catalog()
