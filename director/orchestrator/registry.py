"""
Scenario registry. Register templates, look them up, list them.

Templates are shared, read-only data. select() always hands back a deep,
independent copy of the field list so a working brief can never write
through to the template (or to another session's brief).
"""

import copy
import logging
from typing import Iterable, Optional

from ..core.errors import UnknownScenarioError
from ..models.field import Field
from ..models.scenario import Scenario

logger = logging.getLogger(__name__)


class ScenarioCatalog:
    """Central registry for all scenario templates."""

    def __init__(self, scenarios: Iterable[Scenario] = ()):
        self._scenarios: dict[str, Scenario] = {}
        for scenario in scenarios:
            self.register(scenario)

    def register(self, scenario: Scenario) -> None:
        """Register a scenario template by its id."""
        if scenario.id in self._scenarios:
            logger.warning("Scenario '%s' already registered, overwriting", scenario.id)
        self._scenarios[scenario.id] = scenario
        logger.debug("Registered scenario: %s (%s)", scenario.id, scenario.label)

    def get(self, scenario_id: str) -> Scenario:
        """Get a template by exact id. Raises UnknownScenarioError if not found."""
        scenario = self._scenarios.get(scenario_id)
        if scenario is None:
            raise UnknownScenarioError(f"Unknown scenario '{scenario_id}'")
        return scenario

    def select(self, scenario_id: str) -> tuple[Scenario, list[Field]]:
        """Return the template and a deep copy of its fields, ready for editing."""
        scenario = self.get(scenario_id)
        return scenario, copy.deepcopy(list(scenario.fields))

    def list_scenarios(self) -> list[Scenario]:
        """List all scenarios in registration order."""
        return list(self._scenarios.values())

    def get_scenario_ids(self) -> list[str]:
        return list(self._scenarios.keys())

    def get_scenario_descriptions(self) -> list[dict]:
        return [s.describe() for s in self._scenarios.values()]

    def __contains__(self, scenario_id: str) -> bool:
        return scenario_id in self._scenarios


# ── Global registry ──────────────────────────────────────────────────

_catalog: Optional[ScenarioCatalog] = None


def get_catalog() -> ScenarioCatalog:
    """Get or create the global scenario catalog."""
    global _catalog
    if _catalog is None:
        from ..scenarios.templates import SCENARIOS
        _catalog = ScenarioCatalog(SCENARIOS)
        logger.info(
            "Scenario catalog ready: %d scenarios [%s]",
            len(_catalog.get_scenario_ids()),
            ", ".join(_catalog.get_scenario_ids()),
        )
    return _catalog
