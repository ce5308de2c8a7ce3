"""Scenario overlays: what-if variants layered over the base template.

Overlays compose in a fixed order: base template, then the scenario's
overrides, then its virtual items. Composition always works on copies, so the
stored base template never changes when a scenario is viewed.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .errors import NotFoundError
from .models import BudgetTemplate, LineItem, Scenario, ScenarioOverride, TemplateEntry, VirtualItem


@dataclass
class ScenarioView:
    """Effective planned entries for a budget under one scenario."""
    entries: Dict[str, TemplateEntry]
    virtual_items: List[VirtualItem] = field(default_factory=list)
    scenario: Optional[Scenario] = None

    @property
    def overridden_keys(self) -> List[str]:
        if self.scenario is None:
            return []
        return sorted(self.scenario.overrides)


def _timestamp(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return moment.isoformat().replace('+00:00', 'Z')


def new_scenario(
    name: str,
    description: Optional[str] = None,
    notes: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Scenario:
    """Create an empty scenario with a fresh id and creation timestamp."""
    return Scenario(
        id=str(uuid.uuid4()),
        name=name,
        created_at=_timestamp(created_at),
        description=description,
        notes=notes,
    )


def find_scenario(document: BudgetTemplate, scenario_id: str) -> Scenario:
    scenario = document.find_scenario(scenario_id)
    if scenario is None:
        raise NotFoundError(scenario_id, kind="Scenario")
    return scenario


def apply_scenario(document: BudgetTemplate, scenario_id: Optional[str] = None) -> ScenarioView:
    """Compose the base template with one scenario.

    Each override replaces the entry amount, and the line items too when the
    override carries any. Account and note fields come from the base entry.
    Overrides for keys missing from the base template produce new entries.

    Args:
        document: Budget to read; it is not modified
        scenario_id: Scenario to layer on top, or ``None`` for the base view

    Raises:
        NotFoundError: If ``scenario_id`` is not in the document
    """
    entries = copy.deepcopy(document.template)
    if scenario_id is None:
        return ScenarioView(entries=entries)

    scenario = find_scenario(document, scenario_id)
    for key, override in scenario.overrides.items():
        entry = entries.get(key)
        if entry is None:
            entries[key] = TemplateEntry(
                amount=override.amount,
                line_items=copy.deepcopy(override.line_items),
            )
            continue
        entry.amount = override.amount
        if override.line_items:
            entry.line_items = copy.deepcopy(override.line_items)

    return ScenarioView(
        entries=entries,
        virtual_items=copy.deepcopy(scenario.virtual_items),
        scenario=scenario,
    )


def add_scenario(document: BudgetTemplate, scenario: Scenario) -> Scenario:
    document.scenarios.append(scenario)
    return scenario


def remove_scenario(document: BudgetTemplate, scenario_id: str) -> None:
    """Remove a scenario; unknown ids are ignored."""
    document.scenarios = [s for s in document.scenarios if s.id != scenario_id]


def set_override(
    document: BudgetTemplate,
    scenario_id: str,
    entity_key: str,
    amount: float,
    line_items: Optional[List[LineItem]] = None,
) -> ScenarioOverride:
    """Set the replacement amount for ``entity_key`` inside a scenario.

    ``entity_key`` does not have to exist in the base template.
    """
    scenario = find_scenario(document, scenario_id)
    override = ScenarioOverride(amount=float(amount), line_items=list(line_items or []))
    scenario.overrides[entity_key] = override
    return override


def clear_override(document: BudgetTemplate, scenario_id: str, entity_key: str) -> None:
    find_scenario(document, scenario_id).overrides.pop(entity_key, None)


def add_virtual_item(
    document: BudgetTemplate,
    scenario_id: str,
    name: str,
    amount: float,
    is_income: bool = False,
) -> VirtualItem:
    scenario = find_scenario(document, scenario_id)
    item = VirtualItem(id=str(uuid.uuid4()), name=name, amount=float(amount), is_income=is_income)
    scenario.virtual_items.append(item)
    return item


def remove_virtual_item(document: BudgetTemplate, scenario_id: str, item_id: str) -> None:
    scenario = find_scenario(document, scenario_id)
    scenario.virtual_items = [item for item in scenario.virtual_items if item.id != item_id]


def duplicate_scenario_ids(document: BudgetTemplate) -> List[str]:
    """Scenario ids that appear more than once, sorted."""
    return document.duplicate_scenario_ids()
