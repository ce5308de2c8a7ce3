"""Unit tests for budget_planner.models."""

from __future__ import annotations

import math

import pytest

from budget_planner.errors import DecodeError, ValidationError
from budget_planner.models import (
    BudgetSettings,
    BudgetTemplate,
    LineItem,
    Scenario,
    ScenarioOverride,
    TemplateEntry,
    UnplannedTransaction,
    VirtualItem,
)


def _minimal_payload():
    return {
        'name': 'family',
        'version': '1.0.0',
        'settings': {
            'currency': 'EUR',
            'accounts': ['acc-1'],
            'incomeCategories': ['cat-income'],
            'startDate': '2025-01',
        },
        'template': {'groceries': {'amount': 400}},
    }


def test_from_dict_fills_documented_defaults():
    doc = BudgetTemplate.from_dict(_minimal_payload())

    assert doc.settings.excluded_categories == []
    assert doc.settings.custom_entities == []
    assert doc.comments == {}
    assert doc.unplanned == {}
    assert doc.scenarios == []
    assert doc.template['groceries'] == TemplateEntry(amount=400.0)


def test_from_dict_ignores_unknown_fields():
    payload = _minimal_payload()
    payload['futureField'] = {'anything': True}
    payload['template']['groceries']['colour'] = 'green'

    doc = BudgetTemplate.from_dict(payload)
    assert doc.template['groceries'].amount == 400.0


@pytest.mark.parametrize('missing', ['name', 'version', 'settings', 'template'])
def test_missing_required_top_level_field(missing: str):
    payload = _minimal_payload()
    del payload[missing]
    with pytest.raises(DecodeError, match=missing):
        BudgetTemplate.from_dict(payload)


def test_wrong_shapes_are_rejected():
    payload = _minimal_payload()
    payload['template'] = ['groceries']
    with pytest.raises(DecodeError):
        BudgetTemplate.from_dict(payload)

    payload = _minimal_payload()
    payload['template']['groceries']['amount'] = '400'
    with pytest.raises(DecodeError, match='template.groceries.amount'):
        BudgetTemplate.from_dict(payload)

    payload = _minimal_payload()
    payload['template']['groceries']['amount'] = True
    with pytest.raises(DecodeError):
        BudgetTemplate.from_dict(payload)

    with pytest.raises(DecodeError):
        BudgetTemplate.from_dict(['not', 'an', 'object'])


def test_nested_required_fields_are_checked():
    payload = _minimal_payload()
    payload['scenarios'] = [{'id': 's1', 'name': 'Lean', 'overrides': {}}]
    with pytest.raises(DecodeError, match='createdAt'):
        BudgetTemplate.from_dict(payload)

    payload = _minimal_payload()
    del payload['settings']['currency']
    with pytest.raises(DecodeError, match='settings.currency'):
        BudgetTemplate.from_dict(payload)


def test_to_dict_omits_empty_optionals():
    doc = BudgetTemplate(
        name='family',
        version='1.0.0',
        settings=BudgetSettings(currency='EUR', start_date='2025-01'),
        template={'rent': TemplateEntry(amount=1450)},
    )
    payload = doc.to_dict()

    assert set(payload) == {'name', 'version', 'settings', 'template'}
    assert payload['template'] == {'rent': {'amount': 1450.0}}
    assert payload['settings']['excludedCategories'] == []


def test_to_dict_uses_camel_case_keys():
    entry = TemplateEntry(
        amount=200,
        source_account='acc-1',
        target_account='acc-2',
        line_items=[LineItem(id='li-1', name='ETF', amount=200, description='monthly')],
        note='savings plan',
    )
    assert entry.to_dict() == {
        'amount': 200.0,
        'sourceAccount': 'acc-1',
        'targetAccount': 'acc-2',
        'lineItems': [{'id': 'li-1', 'name': 'ETF', 'amount': 200.0, 'description': 'monthly'}],
        'note': 'savings plan',
    }

    tx = UnplannedTransaction(tx_id=7, name='Dentist', amount=-80.5, booking_date='2025-02-03')
    assert tx.to_dict() == {'txId': 7, 'name': 'Dentist', 'amount': -80.5, 'bookingDate': '2025-02-03'}


def test_scenario_round_trips_through_dict():
    scenario = Scenario(
        id='s1',
        name='Lean',
        created_at='2025-03-01T10:00:00Z',
        overrides={
            'groceries': ScenarioOverride(amount=350),
            'gym': ScenarioOverride(amount=0, line_items=[LineItem(id='x', name='cancel', amount=0)]),
        },
        virtual_items=[VirtualItem(id='v1', name='Side job', amount=300, is_income=True)],
        notes='try for three months',
    )
    payload = scenario.to_dict()

    assert 'description' not in payload
    assert 'lineItems' not in payload['overrides']['groceries']
    assert Scenario.from_dict(payload) == scenario


def test_virtual_item_income_flag_defaults_to_false():
    item = VirtualItem.from_dict({'id': 'v1', 'name': 'Car repair', 'amount': 900})
    assert item.is_income is False


def test_unplanned_tx_id_must_be_integer():
    with pytest.raises(DecodeError, match='txId'):
        UnplannedTransaction.from_dict({'txId': '12', 'name': 'x', 'amount': 1, 'bookingDate': '2025-01-01'})


def test_validate_rejects_duplicate_scenario_ids():
    doc = BudgetTemplate.from_dict(_minimal_payload())
    doc.scenarios = [
        Scenario(id='s1', name='A', created_at='2025-01-01T00:00:00Z'),
        Scenario(id='s1', name='B', created_at='2025-01-02T00:00:00Z'),
    ]
    assert doc.duplicate_scenario_ids() == ['s1']
    with pytest.raises(ValidationError, match='s1'):
        doc.validate()


def test_validate_rejects_non_finite_amounts():
    doc = BudgetTemplate.from_dict(_minimal_payload())
    doc.template['groceries'].amount = math.inf
    with pytest.raises(ValidationError, match='template.groceries'):
        doc.validate()


def test_find_scenario():
    doc = BudgetTemplate.from_dict(_minimal_payload())
    lean = Scenario(id='s1', name='Lean', created_at='2025-01-01T00:00:00Z')
    doc.scenarios.append(lean)
    assert doc.find_scenario('s1') is lean
    assert doc.find_scenario('missing') is None
