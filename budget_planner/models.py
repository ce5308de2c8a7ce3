"""Document model for persisted budget templates.

A budget template is layered:

* ``template`` holds the base planned amount per entity key (a category or a
  custom entity), optionally broken down into line items
* each ``Scenario`` overlays replacement amounts/line items for some keys and
  may add virtual income/expense lines that exist only in that scenario

The classes here are plain data. ``to_dict``/``from_dict`` translate to and
from the camelCase JSON shape; ``from_dict`` raises :class:`DecodeError` when
a required field is missing or has the wrong type, ignores unknown fields and
fills documented defaults for optional ones.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import DecodeError, ValidationError

_MISSING = object()


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _field(data: Dict[str, Any], key: str, where: str, default: Any = _MISSING) -> Any:
    value = data.get(key, _MISSING)
    if value is _MISSING or (value is None and default is not _MISSING):
        if default is _MISSING:
            raise DecodeError(f"Missing required field '{where}{key}'")
        return default
    return value


def _str(data: Dict[str, Any], key: str, where: str) -> str:
    value = _field(data, key, where)
    if not isinstance(value, str):
        raise DecodeError(f"Field '{where}{key}' must be a string")
    return value


def _opt_str(data: Dict[str, Any], key: str, where: str) -> Optional[str]:
    value = _field(data, key, where, None)
    if value is not None and not isinstance(value, str):
        raise DecodeError(f"Field '{where}{key}' must be a string")
    return value


def _amount(data: Dict[str, Any], key: str, where: str) -> float:
    value = _field(data, key, where)
    # bool is an int subclass, but true/false is never an amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Field '{where}{key}' must be a number")
    try:
        return float(value)
    except OverflowError:
        raise DecodeError(f"Field '{where}{key}' is too large")


def _str_list(data: Dict[str, Any], key: str, where: str, default: Any = _MISSING) -> List[str]:
    value = _field(data, key, where, default)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DecodeError(f"Field '{where}{key}' must be a list of strings")
    return list(value)


def _object(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"Field '{where}' must be an object")
    return value


def _list(data: Dict[str, Any], key: str, where: str, default: Any = _MISSING) -> List[Any]:
    value = _field(data, key, where, default)
    if not isinstance(value, list):
        raise DecodeError(f"Field '{where}{key}' must be a list")
    return value


def _put_optional(payload: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        payload[key] = value


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class LineItem:
    """Informational sub-breakdown of a template entry."""
    id: str
    name: str
    amount: float
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'id': self.id, 'name': self.name, 'amount': float(self.amount)}
        _put_optional(payload, 'description', self.description)
        return payload

    @classmethod
    def from_dict(cls, data: Any, where: str = '') -> 'LineItem':
        data = _object(data, where.rstrip('.') or 'lineItem')
        return cls(
            id=_str(data, 'id', where),
            name=_str(data, 'name', where),
            amount=_amount(data, 'amount', where),
            description=_opt_str(data, 'description', where),
        )


def _line_items(data: Dict[str, Any], where: str) -> List[LineItem]:
    raw = _list(data, 'lineItems', where, [])
    return [LineItem.from_dict(item, f"{where}lineItems[{i}].") for i, item in enumerate(raw)]


@dataclass
class TemplateEntry:
    """Planned amount for one entity key.

    ``source_account``/``target_account`` are only set for transfer-like
    entries. Line item amounts are not required to add up to ``amount``.
    """
    amount: float
    source_account: Optional[str] = None
    target_account: Optional[str] = None
    line_items: List[LineItem] = field(default_factory=list)
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'amount': float(self.amount)}
        _put_optional(payload, 'sourceAccount', self.source_account)
        _put_optional(payload, 'targetAccount', self.target_account)
        if self.line_items:
            payload['lineItems'] = [item.to_dict() for item in self.line_items]
        _put_optional(payload, 'note', self.note)
        return payload

    @classmethod
    def from_dict(cls, data: Any, where: str = '') -> 'TemplateEntry':
        data = _object(data, where.rstrip('.') or 'entry')
        return cls(
            amount=_amount(data, 'amount', where),
            source_account=_opt_str(data, 'sourceAccount', where),
            target_account=_opt_str(data, 'targetAccount', where),
            line_items=_line_items(data, where),
            note=_opt_str(data, 'note', where),
        )


@dataclass
class BudgetSettings:
    currency: str
    accounts: List[str] = field(default_factory=list)
    income_categories: List[str] = field(default_factory=list)
    excluded_categories: List[str] = field(default_factory=list)
    start_date: str = ''
    custom_entities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currency': self.currency,
            'accounts': list(self.accounts),
            'incomeCategories': list(self.income_categories),
            'excludedCategories': list(self.excluded_categories),
            'startDate': self.start_date,
            'customEntities': list(self.custom_entities),
        }

    @classmethod
    def from_dict(cls, data: Any, where: str = 'settings.') -> 'BudgetSettings':
        data = _object(data, where.rstrip('.'))
        return cls(
            currency=_str(data, 'currency', where),
            accounts=_str_list(data, 'accounts', where),
            income_categories=_str_list(data, 'incomeCategories', where),
            excluded_categories=_str_list(data, 'excludedCategories', where, []),
            start_date=_str(data, 'startDate', where),
            custom_entities=_str_list(data, 'customEntities', where, []),
        )


@dataclass
class UnplannedTransaction:
    """A real transaction that has no planned entry behind it."""
    tx_id: int
    name: str
    amount: float
    booking_date: str
    purpose: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'txId': self.tx_id,
            'name': self.name,
            'amount': float(self.amount),
            'bookingDate': self.booking_date,
        }
        _put_optional(payload, 'purpose', self.purpose)
        return payload

    @classmethod
    def from_dict(cls, data: Any, where: str = '') -> 'UnplannedTransaction':
        data = _object(data, where.rstrip('.') or 'transaction')
        tx_id = _field(data, 'txId', where)
        if isinstance(tx_id, bool) or not isinstance(tx_id, int):
            raise DecodeError(f"Field '{where}txId' must be an integer")
        return cls(
            tx_id=tx_id,
            name=_str(data, 'name', where),
            amount=_amount(data, 'amount', where),
            booking_date=_str(data, 'bookingDate', where),
            purpose=_opt_str(data, 'purpose', where),
        )


@dataclass
class ScenarioOverride:
    """Replacement amount for one entity key inside a scenario.

    An empty ``line_items`` list means the base entry's line items are kept.
    """
    amount: float
    line_items: List[LineItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'amount': float(self.amount)}
        if self.line_items:
            payload['lineItems'] = [item.to_dict() for item in self.line_items]
        return payload

    @classmethod
    def from_dict(cls, data: Any, where: str = '') -> 'ScenarioOverride':
        data = _object(data, where.rstrip('.') or 'override')
        return cls(amount=_amount(data, 'amount', where), line_items=_line_items(data, where))


@dataclass
class VirtualItem:
    """Synthetic income or expense line that only exists inside a scenario."""
    id: str
    name: str
    amount: float
    is_income: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'amount': float(self.amount), 'isIncome': self.is_income}

    @classmethod
    def from_dict(cls, data: Any, where: str = '') -> 'VirtualItem':
        data = _object(data, where.rstrip('.') or 'virtualItem')
        is_income = _field(data, 'isIncome', where, False)
        if not isinstance(is_income, bool):
            raise DecodeError(f"Field '{where}isIncome' must be a boolean")
        return cls(
            id=_str(data, 'id', where),
            name=_str(data, 'name', where),
            amount=_amount(data, 'amount', where),
            is_income=is_income,
        )


@dataclass
class Scenario:
    """A named what-if overlay on top of the base template.

    ``created_at`` is set once when the scenario is created and never touched
    afterwards.
    """
    id: str
    name: str
    created_at: str
    overrides: Dict[str, ScenarioOverride] = field(default_factory=dict)
    virtual_items: List[VirtualItem] = field(default_factory=list)
    description: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'id': self.id, 'name': self.name}
        _put_optional(payload, 'description', self.description)
        _put_optional(payload, 'notes', self.notes)
        payload['createdAt'] = self.created_at
        payload['overrides'] = {key: value.to_dict() for key, value in self.overrides.items()}
        if self.virtual_items:
            payload['virtualItems'] = [item.to_dict() for item in self.virtual_items]
        return payload

    @classmethod
    def from_dict(cls, data: Any, where: str = '') -> 'Scenario':
        data = _object(data, where.rstrip('.') or 'scenario')
        raw_overrides = _object(_field(data, 'overrides', where), f"{where}overrides")
        raw_items = _list(data, 'virtualItems', where, [])
        return cls(
            id=_str(data, 'id', where),
            name=_str(data, 'name', where),
            created_at=_str(data, 'createdAt', where),
            overrides={
                key: ScenarioOverride.from_dict(value, f"{where}overrides.{key}.")
                for key, value in raw_overrides.items()
            },
            virtual_items=[
                VirtualItem.from_dict(item, f"{where}virtualItems[{i}].")
                for i, item in enumerate(raw_items)
            ],
            description=_opt_str(data, 'description', where),
            notes=_opt_str(data, 'notes', where),
        )


@dataclass
class BudgetTemplate:
    """Root document; ``name`` doubles as the storage key."""
    name: str
    version: str
    settings: BudgetSettings
    template: Dict[str, TemplateEntry] = field(default_factory=dict)
    comments: Dict[str, Dict[str, str]] = field(default_factory=dict)
    unplanned: Dict[str, Dict[str, List[UnplannedTransaction]]] = field(default_factory=dict)
    scenarios: List[Scenario] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'name': self.name,
            'version': self.version,
            'settings': self.settings.to_dict(),
            'template': {key: entry.to_dict() for key, entry in self.template.items()},
        }
        if self.comments:
            payload['comments'] = {key: dict(texts) for key, texts in self.comments.items()}
        if self.unplanned:
            payload['unplanned'] = {
                key: {sub: [tx.to_dict() for tx in txs] for sub, txs in buckets.items()}
                for key, buckets in self.unplanned.items()
            }
        if self.scenarios:
            payload['scenarios'] = [scenario.to_dict() for scenario in self.scenarios]
        return payload

    @classmethod
    def from_dict(cls, data: Any) -> 'BudgetTemplate':
        data = _object(data, 'document')
        raw_template = _object(_field(data, 'template', ''), 'template')
        return cls(
            name=_str(data, 'name', ''),
            version=_str(data, 'version', ''),
            settings=BudgetSettings.from_dict(_field(data, 'settings', '')),
            template={
                key: TemplateEntry.from_dict(value, f"template.{key}.")
                for key, value in raw_template.items()
            },
            comments=_comments(_field(data, 'comments', '', {})),
            unplanned=_unplanned(_field(data, 'unplanned', '', {})),
            scenarios=[
                Scenario.from_dict(item, f"scenarios[{i}].")
                for i, item in enumerate(_list(data, 'scenarios', '', []))
            ],
        )

    def find_scenario(self, scenario_id: str) -> Optional[Scenario]:
        for scenario in self.scenarios:
            if scenario.id == scenario_id:
                return scenario
        return None

    def duplicate_scenario_ids(self) -> List[str]:
        counts = Counter(scenario.id for scenario in self.scenarios)
        return sorted(sid for sid, count in counts.items() if count > 1)

    def validate(self) -> None:
        """Check the invariants that must hold before a document is written.

        Raises:
            ValidationError: If scenario ids repeat or an amount is not finite
        """
        duplicates = self.duplicate_scenario_ids()
        if duplicates:
            raise ValidationError(
                f"Budget {self.name!r} has duplicate scenario ids: {', '.join(duplicates)}"
            )
        for key, value in _iter_amounts(self):
            if not math.isfinite(value):
                raise ValidationError(f"Budget {self.name!r} has a non-finite amount at {key}")


def _comments(raw: Any) -> Dict[str, Dict[str, str]]:
    raw = _object(raw, 'comments')
    comments: Dict[str, Dict[str, str]] = {}
    for key, texts in raw.items():
        texts = _object(texts, f"comments.{key}")
        for sub_key, text in texts.items():
            if not isinstance(text, str):
                raise DecodeError(f"Field 'comments.{key}.{sub_key}' must be a string")
        comments[key] = dict(texts)
    return comments


def _unplanned(raw: Any) -> Dict[str, Dict[str, List[UnplannedTransaction]]]:
    raw = _object(raw, 'unplanned')
    unplanned: Dict[str, Dict[str, List[UnplannedTransaction]]] = {}
    for key, buckets in raw.items():
        buckets = _object(buckets, f"unplanned.{key}")
        unplanned[key] = {}
        for sub_key, txs in buckets.items():
            where = f"unplanned.{key}.{sub_key}"
            if not isinstance(txs, list):
                raise DecodeError(f"Field '{where}' must be a list")
            unplanned[key][sub_key] = [
                UnplannedTransaction.from_dict(tx, f"{where}[{i}].") for i, tx in enumerate(txs)
            ]
    return unplanned


def _iter_amounts(doc: BudgetTemplate):
    for key, entry in doc.template.items():
        yield f"template.{key}", entry.amount
        for item in entry.line_items:
            yield f"template.{key}.lineItems.{item.id}", item.amount
    for key, buckets in doc.unplanned.items():
        for sub_key, txs in buckets.items():
            for tx in txs:
                yield f"unplanned.{key}.{sub_key}.{tx.tx_id}", tx.amount
    for scenario in doc.scenarios:
        for key, override in scenario.overrides.items():
            yield f"scenarios.{scenario.id}.overrides.{key}", override.amount
            for item in override.line_items:
                yield f"scenarios.{scenario.id}.overrides.{key}.lineItems.{item.id}", item.amount
        for item in scenario.virtual_items:
            yield f"scenarios.{scenario.id}.virtualItems.{item.id}", item.amount
