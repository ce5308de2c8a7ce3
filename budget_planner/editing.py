"""In-place editing helpers for a budget document.

These mirror what a budget editor does between saves: set planned amounts,
manage line items, notes, comments and unplanned transactions. Nothing here
touches the filesystem; persist the result with ``BudgetStorage.save``.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Dict, List, Optional

from .config import DEFAULT_CURRENCY, DOCUMENT_VERSION
from .models import BudgetSettings, BudgetTemplate, LineItem, TemplateEntry, UnplannedTransaction


def create_empty_budget(name: str, today: Optional[date] = None) -> BudgetTemplate:
    """Return a fresh budget that starts in the current month."""
    start = (today or date.today()).strftime('%Y-%m')
    return BudgetTemplate(
        name=name,
        version=DOCUMENT_VERSION,
        settings=BudgetSettings(currency=DEFAULT_CURRENCY, start_date=start),
    )


def _entry(document: BudgetTemplate, entity_key: str) -> TemplateEntry:
    entry = document.template.get(entity_key)
    if entry is None:
        entry = document.template[entity_key] = TemplateEntry(amount=0.0)
    return entry


# ---------------------------------------------------------------------------
# Template entries
# ---------------------------------------------------------------------------


def set_template_amount(document: BudgetTemplate, entity_key: str, amount: float) -> TemplateEntry:
    entry = _entry(document, entity_key)
    entry.amount = float(amount)
    return entry


def remove_template_entry(document: BudgetTemplate, entity_key: str) -> None:
    document.template.pop(entity_key, None)


def set_note(document: BudgetTemplate, entity_key: str, note: str) -> None:
    """Attach a note to an entry; blank text removes it."""
    trimmed = (note or '').strip()
    if trimmed:
        _entry(document, entity_key).note = trimmed
    elif entity_key in document.template:
        document.template[entity_key].note = None


def set_source_account(document: BudgetTemplate, entity_key: str, account_id: Optional[str]) -> None:
    _entry(document, entity_key).source_account = account_id or None


def set_target_account(document: BudgetTemplate, entity_key: str, account_id: Optional[str]) -> None:
    _entry(document, entity_key).target_account = account_id or None


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


def _recompute_line_item_sum(entry: TemplateEntry) -> None:
    # Editor convenience only; stored documents may disagree.
    if entry.line_items:
        entry.amount = float(sum(item.amount for item in entry.line_items))


def add_line_item(document: BudgetTemplate, entity_key: str, name: str = '') -> LineItem:
    """Append a line item to an entry and return it.

    The first line item takes over the entry's current amount so the total
    stays the same; later ones start at zero.
    """
    entry = _entry(document, entity_key)
    seed = entry.amount if not entry.line_items else 0.0
    item = LineItem(id=str(uuid.uuid4()), name=name, amount=float(seed))
    entry.line_items.append(item)
    _recompute_line_item_sum(entry)
    return item


def update_line_item(
    document: BudgetTemplate,
    entity_key: str,
    item_id: str,
    name: Optional[str] = None,
    amount: Optional[float] = None,
    description: Optional[str] = None,
) -> Optional[LineItem]:
    entry = document.template.get(entity_key)
    if entry is None:
        return None
    item = next((li for li in entry.line_items if li.id == item_id), None)
    if item is None:
        return None

    if name is not None:
        item.name = name
    if amount is not None:
        item.amount = float(amount)
    if description is not None:
        item.description = description or None

    _recompute_line_item_sum(entry)
    return item


def remove_line_item(document: BudgetTemplate, entity_key: str, item_id: str) -> None:
    entry = document.template.get(entity_key)
    if entry is None:
        return
    entry.line_items = [li for li in entry.line_items if li.id != item_id]
    _recompute_line_item_sum(entry)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def add_custom_entity(document: BudgetTemplate, name: str) -> bool:
    """Add a custom entity; returns False for blank names or duplicates."""
    trimmed = name.strip()
    if not trimmed or trimmed in document.settings.custom_entities:
        return False
    document.settings.custom_entities.append(trimmed)
    return True


def remove_custom_entity(document: BudgetTemplate, name: str) -> None:
    document.settings.custom_entities = [e for e in document.settings.custom_entities if e != name]


def toggle_excluded_category(document: BudgetTemplate, category_id: str) -> bool:
    """Flip whether a category is excluded; returns the new excluded state."""
    excluded = document.settings.excluded_categories
    if category_id in excluded:
        document.settings.excluded_categories = [c for c in excluded if c != category_id]
        return False
    excluded.append(category_id)
    return True


_SETTINGS_FIELDS = {
    'currency', 'accounts', 'income_categories', 'excluded_categories', 'start_date', 'custom_entities',
}


def update_settings(document: BudgetTemplate, **changes) -> BudgetSettings:
    unknown = set(changes) - _SETTINGS_FIELDS
    if unknown:
        raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
    for key, value in changes.items():
        setattr(document.settings, key, list(value) if isinstance(value, (list, tuple)) else value)
    return document.settings


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def set_comment(document: BudgetTemplate, entity_key: str, sub_key: str, text: str) -> None:
    """Store free text under ``entity_key``/``sub_key``; blank text removes it."""
    trimmed = (text or '').strip()
    if trimmed:
        document.comments.setdefault(entity_key, {})[sub_key] = trimmed
        return
    texts = document.comments.get(entity_key)
    if texts is None:
        return
    texts.pop(sub_key, None)
    if not texts:
        del document.comments[entity_key]


def get_comment(document: BudgetTemplate, entity_key: str, sub_key: str) -> str:
    return document.comments.get(entity_key, {}).get(sub_key, '')


def comments_for(document: BudgetTemplate, entity_key: str) -> Dict[str, str]:
    return dict(document.comments.get(entity_key, {}))


# ---------------------------------------------------------------------------
# Unplanned transactions
# ---------------------------------------------------------------------------


def add_unplanned(
    document: BudgetTemplate,
    entity_key: str,
    sub_key: str,
    transaction: UnplannedTransaction,
) -> None:
    """Record a transaction under an entity; re-adding the same tx id is a no-op."""
    bucket: List[UnplannedTransaction] = document.unplanned.setdefault(entity_key, {}).setdefault(sub_key, [])
    if any(tx.tx_id == transaction.tx_id for tx in bucket):
        return
    bucket.append(transaction)


def remove_unplanned(document: BudgetTemplate, entity_key: str, sub_key: str, tx_id: int) -> None:
    buckets = document.unplanned.get(entity_key)
    if buckets is None or sub_key not in buckets:
        return
    remaining = [tx for tx in buckets[sub_key] if tx.tx_id != tx_id]
    if remaining:
        buckets[sub_key] = remaining
    else:
        del buckets[sub_key]
    if not buckets:
        del document.unplanned[entity_key]
