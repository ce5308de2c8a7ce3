"""Boundary to the external financial-data provider.

The provider (a desktop banking application in practice) hands out
categories, accounts and transactions as read-only records. Its client is
treated as opaque: whatever goes wrong inside it comes back out as a
:class:`ProviderError`, never as a raw exception from the provider's own code.

Transactions are normalised into a pandas DataFrame with the columns in
``TRANSACTION_COLUMNS``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

import pandas as pd

from .errors import ProviderError
from .models import BudgetTemplate, UnplannedTransaction

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = [
    'id',
    'amount',
    'bookingDate',
    'name',
    'purpose',
    'categoryUuid',
    'accountUuid',
]


def guarded_call(operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call into the provider, converting any failure into :class:`ProviderError`.

    Args:
        operation: Short label used in the error message (e.g. ``fetch accounts``)
        func: The provider callable
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.warning("Provider call %r failed: %s", operation, e)
        raise ProviderError(operation, e) from e


def _parse_day(value: str, label: str) -> datetime:
    try:
        return datetime.strptime(value, '%Y-%m-%d')
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {label} date: {value!r}. Use YYYY-MM-DD")


def fetch_categories(fetch: Callable[[], Iterable[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    return [dict(record) for record in guarded_call('fetch categories', fetch)]


def fetch_accounts(fetch: Callable[[], Iterable[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    return [dict(record) for record in guarded_call('fetch accounts', fetch)]


def transactions_frame(records: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Build a transaction DataFrame with the standard columns and dtypes."""
    df = pd.DataFrame([dict(record) for record in records])
    for column in TRANSACTION_COLUMNS:
        if column not in df.columns:
            df[column] = None
    df = df[TRANSACTION_COLUMNS].copy()
    df['amount'] = pd.to_numeric(df['amount'], errors='coerce').fillna(0.0).astype(float)
    df['bookingDate'] = pd.to_datetime(df['bookingDate'], errors='coerce', utc=True, format='ISO8601')
    return df


def fetch_transactions(
    fetch: Callable[[str, str], Iterable[Mapping[str, Any]]],
    start: str,
    end: str,
    accounts: Sequence[str] = (),
) -> pd.DataFrame:
    """Fetch transactions for ``start``..``end`` (inclusive, ``YYYY-MM-DD``).

    Args:
        fetch: Provider callable taking the two date strings
        start: First booking day
        end: Last booking day
        accounts: Account ids to keep; empty keeps every account

    Raises:
        ValueError: If a date is malformed (checked before calling the provider)
        ProviderError: If the provider call fails
    """
    if _parse_day(start, 'from') > _parse_day(end, 'to'):
        raise ValueError(f"Start date {start} is after end date {end}")

    records = guarded_call('fetch transactions', fetch, start, end)
    df = transactions_frame(records)
    if accounts:
        df = df[df['accountUuid'].isin(list(accounts))].reset_index(drop=True)
    logger.debug("Fetched %d transactions for %s..%s", len(df), start, end)
    return df


def unplanned_candidates(
    document: BudgetTemplate,
    transactions: pd.DataFrame,
) -> Dict[str, Dict[str, List[UnplannedTransaction]]]:
    """Group transactions that have no planned entry by category and month.

    Transactions in categories that already have a template entry, or that are
    excluded in the settings, are skipped.

    Returns:
        ``{category: {"YYYY-MM": [UnplannedTransaction, ...]}}`` in booking order
    """
    if transactions.empty:
        return {}

    planned = set(document.template) | set(document.settings.excluded_categories)
    df = transactions[~transactions['categoryUuid'].isin(planned)]
    df = df[df['categoryUuid'].notna() & df['bookingDate'].notna() & df['id'].notna()].copy()
    if df.empty:
        return {}

    df['month'] = df['bookingDate'].dt.strftime('%Y-%m')
    df = df.sort_values(['bookingDate', 'id'], kind='stable')

    result: Dict[str, Dict[str, List[UnplannedTransaction]]] = {}
    for (category, month), group in df.groupby(['categoryUuid', 'month'], sort=True):
        result.setdefault(category, {})[month] = [
            UnplannedTransaction(
                tx_id=int(row['id']),
                name=row['name'] if isinstance(row['name'], str) else '',
                amount=float(row['amount']),
                booking_date=row['bookingDate'].strftime('%Y-%m-%d'),
                purpose=row['purpose'] if isinstance(row['purpose'], str) and row['purpose'] else None,
            )
            for _, row in group.iterrows()
        ]
    return result
