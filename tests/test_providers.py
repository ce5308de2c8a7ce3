import pandas as pd
import pytest

from budget_planner.editing import create_empty_budget, set_template_amount
from budget_planner.errors import ProviderError, StorageIOError
from budget_planner.providers import (
    TRANSACTION_COLUMNS,
    fetch_accounts,
    fetch_categories,
    fetch_transactions,
    guarded_call,
    transactions_frame,
    unplanned_candidates,
)


def _records():
    return [
        {'id': 1, 'amount': -54.2, 'bookingDate': '2025-01-04', 'name': 'Supermarket',
         'purpose': None, 'categoryUuid': 'groceries', 'accountUuid': 'acc-1', 'booked': True},
        {'id': 2, 'amount': -80.0, 'bookingDate': '2025-01-15', 'name': 'Dentist',
         'purpose': 'Checkup', 'categoryUuid': 'health', 'accountUuid': 'acc-1', 'booked': True},
        {'id': 3, 'amount': -12.5, 'bookingDate': '2025-02-02', 'name': 'Pharmacy',
         'purpose': '', 'categoryUuid': 'health', 'accountUuid': 'acc-2', 'booked': True},
        {'id': 4, 'amount': -500.0, 'bookingDate': '2025-01-20', 'name': 'Transfer',
         'purpose': None, 'categoryUuid': 'internal', 'accountUuid': 'acc-1', 'booked': True},
    ]


def test_guarded_call_converts_any_failure():
    def explode():
        raise RuntimeError('native crash')

    with pytest.raises(ProviderError) as excinfo:
        guarded_call('fetch accounts', explode)
    assert isinstance(excinfo.value, StorageIOError)
    assert isinstance(excinfo.value.cause, RuntimeError)
    assert 'fetch accounts' in str(excinfo.value)


def test_fetch_accounts_and_categories():
    accounts = fetch_accounts(lambda: [{'uuid': 'acc-1', 'name': 'Checking'}])
    categories = fetch_categories(lambda: ({'uuid': 'c', 'name': 'Food'},))
    assert accounts == [{'uuid': 'acc-1', 'name': 'Checking'}]
    assert categories == [{'uuid': 'c', 'name': 'Food'}]


def test_transactions_frame_normalises_columns():
    df = transactions_frame([{'id': 9, 'amount': '12.5', 'bookingDate': '2025-03-01'}])
    assert list(df.columns) == TRANSACTION_COLUMNS
    assert df.loc[0, 'amount'] == 12.5
    assert df.loc[0, 'bookingDate'] == pd.Timestamp('2025-03-01', tz='UTC')

    empty = transactions_frame([])
    assert empty.empty
    assert list(empty.columns) == TRANSACTION_COLUMNS


def test_fetch_transactions_filters_accounts():
    calls = []

    def fetch(start, end):
        calls.append((start, end))
        return _records()

    df = fetch_transactions(fetch, '2025-01-01', '2025-02-28', accounts=['acc-1'])
    assert calls == [('2025-01-01', '2025-02-28')]
    assert sorted(df['id']) == [1, 2, 4]

    everything = fetch_transactions(fetch, '2025-01-01', '2025-02-28')
    assert len(everything) == 4


def test_fetch_transactions_validates_dates_before_calling():
    def fetch(start, end):
        raise AssertionError('provider must not be called')

    with pytest.raises(ValueError, match='from'):
        fetch_transactions(fetch, '2025/01/01', '2025-02-28')
    with pytest.raises(ValueError):
        fetch_transactions(fetch, '2025-03-01', '2025-02-28')


def test_fetch_transactions_wraps_provider_failure():
    def fetch(start, end):
        raise KeyError('accounts')

    with pytest.raises(ProviderError):
        fetch_transactions(fetch, '2025-01-01', '2025-01-31')


def test_unplanned_candidates_groups_by_category_and_month():
    doc = create_empty_budget('family')
    set_template_amount(doc, 'groceries', 400)
    doc.settings.excluded_categories = ['internal']

    result = unplanned_candidates(doc, transactions_frame(_records()))

    assert list(result) == ['health']
    assert sorted(result['health']) == ['2025-01', '2025-02']
    january = result['health']['2025-01']
    assert [(tx.tx_id, tx.name, tx.amount, tx.booking_date, tx.purpose) for tx in january] == [
        (2, 'Dentist', -80.0, '2025-01-15', 'Checkup'),
    ]
    assert result['health']['2025-02'][0].purpose is None


def test_unplanned_candidates_empty_frame():
    doc = create_empty_budget('family')
    assert unplanned_candidates(doc, transactions_frame([])) == {}


def test_unplanned_candidates_tolerates_missing_id_and_name():
    doc = create_empty_budget('family')
    records = [
        {'amount': -20.0, 'bookingDate': '2025-01-05', 'name': 'No id',
         'categoryUuid': 'health', 'accountUuid': 'acc-1'},
        {'id': 9, 'amount': -35.0, 'bookingDate': '2025-01-06',
         'categoryUuid': 'health', 'accountUuid': 'acc-1'},
    ]

    result = unplanned_candidates(doc, transactions_frame(records))

    january = result['health']['2025-01']
    assert [(tx.tx_id, tx.name, tx.amount) for tx in january] == [(9, '', -35.0)]
