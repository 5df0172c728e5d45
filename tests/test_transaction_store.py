"""
Tests for the in-memory transaction store.

Tests cover:
- Statement date parsing (month/day/year only)
- Calendar month arithmetic
- Stable ids and identity matching
- Field updates
- Demo data
"""

from datetime import date

import pytest

from settings import UNCATEGORIZED
from transaction_store import (
    Transaction,
    TransactionStore,
    demo_transactions,
    parse_transaction_date,
    shift_months,
)


@pytest.mark.parametrize('raw, expected', [
    ('3/1/2024', date(2024, 3, 1)),
    ('03/01/2024', date(2024, 3, 1)),
    (' 12/31/2023 ', date(2023, 12, 31)),
])
def test_parse_valid_dates(raw, expected):
    assert parse_transaction_date(raw) == expected


@pytest.mark.parametrize('raw', [
    None,
    '',
    '2024-03-01',
    '3/1',
    '3/1/2024/7',
    'a/b/c',
    '2/30/2024',
    '13/01/2024',
    '3/\u00b2/2024',
    '\u0663/01/2024',
])
def test_parse_invalid_dates_return_none(raw):
    assert parse_transaction_date(raw) is None


def test_shift_months_clamps_to_month_end():
    assert shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    assert shift_months(date(2024, 1, 15), -1) == date(2023, 12, 15)
    assert shift_months(date(2023, 11, 30), 3) == date(2024, 2, 29)


def test_category_defaults_to_uncategorized():
    t = Transaction('3/1/2024', 'Coffee', -4.5, None)
    assert t.category == UNCATEGORIZED
    assert t.is_expense


def test_identity_ignores_category_and_memo():
    a = Transaction('3/1/2024', 'Coffee', -4.5, 'Food', memo='one')
    b = Transaction('3/1/2024', 'Coffee', -4.5, 'Shopping', memo='two')
    assert a.identity_key() == b.identity_key()


def test_store_assigns_stable_ids():
    store = TransactionStore()
    added = store.add_many([
        Transaction('3/1/2024', 'Coffee', -4.5),
        Transaction('3/1/2024', 'Coffee', -4.5),
    ])
    assert [t.id for t in added] == [1, 2]
    assert len(store) == 2
    assert store.get(2).description == 'Coffee'


def test_update_changes_only_target():
    store = TransactionStore()
    first, second = store.add_many([
        Transaction('3/1/2024', 'Coffee', -4.5, 'Food'),
        Transaction('3/1/2024', 'Coffee', -4.5, 'Food'),
    ])

    updated = store.update(second.id, category='Shopping', amount='-5')

    assert updated.category == 'Shopping'
    assert updated.amount == -5.0
    assert store.get(first.id).category == 'Food'


def test_update_rejects_unknown_id_and_fields():
    store = TransactionStore()
    t = store.add(Transaction('3/1/2024', 'Coffee', -4.5))

    assert store.update(99, category='Food') is None
    assert store.update(t.id, transaction_date='1/1/2020') is None
    assert store.get(t.id).transaction_date == '3/1/2024'


def test_find_by_identity():
    store = TransactionStore()
    store.add(Transaction('3/1/2024', 'Coffee', -4.5, 'Food'))
    target = store.add(Transaction('3/2/2024', 'Coffee', -4.5, 'Food'))

    assert store.find_by_identity('3/2/2024', 'Coffee', -4.5).id == target.id
    assert store.find_by_identity('3/3/2024', 'Coffee', -4.5) is None


def test_categories_first_seen_order():
    store = TransactionStore()
    store.add_many([
        Transaction('3/1/2024', 'A', -1, 'Food'),
        Transaction('3/1/2024', 'B', -1, 'Home'),
        Transaction('3/1/2024', 'C', -1, 'Food'),
    ])
    assert store.categories() == ['Food', 'Home']


def test_demo_transactions_are_in_current_month():
    today = date(2024, 2, 10)
    rows = demo_transactions(today)

    assert len(rows) == 12
    assert all(t.date.year == 2024 and t.date.month == 2 for t in rows)
    assert all(t.amount < 0 for t in rows)
