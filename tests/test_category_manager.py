"""
Tests for the category registry and transaction re-categorisation.
"""

from datetime import date

import pytest

from category_manager import CategoryMutator, CategoryRegistry
from settings import FLAGGED_CATEGORY, REVIEW_LATER_CATEGORY, UNCATEGORIZED
from transaction_store import Transaction, TransactionStore


@pytest.fixture
def registry():
    return CategoryRegistry(['Home', 'Bills & Utilities'])


@pytest.fixture
def store():
    s = TransactionStore()
    s.add_many([
        Transaction('3/1/2024', 'Rent', -1000, 'Home'),
        Transaction('3/2/2024', 'Coffee', -4.5, 'Food', memo='latte'),
        Transaction('3/3/2024', 'Coffee', -4.5, 'Food'),
    ])
    return s


@pytest.fixture
def mutator(store, registry):
    return CategoryMutator(store, registry)


class TestCategoryRegistry:

    def test_defaults_present(self, registry):
        available = registry.available
        assert available[:3] == [UNCATEGORIZED, REVIEW_LATER_CATEGORY, FLAGGED_CATEGORY]
        assert 'Home' in available
        assert registry.fixed == ('Home', 'Bills & Utilities')

    def test_register_keeps_first_seen_order(self, registry):
        registry.register(['Food', 'Home', 'Travel', 'Food'])
        assert registry.available[-2:] == ['Food', 'Travel']

    def test_add_flexible_category(self, registry):
        ok, message = registry.add_category('  Travel  ', is_fixed=False, description='Trips')

        assert ok
        assert 'flexible' in message
        assert 'Travel' in registry.available
        assert not registry.is_fixed('Travel')
        assert registry.description('Travel') == 'Trips'

    def test_add_fixed_category(self, registry):
        ok, _ = registry.add_category('Insurance', is_fixed=True)
        assert ok
        assert registry.is_fixed('Insurance')

    @pytest.mark.parametrize('name', ['', '   ', None])
    def test_reject_empty_name(self, registry, name):
        before = registry.available
        ok, message = registry.add_category(name)
        assert not ok
        assert message == 'Please enter a category name'
        assert registry.available == before

    @pytest.mark.parametrize('name', ['Home', 'home', ' HOME ', 'review later'])
    def test_reject_duplicate_case_insensitive(self, registry, name):
        before = registry.available
        ok, message = registry.add_category(name, is_fixed=True)
        assert not ok
        assert message == 'This category already exists'
        assert registry.available == before

    def test_canonical_returns_existing_spelling(self, registry):
        assert registry.canonical(' bills & UTILITIES ') == 'Bills & Utilities'
        assert registry.canonical(' Travel ') == 'Travel'

    def test_registries_do_not_share_fixed_state(self):
        a = CategoryRegistry(['Home'])
        b = CategoryRegistry(['Home'])
        a.add_category('Insurance', is_fixed=True)
        assert not b.is_fixed('Insurance')


class TestCategoryMutator:

    def test_reassign_updates_store(self, mutator, store, registry):
        view = [1, 2, 3]
        assert mutator.reassign_category(view, 1, 'Dining Out')

        assert store.get(2).category == 'Dining Out'
        # same identity, different row: untouched
        assert store.get(3).category == 'Food'
        assert 'Dining Out' in registry.available

    def test_index_is_into_the_view(self, mutator, store):
        view = [3, 1]
        assert mutator.reassign_category(view, 0, 'Snacks')
        assert store.get(3).category == 'Snacks'
        assert store.get(2).category == 'Food'

    @pytest.mark.parametrize('index', [-1, 3, 100])
    def test_out_of_range_is_noop(self, mutator, store, index, caplog):
        before = [t.category for t in store]
        assert not mutator.reassign_category([1, 2, 3], index, 'Food')
        assert [t.category for t in store] == before
        assert 'Invalid transaction index' in caplog.text

    def test_empty_category_rejected(self, mutator, store):
        assert not mutator.reassign_category([1], 0, '  ')
        assert store.get(1).category == 'Home'

    def test_reassign_matches_existing_name_ignoring_case(self, mutator, store, registry):
        assert mutator.reassign_category([2], 0, 'HOME')

        assert store.get(2).category == 'Home'
        assert registry.is_fixed(store.get(2).category)
        assert 'HOME' not in registry.available

    def test_update_matches_existing_name_ignoring_case(self, mutator, store, registry):
        registry.register(['Food'])
        assert mutator.update_transaction([3], 0, category='food')
        assert store.get(3).category == 'Food'

    def test_move_to_review_later(self, mutator, store):
        assert mutator.move_to_review_later([1, 2], 1)
        assert store.get(2).category == REVIEW_LATER_CATEGORY

    def test_flag_moves_and_stamps_memo(self, mutator, store):
        assert mutator.flag_transaction([1, 2, 3], 1, today=date(2024, 3, 20))

        flagged = store.get(2)
        assert flagged.category == FLAGGED_CATEGORY
        assert flagged.memo == 'latte [FLAGGED: 03/20/2024]'
        assert len(store) == 3

    def test_flag_without_memo(self, mutator, store):
        mutator.flag_transaction([3], 0, today=date(2024, 3, 20))
        assert store.get(3).memo == '[FLAGGED: 03/20/2024]'

    def test_update_transaction_fields(self, mutator, store):
        assert mutator.update_transaction([2], 0, description='Espresso', amount='-3.25', memo='', category='')

        t = store.get(2)
        assert t.description == 'Espresso'
        assert t.amount == -3.25
        assert t.memo == ''
        assert t.category == UNCATEGORIZED

    def test_update_transaction_bad_amount(self, mutator, store):
        assert not mutator.update_transaction([2], 0, amount='lots')
        assert store.get(2).amount == -4.5

    def test_update_transaction_unknown_field(self, mutator, store):
        assert not mutator.update_transaction([2], 0, transaction_date='1/1/2020')
        assert store.get(2).transaction_date == '3/2/2024'
