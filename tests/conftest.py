"""
Pytest configuration and shared fixtures.

This file contains pytest fixtures that are available to all test files.
"""

import os
import sys
from datetime import date

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from spending_session import SpendingSession  # noqa: E402
from transaction_store import Transaction  # noqa: E402


TODAY = date(2024, 3, 20)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def sample_transactions():
    """A small March/February statement with income, expenses and a bad date."""
    return [
        Transaction('3/01/2024', 'ACME Apartment Homes', -1350.00, 'Home', 'Sale', 'Monthly rent'),
        Transaction('3/02/2024', 'ACME Grocery Store', -85.47, 'Food & Dining', 'Sale', 'Weekly groceries'),
        Transaction('3/03/2024', 'Electricity Company', -124.32, 'Bills & Utilities', 'Sale', None),
        Transaction('3/05/2024', 'Payroll Deposit', 2500.00, 'Income', 'Payment', None),
        Transaction('3/07/2024', 'Online Retailer', -35.97, None, 'Sale', 'Household items'),
        Transaction('2/10/2024', 'Local Restaurant', -56.92, 'Food & Dining', 'Sale', None),
        Transaction('2024-03-04', 'Malformed Date Shop', -10.00, 'Shopping', 'Sale', None),
    ]


@pytest.fixture
def session(today, sample_transactions):
    """Session pinned to a fixed today with the sample statement imported."""
    s = SpendingSession(today=today)
    s.import_transactions(sample_transactions, 'sample.csv')
    return s
