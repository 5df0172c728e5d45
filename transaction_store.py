"""
In-memory data layer for the spending tracker.

Every imported statement line becomes a ``Transaction`` with a stable integer
id assigned by ``TransactionStore``. The store is the only copy of the data;
date-filtered views hold ids and read through the store, so a category
change is visible everywhere at once.

Notes
 - Nothing here persists; the store lives for one session.
 - Do not log PII. Descriptions and amounts only go to DEBUG.
"""

from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from settings import UNCATEGORIZED

logger = logging.getLogger(__name__)


EDITABLE_FIELDS = ("description", "amount", "category", "memo")

_DIGITS = re.compile(r"[0-9]+")


def parse_transaction_date(date_str: Optional[str]) -> Optional[date]:
    """Parse a ``month/day/year`` statement date.

    Returns None unless the string has exactly three numeric ``/``-separated
    fields that form a real calendar date.
    """
    if not date_str:
        return None
    parts = str(date_str).strip().split("/")
    if len(parts) != 3:
        return None
    # ascii only: str.isdigit() accepts superscripts that int() rejects
    if not all(_DIGITS.fullmatch(p.strip()) for p in parts):
        return None
    try:
        month, day, year = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def format_transaction_date(value: date) -> str:
    return f"{value.month}/{value.day:02d}/{value.year}"


def shift_months(value: date, months: int) -> date:
    """Move ``value`` by whole calendar months, clamping the day to month end."""
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass
class Transaction:
    """One bank-statement line item.

    ``transaction_date`` keeps the raw statement string; ``date`` is the parsed
    calendar date or None when the string is malformed.
    """

    transaction_date: str
    description: str
    amount: float
    category: str = UNCATEGORIZED
    type: Optional[str] = None
    memo: Optional[str] = None
    id: Optional[int] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.category:
            self.category = UNCATEGORIZED
        self.description = self.description or ""

    @property
    def date(self) -> Optional[date]:
        return parse_transaction_date(self.transaction_date)

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    def identity_key(self) -> Tuple[str, str, float]:
        # category and memo are mutable; they are not part of identity
        return (self.transaction_date, self.description, self.amount)

    def to_record(self) -> Dict:
        return {
            "id": self.id,
            "transaction_date": self.transaction_date,
            "date": self.date,
            "description": self.description,
            "amount": self.amount,
            "category": self.category,
            "type": self.type,
            "memo": self.memo,
        }


class TransactionStore:
    """Single backing store of transactions keyed by id."""

    def __init__(self) -> None:
        self._rows: Dict[int, Transaction] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._rows.values())

    def add(self, transaction: Transaction) -> Transaction:
        stored = replace(transaction, id=self._next_id)
        self._rows[stored.id] = stored
        self._next_id += 1
        return stored

    def add_many(self, transactions: Iterable[Transaction]) -> List[Transaction]:
        return [self.add(t) for t in transactions]

    def get(self, transaction_id: int) -> Optional[Transaction]:
        return self._rows.get(transaction_id)

    def all(self) -> List[Transaction]:
        return list(self._rows.values())

    def update(self, transaction_id: int, **changes) -> Optional[Transaction]:
        """Apply field changes to a stored transaction.

        Returns the updated transaction, or None if the id is unknown or a
        field is not editable.
        """
        current = self._rows.get(transaction_id)
        if current is None:
            logger.error(f"Transaction id {transaction_id} not found in store")
            return None
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            logger.error(f"Refusing to update non-editable fields: {sorted(unknown)}")
            return None
        if "amount" in changes:
            changes["amount"] = float(changes["amount"])
        updated = replace(current, **changes)
        self._rows[transaction_id] = updated
        return updated

    def find_by_identity(self, transaction_date: str, description: str, amount: float) -> Optional[Transaction]:
        key = (transaction_date, description, amount)
        for row in self._rows.values():
            if row.identity_key() == key:
                return row
        return None

    def categories(self) -> List[str]:
        """Distinct categories in first-seen order."""
        seen: Dict[str, None] = {}
        for row in self._rows.values():
            seen.setdefault(row.category, None)
        return list(seen)


def demo_transactions(today: Optional[date] = None) -> List[Transaction]:
    """Sample statement dated in the current month."""
    today = today or date.today()

    def on(day: int) -> str:
        day = min(day, calendar.monthrange(today.year, today.month)[1])
        return format_transaction_date(date(today.year, today.month, day))

    rows = [
        (1, "ACME Grocery Store", -85.47, "Food & Dining", "Weekly groceries"),
        (2, "Coffee Shop", -4.50, "Food & Dining", "Morning coffee"),
        (3, "Electricity Company", -124.32, "Bills & Utilities", "Monthly electricity bill"),
        (5, "ACME Apartment Homes", -1350.00, "Home", "Monthly rent"),
        (7, "Local Restaurant", -56.92, "Food & Dining", "Dinner with friends"),
        (10, "Online Retailer", -35.97, "Shopping", "Household items"),
        (12, "Gas Station", -42.50, "Auto & Transport", "Fuel"),
        (15, "Internet Provider", -75.00, "Bills & Utilities", "Monthly internet"),
        (18, "Mobile Phone Company", -89.99, "Bills & Utilities", "Monthly phone bill"),
        (20, "Online Streaming", -14.99, "Entertainment", "Monthly subscription"),
        (22, "Pharmacy", -28.45, "Health & Fitness", "Medication"),
        (25, "Unknown Charge", -19.99, UNCATEGORIZED, "Need to review"),
    ]
    return [
        Transaction(
            transaction_date=on(day),
            description=description,
            amount=amount,
            category=category,
            type="Sale",
            memo=memo,
        )
        for day, description, amount, category, memo in rows
    ]
