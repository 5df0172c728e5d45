"""
category_manager.py

Category bookkeeping and transaction re-categorisation.

``CategoryRegistry`` owns the list of categories offered to the user and the
set marked as fixed spending. ``CategoryMutator`` changes transactions that
are addressed by their position in the current date-filtered view.

Flagging moves a transaction into "Flagged for Review" (its memo is stamped
with the flag date); it never duplicates the row, so spending is not counted
twice.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from settings import (
    FLAGGED_CATEGORY,
    RESERVED_CATEGORIES,
    REVIEW_LATER_CATEGORY,
    UNCATEGORIZED,
)
from transaction_store import Transaction, TransactionStore

logger = logging.getLogger(__name__)


class CategoryRegistry:
    """Available categories plus the fixed/flexible classification."""

    def __init__(self, fixed_categories: Iterable[str] = ()):
        self._fixed: List[str] = []
        self._available: List[str] = []
        self._descriptions: Dict[str, str] = {}
        for name in fixed_categories:
            if name not in self._fixed:
                self._fixed.append(name)
        self.register([UNCATEGORIZED, *RESERVED_CATEGORIES, *self._fixed])

    @property
    def available(self) -> List[str]:
        return list(self._available)

    @property
    def fixed(self) -> Tuple[str, ...]:
        return tuple(self._fixed)

    def is_fixed(self, name: str) -> bool:
        return name in self._fixed

    def contains(self, name: str) -> bool:
        """Case-insensitive membership check."""
        wanted = name.strip().casefold()
        return any(existing.casefold() == wanted for existing in self._available)

    def canonical(self, name: str) -> str:
        """Existing spelling of ``name`` if a category matches it ignoring case."""
        wanted = name.strip().casefold()
        for existing in self._available:
            if existing.casefold() == wanted:
                return existing
        return name.strip()

    def description(self, name: str) -> Optional[str]:
        return self._descriptions.get(name)

    def register(self, names: Iterable[str]) -> None:
        """Add categories seen in imported data, keeping first-seen order."""
        for name in names:
            if name and name not in self._available:
                self._available.append(name)

    def add_category(self, name: str, is_fixed: bool = False, description: Optional[str] = None) -> Tuple[bool, str]:
        """Add a user-defined category.

        Returns ``(ok, message)``; the message is meant for the user.
        """
        name = (name or "").strip()
        if not name:
            logger.warning("Rejected empty category name")
            return False, "Please enter a category name"
        if self.contains(name):
            logger.warning(f"Rejected duplicate category '{name}'")
            return False, "This category already exists"

        self._available.append(name)
        if is_fixed:
            self._fixed.append(name)
        if description:
            self._descriptions[name] = description.strip()

        kind = "fixed" if is_fixed else "flexible"
        logger.info(f"Added {kind} category '{name}'")
        return True, f"Added new {kind} category: {name}"


class CategoryMutator:
    """Edits transactions addressed by index into a filtered view of ids."""

    def __init__(self, store: TransactionStore, registry: CategoryRegistry):
        self.store = store
        self.registry = registry

    def _resolve(self, view: Sequence[int], index: int) -> Optional[Transaction]:
        if index < 0 or index >= len(view):
            logger.error(f"Invalid transaction index: {index} (view has {len(view)} rows)")
            return None
        transaction = self.store.get(view[index])
        if transaction is None:
            logger.error(f"Transaction id {view[index]} at index {index} is missing from the store")
        return transaction

    def reassign_category(self, view: Sequence[int], index: int, new_category: str) -> bool:
        transaction = self._resolve(view, index)
        if transaction is None:
            return False
        new_category = self.registry.canonical(new_category or "")
        if not new_category:
            logger.error("Refusing to assign an empty category")
            return False

        self.store.update(transaction.id, category=new_category)
        self.registry.register([new_category])
        logger.info(f"Moved transaction {transaction.id} from '{transaction.category}' to '{new_category}'")
        return True

    def move_to_review_later(self, view: Sequence[int], index: int) -> bool:
        return self.reassign_category(view, index, REVIEW_LATER_CATEGORY)

    def flag_transaction(self, view: Sequence[int], index: int, today: Optional[date] = None) -> bool:
        transaction = self._resolve(view, index)
        if transaction is None:
            return False
        today = today or date.today()
        stamp = f"[FLAGGED: {today.strftime('%m/%d/%Y')}]"
        memo = f"{transaction.memo or ''} {stamp}".strip()
        self.store.update(transaction.id, category=FLAGGED_CATEGORY, memo=memo)
        logger.info(f"Flagged transaction {transaction.id} for review")
        return True

    def update_transaction(self, view: Sequence[int], index: int, **fields) -> bool:
        """Edit description, amount, memo and/or category in one step."""
        transaction = self._resolve(view, index)
        if transaction is None:
            return False
        if "category" in fields:
            fields["category"] = self.registry.canonical(fields["category"] or "") or UNCATEGORIZED
        try:
            updated = self.store.update(transaction.id, **fields)
        except (TypeError, ValueError) as e:
            logger.error(f"Could not update transaction {transaction.id}: {e}")
            return False
        if updated is None:
            return False
        self.registry.register([updated.category])
        return True
