"""
spending_session.py

Per-session state for the spending tracker.

A ``SpendingSession`` owns the transaction store, the category registry and
the current date range. Every import, filter change or edit recomputes the
filtered view and its category analysis before returning, so callers never
see stale totals.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import IO, Dict, List, Optional, Sequence, Tuple, Union

from category_manager import CategoryMutator, CategoryRegistry
from insights_engine import CategoryTrend, InsightsEngine, MonthlyBucket, RecurringPayment
from settings import AnalysisSettings
from spending_analysis import (
    CategoryAnalysis,
    analyze_categories,
    default_date_range,
    filter_by_date,
)
from statement_parser import load_transactions_csv
from transaction_store import Transaction, TransactionStore, demo_transactions

logger = logging.getLogger(__name__)


class SpendingSession:

    def __init__(self, settings: Optional[AnalysisSettings] = None, today: Optional[date] = None):
        self.settings = settings or AnalysisSettings()
        self._today = today
        self.store = TransactionStore()
        self.registry = CategoryRegistry(self.settings.fixed_categories)
        self.mutator = CategoryMutator(self.store, self.registry)
        self.insights = InsightsEngine(self.settings)
        self.start_date: Optional[date] = None
        self.end_date: Optional[date] = None
        self.file_names: List[str] = []
        self._view: List[int] = []
        self.analysis = CategoryAnalysis()

    @property
    def today(self) -> date:
        return self._today or date.today()

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_transactions(self, transactions: Sequence[Transaction], source_name: str = "manual") -> int:
        """Append parsed transactions and refresh the view.

        The first import with no date range set selects the last month.
        """
        added = self.store.add_many(transactions)
        self.file_names.append(source_name)
        if self.end_date is None:
            self.start_date, self.end_date = default_date_range(self.today, self.settings.default_filter_months)
        self.registry.register(self.store.categories())
        self.refresh()
        logger.info(f"Imported {len(added)} transactions from {source_name}")
        return len(added)

    def import_csv(self, source: Union[str, IO, bytes], source_name: Optional[str] = None) -> int:
        name = source_name or (source if isinstance(source, str) else "upload.csv")
        return self.import_transactions(load_transactions_csv(source, name), name)

    def load_demo_data(self) -> int:
        return self.import_transactions(demo_transactions(self.today), "demo-data.csv")

    # ------------------------------------------------------------------
    # Filtering and analysis
    # ------------------------------------------------------------------

    def set_date_range(self, start: Optional[date], end: Optional[date]) -> None:
        self.start_date, self.end_date = start, end
        self.refresh()

    def refresh(self) -> None:
        filtered = filter_by_date(self.store.all(), self.start_date, self.end_date)
        self._view = [t.id for t in filtered]
        self.analysis = analyze_categories(filtered, self.registry.fixed)

    @property
    def transactions(self) -> List[Transaction]:
        return self.store.all()

    @property
    def filtered_transactions(self) -> List[Transaction]:
        return [self.store.get(i) for i in self._view]

    def category_transactions(self, category: str) -> List[Tuple[int, Transaction]]:
        """``(view index, transaction)`` pairs for one category's drill-down."""
        return [
            (index, t)
            for index, t in enumerate(self.filtered_transactions)
            if t.category == category
        ]

    # ------------------------------------------------------------------
    # Mutations (addressed by index into the filtered view)
    # ------------------------------------------------------------------

    def _after(self, changed: bool) -> bool:
        if changed:
            self.refresh()
        return changed

    def reassign_category(self, index: int, new_category: str) -> bool:
        return self._after(self.mutator.reassign_category(self._view, index, new_category))

    def move_to_review_later(self, index: int) -> bool:
        return self._after(self.mutator.move_to_review_later(self._view, index))

    def flag_transaction(self, index: int) -> bool:
        return self._after(self.mutator.flag_transaction(self._view, index, self.today))

    def update_transaction(self, index: int, **fields) -> bool:
        return self._after(self.mutator.update_transaction(self._view, index, **fields))

    def add_category(self, name: str, is_fixed: bool = False, description: Optional[str] = None) -> Tuple[bool, str]:
        ok, message = self.registry.add_category(name, is_fixed, description)
        if ok and is_fixed:
            self.refresh()
        return ok, message

    # ------------------------------------------------------------------
    # Dashboard (full transaction set, ignores the date filter)
    # ------------------------------------------------------------------

    def monthly_buckets(self) -> List[MonthlyBucket]:
        return self.insights.trend_analyzer.build_monthly_buckets(self.transactions, self.registry.fixed, self.today)

    def category_trends(self) -> List[CategoryTrend]:
        return self.insights.trend_analyzer.category_trends(self.monthly_buckets())

    def recurring_payments(self) -> List[RecurringPayment]:
        return self.insights.recurring_detector.detect(self.transactions, self.today)

    def dashboard_report(self) -> Dict:
        return self.insights.generate_report(self.transactions, self.registry.fixed, self.today)
