"""
insights_engine.py

Monthly trends and recurring-payment detection.

Features:
- Monthly buckets of expense totals (per category, fixed, flexible)
- Category trends between the two most recent months
- Month-over-month change for the dashboard headline cards
- Recurring payment (subscription / bill) detection

Both analyses run over the full transaction set, independent of the date
filter applied to the category view.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Collection, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from settings import (
    RECURRING_AMOUNT_TOLERANCE,
    RECURRING_LOOKBACK_MONTHS,
    RECURRING_MIN_DESCRIPTION_LENGTH,
    TREND_MONTHS,
    AnalysisSettings,
)
from transaction_store import Transaction, shift_months

logger = logging.getLogger(__name__)

_NUMERIC_ONLY = re.compile(r"^[\d\s.,\-/#]+$")


def transactions_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """DataFrame view of transactions with a parsed ``date`` column."""
    columns = ["id", "transaction_date", "date", "description", "amount", "category", "type", "memo"]
    return pd.DataFrame([t.to_record() for t in transactions], columns=columns)


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


@dataclass
class MonthlyBucket:
    key: str
    label: str
    categories: Dict[str, float] = field(default_factory=dict)
    fixed_total: float = 0.0
    flexible_total: float = 0.0
    total: float = 0.0


@dataclass
class CategoryTrend:
    name: str
    current_month: float
    previous_month: float
    change: float
    percent_change: float


@dataclass
class RecurringPayment:
    description: str
    normalized_description: str
    category: str
    occurrences: int
    average_amount: float
    last_date: date
    consistent_amount: bool
    transactions: List[Transaction] = field(default_factory=list)


class TrendAnalyzer:
    """Buckets expenses by calendar month and compares recent months."""

    def __init__(self, months: int = TREND_MONTHS):
        # the dashboard always shows at least the trailing six months
        self.months = max(months, TREND_MONTHS)

    def build_monthly_buckets(
        self,
        transactions: Sequence[Transaction],
        fixed_categories: Collection[str],
        today: Optional[date] = None,
    ) -> List[MonthlyBucket]:
        """Monthly buckets, most recent first.

        The trailing ``months`` calendar months (including the current one)
        are always present, even with no spending; months with data outside
        that window are added as found.
        """
        today = today or date.today()
        buckets: Dict[str, MonthlyBucket] = {}

        def bucket_for(d: date) -> MonthlyBucket:
            key = month_key(d)
            if key not in buckets:
                buckets[key] = MonthlyBucket(key=key, label=d.strftime("%b %Y"))
            return buckets[key]

        for i in range(self.months):
            bucket_for(shift_months(today.replace(day=1), -i))

        df = transactions_frame(transactions)
        expenses = df[(df["amount"] < 0) & df["date"].notna()].copy()

        if not expenses.empty:
            expenses["month_start"] = expenses["date"].map(lambda d: d.replace(day=1))
            monthly = expenses.groupby(["month_start", "category"])["amount"].sum().abs()

            for (month_start, category), amount in monthly.items():
                amount = float(amount)
                bucket = bucket_for(month_start)
                bucket.categories[category] = bucket.categories.get(category, 0.0) + amount
                if category in fixed_categories:
                    bucket.fixed_total += amount
                else:
                    bucket.flexible_total += amount
                bucket.total += amount

        return sorted(buckets.values(), key=lambda b: b.key, reverse=True)

    @staticmethod
    def category_trends(buckets: Sequence[MonthlyBucket]) -> List[CategoryTrend]:
        """Compare categories in the two most recent buckets.

        A category with no spending in the previous month reports a
        percent change of exactly 100.
        """
        if len(buckets) < 2:
            return []
        current, previous = buckets[0], buckets[1]

        names = list(dict.fromkeys([*current.categories, *previous.categories]))
        trends = []
        for name in names:
            current_amount = current.categories.get(name, 0.0)
            previous_amount = previous.categories.get(name, 0.0)
            change = current_amount - previous_amount
            percent_change = (change / previous_amount) * 100 if previous_amount else 100.0
            trends.append(CategoryTrend(
                name=name,
                current_month=current_amount,
                previous_month=previous_amount,
                change=change,
                percent_change=percent_change,
            ))

        trends.sort(key=lambda t: abs(t.percent_change), reverse=True)
        return trends


def split_category_trends(
    trends: Sequence[CategoryTrend], limit: int = 5
) -> Tuple[List[CategoryTrend], List[CategoryTrend]]:
    """Biggest increases and biggest decreases, each capped at ``limit``.

    Unchanged categories appear in neither list.
    """
    increases = [t for t in trends if t.percent_change > 0][:limit]
    decreases = [t for t in trends if t.percent_change < 0][:limit]
    return increases, decreases


def bucket_breakdown(bucket: MonthlyBucket) -> List[Dict]:
    total = bucket.total
    rows = [
        {
            "name": name,
            "value": value,
            "share": value / total * 100 if total else 0.0,
        }
        for name, value in bucket.categories.items()
        if value > 0
    ]
    return sorted(rows, key=lambda r: r["value"], reverse=True)


def month_over_month_change(buckets: Sequence[MonthlyBucket], field_name: str = "total") -> Optional[float]:
    """Percent change of ``field_name`` between the two most recent buckets."""
    if len(buckets) < 2:
        return None
    current = getattr(buckets[0], field_name)
    previous = getattr(buckets[1], field_name)
    if not previous:
        return None
    return (current - previous) / previous * 100


class RecurringPaymentDetector:
    """Finds merchants charged repeatedly within a lookback window.

    This is a heuristic: coincidental repeat charges may show up and
    subscriptions whose price moves by more than the tolerance may not.
    """

    def __init__(
        self,
        amount_tolerance: float = RECURRING_AMOUNT_TOLERANCE,
        lookback_months: int = RECURRING_LOOKBACK_MONTHS,
        min_description_length: int = RECURRING_MIN_DESCRIPTION_LENGTH,
    ):
        self.amount_tolerance = amount_tolerance
        self.lookback_months = lookback_months
        self.min_description_length = min_description_length

    def normalize_description(self, description: Optional[str]) -> Optional[str]:
        """Lowercased, trimmed description, or None if it can't identify a merchant."""
        normalized = (description or "").strip().lower()
        if len(normalized) < self.min_description_length:
            return None
        if _NUMERIC_ONLY.match(normalized):
            return None
        return normalized

    def _eligible(self, transactions: Sequence[Transaction], today: date) -> List[Transaction]:
        cutoff = shift_months(today, -self.lookback_months)
        eligible = []
        for t in transactions:
            if not t.is_expense:
                continue
            d = t.date
            if d is None or d < cutoff:
                continue
            if self.normalize_description(t.description) is None:
                continue
            eligible.append(t)
        return eligible

    def is_consistent(self, amounts: np.ndarray) -> bool:
        mean = amounts.mean()
        if mean == 0:
            return False
        return bool(np.all(np.abs(amounts - mean) / mean <= self.amount_tolerance))

    def detect(self, transactions: Sequence[Transaction], today: Optional[date] = None) -> List[RecurringPayment]:
        today = today or date.today()
        eligible = self._eligible(transactions, today)
        if not eligible:
            return []

        frame = pd.DataFrame({
            "position": range(len(eligible)),
            "normalized": [self.normalize_description(t.description) for t in eligible],
            "amount": [abs(t.amount) for t in eligible],
        })

        candidates = []
        for normalized, group in frame.groupby("normalized", sort=False):
            count = len(group)
            if count < 2:
                continue
            amounts = group["amount"].to_numpy(dtype=float)
            consistent = self.is_consistent(amounts)
            if count < 3 and not consistent:
                continue

            members = sorted((eligible[i] for i in group["position"]), key=lambda t: t.date)
            latest = members[-1]
            candidates.append(RecurringPayment(
                description=latest.description.strip(),
                normalized_description=normalized,
                category=latest.category,
                occurrences=count,
                average_amount=round(float(amounts.mean()), 2),
                last_date=latest.date,
                consistent_amount=consistent,
                transactions=members,
            ))

        candidates.sort(key=lambda c: c.average_amount, reverse=True)
        logger.info(f"Detected {len(candidates)} recurring payments from {len(eligible)} eligible expenses")
        return candidates


class InsightsEngine:
    """Bundles the dashboard analyses into one report."""

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or AnalysisSettings()
        self.trend_analyzer = TrendAnalyzer(months=self.settings.trend_months)
        self.recurring_detector = RecurringPaymentDetector(
            amount_tolerance=self.settings.recurring_amount_tolerance,
            lookback_months=self.settings.recurring_lookback_months,
            min_description_length=self.settings.recurring_min_description_length,
        )

    def generate_report(
        self,
        transactions: Sequence[Transaction],
        fixed_categories: Collection[str],
        today: Optional[date] = None,
    ) -> Dict:
        """
        Returns a dictionary containing:
        - monthly_buckets
        - category_trends
        - month_over_month (total / fixed / flexible)
        - recurring_payments
        """
        today = today or date.today()
        buckets = self.trend_analyzer.build_monthly_buckets(transactions, fixed_categories, today)
        return {
            "monthly_buckets": buckets,
            "category_trends": self.trend_analyzer.category_trends(buckets),
            "month_over_month": {
                "total": month_over_month_change(buckets, "total"),
                "fixed": month_over_month_change(buckets, "fixed_total"),
                "flexible": month_over_month_change(buckets, "flexible_total"),
            },
            "recurring_payments": self.recurring_detector.detect(transactions, today),
        }
