"""
spending_analysis.py

Date filtering and category analysis over a list of transactions.

Only expenses (negative amounts) are analysed; their magnitudes are summed
per category and split into fixed vs flexible spending. Results are always
recomputed from scratch for the current view.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Collection, Dict, Iterable, List, Optional, Tuple

from settings import DEFAULT_FILTER_MONTHS
from transaction_store import Transaction, shift_months


@dataclass
class CategoryAnalysis:
    category_totals: Dict[str, float] = field(default_factory=dict)
    fixed_total: float = 0.0
    flexible_total: float = 0.0

    @property
    def total_spending(self) -> float:
        return self.fixed_total + self.flexible_total


def default_date_range(today: Optional[date] = None, months: int = DEFAULT_FILTER_MONTHS) -> Tuple[date, date]:
    """Range used after the first import: one calendar month back to today."""
    today = today or date.today()
    return shift_months(today, -months), today


def filter_by_date(
    transactions: Iterable[Transaction],
    start: Optional[date],
    end: Optional[date],
) -> List[Transaction]:
    """Keep transactions dated within ``[start, end]`` inclusive.

    If either bound is unset nothing is filtered and the input comes back as
    a list. Transactions with unparseable dates are dropped when filtering.
    """
    transactions = list(transactions)
    if start is None or end is None:
        return transactions

    filtered = []
    for t in transactions:
        d = t.date
        if d is not None and start <= d <= end:
            filtered.append(t)
    return filtered


def analyze_categories(
    transactions: Iterable[Transaction],
    fixed_categories: Collection[str],
) -> CategoryAnalysis:
    totals: Dict[str, float] = defaultdict(float)
    fixed_total = 0.0
    flexible_total = 0.0

    for t in transactions:
        # Skip income
        if not t.is_expense:
            continue
        amount = abs(t.amount)
        totals[t.category] += amount
        if t.category in fixed_categories:
            fixed_total += amount
        else:
            flexible_total += amount

    return CategoryAnalysis(
        category_totals=dict(totals),
        fixed_total=fixed_total,
        flexible_total=flexible_total,
    )


def prepare_category_chart_data(analysis: CategoryAnalysis, fixed_categories: Collection[str]) -> List[Dict]:
    """Rows for the category bar chart, largest first."""
    rows = [
        {
            "name": name,
            "value": value,
            "type": "Fixed" if name in fixed_categories else "Flexible",
        }
        for name, value in analysis.category_totals.items()
    ]
    rows.sort(key=lambda r: r["value"], reverse=True)
    return rows


def spending_type_split(analysis: CategoryAnalysis) -> Dict[str, int]:
    total = analysis.total_spending
    if total <= 0:
        return {"fixed": 0, "flexible": 0}
    return {
        "fixed": round(analysis.fixed_total / total * 100),
        "flexible": round(analysis.flexible_total / total * 100),
    }
