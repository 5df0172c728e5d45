"""
settings.py

Configuration for the spending tracker.

Thresholds used by the recurring-payment detector and the monthly trend
builder are behavioural contracts; change them only with a stated reason.
Overrides can be supplied through the ``[spending]`` table of
``.streamlit/secrets.toml``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


UNCATEGORIZED = "Uncategorized"
REVIEW_LATER_CATEGORY = "Review Later"
FLAGGED_CATEGORY = "Flagged for Review"
RESERVED_CATEGORIES = (REVIEW_LATER_CATEGORY, FLAGGED_CATEGORY)

DEFAULT_FIXED_CATEGORIES = ("Bills & Utilities", "Home", "Education")

RECURRING_AMOUNT_TOLERANCE = 0.15  # max relative deviation from the group mean
RECURRING_LOOKBACK_MONTHS = 6
RECURRING_MIN_DESCRIPTION_LENGTH = 3
TREND_MONTHS = 6
DEFAULT_FILTER_MONTHS = 1


@dataclass(frozen=True)
class AnalysisSettings:
    fixed_categories: Tuple[str, ...] = field(default=DEFAULT_FIXED_CATEGORIES)
    recurring_amount_tolerance: float = RECURRING_AMOUNT_TOLERANCE
    recurring_lookback_months: int = RECURRING_LOOKBACK_MONTHS
    recurring_min_description_length: int = RECURRING_MIN_DESCRIPTION_LENGTH
    trend_months: int = TREND_MONTHS
    default_filter_months: int = DEFAULT_FILTER_MONTHS


def _coerce(name: str, value: Any) -> Any:
    if name == "fixed_categories":
        if isinstance(value, str):
            value = value.split(",")
        return tuple(str(v).strip() for v in value if str(v).strip())
    if name == "recurring_amount_tolerance":
        result = float(value)
        if not 0 <= result < 1:
            raise ValueError("tolerance must be in [0, 1)")
        return result
    result = int(value)
    if name == "trend_months" and result < TREND_MONTHS:
        raise ValueError(f"must be at least {TREND_MONTHS}")
    if result < 1:
        raise ValueError("must be a positive integer")
    return result


def load_settings(overrides: Optional[Mapping[str, Any]] = None) -> AnalysisSettings:
    """Build settings from defaults plus an optional mapping of overrides.

    Bad values are logged and skipped so a typo in secrets never stops the app.
    """
    settings = AnalysisSettings()
    if not overrides:
        return settings

    known = {f.name for f in fields(AnalysisSettings)}
    changes = {}
    for key, value in overrides.items():
        if key not in known:
            logger.warning(f"Ignoring unknown setting '{key}'")
            continue
        try:
            changes[key] = _coerce(key, value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid value for setting '{key}': {e}")
    return replace(settings, **changes)
