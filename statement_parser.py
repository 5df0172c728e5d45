"""
statement_parser.py

Reads bank-statement CSV exports into ``Transaction`` records.

Expected header (one fixed layout, names matched case-insensitively):

    Transaction Date, Description, Amount[, Category, Type, Memo]

Dates stay as the raw ``month/day/year`` strings; rows whose date cannot be
parsed are kept and simply drop out of date-based views later.
"""

from __future__ import annotations

import io
import logging
import re
from typing import IO, List, Optional, Union

import pandas as pd

from transaction_store import Transaction

logger = logging.getLogger(__name__)


COLUMN_MAPPING = {
    "transaction date": "transaction_date",
    "description": "description",
    "amount": "amount",
    "category": "category",
    "type": "type",
    "memo": "memo",
}
REQUIRED_COLUMNS = ("transaction_date", "description", "amount")


class StatementParseError(ValueError):
    """Raised when a statement file cannot be turned into transactions."""


def parse_amount(value) -> float:
    """Parse an amount cell such as ``-12.50``, ``$1,234.00`` or ``(45.10)``.

    Anything unparseable becomes 0.0, which analysis treats as non-expense.
    """
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    text = re.sub(r"[$,\s]", "", text)
    try:
        result = float(text)
    except ValueError:
        return 0.0
    return -result if negative else result


def _clean_text(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _read_frame(source: Union[str, IO]) -> pd.DataFrame:
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        try:
            return pd.read_csv(source, dtype=str, skip_blank_lines=True, encoding="utf-8")
        except UnicodeDecodeError:
            if hasattr(source, "seek"):
                source.seek(0)  # Reset file pointer
            return pd.read_csv(source, dtype=str, skip_blank_lines=True, encoding="latin-1")
    except pd.errors.EmptyDataError as e:
        raise StatementParseError("The file is empty") from e
    except (pd.errors.ParserError, OSError) as e:
        raise StatementParseError(f"Could not read CSV: {e}") from e


def load_transactions_csv(source: Union[str, IO, bytes], source_name: Optional[str] = None) -> List[Transaction]:
    """Parse a statement CSV from a path, bytes or file-like object."""
    name = source_name or (source if isinstance(source, str) else "upload")
    df = _read_frame(source)

    renamed = {}
    for col in df.columns:
        key = str(col).strip().lstrip("\ufeff").strip('"').lower()
        if key in COLUMN_MAPPING:
            renamed[col] = COLUMN_MAPPING[key]
    df = df.rename(columns=renamed)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise StatementParseError(
            f"Missing required columns: {', '.join(missing)}. "
            f"Available columns: {list(df.columns)}"
        )

    transactions = []
    skipped = 0
    for _, row in df.iterrows():
        date_str = _clean_text(row["transaction_date"])
        description = _clean_text(row["description"])
        if date_str is None and description is None:
            skipped += 1
            continue
        transactions.append(
            Transaction(
                transaction_date=date_str or "",
                description=description or "",
                amount=parse_amount(row["amount"]),
                category=_clean_text(row.get("category")),
                type=_clean_text(row.get("type")),
                memo=_clean_text(row.get("memo")),
            )
        )

    if skipped:
        logger.warning(f"Skipped {skipped} empty rows in {name}")
    logger.info(f"Successfully parsed CSV {name}: {len(transactions)} transactions")
    return transactions
