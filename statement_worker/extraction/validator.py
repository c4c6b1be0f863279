"""Filters raw model rows down to well-formed transactions."""

import math
from typing import Any

from statement_worker.extraction.models import DEBIT, TRANSACTION_TYPES, TransactionRow


def build_rows(raw_rows: list[Any]) -> list[TransactionRow]:
    """Build TransactionRows from parsed JSON, silently dropping malformed entries.

    A row is kept only with a non-empty date, a non-empty description and a
    numeric amount. A missing or unknown type falls back to debit.
    """
    rows: list[TransactionRow] = []
    for item in raw_rows:
        row = build_row(item)
        if row is not None:
            rows.append(row)
    return rows


def build_row(raw: Any) -> TransactionRow | None:
    if not isinstance(raw, dict):
        return None
    date = raw.get("date")
    description = raw.get("description")
    amount = raw.get("amount")
    if not _is_non_empty_string(date) or not _is_non_empty_string(description):
        return None
    if not _is_number(amount):
        return None
    return TransactionRow(
        date=date.strip(),
        description=description.strip(),
        amount=float(amount),
        type=_normalize_type(raw.get("type")),
    )


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _normalize_type(value: Any) -> str:
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in TRANSACTION_TYPES:
            return candidate
    return DEBIT
