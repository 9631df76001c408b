"""
Income / expense classification of free-text transaction types.

Transaction `type` is written by several clients ("Income", "expense",
"Expense - card", ...). A record counts as income when its type contains
"income" and as expense when it contains "expense", case-insensitively.
Income wins when both match. Anything else is `OTHER`: still listed and
counted, but never added to monetary totals.
"""

from __future__ import annotations

import re
from enum import Enum

_INCOME_RE = re.compile("income", re.IGNORECASE)
_EXPENSE_RE = re.compile("expense", re.IGNORECASE)


class Flow(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    OTHER = "other"


def classify(tx_type: str | None) -> Flow:
    text = tx_type or ""
    if _INCOME_RE.search(text):
        return Flow.INCOME
    if _EXPENSE_RE.search(text):
        return Flow.EXPENSE
    return Flow.OTHER


def is_income(tx_type: str | None) -> bool:
    return classify(tx_type) is Flow.INCOME


def is_expense(tx_type: str | None) -> bool:
    return classify(tx_type) is Flow.EXPENSE


def display_type(tx_type: str | None) -> str:
    """Label shown in transaction tables: Income / Expense / the raw type capitalised."""
    flow = classify(tx_type)
    if flow is Flow.INCOME:
        return "Income"
    if flow is Flow.EXPENSE:
        return "Expense"
    text = tx_type or ""
    return text[:1].upper() + text[1:]
