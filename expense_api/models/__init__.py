"""Pydantic models for the expense API."""

from .constants import (
    MAX_DESCRIPTION_LENGTH,
    SORT_DATE_DESC,
    IDEMPOTENCY_KEY_HEADER,
)  # re-export
from .expense import ExpenseIn, NormalizedExpense, ExpenseOut, CategorySummary

__all__ = [
    "MAX_DESCRIPTION_LENGTH",
    "SORT_DATE_DESC",
    "IDEMPOTENCY_KEY_HEADER",
    "ExpenseIn",
    "NormalizedExpense",
    "ExpenseOut",
    "CategorySummary",
]
