from __future__ import annotations
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, StrictStr


class ExpenseIn(BaseModel):
    """Incoming POST /expenses body.

    Only the shape is checked here; ``amount``, ``category`` and ``date`` are
    left untyped so business-rule failures surface as the specific
    validation errors raised by ``validate_expense`` instead of generic schema
    errors.
    """

    amount: Any = None
    category: Any = None
    description: Optional[StrictStr] = None
    date: Any = None


class NormalizedExpense(BaseModel):
    """Validated and trimmed expense, ready for insertion."""

    model_config = ConfigDict(frozen=True)

    amount: int  # minor units
    category: str
    description: str
    date: date


class ExpenseOut(BaseModel):
    id: str
    amount: int
    category: str
    description: str
    date: date
    created_at: str
    idempotency_key: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CategorySummary(BaseModel):
    category: str
    total_amount: int
    percentage: float
