"""Domain-level expense validation.

``validate_expense`` turns a submitted payload into a ``NormalizedExpense`` or
raises one of the ``ExpenseValidationError`` subclasses from
``expense_api.core.errors``. Rules are checked in field order (amount,
category, description, date) and the first failure wins.

The functions here are pure: no I/O, and the only ambient input is the
current calendar day, which callers may pass explicitly as ``today``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from expense_api.core.errors import (
    DescriptionTooLong,
    FutureDate,
    InvalidAmount,
    InvalidDate,
    MissingCategory,
    MissingDate,
)
from expense_api.models.constants import MAX_DESCRIPTION_LENGTH, MAX_MINOR_UNITS
from expense_api.models.expense import ExpenseIn, NormalizedExpense
from expense_api.services.money import to_minor_units


def validate_expense(
    raw: Union[ExpenseIn, Mapping[str, Any]], today: Optional[date] = None
) -> NormalizedExpense:
    """Check ``raw`` against the business rules and normalize it."""
    if isinstance(raw, ExpenseIn):
        raw = raw.model_dump()
    today = today or date.today()
    return NormalizedExpense(
        amount=parse_amount(raw.get("amount")),
        category=parse_category(raw.get("category")),
        description=parse_description(raw.get("description")),
        date=parse_date(raw.get("date"), today=today),
    )


def parse_amount(value: Any) -> int:
    """Return ``value`` (major units) as positive integer minor units."""
    # bool is an int subclass; true/false are not amounts
    if value is None or isinstance(value, bool):
        raise InvalidAmount()
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidAmount()
    elif not isinstance(value, (int, float, Decimal)):
        raise InvalidAmount()
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise InvalidAmount() from None
    if not number.is_finite() or number <= 0:
        raise InvalidAmount()
    try:
        minor = to_minor_units(number)
    except InvalidOperation:
        # Too many digits for the decimal context; far beyond MAX_MINOR_UNITS
        raise InvalidAmount() from None
    if minor <= 0 or minor > MAX_MINOR_UNITS:
        raise InvalidAmount()
    return minor


def parse_category(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MissingCategory()
    return value.strip()


def parse_description(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    # Length is checked before trimming
    if len(value) > MAX_DESCRIPTION_LENGTH:
        raise DescriptionTooLong()
    return value.strip()


def parse_date(value: Any, today: date) -> date:
    """Parse an ISO calendar date and reject days after ``today``.

    A full ISO datetime is accepted too; only its date part is kept.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingDate()
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, str):
        parsed = _parse_iso_date(value.strip())
    else:
        raise InvalidDate()
    if parsed > today:
        raise FutureDate()
    return parsed


def _parse_iso_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        # Python < 3.11 does not accept a trailing "Z"
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidDate() from None
