"""Entity-level checks run before a category, transaction or budget is written."""

import re

from errors import ValidationError
from models import Budget, Category, Transaction, TransactionType

CATEGORY_NAME_MAX_LENGTH = 50
MIN_TARGET_YEAR = 1900
MAX_TARGET_YEAR = 2100

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _check_type(value: object) -> None:
    try:
        TransactionType(value)
    except ValueError as exc:
        raise ValidationError("type must be 'income' or 'expense'") from exc


def validate_category(category: Category) -> None:
    name = (category.name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if len(name) > CATEGORY_NAME_MAX_LENGTH:
        raise ValidationError(
            f"name must be {CATEGORY_NAME_MAX_LENGTH} characters or less"
        )
    _check_type(category.type)
    if category.color is not None and not _HEX_COLOR.match(category.color):
        raise ValidationError("color must be a valid hex color code")


def validate_transaction(txn: Transaction) -> None:
    if txn.amount is None or txn.amount <= 0:
        raise ValidationError("amount must be greater than 0")
    if not txn.category_id:
        raise ValidationError("category_id is required")
    if txn.transaction_date is None:
        raise ValidationError("transaction_date is required")
    _check_type(txn.type)


def validate_budget(budget: Budget) -> None:
    if not budget.category_id:
        raise ValidationError("category_id is required")
    if budget.amount is None or budget.amount <= 0:
        raise ValidationError("amount must be greater than 0")
    if not MIN_TARGET_YEAR <= (budget.target_year or 0) <= MAX_TARGET_YEAR:
        raise ValidationError(
            f"target_year must be between {MIN_TARGET_YEAR} and {MAX_TARGET_YEAR}"
        )
    if not 1 <= (budget.target_month or 0) <= 12:
        raise ValidationError("target_month must be between 1 and 12")
