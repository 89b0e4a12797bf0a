from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models import DEFAULT_CATEGORY_COLOR, TransactionType
from validation import CATEGORY_NAME_MAX_LENGTH, MAX_TARGET_YEAR, MIN_TARGET_YEAR


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=CATEGORY_NAME_MAX_LENGTH)
    type: TransactionType
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: TransactionType
    color: str = DEFAULT_CATEGORY_COLOR
    created_at: datetime
    updated_at: datetime


class TransactionIn(BaseModel):
    type: TransactionType
    amount: float = Field(..., gt=0)
    category_id: int = Field(..., gt=0)
    transaction_date: date
    memo: str = ""


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: TransactionType
    amount: float
    category_id: int
    category: Optional[CategoryOut] = None
    transaction_date: date
    memo: str
    created_at: datetime
    updated_at: datetime


class BudgetIn(BaseModel):
    category_id: int = Field(..., gt=0)
    amount: float = Field(..., gt=0)
    target_year: int = Field(..., ge=MIN_TARGET_YEAR, le=MAX_TARGET_YEAR)
    target_month: int = Field(..., ge=1, le=12)


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    category: Optional[CategoryOut] = None
    amount: float
    target_year: int
    target_month: int
    created_at: datetime
    updated_at: datetime


class CategorySummaryOut(BaseModel):
    category_id: int
    category_name: str
    category_type: str
    total: float
    budget: float
    percentage: float


class MonthlySummaryOut(BaseModel):
    year: int
    month: int
    total_income: float
    total_expense: float
    balance: float
    category_summary: dict[int, CategorySummaryOut]
