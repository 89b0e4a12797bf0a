"""Monthly summary: transactions, categories and budgets of one month joined
into a single report.

The service only reads through the three narrow ports below, so any object
with matching methods (a SQLAlchemy repository, an in-memory fake) will do.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol, Sequence

from models import TransactionType

logger = logging.getLogger(__name__)


class TransactionSource(Protocol):
    def get_by_month(self, year: int, month: int) -> Sequence[Any]: ...


class CategorySource(Protocol):
    def get_all(self) -> Sequence[Any]: ...


class BudgetSource(Protocol):
    def get_by_month(self, year: int, month: int) -> Sequence[Any]: ...


def _type_name(value: Any) -> str:
    return TransactionType(value).value


@dataclass
class CategorySummary:
    category_id: int
    category_name: str = ""
    category_type: str = ""
    total: float = 0.0
    budget: float = 0.0
    percentage: float = 0.0


@dataclass
class MonthlySummary:
    year: int
    month: int
    total_income: float = 0.0
    total_expense: float = 0.0
    balance: float = 0.0
    category_summary: dict[int, CategorySummary] = field(default_factory=dict)

    def _get_or_create(self, category_id: int) -> CategorySummary:
        entry = self.category_summary.get(category_id)
        if entry is None:
            entry = CategorySummary(category_id=category_id)
            self.category_summary[category_id] = entry
        return entry

    def add_transaction(self, txn: Any) -> None:
        amount = float(txn.amount)
        if _type_name(txn.type) == TransactionType.income.value:
            self.total_income += amount
        else:
            self.total_expense += amount
        self.balance = self.total_income - self.total_expense
        self._get_or_create(txn.category_id).total += amount

    def set_category_info(self, category_id: int, name: str, category_type: str) -> None:
        entry = self._get_or_create(category_id)
        entry.category_name = name
        entry.category_type = category_type

    def set_budget(self, category_id: int, amount: float) -> None:
        entry = self._get_or_create(category_id)
        entry.budget = amount
        if amount > 0:
            entry.percentage = entry.total / amount * 100

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SummaryService:
    def __init__(
        self,
        transactions: TransactionSource,
        categories: CategorySource,
        budgets: BudgetSource,
    ) -> None:
        self.transactions = transactions
        self.categories = categories
        self.budgets = budgets

    def monthly_summary(self, year: int, month: int) -> MonthlySummary:
        """Build the summary for ``year``/``month``.

        ``month`` is not range-checked here. Errors from any of the three
        sources propagate unchanged and no partial summary is returned.
        """
        summary = MonthlySummary(year=year, month=month)

        txns = self.transactions.get_by_month(year, month)
        categories_by_id = {c.id: c for c in self.categories.get_all()}

        for txn in txns:
            summary.add_transaction(txn)

        for category_id in list(summary.category_summary):
            category = categories_by_id.get(category_id)
            if category is not None:
                summary.set_category_info(
                    category_id, category.name, _type_name(category.type)
                )

        for budget in self.budgets.get_by_month(year, month):
            summary.set_budget(budget.category_id, float(budget.amount))

        logger.info(
            f"summary_computed: year={year} month={month} "
            f"transactions={len(txns)} categories={len(summary.category_summary)}"
        )
        return summary

    def category_totals(self, year: int, month: int) -> dict[int, float]:
        """Per-category sum of amounts, income and expense added together."""
        totals: dict[int, float] = {}
        for txn in self.transactions.get_by_month(year, month):
            totals[txn.category_id] = totals.get(txn.category_id, 0.0) + float(
                txn.amount
            )
        return totals
