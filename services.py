from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from errors import ValidationError
from models import DEFAULT_CATEGORY_COLOR, Budget, Category, Transaction, TransactionType
from periods import date_range
from repositories import BudgetRepository, CategoryRepository, TransactionRepository
from schemas import BudgetIn, CategoryIn, TransactionIn
from summary import SummaryService

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(
        self,
        session: Session,
        categories: Optional[CategoryRepository] = None,
    ) -> None:
        self.session = session
        self.categories = categories or CategoryRepository(session)

    def list_all(self, type: Optional[TransactionType] = None) -> list[Category]:
        if type is not None:
            return self.categories.get_by_type(type)
        return self.categories.get_all()

    def get(self, category_id: int) -> Category:
        return self.categories.get_by_id(category_id)

    def create(self, data: CategoryIn) -> Category:
        if self.categories.exists_by_name_and_type(data.name, data.type):
            raise ValidationError("Category with this name already exists")
        category = Category(
            name=data.name.strip(),
            type=data.type,
            color=data.color or DEFAULT_CATEGORY_COLOR,
        )
        category = self.categories.create(category)
        logger.info(f"category_created: id={category.id} type={category.type.value}")
        return category

    def update(self, category_id: int, data: CategoryIn) -> Category:
        category = self.categories.get_by_id(category_id)
        if self.categories.exists_by_name_and_type(
            data.name, data.type, exclude_id=category_id
        ):
            raise ValidationError("Category with this name already exists")
        if data.type != category.type:
            if self.categories.count_transactions(category_id):
                raise ValidationError(
                    "Category type cannot change while transactions use it"
                )
            if data.type != TransactionType.expense and self.categories.count_budgets(
                category_id
            ):
                raise ValidationError(
                    "Budgets can only be set for expense categories"
                )
        category.name = data.name.strip()
        category.type = data.type
        category.color = data.color or category.color or DEFAULT_CATEGORY_COLOR
        return self.categories.update(category)

    def delete(self, category_id: int) -> None:
        self.categories.get_by_id(category_id)
        in_use = self.categories.count_transactions(category_id)
        if in_use:
            raise ValidationError(
                f"cannot delete category: it is referenced by {in_use} transactions"
            )
        self.categories.delete(category_id)
        logger.info(f"category_deleted: id={category_id}")


class TransactionService:
    def __init__(
        self,
        session: Session,
        transactions: Optional[TransactionRepository] = None,
        categories: Optional[CategoryRepository] = None,
    ) -> None:
        self.session = session
        self.transactions = transactions or TransactionRepository(session)
        self.categories = categories or CategoryRepository(session)

    def _check_category(self, data: TransactionIn) -> Category:
        category = self.categories.get_by_id(data.category_id)
        if category.type != data.type:
            raise ValidationError("transaction type does not match category type")
        return category

    def create(self, data: TransactionIn) -> Transaction:
        self._check_category(data)
        txn = Transaction(
            type=data.type,
            amount=data.amount,
            category_id=data.category_id,
            transaction_date=data.transaction_date,
            memo=data.memo,
        )
        txn = self.transactions.create(txn)
        logger.info(
            f"transaction_created: id={txn.id} type={txn.type.value} "
            f"date={txn.transaction_date.isoformat()}"
        )
        return txn

    def get(self, transaction_id: int) -> Transaction:
        return self.transactions.get_by_id(transaction_id)

    def list_all(self) -> list[Transaction]:
        return self.transactions.get_all()

    def list_by_month(self, year: int, month: int) -> list[Transaction]:
        return self.transactions.get_by_month(year, month)

    def list_by_date_range(self, start: date, end: date) -> list[Transaction]:
        try:
            period = date_range(start, end)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return self.transactions.get_by_period(period)

    def list_by_category(self, category_id: int) -> list[Transaction]:
        self.categories.get_by_id(category_id)
        return self.transactions.get_by_category(category_id)

    def update(self, transaction_id: int, data: TransactionIn) -> Transaction:
        txn = self.transactions.get_by_id(transaction_id)
        self._check_category(data)
        txn.type = data.type
        txn.amount = data.amount
        txn.category_id = data.category_id
        txn.transaction_date = data.transaction_date
        txn.memo = data.memo
        return self.transactions.update(txn)

    def delete(self, transaction_id: int) -> None:
        self.transactions.delete(transaction_id)
        logger.info(f"transaction_deleted: id={transaction_id}")


class BudgetService:
    def __init__(
        self,
        session: Session,
        budgets: Optional[BudgetRepository] = None,
        categories: Optional[CategoryRepository] = None,
    ) -> None:
        self.session = session
        self.budgets = budgets or BudgetRepository(session)
        self.categories = categories or CategoryRepository(session)

    def _check_category(self, category_id: int) -> Category:
        category = self.categories.get_by_id(category_id)
        if category.type != TransactionType.expense:
            raise ValidationError("budget can only be set for expense categories")
        return category

    def _check_unique(self, data: BudgetIn, exclude_id: Optional[int] = None) -> None:
        if self.budgets.exists_by_category_and_month(
            data.category_id,
            data.target_year,
            data.target_month,
            exclude_id=exclude_id,
        ):
            raise ValidationError(
                f"budget for category {data.category_id} in "
                f"{data.target_year}-{data.target_month:02d} already exists"
            )

    def create(self, data: BudgetIn) -> Budget:
        self._check_category(data.category_id)
        self._check_unique(data)
        budget = Budget(
            category_id=data.category_id,
            amount=data.amount,
            target_year=data.target_year,
            target_month=data.target_month,
        )
        budget = self.budgets.create(budget)
        logger.info(
            f"budget_created: id={budget.id} category_id={budget.category_id} "
            f"month={budget.target_year}-{budget.target_month:02d}"
        )
        return budget

    def get(self, budget_id: int) -> Budget:
        return self.budgets.get_by_id(budget_id)

    def list_all(self) -> list[Budget]:
        return self.budgets.get_all()

    def list_by_month(self, year: int, month: int) -> list[Budget]:
        return self.budgets.get_by_month(year, month)

    def get_for_category_and_month(
        self, category_id: int, year: int, month: int
    ) -> Budget:
        return self.budgets.get_by_category_and_month(category_id, year, month)

    def update(self, budget_id: int, data: BudgetIn) -> Budget:
        budget = self.budgets.get_by_id(budget_id)
        self._check_category(data.category_id)
        self._check_unique(data, exclude_id=budget_id)
        budget.category_id = data.category_id
        budget.amount = data.amount
        budget.target_year = data.target_year
        budget.target_month = data.target_month
        return self.budgets.update(budget)

    def delete(self, budget_id: int) -> None:
        self.budgets.delete(budget_id)
        logger.info(f"budget_deleted: id={budget_id}")


def build_summary_service(session: Session) -> SummaryService:
    return SummaryService(
        transactions=TransactionRepository(session),
        categories=CategoryRepository(session),
        budgets=BudgetRepository(session),
    )
