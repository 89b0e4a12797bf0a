from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import NotFoundError, StoreError, ValidationError
from models import Budget, Category, Transaction, TransactionType
from periods import Period, month_period
from validation import validate_budget, validate_category, validate_transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextmanager
def _store_errors(session: Session, action: str) -> Iterator[None]:
    try:
        yield
    except ValidationError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception(f"store_error: action={action}")
        raise StoreError(f"failed to {action}: {exc}") from exc


class _Repository:
    resource = ""
    model: type = object

    def __init__(self, session: Session) -> None:
        self.session = session

    def _all(self, stmt) -> list:
        with _store_errors(self.session, f"get {self.resource} list"):
            return list(self.session.scalars(stmt).all())

    def _count(self, stmt) -> int:
        with _store_errors(self.session, f"count {self.resource}"):
            return int(self.session.execute(stmt).scalar_one() or 0)

    def get_by_id(self, entity_id: int):
        with _store_errors(self.session, f"get {self.resource}"):
            entity = self.session.get(self.model, entity_id)
        if entity is None:
            raise NotFoundError(self.resource, entity_id)
        return entity

    def _write(self, entity: T, validate: Callable[[T], None], action: str) -> T:
        with _store_errors(self.session, f"{action} {self.resource}"):
            validate(entity)
            if action == "update":
                entity.updated_at = datetime.utcnow()
            self.session.add(entity)
            self.session.commit()
            self.session.refresh(entity)
        return entity

    def delete(self, entity_id: int) -> None:
        entity = self.get_by_id(entity_id)
        with _store_errors(self.session, f"delete {self.resource}"):
            self.session.delete(entity)
            self.session.commit()


class CategoryRepository(_Repository):
    resource = "category"
    model = Category

    def get_all(self) -> list[Category]:
        stmt = select(Category).order_by(Category.type.asc(), Category.name.asc())
        return self._all(stmt)

    def get_by_type(self, category_type: TransactionType) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.type == category_type)
            .order_by(Category.name.asc())
        )
        return self._all(stmt)

    def exists_by_name_and_type(
        self,
        name: str,
        category_type: TransactionType,
        *,
        exclude_id: Optional[int] = None,
    ) -> bool:
        stmt = select(func.count(Category.id)).where(
            func.lower(Category.name) == name.strip().lower(),
            Category.type == category_type,
        )
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        return self._count(stmt) > 0

    def count_transactions(self, category_id: int) -> int:
        stmt = select(func.count(Transaction.id)).where(
            Transaction.category_id == category_id
        )
        return self._count(stmt)

    def count_budgets(self, category_id: int) -> int:
        stmt = select(func.count(Budget.id)).where(Budget.category_id == category_id)
        return self._count(stmt)

    def create(self, category: Category) -> Category:
        return self._write(category, validate_category, "create")

    def update(self, category: Category) -> Category:
        return self._write(category, validate_category, "update")


class TransactionRepository(_Repository):
    resource = "transaction"
    model = Transaction

    @staticmethod
    def _ordered(stmt):
        return stmt.order_by(
            Transaction.transaction_date.desc(),
            Transaction.created_at.desc(),
            Transaction.id.desc(),
        )

    def get_all(self) -> list[Transaction]:
        return self._all(self._ordered(select(Transaction)))

    def get_by_period(self, period: Period) -> list[Transaction]:
        stmt = select(Transaction).where(
            Transaction.transaction_date.between(period.start, period.end)
        )
        return self._all(self._ordered(stmt))

    def get_by_month(self, year: int, month: int) -> list[Transaction]:
        return self.get_by_period(month_period(year, month))

    def get_by_date_range(self, start: date, end: date) -> list[Transaction]:
        return self.get_by_period(Period(start, end))

    def get_by_category(self, category_id: int) -> list[Transaction]:
        stmt = select(Transaction).where(Transaction.category_id == category_id)
        return self._all(self._ordered(stmt))

    def create(self, txn: Transaction) -> Transaction:
        return self._write(txn, validate_transaction, "create")

    def update(self, txn: Transaction) -> Transaction:
        return self._write(txn, validate_transaction, "update")


class BudgetRepository(_Repository):
    resource = "budget"
    model = Budget

    def get_all(self) -> list[Budget]:
        stmt = select(Budget).order_by(
            Budget.target_year.desc(), Budget.target_month.desc(), Budget.id.asc()
        )
        return self._all(stmt)

    def get_by_month(self, year: int, month: int) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(Budget.target_year == year, Budget.target_month == month)
            .order_by(Budget.category_id.asc())
        )
        return self._all(stmt)

    def get_by_category_and_month(
        self, category_id: int, year: int, month: int
    ) -> Budget:
        stmt = select(Budget).where(
            Budget.category_id == category_id,
            Budget.target_year == year,
            Budget.target_month == month,
        )
        with _store_errors(self.session, "get budget"):
            budget = self.session.scalar(stmt)
        if budget is None:
            raise NotFoundError("budget", f"{category_id}/{year}-{month:02d}")
        return budget

    def exists_by_category_and_month(
        self,
        category_id: int,
        year: int,
        month: int,
        *,
        exclude_id: Optional[int] = None,
    ) -> bool:
        stmt = select(func.count(Budget.id)).where(
            Budget.category_id == category_id,
            Budget.target_year == year,
            Budget.target_month == month,
        )
        if exclude_id is not None:
            stmt = stmt.where(Budget.id != exclude_id)
        return self._count(stmt) > 0

    def create(self, budget: Budget) -> Budget:
        return self._write(budget, validate_budget, "create")

    def update(self, budget: Budget) -> Budget:
        return self._write(budget, validate_budget, "update")
