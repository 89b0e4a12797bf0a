from types import SimpleNamespace

import pytest

from errors import StoreError
from models import TransactionType
from summary import MonthlySummary, SummaryService


class FakeTransactions:
    def __init__(self, rows) -> None:
        self.rows = rows
        self.calls: list[tuple[int, int]] = []

    def get_by_month(self, year: int, month: int):
        self.calls.append((year, month))
        return list(self.rows)


class FakeCategories:
    def __init__(self, rows) -> None:
        self.rows = rows

    def get_all(self):
        return list(self.rows)


class FakeBudgets:
    def __init__(self, rows) -> None:
        self.rows = rows

    def get_by_month(self, year: int, month: int):
        return list(self.rows)


class FailingSource:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def get_by_month(self, year: int, month: int):
        raise self.exc

    def get_all(self):
        raise self.exc


def _txn(category_id: int, type: TransactionType, amount: float) -> SimpleNamespace:
    return SimpleNamespace(category_id=category_id, type=type, amount=amount)


def _category(id: int, name: str, type: TransactionType) -> SimpleNamespace:
    return SimpleNamespace(id=id, name=name, type=type)


def _budget(category_id: int, amount: float) -> SimpleNamespace:
    return SimpleNamespace(category_id=category_id, amount=amount)


SALARY = _category(1, "Salary", TransactionType.income)
GROCERIES = _category(2, "Groceries", TransactionType.expense)
RENT = _category(3, "Rent", TransactionType.expense)
HOBBIES = _category(4, "Hobbies", TransactionType.expense)


def _service(txns, budgets, categories=(SALARY, GROCERIES, RENT, HOBBIES)):
    return SummaryService(
        transactions=FakeTransactions(txns),
        categories=FakeCategories(categories),
        budgets=FakeBudgets(budgets),
    )


def test_income_and_budgeted_expense_in_march() -> None:
    service = _service(
        [
            _txn(SALARY.id, TransactionType.income, 50000),
            _txn(GROCERIES.id, TransactionType.expense, 1200),
        ],
        [_budget(GROCERIES.id, 2000)],
    )

    summary = service.monthly_summary(2024, 3)

    assert (summary.year, summary.month) == (2024, 3)
    assert summary.total_income == 50000
    assert summary.total_expense == 1200
    assert summary.balance == 48800

    salary = summary.category_summary[SALARY.id]
    assert salary.total == 50000
    assert salary.budget == 0
    assert salary.percentage == 0
    assert salary.category_name == "Salary"
    assert salary.category_type == "income"

    groceries = summary.category_summary[GROCERIES.id]
    assert groceries.total == 1200
    assert groceries.budget == 2000
    assert groceries.percentage == pytest.approx(60)
    assert groceries.category_type == "expense"


def test_budgeted_category_without_spending_reports_zero_percent() -> None:
    service = _service([], [_budget(RENT.id, 5000)])

    summary = service.monthly_summary(2024, 3)

    rent = summary.category_summary[RENT.id]
    assert rent.total == 0
    assert rent.budget == 5000
    assert rent.percentage == 0
    assert rent.category_name == ""
    assert rent.category_type == ""


def test_untouched_unbudgeted_category_is_absent() -> None:
    service = _service(
        [_txn(GROCERIES.id, TransactionType.expense, 10)],
        [_budget(RENT.id, 5000)],
    )

    summary = service.monthly_summary(2024, 3)

    assert set(summary.category_summary) == {GROCERIES.id, RENT.id}
    assert HOBBIES.id not in summary.category_summary
    assert SALARY.id not in summary.category_summary


def test_totals_are_sums_per_type_and_category() -> None:
    txns = [
        _txn(SALARY.id, TransactionType.income, 3000),
        _txn(SALARY.id, TransactionType.income, 250.5),
        _txn(GROCERIES.id, TransactionType.expense, 40),
        _txn(GROCERIES.id, TransactionType.expense, 60),
        _txn(RENT.id, TransactionType.expense, 900),
    ]
    summary = _service(txns, []).monthly_summary(2025, 1)

    assert summary.total_income == pytest.approx(3250.5)
    assert summary.total_expense == pytest.approx(1000)
    assert summary.balance == pytest.approx(2250.5)
    assert summary.category_summary[GROCERIES.id].total == pytest.approx(100)
    assert summary.category_summary[SALARY.id].total == pytest.approx(3250.5)


def test_balance_holds_after_every_fold() -> None:
    summary = MonthlySummary(year=2025, month=2)
    txns = [
        _txn(SALARY.id, TransactionType.income, 100),
        _txn(GROCERIES.id, TransactionType.expense, 30),
        _txn(RENT.id, TransactionType.expense, 500),
        _txn(SALARY.id, TransactionType.income, 20),
    ]
    for txn in txns:
        summary.add_transaction(txn)
        assert summary.balance == summary.total_income - summary.total_expense

    assert summary.balance == pytest.approx(-410)


def test_percentage_only_when_budgeted() -> None:
    txns = [
        _txn(GROCERIES.id, TransactionType.expense, 300),
        _txn(HOBBIES.id, TransactionType.expense, 75),
    ]
    summary = _service(txns, [_budget(GROCERIES.id, 200)]).monthly_summary(2025, 2)

    for entry in summary.category_summary.values():
        if entry.budget == 0:
            assert entry.percentage == 0
    assert summary.category_summary[GROCERIES.id].percentage == pytest.approx(150)
    assert summary.category_summary[HOBBIES.id].percentage == 0


def test_zero_budget_leaves_percentage_at_zero() -> None:
    summary = MonthlySummary(year=2025, month=2)
    summary.add_transaction(_txn(GROCERIES.id, TransactionType.expense, 80))
    summary.set_budget(GROCERIES.id, 0)

    assert summary.category_summary[GROCERIES.id].percentage == 0


def test_summary_is_idempotent() -> None:
    service = _service(
        [
            _txn(SALARY.id, TransactionType.income, 50000),
            _txn(GROCERIES.id, TransactionType.expense, 1200),
        ],
        [_budget(GROCERIES.id, 2000), _budget(RENT.id, 800)],
    )

    first = service.monthly_summary(2024, 3).to_dict()
    second = service.monthly_summary(2024, 3).to_dict()

    assert first == second
    assert list(first["category_summary"]) == list(second["category_summary"])


def test_transaction_with_unknown_category_keeps_blank_info() -> None:
    summary = _service(
        [_txn(99, TransactionType.expense, 5)], []
    ).monthly_summary(2025, 4)

    entry = summary.category_summary[99]
    assert entry.total == 5
    assert entry.category_name == ""
    assert entry.category_type == ""


def test_month_is_passed_through_without_clamping() -> None:
    txns = FakeTransactions([])
    service = SummaryService(txns, FakeCategories([]), FakeBudgets([]))

    summary = service.monthly_summary(-5, 13)

    assert txns.calls == [(-5, 13)]
    assert (summary.year, summary.month) == (-5, 13)


@pytest.mark.parametrize("failing", ["transactions", "categories", "budgets"])
def test_collaborator_failure_propagates_unchanged(failing: str) -> None:
    error = StoreError(f"{failing} unavailable")
    sources = {
        "transactions": FakeTransactions([_txn(SALARY.id, TransactionType.income, 1)]),
        "categories": FakeCategories([SALARY]),
        "budgets": FakeBudgets([]),
    }
    sources[failing] = FailingSource(error)
    service = SummaryService(**sources)

    with pytest.raises(StoreError) as excinfo:
        service.monthly_summary(2025, 1)

    assert excinfo.value is error


def test_category_totals_add_income_and_expense_together() -> None:
    service = _service(
        [
            _txn(GROCERIES.id, TransactionType.expense, 10),
            _txn(GROCERIES.id, TransactionType.expense, 15),
            _txn(SALARY.id, TransactionType.income, 1000),
            # mismatched types are still summed, not netted
            _txn(RENT.id, TransactionType.income, 5),
            _txn(RENT.id, TransactionType.expense, 5),
        ],
        [_budget(HOBBIES.id, 100)],
    )

    totals = service.category_totals(2025, 5)

    assert totals == {GROCERIES.id: 25, SALARY.id: 1000, RENT.id: 10}


def test_to_dict_uses_snake_case_keys() -> None:
    summary = _service(
        [_txn(GROCERIES.id, TransactionType.expense, 12)], [_budget(GROCERIES.id, 24)]
    ).monthly_summary(2025, 6)

    data = summary.to_dict()

    assert set(data) == {
        "year",
        "month",
        "total_income",
        "total_expense",
        "balance",
        "category_summary",
    }
    assert data["category_summary"][GROCERIES.id] == {
        "category_id": GROCERIES.id,
        "category_name": "Groceries",
        "category_type": "expense",
        "total": 12,
        "budget": 24,
        "percentage": 50.0,
    }
