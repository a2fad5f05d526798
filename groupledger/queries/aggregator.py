"""
Ledger Aggregation

DESIGN DECISION: Aggregation is DETERMINISTIC and LOCAL.
Every total is computed from the transaction list held in memory.
Nothing here talks to a backend.

Totals are cached and the cache is dropped on every mutation, so repeated
reads between changes cost nothing.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from groupledger.models.ledger import (
    BudgetStatus,
    Category,
    CategoryExpense,
    DatePeriod,
    LedgerSummary,
    Transaction,
    TransactionType,
    default_category,
)


ZERO = Decimal("0")


class LedgerAggregator:
    """
    Computes totals, category breakdowns and filtered views over a
    list of transactions.

    GUARANTEES:
    - balance == total_income - total_expenses
    - An empty list gives zero totals and an empty breakdown
    - category_expenses is sorted by amount, largest first
    """

    def __init__(self, transactions: Optional[Iterable[Transaction]] = None):
        self._transactions: list[Transaction] = list(transactions or [])
        self._cache: dict[str, object] = {}

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    # -------------------------------------------------------------------------
    # Mutations (each one invalidates the cache)
    # -------------------------------------------------------------------------

    def _invalidate(self) -> None:
        self._cache.clear()

    def replace(self, transactions: Iterable[Transaction]) -> None:
        self._transactions = list(transactions)
        self._invalidate()

    def append(self, transaction: Transaction) -> None:
        self._transactions.append(transaction)
        self._invalidate()

    def remove(self, transaction_id: str) -> bool:
        """Remove by id. Returns False if nothing matched."""
        before = len(self._transactions)
        self._transactions = [t for t in self._transactions if t.id != transaction_id]
        removed = len(self._transactions) != before
        if removed:
            self._invalidate()
        return removed

    def update(self, transaction: Transaction) -> bool:
        """Replace the transaction with the same id. Returns False if absent."""
        for idx, existing in enumerate(self._transactions):
            if existing.id == transaction.id:
                self._transactions[idx] = transaction
                self._invalidate()
                return True
        return False

    # -------------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------------

    def _sum_of(self, tx_type: TransactionType) -> Decimal:
        key = f"total_{tx_type.value}"
        if key not in self._cache:
            self._cache[key] = sum(
                (t.amount for t in self._transactions if t.type == tx_type),
                ZERO,
            )
        return self._cache[key]

    def total_income(self) -> Decimal:
        return self._sum_of(TransactionType.INCOME)

    def total_expenses(self) -> Decimal:
        return self._sum_of(TransactionType.EXPENSE)

    def balance(self) -> Decimal:
        return self.total_income() - self.total_expenses()

    def category_expenses(self) -> list[CategoryExpense]:
        """Expense totals per category, largest first."""
        if "category_expenses" not in self._cache:
            groups: dict[str, CategoryExpense] = {}
            for transaction in self._transactions:
                if transaction.type != TransactionType.EXPENSE:
                    continue
                key = transaction.category.id
                if key not in groups:
                    groups[key] = CategoryExpense(category=transaction.category, amount=ZERO)
                groups[key].amount += transaction.amount

            self._cache["category_expenses"] = sorted(
                groups.values(),
                key=lambda row: (-row.amount, row.category.name),
            )
        return list(self._cache["category_expenses"])

    def expenses_for(self, category: Category) -> Decimal:
        for row in self.category_expenses():
            if row.category.id == category.id:
                return row.amount
        return ZERO

    def summary(self) -> LedgerSummary:
        return LedgerSummary(
            total_income=self.total_income(),
            total_expenses=self.total_expenses(),
            balance=self.balance(),
            category_expenses=self.category_expenses(),
            transaction_count=len(self._transactions),
        )

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def filter_by_period(
        self,
        period: DatePeriod,
        now: Optional[datetime] = None,
    ) -> list[Transaction]:
        """
        Transactions in the current week, month or year, newest first.

        Weeks are ISO weeks, so the first days of January can belong
        to the previous year's last week.
        """
        now = now or datetime.now()

        if period == DatePeriod.WEEK:
            current = now.isocalendar()[:2]
            matched = [t for t in self._transactions if t.date.isocalendar()[:2] == current]
        elif period == DatePeriod.MONTH:
            matched = [
                t for t in self._transactions
                if (t.date.year, t.date.month) == (now.year, now.month)
            ]
        elif period == DatePeriod.YEAR:
            matched = [t for t in self._transactions if t.date.year == now.year]
        else:
            matched = list(self._transactions)

        return sorted(matched, key=lambda t: t.date, reverse=True)

    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        return sorted(self._transactions, key=lambda t: t.date, reverse=True)[:limit]

    def recent_titles(self, category: Category, limit: int = 5) -> list[str]:
        """Distinct titles used in a category, newest first."""
        titles: list[str] = []
        for transaction in sorted(self._transactions, key=lambda t: t.date, reverse=True):
            if transaction.category.id != category.id:
                continue
            if transaction.title not in titles:
                titles.append(transaction.title)
            if len(titles) >= limit:
                break
        return titles

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def budget_statuses(
        self,
        budgets: dict[str, Decimal],
        categories: Optional[dict[str, Category]] = None,
    ) -> list[BudgetStatus]:
        """
        One status per budgeted category, in budget insertion order.

        Args:
            budgets: Budget amount per category id
            categories: Known categories by id, used to resolve ids that
                        are not default categories
        """
        categories = categories or {}
        statuses = []
        for category_id, budget in budgets.items():
            category = (
                categories.get(category_id)
                or default_category(category_id)
                or Category(id=category_id, name=category_id)
            )
            spent = self.expenses_for(category)
            if budget > 0:
                ratio = float(spent / budget)
            else:
                ratio = 1.0 if spent > 0 else 0.0

            statuses.append(BudgetStatus(
                category=category,
                budget=budget,
                spent=spent,
                remaining=budget - spent,
                is_over_budget=spent > budget,
                usage_ratio=ratio,
            ))
        return statuses
