"""Tests for LedgerAggregator."""

import random
from datetime import datetime
from decimal import Decimal

import pytest

from conftest import make_transaction

from groupledger.models.ledger import (
    Category,
    DatePeriod,
    TransactionType,
    default_category,
)
from groupledger.queries import LedgerAggregator


class TestTotals:
    """Income, expense and balance totals."""

    def test_worked_example(self, sample_transactions):
        """Test the two-expenses-and-a-salary example."""
        aggregator = LedgerAggregator(sample_transactions)

        assert aggregator.total_income() == Decimal("50000")
        assert aggregator.total_expenses() == Decimal("370")
        assert aggregator.balance() == Decimal("49630")

        breakdown = [(row.category.id, row.amount) for row in aggregator.category_expenses()]
        assert breakdown == [("transport", Decimal("250")), ("food", Decimal("120"))]

    def test_empty_list(self):
        """Test that an empty list has zero totals and no breakdown."""
        aggregator = LedgerAggregator()
        assert aggregator.total_income() == 0
        assert aggregator.total_expenses() == 0
        assert aggregator.balance() == 0
        assert aggregator.category_expenses() == []

    def test_balance_is_income_minus_expenses(self):
        """Test the balance identity across a mixed list."""
        transactions = [
            make_transaction("A", "10.10", "food"),
            make_transaction("B", "0.20", "food"),
            make_transaction("C", "99.99", "salary", TransactionType.INCOME),
            make_transaction("D", "5.55", "other", TransactionType.INCOME),
            make_transaction("E", "42", "shopping"),
        ]
        aggregator = LedgerAggregator(transactions)
        assert aggregator.balance() == aggregator.total_income() - aggregator.total_expenses()
        assert aggregator.balance() == Decimal("53.24")

    @pytest.mark.parametrize("seed", range(30))
    def test_totals_over_random_lists(self, seed):
        """Test totals, balance and breakdown on seeded random mixed lists."""
        rng = random.Random(seed)
        category_ids = ["food", "transport", "shopping", "other", "salary", "investment"]
        transactions = []
        for i in range(rng.randint(0, 40)):
            # Mix of exponents: "7", "0.7", "0.07", "7.50"
            amount = Decimal(rng.randint(1, 10**7)).scaleb(-rng.choice([0, 1, 2]))
            if rng.random() < 0.2:
                amount = amount.quantize(Decimal("0.01"))
            tx_type = rng.choice([TransactionType.INCOME, TransactionType.EXPENSE])
            transactions.append(
                make_transaction(f"T{i}", str(amount), rng.choice(category_ids), tx_type)
            )

        aggregator = LedgerAggregator(transactions)
        income = sum((t.amount for t in transactions if t.type == TransactionType.INCOME), Decimal(0))
        expenses = sum((t.amount for t in transactions if t.type == TransactionType.EXPENSE), Decimal(0))

        assert aggregator.total_income() == income
        assert aggregator.total_expenses() == expenses
        assert aggregator.balance() == aggregator.total_income() - aggregator.total_expenses()

        rows = aggregator.category_expenses()
        amounts = [row.amount for row in rows]
        assert amounts == sorted(amounts, reverse=True)
        assert sum(amounts, Decimal(0)) == expenses
        for row in rows:
            assert row.amount == aggregator.expenses_for(row.category)

    def test_income_excluded_from_breakdown(self):
        """Test that income in an expense category isn't counted as spending."""
        aggregator = LedgerAggregator([
            make_transaction("Refund", "30", "other", TransactionType.INCOME),
            make_transaction("Misc", "5", "other"),
        ])
        rows = aggregator.category_expenses()
        assert len(rows) == 1
        assert rows[0].amount == Decimal("5")

    def test_breakdown_sums_per_category(self):
        """Test that amounts in the same category are summed."""
        aggregator = LedgerAggregator([
            make_transaction("Lunch", "120", "food"),
            make_transaction("Dinner", "300", "food"),
            make_transaction("Bus", "250", "transport"),
        ])
        rows = aggregator.category_expenses()
        assert [(r.category.id, r.amount) for r in rows] == [
            ("food", Decimal("420")),
            ("transport", Decimal("250")),
        ]
        assert aggregator.expenses_for(default_category("food")) == Decimal("420")
        assert aggregator.expenses_for(default_category("shopping")) == 0

    def test_breakdown_ties_ordered_by_name(self):
        """Test that equal amounts come out in name order."""
        aggregator = LedgerAggregator([
            make_transaction("Game", "50", "entertainment"),
            make_transaction("Shoes", "50", "shopping"),
            make_transaction("Lunch", "50", "food"),
        ])
        names = [row.category.name for row in aggregator.category_expenses()]
        assert names == ["Entertainment", "Food", "Shopping"]

    def test_summary(self, sample_transactions):
        """Test that summary agrees with the individual totals."""
        summary = LedgerAggregator(sample_transactions).summary()
        assert summary.balance == Decimal("49630")
        assert summary.transaction_count == 3
        assert len(summary.category_expenses) == 2


class TestCacheInvalidation:
    """Totals must follow every mutation."""

    def test_append(self, sample_transactions):
        """Test that appending updates the cached totals."""
        aggregator = LedgerAggregator(sample_transactions)
        assert aggregator.total_expenses() == Decimal("370")

        aggregator.append(make_transaction("Movie", "30", "entertainment"))
        assert aggregator.total_expenses() == Decimal("400")
        assert len(aggregator.category_expenses()) == 3

    def test_remove(self, sample_transactions):
        """Test that removing updates the cached totals."""
        aggregator = LedgerAggregator(sample_transactions)
        assert aggregator.total_income() == Decimal("50000")

        assert aggregator.remove(sample_transactions[2].id)
        assert aggregator.total_income() == 0
        assert not aggregator.remove("missing")

    def test_update(self, sample_transactions):
        """Test that updating an amount updates the cached totals."""
        aggregator = LedgerAggregator(sample_transactions)
        assert aggregator.balance() == Decimal("49630")

        changed = sample_transactions[0].model_copy(update={"amount": Decimal("20")})
        assert aggregator.update(changed)
        assert aggregator.balance() == Decimal("49730")

    def test_replace(self, sample_transactions):
        """Test that replacing clears everything."""
        aggregator = LedgerAggregator(sample_transactions)
        aggregator.balance()
        aggregator.replace([])
        assert aggregator.balance() == 0
        assert aggregator.category_expenses() == []


class TestViews:
    """Period filters, recent lists and title suggestions."""

    now = datetime(2024, 5, 15, 12, 0)

    def _dated(self):
        return [
            make_transaction("Today", "1", "food", date=datetime(2024, 5, 15, 9, 0)),
            make_transaction("Monday", "1", "food", date=datetime(2024, 5, 13, 9, 0)),
            make_transaction("Last week", "1", "food", date=datetime(2024, 5, 8, 9, 0)),
            make_transaction("April", "1", "food", date=datetime(2024, 4, 20, 9, 0)),
            make_transaction("Last year", "1", "food", date=datetime(2023, 5, 15, 9, 0)),
        ]

    def test_week(self):
        """Test that week means the current ISO week."""
        aggregator = LedgerAggregator(self._dated())
        titles = [t.title for t in aggregator.filter_by_period(DatePeriod.WEEK, self.now)]
        assert titles == ["Today", "Monday"]

    def test_month(self):
        """Test the current calendar month, newest first."""
        aggregator = LedgerAggregator(self._dated())
        titles = [t.title for t in aggregator.filter_by_period(DatePeriod.MONTH, self.now)]
        assert titles == ["Today", "Monday", "Last week"]

    def test_year(self):
        """Test the current calendar year."""
        aggregator = LedgerAggregator(self._dated())
        result = aggregator.filter_by_period(DatePeriod.YEAR, self.now)
        assert [t.title for t in result] == ["Today", "Monday", "Last week", "April"]

    def test_all_sorted_newest_first(self):
        """Test that 'all' keeps everything, newest first."""
        aggregator = LedgerAggregator(reversed(self._dated()))
        result = aggregator.filter_by_period(DatePeriod.ALL, self.now)
        assert [t.title for t in result][0] == "Today"
        assert [t.title for t in result][-1] == "Last year"

    def test_iso_week_spans_new_year(self):
        """Test that Dec 30 2024 and Jan 1 2025 share ISO week 1."""
        aggregator = LedgerAggregator([
            make_transaction("Eve", "1", "food", date=datetime(2024, 12, 30)),
        ])
        result = aggregator.filter_by_period(DatePeriod.WEEK, datetime(2025, 1, 1))
        assert len(result) == 1

    def test_recent_transactions_limit(self):
        """Test that recent transactions are capped and newest first."""
        transactions = [
            make_transaction(f"T{day}", "1", "food", date=datetime(2024, 5, day))
            for day in range(1, 16)
        ]
        recent = LedgerAggregator(transactions).recent_transactions(10)
        assert len(recent) == 10
        assert recent[0].title == "T15"
        assert recent[-1].title == "T6"

    def test_recent_titles_distinct_and_limited(self):
        """Test title suggestions for a category."""
        transactions = [
            make_transaction("Coffee", "1", "food", date=datetime(2024, 5, 10)),
            make_transaction("Lunch", "1", "food", date=datetime(2024, 5, 11)),
            make_transaction("Coffee", "1", "food", date=datetime(2024, 5, 12)),
            make_transaction("Bus", "1", "transport", date=datetime(2024, 5, 13)),
        ]
        aggregator = LedgerAggregator(transactions)
        assert aggregator.recent_titles(default_category("food"), 5) == ["Coffee", "Lunch"]
        assert aggregator.recent_titles(default_category("food"), 1) == ["Coffee"]


class TestBudgets:
    """Budget status calculation."""

    def test_status(self, sample_transactions):
        """Test spent, remaining and ratio."""
        aggregator = LedgerAggregator(sample_transactions)
        [status] = aggregator.budget_statuses({"food": Decimal("200")})
        assert status.category.id == "food"
        assert status.spent == Decimal("120")
        assert status.remaining == Decimal("80")
        assert not status.is_over_budget
        assert status.usage_ratio == 0.6

    def test_over_budget(self, sample_transactions):
        """Test the over-budget flag."""
        aggregator = LedgerAggregator(sample_transactions)
        [status] = aggregator.budget_statuses({"transport": Decimal("100")})
        assert status.is_over_budget
        assert status.remaining == Decimal("-150")

    def test_zero_budget(self, sample_transactions):
        """Test that a zero budget gives ratio 0 when unused and 1 when used."""
        aggregator = LedgerAggregator(sample_transactions)
        statuses = aggregator.budget_statuses({
            "shopping": Decimal("0"),
            "food": Decimal("0"),
        })
        assert statuses[0].usage_ratio == 0.0
        assert statuses[1].usage_ratio == 1.0

    def test_custom_category_resolved(self):
        """Test that custom category ids resolve through the lookup."""
        pets = Category(id="pets", name="Pets", group_id="g1")
        [status] = LedgerAggregator().budget_statuses(
            {"pets": Decimal("50")},
            {"pets": pets},
        )
        assert status.category.name == "Pets"
        assert status.spent == 0
