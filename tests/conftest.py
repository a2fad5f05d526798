"""
Pytest configuration and fixtures for the Group Ledger test suite.

Everything runs against in-memory backends; no network calls.
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

from groupledger.audit import AuditLogger
from groupledger.models.ledger import (
    Transaction,
    TransactionType,
    default_category,
)
from groupledger.orchestrator import (
    AuthFlow,
    CategoryFlow,
    GroupFlow,
    TransactionFlow,
)
from groupledger.services.auth import InMemoryAuthBackend
from groupledger.services.ledger_service import LedgerService
from groupledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryDocumentStore,
    InMemorySnapshotStore,
)


def run(coro):
    """Run a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


def make_transaction(
    title: str,
    amount: str,
    category_id: str,
    tx_type: TransactionType = TransactionType.EXPENSE,
    date: datetime = None,
) -> Transaction:
    return Transaction(
        title=title,
        amount=Decimal(amount),
        category=default_category(category_id),
        type=tx_type,
        date=date or datetime(2024, 5, 15, 12, 0),
    )


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def auth_backend():
    return InMemoryAuthBackend(bcrypt_rounds=4)


@pytest.fixture
def service(store, auth_backend):
    return LedgerService(store, auth_backend)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def snapshots():
    return InMemorySnapshotStore()


@pytest.fixture
def auth_flow(service, audit_logger):
    return AuthFlow(service, audit_logger)


@pytest.fixture
def group_flow(service, audit_logger):
    return GroupFlow(service, audit_logger)


@pytest.fixture
def transaction_flow(service, audit_logger, snapshots):
    return TransactionFlow(service, audit_logger, snapshots)


@pytest.fixture
def category_flow(service, audit_logger):
    return CategoryFlow(service, audit_logger)


@pytest.fixture
def signed_in(service):
    """A service with alice signed up and signed in."""
    run(service.sign_up("alice@example.com", "secret123", "Alice"))
    return service


@pytest.fixture
def sample_transactions():
    """The worked example: two expenses and a salary."""
    return [
        make_transaction("Lunch", "120", "food"),
        make_transaction("Taxi", "250", "transport"),
        make_transaction("Salary", "50000", "salary", TransactionType.INCOME),
    ]
