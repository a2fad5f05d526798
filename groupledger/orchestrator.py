"""
Main Orchestrator for Group Ledger

This module ties together all the components and defines the flows the
screens drive:
1. Auth (validate → auth backend → user profile)
2. Groups (create / select / add member / delete)
3. Transactions (validate → remote write → local list → aggregates)
4. Categories (defaults + group's custom categories)

DESIGN DECISION: Flows never raise to their caller.
Every failure is audited and turned into a message in `last_error`,
which is what a screen shows. Success is reported as a return value.

This is the "glue" that keeps backend failures from crashing the app.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional

import structlog

from groupledger.audit import AuditLogger
from groupledger.config import get_settings
from groupledger.models.audit import AuditEventType
from groupledger.models.ledger import (
    DEFAULT_CATEGORIES,
    INCOME_CATEGORY_IDS,
    INCOME_ONLY_CATEGORY_IDS,
    BudgetStatus,
    Category,
    CategoryExpense,
    DatePeriod,
    Group,
    LedgerSummary,
    Transaction,
    TransactionType,
    User,
    is_default_category,
)
from groupledger.queries import LedgerAggregator
from groupledger.services.auth import AuthError, InMemoryAuthBackend, OAuthCredential
from groupledger.services.ledger_service import (
    CategoryProtectedError,
    InvalidTransactionError,
    LedgerError,
    LedgerService,
    NoGroupSelectedError,
)
from groupledger.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryAuditStorage,
    InMemoryDocumentStore,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    SnapshotStoreInterface,
    StorageError,
)
from groupledger.validation import (
    CredentialValidator,
    TransactionValidator,
    evaluate_amount_expression,
)


logger = structlog.get_logger(__name__)

TRANSACTIONS_SNAPSHOT_KEY = "transactions"
BUDGETS_SNAPSHOT_KEY = "budgets"

BACKEND_UNAVAILABLE_MESSAGE = "Could not reach the server. Please try again."
SNAPSHOT_WRITE_FAILED_MESSAGE = "Could not save data on this device."


def _is_valid_budget(amount: Decimal) -> bool:
    return amount.is_finite() and amount >= 0


class _BaseFlow:
    """Shared error bookkeeping for the flows."""

    def __init__(
        self,
        service: LedgerService,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._service = service
        self._audit_logger = audit_logger or AuditLogger()
        self.last_error: Optional[str] = None

    @property
    def _actor_id(self) -> Optional[str]:
        user = self._service.current_user
        return user.id if user else None

    def clear_error(self) -> None:
        self.last_error = None

    async def _fail(
        self,
        operation: str,
        error: Exception,
        group_id: Optional[str] = None,
    ) -> None:
        """Record a failed operation for the screen and the audit trail."""
        if isinstance(error, LedgerError):
            self.last_error = str(error)
            await self._audit_logger.log_operation_rejected(
                operation=operation,
                reason=str(error),
                error_type=type(error).__name__,
                group_id=group_id,
            )
            return

        if isinstance(error, AuthError):
            self.last_error = error.user_message
        else:
            self.last_error = BACKEND_UNAVAILABLE_MESSAGE
        await self._audit_logger.log_backend_error(
            operation=operation,
            error_message=str(error),
            group_id=group_id,
        )

    async def _snapshot_failed(self, operation: str, error: StorageError) -> None:
        self.last_error = SNAPSHOT_WRITE_FAILED_MESSAGE
        await self._audit_logger.log_error(
            error_type="snapshot_write_failed",
            error_message=str(error),
            details={"operation": operation},
        )


# =============================================================================
# AUTH
# =============================================================================

class AuthFlow(_BaseFlow):
    """
    Orchestrates sign-in, sign-up and sign-out.

    Flow:
    1. Validate input locally (blocks the call on error)
    2. Call the auth backend
    3. Write or read the user profile document
    """

    def __init__(
        self,
        service: LedgerService,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[CredentialValidator] = None,
    ):
        super().__init__(service, audit_logger)
        self._validator = validator or CredentialValidator()

    @property
    def is_authenticated(self) -> bool:
        return self._service.is_authenticated

    @property
    def user(self) -> Optional[User]:
        return self._service.current_user

    async def _reject(self, result) -> bool:
        self.last_error = result.first_error()
        await self._audit_logger.log_validation_failed(result)
        return False

    async def _auth_failed(self, action: str, error: Exception) -> bool:
        if isinstance(error, AuthError):
            self.last_error = error.user_message
            await self._audit_logger.log_auth_failed(
                action=action,
                code=error.code.value,
                message=str(error),
            )
        else:
            await self._fail(action, error)
        return False

    async def sign_in(self, email: str, password: str) -> bool:
        result = self._validator.validate_sign_in(email, password)
        if not result.is_valid:
            return await self._reject(result)

        try:
            user = await self._service.sign_in(email.strip(), password)
        except (AuthError, LedgerError, StorageError) as e:
            return await self._auth_failed("sign_in", e)

        self.last_error = None
        await self._audit_logger.log_user_signed_in(user_id=user.id)
        return True

    async def sign_up(self, email: str, password: str, name: str) -> bool:
        result = self._validator.validate_sign_up(email, password, name)
        if not result.is_valid:
            return await self._reject(result)

        try:
            user = await self._service.sign_up(email.strip(), password, name.strip())
        except (AuthError, LedgerError, StorageError) as e:
            return await self._auth_failed("sign_up", e)

        self.last_error = None
        await self._audit_logger.log_user_signed_up(user_id=user.id, email=user.email)
        return True

    async def sign_in_with_credential(self, credential: OAuthCredential) -> bool:
        """Complete a federated sign-in with a token the platform obtained."""
        try:
            user = await self._service.sign_in_with_credential(credential)
        except (AuthError, LedgerError, StorageError) as e:
            return await self._auth_failed("sign_in_with_credential", e)

        self.last_error = None
        await self._audit_logger.log_user_signed_in(
            user_id=user.id,
            method=credential.provider_id,
        )
        return True

    async def sign_out(self) -> bool:
        user_id = self._actor_id
        try:
            await self._service.sign_out()
        except (AuthError, LedgerError, StorageError) as e:
            return await self._auth_failed("sign_out", e)

        self.last_error = None
        await self._audit_logger.log_user_signed_out(user_id=user_id)
        return True

    async def reset_password(self, email: str) -> bool:
        result = self._validator.validate_password_reset(email)
        if not result.is_valid:
            return await self._reject(result)

        try:
            await self._service.send_password_reset(email.strip())
        except (AuthError, LedgerError, StorageError) as e:
            return await self._auth_failed("reset_password", e)

        self.last_error = None
        await self._audit_logger.log_password_reset_requested(email=email.strip())
        return True


# =============================================================================
# GROUPS
# =============================================================================

class GroupFlow(_BaseFlow):
    """Group list, selection and membership."""

    @property
    def groups(self) -> list[Group]:
        return list(self._service.groups)

    @property
    def selected_group(self) -> Optional[Group]:
        return self._service.selected_group

    async def load_groups(self) -> list[Group]:
        try:
            groups = await self._service.fetch_groups()
        except (LedgerError, StorageError) as e:
            await self._fail("fetch_groups", e)
            return []
        self.last_error = None
        return groups

    async def create_group(self, name: str) -> Optional[Group]:
        if not name or not name.strip():
            self.last_error = "Please enter a group name"
            return None

        try:
            group = await self._service.create_group(name.strip())
        except (LedgerError, StorageError, ValueError) as e:
            await self._fail("create_group", e)
            return None

        self.last_error = None
        await self._audit_logger.log_group_created(
            group_id=group.id,
            name=group.name,
            actor_id=group.owner,
        )
        return group

    async def select_group(self, group: Group) -> None:
        await self._service.select_group(group)
        await self._audit_logger.log_group_selected(group_id=group.id, actor_id=self._actor_id)

    async def add_member(self, email: str) -> bool:
        """Add a registered user, found by email, to the selected group."""
        if not email or not email.strip():
            self.last_error = "Please enter an email address"
            return False

        current = self.selected_group
        before = set(current.members) if current else set()
        try:
            group = await self._service.add_member(email.strip())
            member = await self._service.find_user_by_email(email.strip())
        except (LedgerError, StorageError) as e:
            await self._fail("add_member", e, group_id=current.id if current else None)
            return False

        self.last_error = None
        # Other clients may have added members too; only audit this one
        if member is not None and member.id not in before:
            await self._audit_logger.log_member_added(
                group_id=group.id,
                member_id=member.id,
                actor_id=self._actor_id,
            )
        return True

    async def delete_group(self, group: Group) -> bool:
        try:
            deleted = await self._service.delete_group(group)
        except (LedgerError, StorageError) as e:
            await self._fail("delete_group", e, group_id=group.id)
            return False

        self.last_error = None
        await self._audit_logger.log_group_deleted(
            group_id=group.id,
            name=group.name,
            actor_id=self._actor_id or group.owner,
            transaction_count=deleted,
        )
        return True


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionFlow(_BaseFlow):
    """
    Orchestrates the transaction list of the selected group.

    Flow for adding:
    1. Guard: a group must be selected
    2. Validate (title, amount > 0, category)
    3. Remote write
    4. Local append (only after the write succeeded)

    There is no reconciliation between the local list and remote state
    beyond re-fetching when the selected group changes.
    """

    def __init__(
        self,
        service: LedgerService,
        audit_logger: Optional[AuditLogger] = None,
        snapshots: Optional[SnapshotStoreInterface] = None,
        validator: Optional[TransactionValidator] = None,
    ):
        super().__init__(service, audit_logger)
        settings = get_settings().app
        self._recent_limit = settings.recent_transactions_limit
        self._titles_limit = settings.recent_titles_limit
        self._snapshots = snapshots or InMemorySnapshotStore()
        self._validator = validator or TransactionValidator()
        self._aggregator = LedgerAggregator()
        self._budgets: dict[str, Decimal] = self._load_budgets()
        self.last_warnings: list[str] = []

        service.add_group_listener(self._on_group_changed)

    async def _on_group_changed(self, group: Optional[Group]) -> None:
        if group is None:
            self._aggregator.replace([])
            return
        await self.fetch_transactions()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def transactions(self) -> list[Transaction]:
        return self._aggregator.transactions

    @property
    def total_income(self) -> Decimal:
        return self._aggregator.total_income()

    @property
    def total_expenses(self) -> Decimal:
        return self._aggregator.total_expenses()

    @property
    def balance(self) -> Decimal:
        return self._aggregator.balance()

    @property
    def category_expenses(self) -> list[CategoryExpense]:
        return self._aggregator.category_expenses()

    def summary(self) -> LedgerSummary:
        return self._aggregator.summary()

    def expenses_for(self, category: Category) -> Decimal:
        return self._aggregator.expenses_for(category)

    def filter_transactions(
        self,
        period: DatePeriod,
        now: Optional[datetime] = None,
    ) -> list[Transaction]:
        return self._aggregator.filter_by_period(period, now)

    def recent_transactions(self) -> list[Transaction]:
        return self._aggregator.recent_transactions(self._recent_limit)

    def recent_titles(self, category: Category) -> list[str]:
        """Title suggestions for the add form."""
        return self._aggregator.recent_titles(category, self._titles_limit)

    async def fetch_transactions(self) -> bool:
        group = self._service.selected_group
        if group is None:
            return False

        try:
            transactions = await self._service.fetch_transactions(group.id)
        except (LedgerError, StorageError) as e:
            await self._fail("fetch_transactions", e, group_id=group.id)
            return False

        self._aggregator.replace(transactions)
        self.last_error = None
        return True

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def add_transaction(self, transaction: Transaction) -> bool:
        group = self._service.selected_group
        if group is None:
            await self._fail("add_transaction", NoGroupSelectedError())
            return False

        result = self._validator.validate(
            title=transaction.title,
            amount=transaction.amount,
            category=transaction.category,
            date=transaction.date,
        )
        self.last_warnings = result.warnings
        if not result.is_valid:
            self.last_error = result.first_error()
            await self._audit_logger.log_validation_failed(result)
            return False

        try:
            await self._service.add_transaction(transaction, group.id)
        except (LedgerError, StorageError) as e:
            await self._fail("add_transaction", e, group_id=group.id)
            return False

        self._aggregator.append(transaction)
        self.last_error = None
        await self._audit_logger.log_transaction_added(
            transaction,
            group_id=group.id,
            actor_id=self._actor_id,
        )
        return True

    async def add_from_input(
        self,
        title: str,
        amount_text: str,
        category: Category,
        transaction_type: TransactionType,
        date: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> Optional[Transaction]:
        """
        Build a transaction from form input and add it.

        amount_text may be a number or a simple expression like "120 + 35".
        """
        try:
            amount = evaluate_amount_expression(amount_text)
        except ValueError:
            self.last_error = "Please enter a valid amount"
            return None

        result = self._validator.validate(
            title=title,
            amount=amount,
            category=category,
            date=date,
        )
        if not result.is_valid:
            self.last_warnings = result.warnings
            self.last_error = result.first_error()
            await self._audit_logger.log_validation_failed(result)
            return None

        transaction = Transaction(
            title=title,
            amount=amount,
            date=date or datetime.now(),
            category=category,
            type=transaction_type,
            note=note,
        )
        if not await self.add_transaction(transaction):
            return None
        return transaction

    async def update_transaction(self, transaction: Transaction) -> bool:
        group = self._service.selected_group
        try:
            if transaction.amount <= 0 or not transaction.title.strip():
                raise InvalidTransactionError("Title and a positive amount are required")
            await self._service.update_transaction(transaction)
        except (LedgerError, StorageError) as e:
            await self._fail("update_transaction", e, group_id=group.id if group else None)
            return False

        self._aggregator.update(transaction)
        self.last_error = None
        await self._audit_logger.log_transaction_updated(
            transaction_id=transaction.id,
            group_id=group.id,
            actor_id=self._actor_id,
        )
        return True

    async def delete_transaction(self, transaction: Transaction) -> bool:
        group = self._service.selected_group
        try:
            await self._service.delete_transaction(transaction)
        except (LedgerError, StorageError) as e:
            await self._fail("delete_transaction", e, group_id=group.id if group else None)
            return False

        self._aggregator.remove(transaction.id)
        self.last_error = None
        await self._audit_logger.log_transaction_deleted(
            transaction_id=transaction.id,
            group_id=group.id,
            actor_id=self._actor_id,
        )
        return True

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def _load_budgets(self) -> dict[str, Decimal]:
        try:
            raw = self._snapshots.load(BUDGETS_SNAPSHOT_KEY)
        except StorageError as e:
            logger.warning("budget_snapshot_unreadable", error=str(e))
            return {}
        if not isinstance(raw, dict):
            return {}

        budgets = {}
        for category_id, raw_amount in raw.items():
            try:
                amount = Decimal(str(raw_amount))
            except InvalidOperation:
                amount = None
            if amount is None or not _is_valid_budget(amount):
                logger.warning("malformed_budget_snapshot", category_id=category_id)
                continue
            budgets[str(category_id)] = amount
        return budgets

    def _save_budgets(self) -> None:
        self._snapshots.save(
            BUDGETS_SNAPSHOT_KEY,
            {category_id: str(amount) for category_id, amount in self._budgets.items()},
        )

    @property
    def budgets(self) -> dict[str, Decimal]:
        return dict(self._budgets)

    def budget_for(self, category: Category) -> Optional[Decimal]:
        return self._budgets.get(category.id)

    async def set_budget(self, category: Category, amount: Decimal) -> bool:
        if not amount.is_finite():
            self.last_error = "Please enter a valid budget"
            return False
        if amount < 0:
            self.last_error = "Budget can't be negative"
            return False

        self._budgets[category.id] = amount
        try:
            self._save_budgets()
        except StorageError as e:
            await self._snapshot_failed("save_budgets", e)
            return False

        self.last_error = None
        await self._audit_logger.log_budget_set(category_id=category.id, amount=str(amount))
        return True

    def budget_statuses(
        self,
        categories: Optional[list[Category]] = None,
    ) -> list[BudgetStatus]:
        known = {c.id: c for c in categories or []}
        for transaction in self._aggregator.transactions:
            known.setdefault(transaction.category.id, transaction.category)
        return self._aggregator.budget_statuses(self._budgets, known)

    # -------------------------------------------------------------------------
    # Local data
    # -------------------------------------------------------------------------

    def _save_transactions(self) -> None:
        self._snapshots.save(
            TRANSACTIONS_SNAPSHOT_KEY,
            [t.model_dump(mode="json") for t in self._aggregator.transactions],
        )

    async def save_snapshot(self) -> bool:
        """Persist the current list so it can be shown before the next fetch."""
        try:
            self._save_transactions()
        except StorageError as e:
            await self._snapshot_failed("save_snapshot", e)
            return False
        return True

    def load_snapshot(self) -> int:
        """Load a saved list. Malformed entries are skipped. Returns the count loaded."""
        try:
            raw = self._snapshots.load(TRANSACTIONS_SNAPSHOT_KEY)
        except StorageError as e:
            logger.warning("transaction_snapshot_unreadable", error=str(e))
            self.last_error = "Saved transactions could not be read"
            return 0
        if not isinstance(raw, list):
            return 0

        transactions = []
        for entry in raw:
            try:
                transactions.append(Transaction.model_validate(entry))
            except ValueError:
                logger.warning("malformed_transaction_snapshot")
        self._aggregator.replace(transactions)
        return len(transactions)

    async def clear_all_data(self) -> None:
        """Drop the local list and budgets. Remote documents are untouched."""
        transaction_count = len(self._aggregator)
        budget_count = len(self._budgets)

        self._aggregator.replace([])
        self._budgets = {}
        try:
            self._save_transactions()
            self._save_budgets()
        except StorageError as e:
            await self._snapshot_failed("clear_all_data", e)
            return

        await self._audit_logger.log_data_cleared(
            transaction_count=transaction_count,
            budget_count=budget_count,
        )

    async def export_data(self) -> bytes:
        """The local list as pretty-printed JSON."""
        transactions = self._aggregator.transactions
        payload = json.dumps(
            [t.model_dump(mode="json") for t in transactions],
            indent=2,
            ensure_ascii=False,
        )
        await self._audit_logger.log_data_exported(transaction_count=len(transactions))
        return payload.encode("utf-8")


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryFlow(_BaseFlow):
    """
    Default categories plus the custom categories of the selected group.

    Defaults can't be edited or deleted, and only categories belonging to
    the selected group can be changed.
    """

    def __init__(
        self,
        service: LedgerService,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(service, audit_logger)
        self.categories: list[Category] = list(DEFAULT_CATEGORIES)
        service.add_group_listener(self._on_group_changed)

    async def _on_group_changed(self, group: Optional[Group]) -> None:
        await self.load_categories()

    def _set_custom(self, custom: list[Category]) -> None:
        merged: dict[str, Category] = {c.id: c for c in DEFAULT_CATEGORIES}
        for category in custom:
            merged.setdefault(category.id, category)
        self.categories = list(merged.values())

    @property
    def custom_categories(self) -> list[Category]:
        return [c for c in self.categories if not is_default_category(c)]

    async def load_categories(self) -> list[Category]:
        group = self._service.selected_group
        if group is None:
            self.categories = list(DEFAULT_CATEGORIES)
            return self.categories

        try:
            custom = await self._service.fetch_categories(group.id)
        except (LedgerError, StorageError) as e:
            await self._fail("fetch_categories", e, group_id=group.id)
            self.categories = list(DEFAULT_CATEGORIES)
            return self.categories

        self._set_custom(custom)
        self.last_error = None
        return self.categories

    def categories_for_type(self, transaction_type: TransactionType) -> list[Category]:
        """Categories offered in the add form for a transaction type."""
        if transaction_type == TransactionType.INCOME:
            return [c for c in self.categories if c.id in INCOME_CATEGORY_IDS]
        return [c for c in self.categories if c.id not in INCOME_ONLY_CATEGORY_IDS]

    def _check_editable(self, category: Category) -> Group:
        group = self._service.selected_group
        if is_default_category(category):
            raise CategoryProtectedError("Default categories can't be changed")
        if group is None:
            raise NoGroupSelectedError()
        if category.group_id != group.id:
            raise CategoryProtectedError("This category belongs to another group")
        return group

    async def add_category(
        self,
        name: str,
        icon: str = "📦",
        color: str = "#808080",
    ) -> Optional[Category]:
        group = self._service.selected_group
        if group is None:
            await self._fail("add_category", NoGroupSelectedError())
            return None

        try:
            category = Category(name=name, icon=icon, color=color, group_id=group.id)
        except ValueError as e:
            self.last_error = f"Invalid category: {e}"
            return None

        try:
            stored = await self._service.add_category(category, group.id)
        except (LedgerError, StorageError) as e:
            await self._fail("add_category", e, group_id=group.id)
            return None

        self.categories.append(stored)
        self.last_error = None
        await self._audit_logger.log_category_changed(
            AuditEventType.CATEGORY_ADDED,
            stored,
            group_id=group.id,
            actor_id=self._actor_id,
        )
        return stored

    async def update_category(self, category: Category) -> bool:
        try:
            group = self._check_editable(category)
            await self._service.update_category(category, group.id)
        except (LedgerError, StorageError) as e:
            await self._fail("update_category", e, group_id=category.group_id)
            return False

        self.categories = [category if c.id == category.id else c for c in self.categories]
        self.last_error = None
        await self._audit_logger.log_category_changed(
            AuditEventType.CATEGORY_UPDATED,
            category,
            group_id=group.id,
            actor_id=self._actor_id,
        )
        return True

    async def delete_category(self, category: Category) -> bool:
        try:
            group = self._check_editable(category)
            await self._service.delete_category(category.id, group.id)
        except (LedgerError, StorageError) as e:
            await self._fail("delete_category", e, group_id=category.group_id)
            return False

        self.categories = [c for c in self.categories if c.id != category.id]
        self.last_error = None
        await self._audit_logger.log_category_changed(
            AuditEventType.CATEGORY_DELETED,
            category,
            group_id=group.id,
            actor_id=self._actor_id,
        )
        return True


# =============================================================================
# FACTORY
# =============================================================================

class AppComponents(NamedTuple):
    service: LedgerService
    auth_flow: AuthFlow
    group_flow: GroupFlow
    transaction_flow: TransactionFlow
    category_flow: CategoryFlow


def create_app_components(
    use_storage: bool = True,
    persist_snapshots: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False for an in-memory setup.
        persist_snapshots: Whether local snapshots are written to disk.

    Returns:
        AppComponents with the service and every flow wired to it
    """
    settings = get_settings().app
    logging.getLogger("groupledger").setLevel(
        logging.DEBUG if settings.debug_mode else logging.INFO
    )

    store: DocumentStoreInterface = InMemoryDocumentStore()
    audit_logger = AuditLogger(InMemoryAuditStorage())

    if use_storage and settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.get_spreadsheet()
            store = GoogleSheetsDocumentStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))

    snapshots: SnapshotStoreInterface
    if persist_snapshots:
        snapshots = JsonFileSnapshotStore(settings.snapshot_path)
    else:
        snapshots = InMemorySnapshotStore()

    service = LedgerService(store, InMemoryAuthBackend())
    logger.info(
        "app_components_created",
        environment=settings.app_environment,
        store=type(store).__name__,
        debug=settings.debug_mode,
    )
    return AppComponents(
        service=service,
        auth_flow=AuthFlow(service, audit_logger),
        group_flow=GroupFlow(service, audit_logger),
        transaction_flow=TransactionFlow(service, audit_logger, snapshots),
        category_flow=CategoryFlow(service, audit_logger),
    )
