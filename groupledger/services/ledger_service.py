"""
Ledger Service

The single gateway between the flows and the backends. It owns the
session state every screen shares (current user, known groups, the
selected group) and translates domain models to and from documents.

DESIGN DECISION: Each operation is exactly one request/response per
document touched. There is no retry, no offline queue and no conflict
resolution. If a write fails, the caller decides what to tell the user.

Document layout:
    users/{uid}
    groups/{gid}
    groups/{gid}/transactions/{tid}
    groups/{gid}/categories/{cid}
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Optional

import structlog

from groupledger.models.ledger import (
    OTHER_CATEGORY,
    Category,
    Group,
    Transaction,
    TransactionType,
    User,
    default_category,
    default_category_by_name,
)
from groupledger.services.auth import (
    AuthBackendInterface,
    AuthUser,
    OAuthCredential,
)
from groupledger.services.storage import (
    DocumentSnapshot,
    DocumentStoreInterface,
    document_path,
)


logger = structlog.get_logger(__name__)

USERS = "users"
GROUPS = "groups"
TRANSACTIONS = "transactions"
CATEGORIES = "categories"

GroupChangedListener = Callable[[Optional[Group]], Awaitable[None]]


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class NotAuthenticatedError(LedgerError):
    """No user is signed in."""

    def __init__(self, message: str = "User is not signed in"):
        super().__init__(message)


class NoGroupSelectedError(LedgerError):
    """The operation needs a selected group."""

    def __init__(self, message: str = "No group selected"):
        super().__init__(message)


class PermissionDeniedError(LedgerError):
    """The current user may not perform this operation."""
    pass


class UserNotFoundError(LedgerError):
    """No user document matches."""
    pass


class InvalidTransactionError(LedgerError):
    """A transaction failed validation before being written."""
    pass


class CategoryProtectedError(LedgerError):
    """Default categories and other groups' categories can't be changed."""
    pass


def _now_iso() -> str:
    return datetime.now().isoformat()


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def _parse_amount(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        amount = Decimal(str(value))
        if not amount.is_finite() or amount < 0:
            return None
        return amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        return None


def _parse_type(value: Any) -> Optional[TransactionType]:
    if not isinstance(value, str):
        return None
    try:
        return TransactionType(value.strip().lower())
    except ValueError:
        return None


# =============================================================================
# DOCUMENT CONVERSIONS
# =============================================================================

def user_to_document(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "createdAt": user.created_at.isoformat(),
    }


def document_to_user(doc: DocumentSnapshot) -> Optional[User]:
    data = doc.data
    name = data.get("name")
    email = data.get("email")
    if not isinstance(name, str) or not isinstance(email, str):
        return None
    return User(
        id=data.get("id") or doc.id,
        name=name,
        email=email,
        created_at=_parse_datetime(data.get("createdAt")) or datetime.now(),
    )


def group_to_document(group: Group) -> dict[str, Any]:
    return {
        "name": group.name,
        "owner": group.owner,
        "members": list(group.members),
        "createdAt": group.created_at.isoformat(),
    }


def document_to_group(doc: DocumentSnapshot) -> Optional[Group]:
    """Build a Group, or None if the document is missing required fields."""
    data = doc.data
    name = data.get("name")
    owner = data.get("owner")
    members = data.get("members")
    if not isinstance(name, str) or not name.strip():
        return None
    if not isinstance(owner, str) or not owner:
        return None
    if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
        return None
    return Group(
        id=doc.id,
        name=name,
        owner=owner,
        members=members,
        created_at=_parse_datetime(data.get("createdAt")) or datetime.now(),
    )


def transaction_to_document(transaction: Transaction) -> dict[str, Any]:
    return {
        "id": transaction.id,
        "title": transaction.title,
        "amount": str(transaction.amount),
        "date": transaction.date.isoformat(),
        "categoryId": transaction.category.id,
        "categoryName": transaction.category.name,
        "categoryIcon": transaction.category.icon,
        "categoryColorHex": transaction.category.color,
        "type": transaction.type.value,
        "note": transaction.note or "",
    }


def _category_from_transaction_document(data: dict[str, Any], group_id: str) -> Category:
    """
    Resolve the category of a stored transaction.

    Current documents embed id/name/icon/color. Older documents only carry
    a plain "category" name, which maps to a default category. Anything
    else falls back to "other".
    """
    category_id = data.get("categoryId")
    name = data.get("categoryName")
    icon = data.get("categoryIcon")
    color = data.get("categoryColorHex")
    if all(isinstance(v, str) and v for v in (category_id, name, icon, color)):
        known = default_category(category_id)
        if known is not None:
            return known
        try:
            return Category(id=category_id, name=name, icon=icon, color=color, group_id=group_id)
        except ValueError:
            return Category(id=category_id, name=name, icon=icon, group_id=group_id)

    legacy_name = data.get("category")
    if isinstance(legacy_name, str):
        known = default_category_by_name(legacy_name)
        if known is not None:
            return known
    return OTHER_CATEGORY


def document_to_transaction(doc: DocumentSnapshot, group_id: str) -> Optional[Transaction]:
    """Build a Transaction, or None if required fields are missing or malformed."""
    data = doc.data
    title = data.get("title")
    amount = _parse_amount(data.get("amount"))
    date = _parse_datetime(data.get("date"))
    tx_type = _parse_type(data.get("type"))
    if not isinstance(title, str) or amount is None or date is None or tx_type is None:
        return None

    note = data.get("note")
    try:
        return Transaction(
            id=doc.id,
            title=title,
            amount=amount,
            date=date,
            category=_category_from_transaction_document(data, group_id),
            type=tx_type,
            note=note if isinstance(note, str) else None,
        )
    except ValueError:
        return None


def category_to_document(category: Category) -> dict[str, Any]:
    return {
        "name": category.name,
        "icon": category.icon,
        "colorHex": category.color,
    }


def document_to_category(doc: DocumentSnapshot, group_id: str) -> Optional[Category]:
    data = doc.data
    name = data.get("name")
    icon = data.get("icon")
    color = data.get("colorHex")
    if not all(isinstance(v, str) and v for v in (name, icon, color)):
        return None
    try:
        return Category(id=doc.id, name=name, icon=icon, color=color, group_id=group_id)
    except ValueError:
        return Category(id=doc.id, name=name, icon=icon, group_id=group_id)


# =============================================================================
# SERVICE
# =============================================================================

class LedgerService:
    """
    Authentication hand-off plus document CRUD for users, groups,
    transactions and categories.
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        auth: AuthBackendInterface,
    ):
        self._store = store
        self._auth = auth
        self._listeners: list[GroupChangedListener] = []

        self.current_user: Optional[User] = None
        self.groups: list[Group] = []
        self.selected_group: Optional[Group] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    # -------------------------------------------------------------------------
    # Session helpers
    # -------------------------------------------------------------------------

    def add_group_listener(self, listener: GroupChangedListener) -> None:
        """Register a coroutine called whenever the selected group changes."""
        self._listeners.append(listener)

    def remove_group_listener(self, listener: GroupChangedListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify_group_changed(self) -> None:
        for listener in list(self._listeners):
            await listener(self.selected_group)

    def _require_user(self) -> User:
        if self.current_user is None:
            raise NotAuthenticatedError()
        return self.current_user

    def _require_group(self) -> Group:
        if self.selected_group is None:
            raise NoGroupSelectedError()
        return self.selected_group

    def _replace_local_group(self, group: Group) -> None:
        for idx, existing in enumerate(self.groups):
            if existing.id == group.id:
                self.groups[idx] = group
                break
        if self.selected_group is not None and self.selected_group.id == group.id:
            self.selected_group = group

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def sign_up(self, email: str, password: str, name: str) -> User:
        """Create the account, then mirror the profile into users/{uid}."""
        auth_user = await self._auth.sign_up(email, password)
        user = User(id=auth_user.uid, name=name, email=email)
        await self.create_user(user)
        self.current_user = user
        return user

    async def sign_in(self, email: str, password: str) -> User:
        auth_user = await self._auth.sign_in(email, password)
        self.current_user = await self.get_user(auth_user.uid)
        return self.current_user

    async def sign_in_with_credential(self, credential: OAuthCredential) -> User:
        """Hand an identity-provider token to the auth backend and store the profile."""
        auth_user: AuthUser = await self._auth.sign_in_with_credential(credential)
        user = User(
            id=auth_user.uid,
            name=credential.display_name or auth_user.display_name or "User",
            email=credential.email or auth_user.email,
        )
        await self.create_user(user)
        self.current_user = user
        return user

    async def sign_out(self) -> None:
        await self._auth.sign_out()
        self.current_user = None
        self.groups = []
        if self.selected_group is not None:
            self.selected_group = None
            await self._notify_group_changed()

    async def send_password_reset(self, email: str) -> None:
        await self._auth.send_password_reset(email)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def create_user(self, user: User) -> None:
        await self._store.set_document(document_path(USERS, user.id), user_to_document(user))

    async def get_user(self, user_id: str) -> User:
        doc = await self._store.get_document(document_path(USERS, user_id))
        user = document_to_user(doc) if doc else None
        if user is None:
            raise UserNotFoundError(f"User not found: {user_id}")
        return user

    async def find_user_by_email(self, email: str) -> Optional[User]:
        docs = await self._store.query(USERS, "email", "==", email.strip())
        for doc in docs:
            user = document_to_user(doc)
            if user is not None:
                return user
        return None

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def create_group(self, name: str) -> Group:
        """Create a group owned by the current user and select it."""
        user = self._require_user()
        group = Group(name=name, owner=user.id, members=[user.id])
        await self._store.set_document(
            document_path(GROUPS, group.id),
            group_to_document(group),
        )
        self.groups.append(group)
        self.selected_group = group
        await self._notify_group_changed()
        return group

    async def fetch_groups(self) -> list[Group]:
        """Load every group the current user is a member of."""
        if self.current_user is None:
            logger.debug("fetch_groups_without_user")
            return []

        docs = await self._store.query(GROUPS, "members", "array_contains", self.current_user.id)
        groups = []
        for doc in docs:
            group = document_to_group(doc)
            if group is None:
                logger.warning("malformed_group_document", group_id=doc.id)
                continue
            groups.append(group)
        self.groups = groups
        return groups

    async def select_group(self, group: Group) -> None:
        self.selected_group = group
        await self._notify_group_changed()

    async def add_member(self, email: str) -> Group:
        """Add the user registered under email to the selected group."""
        group = self._require_group()
        member = await self.find_user_by_email(email)
        if member is None:
            raise UserNotFoundError(f"No user with email {email}")

        members = await self._store.array_union(
            document_path(GROUPS, group.id),
            "members",
            [member.id],
        )

        updated = group.model_copy(update={"members": members})
        self._replace_local_group(updated)
        return updated

    async def delete_group(self, group: Group) -> int:
        """
        Delete a group and its transactions. Owner only.

        Returns the number of transactions deleted.
        """
        user = self.current_user
        if user is None or not group.is_owner(user.id):
            raise PermissionDeniedError("Only the group owner can delete the group")

        collection = document_path(GROUPS, group.id, TRANSACTIONS)
        docs = await self._store.list_documents(collection)
        for doc in docs:
            await self._store.delete_document(doc.path)
        await self._store.delete_document(document_path(GROUPS, group.id))

        self.groups = [g for g in self.groups if g.id != group.id]
        if self.selected_group is not None and self.selected_group.id == group.id:
            self.selected_group = None
        await self._notify_group_changed()
        return len(docs)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def add_transaction(self, transaction: Transaction, group_id: str) -> None:
        data = transaction_to_document(transaction)
        data["createdAt"] = _now_iso()
        await self._store.set_document(
            document_path(GROUPS, group_id, TRANSACTIONS, transaction.id),
            data,
        )

    async def fetch_transactions(self, group_id: str) -> list[Transaction]:
        """
        Load a group's transactions, newest first.

        Only members of the group may read them.
        """
        user = self._require_user()
        doc = await self._store.get_document(document_path(GROUPS, group_id))
        group = document_to_group(doc) if doc else None
        if group is None or not group.is_member(user.id):
            raise PermissionDeniedError("You don't have access to this group")

        docs = await self._store.list_documents(document_path(GROUPS, group_id, TRANSACTIONS))
        transactions = []
        for tx_doc in docs:
            transaction = document_to_transaction(tx_doc, group_id)
            if transaction is None:
                logger.warning("malformed_transaction_document", group_id=group_id, doc_id=tx_doc.id)
                continue
            transactions.append(transaction)
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def update_transaction(self, transaction: Transaction) -> None:
        group = self._require_group()
        data = transaction_to_document(transaction)
        data["updatedAt"] = _now_iso()
        await self._store.set_document(
            document_path(GROUPS, group.id, TRANSACTIONS, transaction.id),
            data,
            merge=True,
        )

    async def delete_transaction(self, transaction: Transaction) -> None:
        group = self._require_group()
        await self._store.delete_document(
            document_path(GROUPS, group.id, TRANSACTIONS, transaction.id)
        )

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def fetch_categories(self, group_id: str) -> list[Category]:
        """Custom categories of a group; malformed documents are skipped."""
        docs = await self._store.list_documents(document_path(GROUPS, group_id, CATEGORIES))
        categories = []
        for doc in docs:
            category = document_to_category(doc, group_id)
            if category is None:
                logger.warning("malformed_category_document", group_id=group_id, doc_id=doc.id)
                continue
            categories.append(category)
        return categories

    async def add_category(self, category: Category, group_id: str) -> Category:
        """Store a custom category. An empty id gets a generated one."""
        data = category_to_document(category)
        data["createdAt"] = _now_iso()
        collection = document_path(GROUPS, group_id, CATEGORIES)
        if category.id:
            await self._store.set_document(document_path(collection, category.id), data)
            category_id = category.id
        else:
            category_id = await self._store.add_document(collection, data)
        return category.model_copy(update={"id": category_id, "group_id": group_id})

    async def update_category(self, category: Category, group_id: str) -> None:
        data = category_to_document(category)
        data["updatedAt"] = _now_iso()
        await self._store.update_document(
            document_path(GROUPS, group_id, CATEGORIES, category.id),
            data,
        )

    async def delete_category(self, category_id: str, group_id: str) -> None:
        await self._store.delete_document(document_path(GROUPS, group_id, CATEGORIES, category_id))
