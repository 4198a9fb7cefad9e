"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Use a relational database in production
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

ACCESS-CONTROL CONTRACT: every transaction and category operation
takes the owning account id and is scoped by it. An id that exists
but belongs to another account behaves exactly like an id that does
not exist: updates and deletes are silent no-ops that return False.
This never reveals whether another account's record exists.
"""

from abc import ABC, abstractmethod
from typing import Optional

from finance_tracker.models.account import Account
from finance_tracker.models.category import Category
from finance_tracker.models.transaction import Transaction, TransactionUpdate


class AccountStorageInterface(ABC):
    """Persistence boundary for accounts and their credentials."""

    @abstractmethod
    async def create_account(
        self,
        email: str,
        name: str,
        password_hash: str,
        security_question: Optional[str] = None,
        security_answer_hash: Optional[str] = None,
    ) -> Account:
        """
        Create an account.

        Args:
            email: Already normalized (trimmed, lower-cased)

        Returns:
            The stored account with its assigned id

        Raises:
            DuplicateError: If the email is already registered
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_account_by_email(self, email: str) -> Optional[Account]:
        """Find an account by email (case-insensitive). None if absent."""
        pass

    @abstractmethod
    async def get_account_by_id(self, account_id: int) -> Optional[Account]:
        """Find an account by id. None if absent."""
        pass

    @abstractmethod
    async def update_password(self, account_id: int, password_hash: str) -> bool:
        """
        Replace an account's password hash.

        Returns:
            True if an account was updated
        """
        pass

    @abstractmethod
    async def delete_account(self, account_id: int) -> bool:
        """
        Delete an account together with all of its data.

        Transactions and categories are removed before the account
        row. Backends that support transactions do all three deletes
        atomically; otherwise a failure part-way raises StorageError
        and may leave orphaned child rows.

        Returns:
            True if the account existed
        """
        pass

    @abstractmethod
    async def delete_account_data(self, account_id: int) -> None:
        """Delete every transaction and category of an account, keeping the account."""
        pass


class TransactionStorageInterface(ABC):
    """Persistence boundary for per-account transactions."""

    @abstractmethod
    async def list_transactions(self, account_id: int) -> list[Transaction]:
        """All transactions of an account, newest created first."""
        pass

    @abstractmethod
    async def create_transaction(
        self,
        account_id: int,
        transaction: Transaction,
    ) -> Transaction:
        """
        Store a new transaction for this account.

        The stored record is owned by `account_id` whatever
        `transaction.account_id` says.

        Raises:
            DuplicateError: If the id is already used by this account
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        account_id: int,
        transaction_id: str,
        patch: TransactionUpdate,
    ) -> bool:
        """
        Apply a partial update to one of the account's transactions.

        Returns:
            True if a row was changed; False (not an error) when the
            transaction does not exist or is not owned by the account
        """
        pass

    @abstractmethod
    async def delete_transaction(self, account_id: int, transaction_id: str) -> bool:
        """
        Delete one of the account's transactions.

        Returns:
            True if a row was deleted; False (not an error) otherwise
        """
        pass


class CategoryStorageInterface(ABC):
    """Persistence boundary for per-account categories."""

    @abstractmethod
    async def list_categories(self, account_id: int) -> list[Category]:
        """All categories of an account, ordered by name."""
        pass

    @abstractmethod
    async def create_category(self, account_id: int, category: Category) -> Category:
        """Store a new category for this account."""
        pass

    @abstractmethod
    async def delete_category(self, account_id: int, category_id: str) -> bool:
        """
        Delete one of the account's non-default categories.

        Returns:
            True if a row was deleted; False for unknown ids, ids owned
            by another account, and default categories
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
