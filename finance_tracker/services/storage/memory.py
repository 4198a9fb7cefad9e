"""
In-Memory Storage Implementation

Keeps everything in Python dicts. Used by the test suite and as the
fallback when no database is reachable, so the app still starts.

Every operation runs to completion without awaiting anything, so the
multi-step ones (account deletion) are atomic with respect to other
coroutines on the same event loop.
"""

from copy import deepcopy
from typing import Optional

from finance_tracker.models.account import Account
from finance_tracker.models.category import Category
from finance_tracker.models.timestamps import utc_now
from finance_tracker.models.transaction import Transaction, TransactionUpdate
from finance_tracker.services.storage.interface import (
    AccountStorageInterface,
    CategoryStorageInterface,
    DuplicateError,
    TransactionStorageInterface,
)


class InMemoryStorage(
    AccountStorageInterface,
    TransactionStorageInterface,
    CategoryStorageInterface,
):
    """
    All three repositories over one shared in-memory state.

    Returned models are copies; mutating them never changes storage.
    """

    def __init__(self):
        self._accounts: dict[int, Account] = {}
        # (account_id, transaction_id) -> Transaction
        self._transactions: dict[tuple[int, str], Transaction] = {}
        # (account_id, category_id) -> Category
        self._categories: dict[tuple[int, str], Category] = {}
        self._next_account_id = 1

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def create_account(
        self,
        email: str,
        name: str,
        password_hash: str,
        security_question: Optional[str] = None,
        security_answer_hash: Optional[str] = None,
    ) -> Account:
        if self._find_account(email) is not None:
            raise DuplicateError(f"Account already exists: {email}")

        account = Account(
            id=self._next_account_id,
            email=email,
            name=name,
            password_hash=password_hash,
            security_question=security_question,
            security_answer_hash=security_answer_hash,
            created_at=utc_now(),
        )
        self._accounts[account.id] = account
        self._next_account_id += 1
        return account.model_copy()

    async def get_account_by_email(self, email: str) -> Optional[Account]:
        account = self._find_account(email)
        return account.model_copy() if account else None

    async def get_account_by_id(self, account_id: int) -> Optional[Account]:
        account = self._accounts.get(account_id)
        return account.model_copy() if account else None

    async def update_password(self, account_id: int, password_hash: str) -> bool:
        account = self._accounts.get(account_id)
        if account is None:
            return False
        self._accounts[account_id] = account.model_copy(
            update={"password_hash": password_hash}
        )
        return True

    async def delete_account(self, account_id: int) -> bool:
        self._delete_children(account_id)
        return self._accounts.pop(account_id, None) is not None

    async def delete_account_data(self, account_id: int) -> None:
        self._delete_children(account_id)

    def _find_account(self, email: str) -> Optional[Account]:
        wanted = email.strip().lower()
        for account in self._accounts.values():
            if account.email.lower() == wanted:
                return account
        return None

    def _delete_children(self, account_id: int) -> None:
        for key in [k for k in self._transactions if k[0] == account_id]:
            del self._transactions[key]
        for key in [k for k in self._categories if k[0] == account_id]:
            del self._categories[key]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def list_transactions(self, account_id: int) -> list[Transaction]:
        owned = [
            t.model_copy() for (owner, _), t in self._transactions.items()
            if owner == account_id
        ]
        owned.sort(key=lambda t: t.created_at, reverse=True)
        return owned

    async def create_transaction(
        self,
        account_id: int,
        transaction: Transaction,
    ) -> Transaction:
        key = (account_id, transaction.id)
        if key in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")

        stored = transaction.model_copy(update={"account_id": account_id})
        self._transactions[key] = stored
        return stored.model_copy()

    async def update_transaction(
        self,
        account_id: int,
        transaction_id: str,
        patch: TransactionUpdate,
    ) -> bool:
        key = (account_id, transaction_id)
        current = self._transactions.get(key)
        if current is None:
            return False
        if patch.is_empty:
            return True
        self._transactions[key] = current.model_copy(update=deepcopy(patch.changes()))
        return True

    async def delete_transaction(self, account_id: int, transaction_id: str) -> bool:
        return self._transactions.pop((account_id, transaction_id), None) is not None

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self, account_id: int) -> list[Category]:
        owned = [
            c.model_copy() for (owner, _), c in self._categories.items()
            if owner == account_id
        ]
        owned.sort(key=lambda c: c.name)
        return owned

    async def create_category(self, account_id: int, category: Category) -> Category:
        key = (account_id, category.id)
        if key in self._categories:
            raise DuplicateError(f"Category already exists: {category.id}")

        stored = category.model_copy(update={"account_id": account_id})
        self._categories[key] = stored
        return stored.model_copy()

    async def delete_category(self, account_id: int, category_id: str) -> bool:
        key = (account_id, category_id)
        category = self._categories.get(key)
        if category is None or category.is_default:
            return False
        del self._categories[key]
        return True
