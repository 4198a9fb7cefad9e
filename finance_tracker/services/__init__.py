"""Services package."""

from finance_tracker.services.storage import (
    AccountStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    DuplicateError,
    InMemoryStorage,
    SqlAccountStorage,
    SqlCategoryStorage,
    SqlClient,
    SqlTransactionStorage,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    # Storage services
    "AccountStorageInterface",
    "CategoryStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "InMemoryStorage",
    "SqlAccountStorage",
    "SqlCategoryStorage",
    "SqlClient",
    "SqlTransactionStorage",
    "StorageError",
    "TransactionStorageInterface",
]
