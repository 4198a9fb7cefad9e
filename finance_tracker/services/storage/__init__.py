"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
A relational database (through SQLAlchemy) in production, plain dicts in
tests and as the fallback when no database is reachable.
"""

from finance_tracker.services.storage.interface import (
    AccountStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    DuplicateError,
    StorageError,
    TransactionStorageInterface,
)
from finance_tracker.services.storage.memory import InMemoryStorage
from finance_tracker.services.storage.sql import (
    SqlAccountStorage,
    SqlCategoryStorage,
    SqlClient,
    SqlTransactionStorage,
)

__all__ = [
    # Interfaces
    "AccountStorageInterface",
    "CategoryStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "StorageError",
    # In-memory implementation
    "InMemoryStorage",
    # SQL implementation
    "SqlAccountStorage",
    "SqlCategoryStorage",
    "SqlClient",
    "SqlTransactionStorage",
]
