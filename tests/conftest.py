"""
Shared fixtures.

Every test runs with a known signing secret, the cheapest bcrypt work
factor and a throwaway SQLite file, so nothing reads the developer's
.env or touches a real database.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from finance_tracker.config import get_settings
from finance_tracker.models.account import Identity
from finance_tracker.models.transaction import (
    PaymentMethod,
    Transaction,
    TransactionType,
)
from finance_tracker.security import CredentialHasher, TokenService


TEST_SECRET = "test-signing-secret"


@pytest.fixture(autouse=True)
def test_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("AUTH_SECRET_KEY", TEST_SECRET)
    monkeypatch.setenv("AUTH_BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("APP_ENVIRONMENT", "test")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def hasher():
    return CredentialHasher(rounds=4)


@pytest.fixture
def token_service():
    return TokenService(secret_key=TEST_SECRET)


@pytest.fixture
def identity():
    return Identity(id=1, email="asha@example.com", name="Asha")


def make_transaction(
    amount: str = "100.00",
    transaction_type: TransactionType = TransactionType.DEBIT,
    category: str = "Food & Dining",
    payment_method: PaymentMethod = PaymentMethod.UPI,
    on: date = date(2024, 12, 15),
    account_id: int = 1,
    transaction_id: str = "txn-1",
    created_at: datetime = datetime(2024, 12, 15, 10, 0, 0),
) -> Transaction:
    return Transaction(
        id=transaction_id,
        account_id=account_id,
        amount=Decimal(amount),
        category=category,
        payment_method=payment_method,
        transaction_type=transaction_type,
        date=on,
        created_at=created_at,
    )
