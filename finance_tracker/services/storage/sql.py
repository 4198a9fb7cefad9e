"""
Relational Storage Implementation

SQLAlchemy Core over any database SQLAlchemy supports (SQLite by
default, PostgreSQL in production).

Schema mirrors the data model:
- accounts       unique email, credential hashes
- transactions   primary key (id, account_id); every query filters on account_id
- categories     primary key (id, account_id); is_default flag

TRADEOFFS:
- Calls are synchronous inside async methods; each request does a
  handful of short queries, so the event loop is not held for long
- Transaction categories are free text, not foreign keys, so deleting
  a category never touches transactions
"""

from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
    delete,
    event,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import get_settings
from finance_tracker.models.account import Account
from finance_tracker.models.category import Category
from finance_tracker.models.timestamps import utc_now
from finance_tracker.models.transaction import Transaction, TransactionUpdate
from finance_tracker.services.storage.interface import (
    AccountStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    DuplicateError,
    StorageError,
    TransactionStorageInterface,
)


metadata = MetaData()

accounts_table = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(254), nullable=False, unique=True),
    Column("name", String(100), nullable=False),
    Column("password_hash", String(255), nullable=False),
    Column("security_question", String(200)),
    Column("security_answer_hash", String(255)),
    Column("created_at", DateTime, nullable=False),
    # Ids of deleted accounts are never handed out again
    sqlite_autoincrement=True,
)

transactions_table = Table(
    "transactions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("account_id", Integer, ForeignKey("accounts.id"), primary_key=True),
    Column("amount", Numeric(14, 2), nullable=False),
    Column("category", String(100), nullable=False),
    Column("payment_method", String(20), nullable=False),
    Column("transaction_type", String(10), nullable=False),
    Column("description", String(500)),
    Column("date", Date, nullable=False),
    Column("created_at", DateTime, nullable=False),
)

categories_table = Table(
    "categories",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("account_id", Integer, ForeignKey("accounts.id"), primary_key=True),
    Column("name", String(100), nullable=False),
    Column("color", String(20), nullable=False),
    Column("is_default", Boolean, nullable=False, default=False),
)


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class SqlClient:
    """
    Owns the SQLAlchemy engine.

    Creates the schema on first connect and retries the connection
    a few times, since the database may still be starting.
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        if url is None or echo is None:
            settings = get_settings().database
            url = url or settings.url
            echo = settings.echo if echo is None else echo
        self._url = url
        self._echo = echo
        self._engine: Optional[Engine] = None

    @property
    def url(self) -> str:
        return self._url

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Engine:
        """Create the engine and the tables if needed."""
        if self._engine is None:
            try:
                is_sqlite = self._url.startswith("sqlite")
                engine = create_engine(
                    self._url,
                    echo=self._echo,
                    pool_pre_ping=True,
                    connect_args={"check_same_thread": False} if is_sqlite else {},
                )
                if is_sqlite:
                    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
                metadata.create_all(engine)
                self._engine = engine
            except SQLAlchemyError as e:
                raise ConnectionError(f"Failed to connect to database: {e}")

        return self._engine

    @property
    def engine(self) -> Engine:
        return self.connect()

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SqlAccountStorage(AccountStorageInterface):
    """Accounts table, plus the cascading deletes."""

    def __init__(self, client: Optional[SqlClient] = None):
        self._client = client or SqlClient()

    def _row_to_account(self, row) -> Account:
        return Account(
            id=row.id,
            email=row.email,
            name=row.name,
            password_hash=row.password_hash,
            security_question=row.security_question,
            security_answer_hash=row.security_answer_hash,
            created_at=row.created_at,
        )

    async def create_account(
        self,
        email: str,
        name: str,
        password_hash: str,
        security_question: Optional[str] = None,
        security_answer_hash: Optional[str] = None,
    ) -> Account:
        # Built before the insert: a row that fails the model must never be written
        account = Account(
            id=0,
            email=email,
            name=name,
            password_hash=password_hash,
            security_question=security_question,
            security_answer_hash=security_answer_hash,
            created_at=utc_now(),
        )
        try:
            with self._client.engine.begin() as conn:
                result = conn.execute(
                    insert(accounts_table).values(
                        **account.model_dump(exclude={"id"})
                    )
                )
                account_id = result.inserted_primary_key[0]
        except IntegrityError:
            raise DuplicateError(f"Account already exists: {email}")
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create account: {e}")

        return account.model_copy(update={"id": account_id})

    async def get_account_by_email(self, email: str) -> Optional[Account]:
        query = select(accounts_table).where(
            func.lower(accounts_table.c.email) == email.strip().lower()
        )
        try:
            with self._client.engine.connect() as conn:
                row = conn.execute(query).first()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get account: {e}")
        return self._row_to_account(row) if row else None

    async def get_account_by_id(self, account_id: int) -> Optional[Account]:
        query = select(accounts_table).where(accounts_table.c.id == account_id)
        try:
            with self._client.engine.connect() as conn:
                row = conn.execute(query).first()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get account: {e}")
        return self._row_to_account(row) if row else None

    async def update_password(self, account_id: int, password_hash: str) -> bool:
        statement = (
            update(accounts_table)
            .where(accounts_table.c.id == account_id)
            .values(password_hash=password_hash)
        )
        try:
            with self._client.engine.begin() as conn:
                result = conn.execute(statement)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update password: {e}")
        return result.rowcount > 0

    async def delete_account(self, account_id: int) -> bool:
        """Children first, then the account, all in one database transaction."""
        try:
            with self._client.engine.begin() as conn:
                self._delete_children(conn, account_id)
                result = conn.execute(
                    delete(accounts_table).where(accounts_table.c.id == account_id)
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete account: {e}")
        return result.rowcount > 0

    async def delete_account_data(self, account_id: int) -> None:
        try:
            with self._client.engine.begin() as conn:
                self._delete_children(conn, account_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete account data: {e}")

    def _delete_children(self, conn, account_id: int) -> None:
        conn.execute(
            delete(transactions_table).where(transactions_table.c.account_id == account_id)
        )
        conn.execute(
            delete(categories_table).where(categories_table.c.account_id == account_id)
        )


class SqlTransactionStorage(TransactionStorageInterface):
    """Transactions table; every statement is filtered by account_id."""

    def __init__(self, client: Optional[SqlClient] = None):
        self._client = client or SqlClient()

    def _row_to_transaction(self, row) -> Transaction:
        return Transaction(
            id=row.id,
            account_id=row.account_id,
            amount=row.amount,
            category=row.category,
            payment_method=row.payment_method,
            transaction_type=row.transaction_type,
            description=row.description,
            date=row.date,
            created_at=row.created_at,
        )

    def _owned(self, account_id: int, transaction_id: str):
        return (
            (transactions_table.c.account_id == account_id)
            & (transactions_table.c.id == transaction_id)
        )

    async def list_transactions(self, account_id: int) -> list[Transaction]:
        query = (
            select(transactions_table)
            .where(transactions_table.c.account_id == account_id)
            .order_by(transactions_table.c.created_at.desc())
        )
        try:
            with self._client.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list transactions: {e}")
        return [self._row_to_transaction(row) for row in rows]

    async def create_transaction(
        self,
        account_id: int,
        transaction: Transaction,
    ) -> Transaction:
        stored = transaction.model_copy(update={"account_id": account_id})
        try:
            with self._client.engine.begin() as conn:
                conn.execute(
                    insert(transactions_table).values(
                        id=stored.id,
                        account_id=account_id,
                        amount=stored.amount,
                        category=stored.category,
                        payment_method=stored.payment_method.value,
                        transaction_type=stored.transaction_type.value,
                        description=stored.description,
                        date=stored.date,
                        created_at=stored.created_at,
                    )
                )
        except IntegrityError:
            raise DuplicateError(f"Transaction already exists: {stored.id}")
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create transaction: {e}")
        return stored

    async def update_transaction(
        self,
        account_id: int,
        transaction_id: str,
        patch: TransactionUpdate,
    ) -> bool:
        values = {name: _column_value(v) for name, v in patch.changes().items()}
        if not values:
            # Nothing to write; still report whether the row is ours
            query = select(transactions_table.c.id).where(
                self._owned(account_id, transaction_id)
            )
            try:
                with self._client.engine.connect() as conn:
                    return conn.execute(query).first() is not None
            except SQLAlchemyError as e:
                raise StorageError(f"Failed to update transaction: {e}")

        statement = (
            update(transactions_table)
            .where(self._owned(account_id, transaction_id))
            .values(**values)
        )
        try:
            with self._client.engine.begin() as conn:
                result = conn.execute(statement)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update transaction: {e}")
        return result.rowcount > 0

    async def delete_transaction(self, account_id: int, transaction_id: str) -> bool:
        statement = delete(transactions_table).where(
            self._owned(account_id, transaction_id)
        )
        try:
            with self._client.engine.begin() as conn:
                result = conn.execute(statement)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete transaction: {e}")
        return result.rowcount > 0


class SqlCategoryStorage(CategoryStorageInterface):
    """Categories table; default rows are protected from deletion."""

    def __init__(self, client: Optional[SqlClient] = None):
        self._client = client or SqlClient()

    def _row_to_category(self, row) -> Category:
        return Category(
            id=row.id,
            account_id=row.account_id,
            name=row.name,
            color=row.color,
            is_default=row.is_default,
        )

    async def list_categories(self, account_id: int) -> list[Category]:
        query = (
            select(categories_table)
            .where(categories_table.c.account_id == account_id)
            .order_by(categories_table.c.name.asc())
        )
        try:
            with self._client.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list categories: {e}")
        return [self._row_to_category(row) for row in rows]

    async def create_category(self, account_id: int, category: Category) -> Category:
        stored = category.model_copy(update={"account_id": account_id})
        try:
            with self._client.engine.begin() as conn:
                conn.execute(
                    insert(categories_table).values(
                        id=stored.id,
                        account_id=account_id,
                        name=stored.name,
                        color=stored.color,
                        is_default=stored.is_default,
                    )
                )
        except IntegrityError:
            raise DuplicateError(f"Category already exists: {stored.id}")
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create category: {e}")
        return stored

    async def delete_category(self, account_id: int, category_id: str) -> bool:
        statement = delete(categories_table).where(
            (categories_table.c.account_id == account_id)
            & (categories_table.c.id == category_id)
            & (categories_table.c.is_default.is_(False))
        )
        try:
            with self._client.engine.begin() as conn:
                result = conn.execute(statement)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete category: {e}")
        return result.rowcount > 0
