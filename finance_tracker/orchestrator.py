"""
Main Orchestrator for Finance Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Authentication (signup, login, session check, password recovery,
   account deletion)
2. Expenses (owner-scoped transaction CRUD)
3. Categories (owner-scoped, defaults seeded on first read)
4. Analytics (aggregation over the caller's transactions)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every record operation is scoped to the authenticated identity
- Validation happens before hashing or storage
- Expected failures become FinanceTrackerError subclasses with a
  user-safe message; storage failures propagate untouched and are
  answered as 500 by the HTTP edge

The HTTP layer only parses requests, calls a flow and sets cookies.
"""

from datetime import date
from typing import Any, NamedTuple, Optional, TypeVar
from uuid import uuid4

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finance_tracker.activity import ActivityLogger
from finance_tracker.analytics import build_summary
from finance_tracker.config import get_settings
from finance_tracker.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from finance_tracker.models.account import (
    ForgotPasswordRequest,
    Identity,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from finance_tracker.models.analytics import AnalyticsSummary
from finance_tracker.models.category import (
    DEFAULT_CATEGORIES,
    DEFAULT_COLOR,
    Category,
    CategoryCreate,
)
from finance_tracker.models.transaction import (
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)
from finance_tracker.models.timestamps import utc_now
from finance_tracker.models.validation import ValidationResult
from finance_tracker.security import CredentialHasher, TokenService
from finance_tracker.security.tokens import Clock
from finance_tracker.services.storage import (
    AccountStorageInterface,
    CategoryStorageInterface,
    DuplicateError,
    InMemoryStorage,
    SqlAccountStorage,
    SqlCategoryStorage,
    SqlClient,
    SqlTransactionStorage,
    StorageError,
    TransactionStorageInterface,
)
from finance_tracker.validation import CredentialValidator


logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MAX_TREND_MONTHS = 36


def normalize_email(email: str) -> str:
    return email.strip().lower()


def parse_request(model: type[ModelT], data: Any) -> ModelT:
    """
    Build a request model from a decoded JSON body.

    Raises:
        ValidationError: With a short message naming the first bad field
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_describe_first_error(e))


def _describe_first_error(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    if not field:
        return f"Invalid input: {first['msg']}"
    if first["type"] == "extra_forbidden":
        return f"Unknown field: {field}"
    if first["type"] == "missing":
        return f"{field} is required"
    return f"Invalid {field}: {first['msg']}"


def _raise_if_invalid(result: ValidationResult) -> None:
    if not result.is_valid:
        raise ValidationError(result.first_error.message)


class AuthFlow:
    """
    Orchestrates account and session operations.

    Flow (signup):
    1. Validate → presence, email format, password strength
    2. Check duplicate → 409, nothing is created
    3. Hash → password and normalized security answer
    4. Create → account row
    5. Issue → session token for the new identity

    Login never says whether the email or the password was wrong.
    """

    def __init__(
        self,
        account_storage: AccountStorageInterface,
        token_service: TokenService,
        hasher: Optional[CredentialHasher] = None,
        validator: Optional[CredentialValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._accounts = account_storage
        self._tokens = token_service
        self._hasher = hasher or CredentialHasher()
        self._validator = validator or CredentialValidator()
        self._activity = activity_logger or ActivityLogger()

    async def signup(self, request: SignupRequest) -> tuple[Identity, str]:
        """
        Register a new account and start a session.

        Returns:
            (identity, token)

        Raises:
            ValidationError: Missing or malformed input
            ConflictError: Email already registered
        """
        result = self._validator.validate_signup(request)
        if not result.is_valid:
            self._activity.log_signup_rejected(request.email, result.first_error.issue_type)
            _raise_if_invalid(result)

        email = normalize_email(request.email)
        if await self._accounts.get_account_by_email(email) is not None:
            self._activity.log_signup_rejected(email, "duplicate_email")
            raise ConflictError("User already exists with this email")

        try:
            account = await self._accounts.create_account(
                email=email,
                name=request.name.strip(),
                password_hash=self._hasher.hash_password(request.password),
                security_question=request.security_question.strip(),
                security_answer_hash=self._hasher.hash_security_answer(
                    request.security_answer
                ),
            )
        except DuplicateError:
            # Lost a race with a concurrent signup for the same email
            self._activity.log_signup_rejected(email, "duplicate_email")
            raise ConflictError("User already exists with this email")

        self._activity.log_account_created(account.id, email)
        identity = account.to_identity()
        return identity, self._tokens.issue(identity)

    async def login(self, request: LoginRequest) -> tuple[Identity, str]:
        """
        Check credentials and start a session.

        Raises:
            ValidationError: Missing fields or malformed email
            AuthenticationError: Unknown email or wrong password
        """
        _raise_if_invalid(self._validator.validate_login(request))

        email = normalize_email(request.email)
        account = await self._accounts.get_account_by_email(email)
        if account is None or not self._hasher.verify_password(
            request.password, account.password_hash
        ):
            self._activity.log_login_failed(email)
            raise AuthenticationError("Invalid email or password")

        self._activity.log_login_succeeded(account.id)
        identity = account.to_identity()
        return identity, self._tokens.issue(identity)

    def authenticate(self, token: Optional[str]) -> Identity:
        """
        Identity carried by a session token.

        Raises:
            AuthenticationError: Missing, forged, malformed or expired token
        """
        identity = self._tokens.verify(token)
        if identity is None:
            raise AuthenticationError()
        return identity

    async def current_user(self, token: Optional[str]) -> Identity:
        """
        Like authenticate(), but also requires the account to still exist.

        A token issued before the account was deleted stays signed and
        unexpired; this is where it stops being accepted. The email must
        match too, so a token never speaks for a different account that
        ended up with the same id.
        """
        identity = self.authenticate(token)
        account = await self._accounts.get_account_by_id(identity.id)
        if account is None or account.email != normalize_email(identity.email):
            raise AuthenticationError()
        return identity

    async def forgot_password(self, request: ForgotPasswordRequest) -> str:
        """
        Security question of an account.

        Raises:
            ValidationError: Missing email
            NotFoundError: Unknown email, or no question on file
        """
        _raise_if_invalid(self._validator.validate_forgot_password(request))

        account = await self._accounts.get_account_by_email(
            normalize_email(request.email)
        )
        if account is None or not account.security_question:
            raise NotFoundError("User not found")
        return account.security_question

    async def reset_password(self, request: ResetPasswordRequest) -> None:
        """
        Replace the password after a correct security answer.

        An unknown email is reported exactly like a wrong answer.

        Raises:
            ValidationError: Missing fields, weak password or wrong answer
        """
        _raise_if_invalid(self._validator.validate_reset_password(request))

        email = normalize_email(request.email)
        account = await self._accounts.get_account_by_email(email)
        if account is None or not self._hasher.verify_security_answer(
            request.security_answer, account.security_answer_hash
        ):
            self._activity.log_password_reset_failed(email)
            raise ValidationError("Invalid security answer")

        await self._accounts.update_password(
            account.id,
            self._hasher.hash_password(request.new_password),
        )
        self._activity.log_password_reset(account.id)

    async def delete_account(self, identity: Identity) -> None:
        """Delete the account with all its transactions and categories."""
        await self._accounts.delete_account(identity.id)
        self._activity.log_account_deleted(identity.id)

    async def delete_data(self, identity: Identity) -> None:
        """Delete all transactions and categories, keeping the account."""
        await self._accounts.delete_account_data(identity.id)
        self._activity.log_data_deleted(identity.id)


class ExpenseFlow:
    """
    Owner-scoped transaction CRUD.

    Updates and deletes of ids the caller does not own are silent
    no-ops, indistinguishable from unknown ids.
    """

    def __init__(self, transaction_storage: TransactionStorageInterface):
        self._transactions = transaction_storage

    async def list_expenses(self, identity: Identity) -> list[Transaction]:
        return await self._transactions.list_transactions(identity.id)

    async def create_expense(
        self,
        identity: Identity,
        payload: TransactionCreate,
    ) -> Transaction:
        """Store a new transaction with a fresh id and creation time."""
        transaction = Transaction(
            id=str(uuid4()),
            account_id=identity.id,
            created_at=utc_now(),
            **payload.model_dump(),
        )
        return await self._transactions.create_transaction(identity.id, transaction)

    async def update_expense(
        self,
        identity: Identity,
        transaction_id: Optional[str],
        patch: TransactionUpdate,
    ) -> bool:
        if not transaction_id:
            raise ValidationError("Expense ID is required")
        return await self._transactions.update_transaction(
            identity.id, transaction_id, patch
        )

    async def delete_expense(
        self,
        identity: Identity,
        transaction_id: Optional[str],
    ) -> bool:
        if not transaction_id:
            raise ValidationError("Expense ID is required")
        return await self._transactions.delete_transaction(identity.id, transaction_id)


class CategoryFlow:
    """
    Owner-scoped categories.

    The first read of an account with no categories seeds the default
    set, then reads again so the caller sees exactly what storage holds.
    """

    def __init__(
        self,
        category_storage: CategoryStorageInterface,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._categories = category_storage
        self._activity = activity_logger or ActivityLogger()

    async def list_categories(self, identity: Identity) -> list[Category]:
        categories = await self._categories.list_categories(identity.id)
        if categories:
            return categories

        for name, color in DEFAULT_CATEGORIES:
            await self._categories.create_category(
                identity.id,
                Category(
                    id=str(uuid4()),
                    account_id=identity.id,
                    name=name,
                    color=color,
                    is_default=True,
                ),
            )
        self._activity.log_categories_seeded(identity.id, len(DEFAULT_CATEGORIES))

        return await self._categories.list_categories(identity.id)

    async def create_category(
        self,
        identity: Identity,
        payload: CategoryCreate,
    ) -> Category:
        """User-created categories are never default."""
        category = Category(
            id=str(uuid4()),
            account_id=identity.id,
            name=payload.name,
            color=payload.color or DEFAULT_COLOR,
            is_default=False,
        )
        return await self._categories.create_category(identity.id, category)

    async def delete_category(
        self,
        identity: Identity,
        category_id: Optional[str],
    ) -> bool:
        if not category_id:
            raise ValidationError("Category ID is required")
        return await self._categories.delete_category(identity.id, category_id)


class AnalyticsFlow:
    """Aggregates the caller's transactions with the analytics engine."""

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        default_months: int = 6,
    ):
        self._transactions = transaction_storage
        self._default_months = default_months

    async def summarize(
        self,
        identity: Identity,
        months: Optional[int] = None,
        today: Optional[date] = None,
    ) -> AnalyticsSummary:
        """
        Raises:
            ValidationError: months outside 1..MAX_TREND_MONTHS
        """
        month_count = self._default_months if months is None else months
        if not 1 <= month_count <= MAX_TREND_MONTHS:
            raise ValidationError(
                f"months must be between 1 and {MAX_TREND_MONTHS}"
            )

        transactions = await self._transactions.list_transactions(identity.id)
        return build_summary(transactions, month_count=month_count, today=today)


class AppComponents(NamedTuple):
    auth_flow: AuthFlow
    expense_flow: ExpenseFlow
    category_flow: CategoryFlow
    analytics_flow: AnalyticsFlow
    activity_logger: ActivityLogger
    sql_client: Optional[SqlClient]


def create_app_components(
    use_storage: bool = True,
    clock: Optional[Clock] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to the configured database.
                     Set to False for testing with in-memory storage.
        clock: Time source for the token service (tests only).

    Returns:
        AppComponents with every flow wired to the same storage

    Raises:
        StorageError: Database unreachable in production. Elsewhere the
                      factory falls back to in-memory storage.
    """
    settings = get_settings()
    auth_settings = settings.auth
    app_settings = settings.app

    activity_logger = ActivityLogger()
    sql_client = None

    if use_storage:
        try:
            sql_client = SqlClient()
            sql_client.connect()
            account_storage = SqlAccountStorage(sql_client)
            transaction_storage = SqlTransactionStorage(sql_client)
            category_storage = SqlCategoryStorage(sql_client)
        except StorageError as e:
            if app_settings.is_production:
                logger.error("storage_unavailable", error=str(e))
                raise
            # Database not reachable - continue with in-memory storage
            logger.warning("storage_unavailable", error=str(e), fallback="memory")
            sql_client = None
            memory = InMemoryStorage()
            account_storage = transaction_storage = category_storage = memory
    else:
        memory = InMemoryStorage()
        account_storage = transaction_storage = category_storage = memory

    token_service = TokenService.from_settings(auth_settings, clock=clock)
    hasher = CredentialHasher(rounds=auth_settings.bcrypt_rounds)
    validator = CredentialValidator(min_password_length=app_settings.min_password_length)

    return AppComponents(
        auth_flow=AuthFlow(
            account_storage=account_storage,
            token_service=token_service,
            hasher=hasher,
            validator=validator,
            activity_logger=activity_logger,
        ),
        expense_flow=ExpenseFlow(transaction_storage),
        category_flow=CategoryFlow(category_storage, activity_logger=activity_logger),
        analytics_flow=AnalyticsFlow(
            transaction_storage,
            default_months=app_settings.default_trend_months,
        ),
        activity_logger=activity_logger,
        sql_client=sql_client,
    )
