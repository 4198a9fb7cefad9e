"""
Data Models Package

This package contains all Pydantic models used in Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.account import (
    Account,
    ForgotPasswordRequest,
    Identity,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from finance_tracker.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)
from finance_tracker.models.analytics import (
    AnalyticsSummary,
    MonthlyTrend,
    Totals,
)
from finance_tracker.models.category import (
    DEFAULT_CATEGORIES,
    Category,
    CategoryCreate,
)
from finance_tracker.models.transaction import (
    Money,
    PaymentMethod,
    Transaction,
    TransactionCreate,
    TransactionType,
    TransactionUpdate,
)
from finance_tracker.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Account models
    "Account",
    "ForgotPasswordRequest",
    "Identity",
    "LoginRequest",
    "ResetPasswordRequest",
    "SignupRequest",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
    # Analytics models
    "AnalyticsSummary",
    "MonthlyTrend",
    "Totals",
    # Category models
    "DEFAULT_CATEGORIES",
    "Category",
    "CategoryCreate",
    # Transaction models
    "Money",
    "PaymentMethod",
    "Transaction",
    "TransactionCreate",
    "TransactionType",
    "TransactionUpdate",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
]
