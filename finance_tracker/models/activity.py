"""
Activity Models for Finance Tracker

Significant actions (signups, logins, deletions, storage failures) are
described by an ActivityEvent and written to the structured log.

DESIGN DECISION: Activity events are log lines, nothing more.
They are never stored, queried or shown back to users; there is no
audit trail.

Passwords, security answers and tokens never appear in an event.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Authentication
    ACCOUNT_CREATED = "account_created"
    SIGNUP_REJECTED = "signup_rejected"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    PASSWORD_RESET = "password_reset"
    PASSWORD_RESET_FAILED = "password_reset_failed"

    # Account lifecycle
    ACCOUNT_DELETED = "account_deleted"
    DATA_DELETED = "data_deleted"

    # Records
    CATEGORIES_SEEDED = "categories_seeded"

    # System events
    STORAGE_ERROR = "storage_error"
    REQUEST_FAILED = "request_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    account_id: Optional[int] = Field(
        default=None,
        description="Account the event is about, when known"
    )
    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_id": self.account_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.account_created(account_id, email)
        event = ActivityEventBuilder.login_failed(email)
    """

    @staticmethod
    def account_created(account_id: int, email: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_CREATED,
            account_id=account_id,
            description="Account created",
            details={"email": email},
        )

    @staticmethod
    def signup_rejected(email: Optional[str], reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SIGNUP_REJECTED,
            severity=ActivitySeverity.WARNING,
            description=f"Signup rejected: {reason}",
            details={"email": email, "reason": reason},
        )

    @staticmethod
    def login_succeeded(account_id: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LOGIN_SUCCEEDED,
            account_id=account_id,
            description="Login succeeded",
        )

    @staticmethod
    def login_failed(email: str) -> ActivityEvent:
        # The reason (unknown email vs wrong password) is not recorded
        return ActivityEvent(
            event_type=ActivityEventType.LOGIN_FAILED,
            severity=ActivitySeverity.WARNING,
            description="Login failed",
            details={"email": email},
        )

    @staticmethod
    def password_reset(account_id: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PASSWORD_RESET,
            account_id=account_id,
            description="Password reset with security answer",
        )

    @staticmethod
    def password_reset_failed(email: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PASSWORD_RESET_FAILED,
            severity=ActivitySeverity.WARNING,
            description="Password reset rejected",
            details={"email": email},
        )

    @staticmethod
    def account_deleted(account_id: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_DELETED,
            account_id=account_id,
            description="Account and all its data deleted",
        )

    @staticmethod
    def data_deleted(account_id: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DATA_DELETED,
            account_id=account_id,
            description="All transactions and categories deleted",
        )

    @staticmethod
    def categories_seeded(account_id: int, count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CATEGORIES_SEEDED,
            account_id=account_id,
            description=f"Seeded {count} default categories",
            details={"count": count},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        account_id: Optional[int] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORAGE_ERROR,
            severity=ActivitySeverity.ERROR,
            account_id=account_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def request_failed(
        method: str,
        path: str,
        error_type: str,
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REQUEST_FAILED,
            severity=ActivitySeverity.ERROR,
            description=f"Unhandled error on {method} {path}",
            error_message=error_message,
            details={"error_type": error_type},
        )
