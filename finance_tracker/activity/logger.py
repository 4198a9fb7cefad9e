"""
Activity Logger

Every significant action in the system is written to the structured log.
This provides:
1. Debugging capability
2. Visibility into failed logins and resets
3. Server-side detail for errors the client only sees as a short message

The logger:
- Writes JSON lines through structlog
- Never persists anything (there is no audit trail)
- Never logs secrets
"""

import logging
import sys
from typing import Optional

import structlog

from finance_tracker.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """
    Route structlog output through stdlib logging at the right level.

    Safe to call more than once; the first call wins for handlers.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )


class ActivityLogger:
    """
    Central activity logging service.

    Flows receive one of these and call the typed log_* helpers;
    the HTTP edge uses log_request_failed for unexpected exceptions.
    """

    def __init__(self, logger_name: str = "finance_tracker"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent, exc_info: bool = False) -> None:
        """Write one event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("activity_event", exc_info=exc_info, **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    def log_account_created(self, account_id: int, email: str) -> None:
        self.log(ActivityEventBuilder.account_created(account_id, email))

    def log_signup_rejected(self, email: Optional[str], reason: str) -> None:
        self.log(ActivityEventBuilder.signup_rejected(email, reason))

    def log_login_succeeded(self, account_id: int) -> None:
        self.log(ActivityEventBuilder.login_succeeded(account_id))

    def log_login_failed(self, email: str) -> None:
        self.log(ActivityEventBuilder.login_failed(email))

    def log_password_reset(self, account_id: int) -> None:
        self.log(ActivityEventBuilder.password_reset(account_id))

    def log_password_reset_failed(self, email: str) -> None:
        self.log(ActivityEventBuilder.password_reset_failed(email))

    def log_account_deleted(self, account_id: int) -> None:
        self.log(ActivityEventBuilder.account_deleted(account_id))

    def log_data_deleted(self, account_id: int) -> None:
        self.log(ActivityEventBuilder.data_deleted(account_id))

    def log_categories_seeded(self, account_id: int, count: int) -> None:
        self.log(ActivityEventBuilder.categories_seeded(account_id, count))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        account_id: Optional[int] = None,
    ) -> None:
        """Log a storage failure. Called from inside an except block."""
        event = ActivityEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            account_id=account_id,
        )
        self.log(event, exc_info=True)

    def log_request_failed(
        self,
        method: str,
        path: str,
        error: Exception,
    ) -> None:
        """Log an unexpected exception with its stack trace."""
        event = ActivityEventBuilder.request_failed(
            method=method,
            path=path,
            error_type=type(error).__name__,
            error_message=str(error),
        )
        self.log(event, exc_info=True)
