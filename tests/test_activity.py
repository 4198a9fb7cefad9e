"""
Tests for activity logging.

Events go through structlog into stdlib logging as JSON lines, so
caplog sees them.
"""

import json
import logging

import pytest

from finance_tracker.activity import ActivityLogger


@pytest.fixture
def activity(caplog):
    caplog.set_level(logging.DEBUG, logger="finance_tracker.test")
    return ActivityLogger(logger_name="finance_tracker.test")


def last_event(caplog) -> dict:
    return json.loads(caplog.records[-1].getMessage())


class TestActivityLogger:
    """Tests for ActivityLogger."""

    def test_account_created_is_info(self, activity, caplog):
        """Test level and event fields of a signup."""
        activity.log_account_created(7, "asha@example.com")
        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        event = last_event(caplog)
        assert event["event_type"] == "account_created"
        assert event["account_id"] == 7
        assert event["details"] == {"email": "asha@example.com"}

    def test_login_failed_is_warning(self, activity, caplog):
        """Test that failed logins are warnings."""
        activity.log_login_failed("asha@example.com")
        assert caplog.records[-1].levelno == logging.WARNING
        assert last_event(caplog)["event_type"] == "login_failed"

    def test_storage_error_includes_traceback(self, activity, caplog):
        """Test that storage errors are logged with the stack trace."""
        try:
            raise RuntimeError("database is locked")
        except RuntimeError:
            activity.log_storage_error("GET /expenses", "database is locked", account_id=3)
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        event = last_event(caplog)
        assert event["error_message"] == "database is locked"
        assert "Traceback" in event["exception"]

    def test_request_failed(self, activity, caplog):
        """Test the unexpected-exception event."""
        activity.log_request_failed("POST", "/expenses", ValueError("boom"))
        event = last_event(caplog)
        assert event["event_type"] == "request_failed"
        assert event["error_message"] == "boom"
        assert "POST /expenses" in event["description"]

    def test_secrets_never_logged(self, activity, caplog):
        """Test that reset events carry only the email."""
        activity.log_password_reset_failed("asha@example.com")
        event = last_event(caplog)
        assert set(event["details"]) == {"email"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
