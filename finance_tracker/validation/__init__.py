"""Input validation package."""

from finance_tracker.validation.validator import CredentialValidator, is_valid_email

__all__ = ["CredentialValidator", "is_valid_email"]
