"""
Credential Input Validation

Checks the shape of authentication requests before anything touches
storage or the hasher.

Rules:
- Presence: each request has its own set of required fields, and a
  single message naming all of them (clients show it verbatim)
- Email: something@something.something, no whitespace, at most 254
  characters at signup
- Password: minimum length, at least one lowercase, one uppercase and
  one digit, and no longer than bcrypt accepts
- Security answer: no longer than bcrypt accepts (after normalization)

IMPORTANT: Validation NEVER silently fixes input. Emails are
normalized by the flows, not here.
"""

import re
from typing import Optional

from finance_tracker.config import get_settings
from finance_tracker.models.account import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from finance_tracker.models.validation import ValidationIssue, ValidationResult
from finance_tracker.security.passwords import (
    BCRYPT_MAX_BYTES,
    fits_bcrypt,
    normalize_security_answer,
)


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_CHARSET_PATTERN = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")

MAX_EMAIL_LENGTH = 254
MAX_NAME_LENGTH = 100
MAX_QUESTION_LENGTH = 200


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email.strip()))


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class CredentialValidator:
    """
    Validates signup, login and password recovery requests.

    Args:
        min_password_length: Override for the configured minimum.
    """

    def __init__(self, min_password_length: Optional[int] = None):
        if min_password_length is None:
            min_password_length = get_settings().app.min_password_length
        self._min_password_length = min_password_length

    def validate_password(
        self,
        password: str,
        field: str = "password",
    ) -> list[ValidationIssue]:
        """Strength and length rules shared by signup and reset."""
        issues = []

        if len(password) < self._min_password_length:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_short",
                message=(
                    f"Password must be at least {self._min_password_length} "
                    "characters long"
                ),
            ))
        elif not PASSWORD_CHARSET_PATTERN.match(password):
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_weak",
                message=(
                    "Password must contain at least one uppercase letter, "
                    "one lowercase letter, and one number"
                ),
            ))

        if not fits_bcrypt(password):
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"Password must be at most {BCRYPT_MAX_BYTES} bytes long",
            ))

        return issues

    def validate_signup(self, request: SignupRequest) -> ValidationResult:
        required = (
            request.email,
            request.name,
            request.password,
            request.security_question,
            request.security_answer,
        )
        if any(_blank(value) for value in required):
            return self._missing(
                "Email, name, password, security question, "
                "and security answer are required"
            )

        issues = []

        if not is_valid_email(request.email):
            issues.append(self._bad_email())
        elif len(request.email.strip()) > MAX_EMAIL_LENGTH:
            issues.append(ValidationIssue(
                field="email",
                issue_type="too_long",
                message=f"Email must be at most {MAX_EMAIL_LENGTH} characters long",
            ))

        issues.extend(self.validate_password(request.password))

        if len(request.name.strip()) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Name must be at most {MAX_NAME_LENGTH} characters long",
            ))

        if len(request.security_question.strip()) > MAX_QUESTION_LENGTH:
            issues.append(ValidationIssue(
                field="security_question",
                issue_type="too_long",
                message=(
                    f"Security question must be at most {MAX_QUESTION_LENGTH} "
                    "characters long"
                ),
            ))

        if not fits_bcrypt(normalize_security_answer(request.security_answer)):
            issues.append(ValidationIssue(
                field="security_answer",
                issue_type="too_long",
                message=f"Security answer must be at most {BCRYPT_MAX_BYTES} bytes long",
            ))

        return ValidationResult(issues=issues)

    def validate_login(self, request: LoginRequest) -> ValidationResult:
        if _blank(request.email) or not request.password:
            return self._missing("Email and password are required")

        if not is_valid_email(request.email):
            return ValidationResult(issues=[self._bad_email()])

        return ValidationResult()

    def validate_forgot_password(self, request: ForgotPasswordRequest) -> ValidationResult:
        if _blank(request.email):
            return self._missing("Email is required")
        return ValidationResult()

    def validate_reset_password(self, request: ResetPasswordRequest) -> ValidationResult:
        if _blank(request.email) or _blank(request.security_answer) or not request.new_password:
            return self._missing(
                "Email, security answer, and new password are required"
            )
        return ValidationResult(
            issues=self.validate_password(request.new_password, field="new_password")
        )

    def _missing(self, message: str) -> ValidationResult:
        return ValidationResult(issues=[
            ValidationIssue(field="request", issue_type="missing", message=message),
        ])

    def _bad_email(self) -> ValidationIssue:
        return ValidationIssue(
            field="email",
            issue_type="invalid_format",
            message="Invalid email format",
        )
