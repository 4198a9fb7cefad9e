"""
Account Models for Finance Tracker

An Account is a registered user and its credentials. Only Identity
({id, email, name}) ever leaves the server; hashes stay inside.

Request models accept every field as optional on purpose: presence
and format rules live in the validator, which produces the
user-facing messages.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finance_tracker.models.timestamps import utc_now


class Account(BaseModel):
    """A stored account with its credential hashes."""

    id: int
    email: str = Field(
        ...,
        max_length=254,
        description="Lower-cased, trimmed email; unique"
    )
    name: str = Field(..., max_length=100)
    password_hash: str = Field(
        ...,
        min_length=1,
        description="bcrypt hash of the password"
    )
    security_question: Optional[str] = Field(default=None, max_length=200)
    security_answer_hash: Optional[str] = Field(
        default=None,
        description="bcrypt hash of the normalized security answer"
    )
    created_at: datetime = Field(default_factory=utc_now)

    def to_identity(self) -> 'Identity':
        return Identity(id=self.id, email=self.email, name=self.name)


class Identity(BaseModel):
    """
    The authenticated principal.

    This is exactly what a session token carries and what the
    client gets back as "user".
    """
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str


class _AuthRequest(BaseModel):
    # No whitespace stripping: passwords are taken verbatim
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SignupRequest(_AuthRequest):
    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    security_question: Optional[str] = None
    security_answer: Optional[str] = None


class LoginRequest(_AuthRequest):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(_AuthRequest):
    email: Optional[str] = None


class ResetPasswordRequest(_AuthRequest):
    email: Optional[str] = None
    security_answer: Optional[str] = None
    new_password: Optional[str] = None
