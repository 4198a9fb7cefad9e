"""Credential and session token package."""

from finance_tracker.security.passwords import (
    BCRYPT_MAX_BYTES,
    CredentialHasher,
    fits_bcrypt,
    normalize_security_answer,
)
from finance_tracker.security.tokens import (
    TokenService,
    cleared_cookie_options,
    session_cookie_options,
)

__all__ = [
    "BCRYPT_MAX_BYTES",
    "CredentialHasher",
    "TokenService",
    "cleared_cookie_options",
    "fits_bcrypt",
    "normalize_security_answer",
    "session_cookie_options",
]
