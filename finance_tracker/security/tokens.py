"""
Session Token Issuer/Verifier

Session tokens are signed JWTs carrying the account identity
({id, email, name}) plus issue and expiry times.

A token is valid iff its signature verifies AND now < expiry.
There is no revocation list: logging out only clears the cookie.

DESIGN DECISION: verify() returns None for every kind of failure
(bad signature, malformed token, missing claims, expired). Callers
treat all of them as "unauthenticated" and never tell the client
which check failed.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from finance_tracker.config.settings import AppSettings, AuthSettings
from finance_tracker.models.account import Identity


Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and verifies session tokens.

    Args:
        secret_key: Server-held signing secret.
        algorithm: JWT algorithm (HMAC family).
        lifetime: How long a token stays valid after issuance.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(days=7),
        clock: Optional[Clock] = None,
    ):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._lifetime = lifetime
        self._clock = clock or _utc_now

    @classmethod
    def from_settings(
        cls,
        settings: AuthSettings,
        clock: Optional[Clock] = None,
    ) -> "TokenService":
        return cls(
            secret_key=settings.secret_key.get_secret_value(),
            algorithm=settings.algorithm,
            lifetime=timedelta(days=settings.token_lifetime_days),
            clock=clock,
        )

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(self, identity: Identity) -> str:
        """Sign a token for this identity, expiring one lifetime from now."""
        issued_at = self._clock()
        claims = {
            "id": identity.id,
            "email": identity.email,
            "name": identity.name,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._lifetime).timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> Optional[Identity]:
        """
        Return the identity in a valid token, or None.

        Expiry is checked against the injected clock rather than by
        the JWT library so that it is testable.
        """
        if not token:
            return None

        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return None

        if not self._is_unexpired(claims):
            return None

        try:
            return Identity(
                id=claims["id"],
                email=claims["email"],
                name=claims["name"],
            )
        except (KeyError, ValidationError):
            return None

    def _is_unexpired(self, claims: dict[str, Any]) -> bool:
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            return False
        return self._clock().timestamp() < exp


def session_cookie_options(auth: AuthSettings, app: AppSettings) -> dict[str, Any]:
    """
    Keyword arguments for Response.set_cookie when issuing a session.

    HttpOnly, SameSite=Strict, Secure in production, max-age equal to
    the token lifetime.
    """
    return {
        "key": auth.cookie_name,
        "max_age": auth.token_lifetime_seconds,
        "httponly": True,
        "samesite": "strict",
        "secure": app.is_production,
        "path": "/",
    }


def cleared_cookie_options(auth: AuthSettings, app: AppSettings) -> dict[str, Any]:
    """Same cookie attributes with max-age 0, which tells the browser to drop it."""
    options = session_cookie_options(auth, app)
    options["max_age"] = 0
    return options
