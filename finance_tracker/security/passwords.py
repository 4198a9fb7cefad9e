"""
Credential Store & Verifier

Passwords and security answers are stored only as bcrypt hashes.

DESIGN DECISION: The security answer gets the same treatment as the
password. It is normalized first (trim + lowercase) so answers still
match case-insensitively, then hashed; verification goes through
bcrypt's own constant-time check.

Verification never raises for bad input: a malformed hash, an
over-long secret or a missing stored answer all simply fail to match.
"""

from typing import Optional

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases refuse longer input
BCRYPT_MAX_BYTES = 72


def normalize_security_answer(answer: str) -> str:
    """Answers compare case-insensitively and ignore surrounding spaces."""
    return answer.strip().lower()


def fits_bcrypt(secret: str) -> bool:
    """Whether a secret can be hashed without truncation."""
    return len(secret.encode("utf-8")) <= BCRYPT_MAX_BYTES


class CredentialHasher:
    """
    One-way hashing of passwords and security answers.

    Args:
        rounds: bcrypt work factor (log2 of iterations).
    """

    def __init__(self, rounds: int = 12):
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash_password(self, password: str) -> str:
        """
        Hash a password with a fresh salt.

        Raises:
            ValueError: If the password is longer than bcrypt accepts.
                        Callers validate length before hashing.
        """
        if not fits_bcrypt(password):
            raise ValueError(f"Secret exceeds {BCRYPT_MAX_BYTES} bytes")
        hashed = bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(rounds=self._rounds),
        )
        return hashed.decode("utf-8")

    def verify_password(self, password: str, hashed: Optional[str]) -> bool:
        """Check a password against a stored hash."""
        if not password or not hashed or not fits_bcrypt(password):
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed or foreign hash
            return False

    def hash_security_answer(self, answer: str) -> str:
        return self.hash_password(normalize_security_answer(answer))

    def verify_security_answer(self, answer: str, hashed: Optional[str]) -> bool:
        return self.verify_password(normalize_security_answer(answer), hashed)
