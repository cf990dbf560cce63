"""
Cryptographic helpers — password hashing and constant-time comparison.

Uses argon2 for passwords (via argon2-cffi).
"""

from __future__ import annotations

import hmac

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_password_hasher = PasswordHasher()


def hash_password(plain_password: str) -> str:
    """Hash *plain_password* with argon2id.

    Returns:
        Argon2 hash string (includes algorithm parameters and salt).
    """
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify *plain_password* against an argon2 *password_hash*.

    Returns:
        ``True`` if the password matches, ``False`` on mismatch or when the
        stored hash is malformed.
    """
    try:
        return _password_hasher.verify(password_hash, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def codes_match(stored: str, supplied: str) -> bool:
    """Exact, constant-time string comparison of two codes."""
    return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))
