"""Security helpers (hashing, verification and random tokens)."""

from __future__ import annotations

import secrets

from argon2 import PasswordHasher, exceptions as argon_exc

# argon2-cffi defaults (time_cost=3, memory_cost=64 MiB) land well above 100 ms per verify.
_ph = PasswordHasher()

RESET_TOKEN_BYTES = 20


def hash_password(password: str) -> str:
    """Create a salted Argon2id hash."""
    return _ph.hash(password)


def verify_password(password: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    try:
        return _ph.verify(stored_hash, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def new_reset_token() -> str:
    """Random hex token used for password reset links."""
    return secrets.token_hex(RESET_TOKEN_BYTES)
