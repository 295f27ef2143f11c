"""
Password hashing helpers shared by the user directory adapters.

Timing Oracle Prevention:
------------------------
check_password() always runs bcrypt. When a user does not exist, the
caller passes None and the comparison runs against a pre-computed dummy
hash, so response time does not reveal whether an email is registered.
"""

import bcrypt

# Pre-computed bcrypt hash for timing oracle prevention.
# Hash of "dummy_password_for_timing_safety" with cost factor 10.
_DUMMY_BCRYPT_HASH = bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(10))


def hash_password(password: str, cost: int = 10) -> bytes:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=cost))


def check_password(password: str, stored_hash: bytes | None) -> bool:
    """
    Constant-time password check.

    Args:
        password: Plaintext candidate
        stored_hash: bcrypt hash, or None when the user is unknown

    Returns:
        True only if stored_hash is not None and matches
    """
    candidate = stored_hash if stored_hash is not None else _DUMMY_BCRYPT_HASH
    matched = bcrypt.checkpw(password.encode(), candidate)
    return matched and stored_hash is not None


def normalize_email(email: str) -> str:
    """Applies: strip whitespace + lowercase"""
    return email.strip().lower()
