"""
auth/passwords.py -- bcrypt password hashing and verification.

Security design decisions:
  bcrypt directly (no passlib wrapper). The cost factor is passed in by the
       caller so AuthService can take it from configuration; each call to
       hash_password() draws a fresh random salt via bcrypt.gensalt().

  72-byte limit: bcrypt only consumes the first 72 bytes of its input, and
       bcrypt>=4.1 raises ValueError on longer input instead of truncating.
       _encode() truncates explicitly on BOTH hash and verify so a long
       password hashes and verifies consistently.

  Verification uses bcrypt.checkpw(), which recomputes the digest from the
       embedded salt and cost and compares in constant time. Hash strings are
       never compared with ==.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError for an empty password -- an empty secret is a caller
    bug, the service rejects it before hashing.
    """
    if not plain:
        raise ValueError("Cannot hash an empty password")
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash verifies as False rather than raising.
    """
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError:
        return False
