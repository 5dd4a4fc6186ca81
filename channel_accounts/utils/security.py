"""
Password hashing helpers (argon2id via argon2-cffi).

The hasher is built once per application from ARGON2_* config and kept in
``app.extensions``; passwords are always hashed before an Account is persisted.
"""
from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from flask import current_app

from channel_accounts.utils.exceptions import HashIntegrityError

_DUMMY_PASSWORD = "dummy-password-for-timing"


def init_hasher(app) -> PasswordHasher:
    ph = PasswordHasher(
        time_cost=app.config["ARGON2_TIME_COST"],
        memory_cost=app.config["ARGON2_MEMORY_COST"],
        parallelism=app.config["ARGON2_PARALLELISM"],
    )
    app.extensions["argon2"] = ph
    app.extensions["argon2_dummy_hash"] = ph.hash(_DUMMY_PASSWORD)
    return ph


def _hasher() -> PasswordHasher:
    return current_app.extensions["argon2"]


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return _hasher().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a stored argon2 hash.

    Returns False on mismatch; raises HashIntegrityError if the stored hash is malformed.
    """
    try:
        return _hasher().verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as exc:
        raise HashIntegrityError() from exc


def dummy_verify(password: str) -> None:
    """Spend the same work as a real verify, for accounts that do not exist."""
    try:
        _hasher().verify(current_app.extensions["argon2_dummy_hash"], password)
    except VerifyMismatchError:
        pass


def needs_rehash(password_hash: str) -> bool:
    return _hasher().check_needs_rehash(password_hash)
