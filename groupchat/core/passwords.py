"""Password hashing via passlib's salted PBKDF2-SHA256.

Hashes are self-describing (``$pbkdf2-sha256$rounds$salt$digest``) so the
round count can be raised later without invalidating stored passwords.
"""

from typing import Optional

from passlib.hash import pbkdf2_sha256

from .config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    hasher = pbkdf2_sha256.using(rounds=rounds or settings.password_hash_rounds)
    return hasher.hash(password)


def verify_password(password: str, stored_hash: str) -> bool:
    """Constant-time check of *password* against a stored hash.

    Returns False for hashes passlib does not recognise.
    """
    if not pbkdf2_sha256.identify(stored_hash):
        return False
    return pbkdf2_sha256.verify(password, stored_hash)
