"""Account service: signup and credential checks.

Users live under the ``("users", username)`` key. Passwords are stored only
as passlib PBKDF2 hashes and never logged.
"""

import logging

from ..core.passwords import hash_password, verify_password
from ..exceptions import AuthenticationError, UserAlreadyExistsError
from ..repositories.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

USERS_PREFIX = "users"


def register_user(store: KeyValueStore, username: str, password: str) -> dict:
    """Create an account.

    Raises UserAlreadyExistsError if *username* is taken.
    """
    if store.get((USERS_PREFIX, username)) is not None:
        raise UserAlreadyExistsError(username)

    record = {"username": username, "password": hash_password(password)}
    store.set((USERS_PREFIX, username), record)
    logger.info("User registered", extra={"username": username})
    return record


def authenticate(store: KeyValueStore, username: str, password: str) -> dict:
    """Validate credentials and return the stored user record.

    Unknown user and wrong password produce the same error.
    """
    user = store.get((USERS_PREFIX, username))
    if user is None or not verify_password(password, user.get("password", "")):
        logger.info("Login failed", extra={"username": username})
        raise AuthenticationError("Invalid username or password")
    return user


def purge_users(store: KeyValueStore) -> int:
    count = store.delete_prefix((USERS_PREFIX,))
    logger.warning("Purged all accounts", extra={"count": count})
    return count
