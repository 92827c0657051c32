"""
auth/credentials.py -- Username/password verification against the directory.

Both failure branches (unknown username, wrong password) raise the same
AuthError with the same message. The response must not reveal whether a
username is registered.

Known gap: secrets are stored and compared as plaintext with ==, which is
neither hashed nor constant-time. A hardened build would store a salted
bcrypt hash and compare with bcrypt.checkpw(); doing so changes observable
behaviour and is deliberately not done here.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.directory import AccountDirectory
from auth.errors import AuthError
from auth.models import Account

logger = logging.getLogger("identity.credentials")


def verify_credentials(directory: AccountDirectory, username: str, secret: str) -> Account:
    """Return the Account whose username and secret both match exactly.

    Raises AuthError on any mismatch.
    """
    account = directory.find_by_username(username)
    if account is None:
        logger.warning("Login rejected for %r", username)
        raise AuthError()
    if account.secret != secret:
        logger.warning("Login rejected for %r", username)
        raise AuthError()
    return account
