"""
auth/directory.py -- In-memory account directory.

Pattern: Repository. AccountDirectory owns the account list and the next-id
counter; route code never touches either directly.

One instance is built in the API lifespan and stored on app.state.directory.
Nothing here is module-global, so tests can build as many isolated
directories as they like.

Concurrency:
  FastAPI runs sync route handlers in a worker thread pool, so register()
  can be called from several threads at once. A single threading.Lock guards
  the check-then-insert sequence: two concurrent registrations of the same
  username cannot both pass the "does not exist" check. Reads take the same
  lock and return copies, so callers always see a consistent snapshot.

  Lookups are linear scans. The directory is a small demo store; there is no
  index to keep in sync with the list.

Persistence: none. A restart discards every account.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import threading

from auth.errors import ConflictError, ValidationError
from auth.models import Account

logger = logging.getLogger("identity.directory")


class AccountDirectory:
    """Repository for Account entities.

    Usage:
        directory = AccountDirectory()
        account = directory.register("alice", "pw1")   # Account(id=1, ...)
        directory.find_by_username("alice")
        directory.list_accounts()                      # [{"id": 1, "username": "alice"}]
    """

    def __init__(self) -> None:
        self._accounts: list[Account] = []
        self._next_id = 1
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def register(self, username: str, secret: str) -> Account:
        """Create an account with the next sequential id and return it.

        Only the empty string is rejected -- trimming whitespace is the
        caller's job.

        Raises:
            ValidationError: username or secret is empty.
            ConflictError:   an account with this exact username exists.
        """
        if not username or not secret:
            raise ValidationError("username and password must not be empty")

        with self._lock:
            if self._find(username) is not None:
                raise ConflictError()
            account = Account(id=self._next_id, username=username, secret=secret)
            self._accounts.append(account)
            self._next_id += 1

        logger.info("Account created: %s (id=%d)", account.username, account.id)
        return account

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_username(self, username: str) -> Account | None:
        """Exact, case-sensitive lookup. Returns None when absent."""
        with self._lock:
            return self._find(username)

    def list_accounts(self) -> list[dict]:
        """Return id and username of every account, in creation order.

        The result is built from fresh dicts under the lock, so it can be
        serialized after later registrations without changing. The secret is
        never included.
        """
        with self._lock:
            return [account.public() for account in self._accounts]

    def has_accounts(self) -> bool:
        return len(self) > 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find(self, username: str) -> Account | None:
        # Caller must hold self._lock.
        for account in self._accounts:
            if account.username == username:
                return account
        return None
