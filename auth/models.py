"""
auth/models.py -- Domain dataclasses for identity entities.

Pattern: Data class (pure data container, near-zero logic). The directory
and routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Account:
    """A directory entry: sequential id, unique username, and the login secret.

    Frozen -- accounts are never updated after creation, so a reader holding
    an Account can never observe a half-written one.

    secret is stored verbatim (no hashing). It must never be serialized;
    use public() for anything that leaves the process.
    """

    id: int
    username: str
    secret: str = field(repr=False)  # kept out of log lines

    def public(self) -> dict:
        """Return the fields that are safe to expose: id and username."""
        return {"id": self.id, "username": self.username}
