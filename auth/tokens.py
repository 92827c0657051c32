"""
auth/tokens.py -- Session token issuing and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       iss, user_id, username, and exp. The JOSE header carries typ="JWS".
       Verification returns None on any failure -- callers turn that into
       whatever "unauthenticated" means for them.

  Statelessness: issued tokens are not recorded anywhere. Verifying one is a
       pure function of the token, the shared key, and the current time, so
       any service holding SECRET_KEY can check a token without calling us.
       There is no revocation list.

  SECRET_KEY: sourced from core.config.get_settings() via
       TokenIssuer.from_settings(). The Settings class validates the key at
       startup (length, production-mode presence).

  Signing failure (bad key type, broken algorithm config) is NOT caught
       here. It is a misconfiguration, not a per-request error; it propagates
       to the catch-all 500 handler in api/main.py.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

if TYPE_CHECKING:
    from auth.models import Account
    from core.config import Settings

logger = logging.getLogger("identity.tokens")

_ALGORITHM = "HS256"

# Claims every token must carry besides exp/iss, which jose checks itself.
_IDENTITY_CLAIMS = ("user_id", "username")


class TokenIssuer:
    """Mint and verify signed session tokens for directory accounts.

    Args:
        secret_key:     Shared HMAC key. Anyone holding it can verify tokens.
        issuer:         Value of the iss claim (fixed per deployment).
        token_type:     Value of the typ header.
        expire_seconds: Validity window. Defaults to 24 hours.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str = "auth.transmi",
        token_type: str = "JWS",
        expire_seconds: int = 24 * 60 * 60,
    ) -> None:
        self._secret_key = secret_key
        self.issuer = issuer
        self.token_type = token_type
        self.expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(
            secret_key=settings.secret_key,
            issuer=settings.token_issuer,
            token_type=settings.token_type,
            expire_seconds=settings.token_expire_seconds,
        )

    @property
    def expires_in(self) -> int:
        """Seconds until a freshly issued token expires (the expires_in field)."""
        return self.expire_seconds

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def issue(self, account: Account) -> str:
        """Encode a signed JWT asserting the account's identity.

        user_id is rendered as a string so the claim type does not depend on
        the client's JSON number handling.
        """
        expire = datetime.now(timezone.utc) + timedelta(seconds=self.expire_seconds)
        claims = {
            "iss": self.issuer,
            "user_id": str(account.id),
            "username": account.username,
            "exp": expire,
        }
        return jwt.encode(
            claims,
            self._secret_key,
            algorithm=_ALGORITHM,
            headers={"typ": self.token_type},
        )

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode(self, token: str) -> dict | None:
        """Verify a token and return its claims, or None on any failure.

        Checks, in order: signature and algorithm, expiry, issuer, typ
        header, and presence of the identity claims. A token without exp is
        rejected -- jose only checks expiry when the claim is present.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                issuer=self.issuer,
                options={"require_exp": True, "require_iss": True},
            )
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            return None
        if header.get("typ") != self.token_type:
            return None
        if any(name not in claims for name in _IDENTITY_CLAIMS):
            return None
        return claims
