"""
auth/errors.py -- Error taxonomy for the identity service.

Every failure a request can produce is one of these kinds. Each class carries
the HTTP status and machine code it maps to, so api/main.py needs a single
exception handler to turn any of them into the JSON error envelope:

    {"success": false, "error": <message>, "code": <code>}

AuthError deliberately has ONE message for both "unknown username" and
"wrong password" -- callers must not be able to tell which check failed.

Layer rule: no imports from api/ or core/. Status codes are plain ints so
auth/ does not depend on the web framework.
"""

from __future__ import annotations


class IdentityError(Exception):
    """Base class for all expected identity-service failures."""

    status_code: int = 500
    code: str = "identity_error"
    default_message: str = "Identity service error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "code": self.code}


class ValidationError(IdentityError):
    """Required field missing or empty."""

    status_code = 400
    code = "validation_error"
    default_message = "username and password are required"


class MalformedInputError(IdentityError):
    """Body is not valid JSON, or not the expected object shape."""

    status_code = 400
    code = "malformed_input"
    default_message = "Invalid JSON"


class AuthError(IdentityError):
    """Unknown username or wrong password -- indistinguishable on purpose."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class ConflictError(IdentityError):
    """Username already registered."""

    status_code = 409
    code = "conflict"
    default_message = "User already exists"


class InternalError(IdentityError):
    """Anything unexpected. The detail goes to the server log, never the client."""

    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"
