"""
API request and response models for the identity service REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Every response is one flat JSON object with a boolean `success` field, so a
client can branch on it before looking at anything else.
"""

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Request body for POST /register and POST /login.

    No whitespace stripping and no min_length here: emptiness is a domain
    rule enforced by AccountDirectory.register(), and trimming is the
    client's job. A missing field or a non-string value is rejected by
    Pydantic and mapped to 400 in api/main.py.
    """

    username: str
    password: str


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AccountOut(BaseModel):
    """Public view of an account. Never carries the password."""

    id: int
    username: str


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user: AccountOut
    token: str
    expires_in: int = Field(description="Token validity in seconds.")


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    user: AccountOut
    token: str


class UsersResponse(BaseModel):
    success: bool = True
    users: list[AccountOut]


class ErrorResponse(BaseModel):
    """Envelope for every non-2xx response."""

    success: bool = False
    error: str
    code: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    accounts: int
