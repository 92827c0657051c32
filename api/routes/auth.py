"""
api/routes/auth.py -- Registration, login, and account listing endpoints.

Routes:
  POST /register  -- create an account; returns the account and a token (201)
  POST /login     -- check credentials; returns the account and a token (200)
  GET  /users     -- list every account's id and username (200)

Handlers are plain `def`, so FastAPI runs them in its worker thread pool and
requests are served in parallel. AccountDirectory serializes the writes.

Error handling: handlers never build error responses themselves. The core
raises an IdentityError subclass (ValidationError, ConflictError, AuthError)
and the handler registered in api/main.py renders it. Body parsing failures
are translated there too.

Security:
  Login returns the same 401 for an unknown username and a wrong password.
  Cache-Control: no-store on every response that carries a token.
  GET /users is unauthenticated (it backs the client's "view users" button);
  it exposes ids and usernames only.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import AccountOut, Credentials, LoginResponse, RegisterResponse, UsersResponse
from auth.credentials import verify_credentials
from auth.dependencies import get_directory, get_token_issuer
from auth.directory import AccountDirectory
from auth.tokens import TokenIssuer

logger = logging.getLogger("identity.api.auth")

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    body: Credentials,
    directory: AccountDirectory = Depends(get_directory),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> JSONResponse:
    """Create an account and sign a token for it in one step."""
    logger.info("Registration requested for %r", body.username)
    account = directory.register(body.username, body.password)
    token = issuer.issue(account)
    resp = JSONResponse(
        status_code=201,
        content=RegisterResponse(
            message="User registered successfully",
            user=AccountOut(**account.public()),
            token=token,
            expires_in=issuer.expires_in,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/login", response_model=LoginResponse)
def login(
    body: Credentials,
    directory: AccountDirectory = Depends(get_directory),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> JSONResponse:
    """Authenticate with username and password; return a fresh token.

    verify_credentials() raises the same AuthError for both failure branches.
    Do not add a separate lookup here -- that would reintroduce a way to tell
    them apart.
    """
    account = verify_credentials(directory, body.username, body.password)
    token = issuer.issue(account)
    logger.info("Login succeeded for %r (id=%d)", account.username, account.id)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            message="Login successful",
            user=AccountOut(**account.public()),
            token=token,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/users", response_model=UsersResponse)
def list_users(directory: AccountDirectory = Depends(get_directory)) -> UsersResponse:
    """List all accounts in creation order. Passwords are never included."""
    return UsersResponse(users=[AccountOut(**row) for row in directory.list_accounts()])
