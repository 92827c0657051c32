"""
api/main.py -- FastAPI application for the identity service.

Exposes the account directory, credential check, and token issuer over HTTP
so the desktop client (or the CLI in main.py) can register, log in, and list
accounts.

Run with:      python main.py serve
               uvicorn asgi:app --port 8080

Lifespan builds the AccountDirectory and TokenIssuer once and stores them on
app.state. Route handlers get them through auth.dependencies.

Error envelope: every failure, expected or not, is rendered as
    {"success": false, "error": <human message>, "code": <machine code>}
by the exception handlers at the bottom of this module.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from auth.directory import AccountDirectory
from auth.errors import IdentityError, InternalError, MalformedInputError, ValidationError
from auth.tokens import TokenIssuer
from core.config import get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("identity.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the directory and token issuer for the lifetime of the server.

    The directory starts empty with next id 1. Nothing is persisted, so
    shutdown has nothing to flush.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    app.state.directory = AccountDirectory()
    app.state.token_issuer = TokenIssuer.from_settings(settings)

    logger.info("Identity service starting on port %d", settings.port)
    logger.info("Available endpoints:")
    logger.info("   POST /register - register an account")
    logger.info("   POST /login    - log in")
    logger.info("   GET  /users    - list accounts")

    yield

    if app.state.directory.has_accounts():
        logger.info(
            "Identity service shutdown complete (%d accounts discarded)",
            len(app.state.directory),
        )
    else:
        logger.info("Identity service shutdown complete (directory empty)")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Identity Service",
    description="Account registration, login, and signed session tokens.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time around call_next gives latency per response.
# Bodies are never logged -- they carry passwords. A request whose handler
# raises is logged as 500; the catch-all handler renders that response.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            status_code,
            ms,
            request.client.host if request.client else "unknown",
        )


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(exc: IdentityError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, code=exc.code).model_dump(),
    )


@app.exception_handler(IdentityError)
async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    """Render any domain error with the status its class declares."""
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map Pydantic body errors onto the domain taxonomy (400, never 422).

    Only missing fields count as a ValidationError. Anything else -- a body
    that is not JSON, not an object, or has a non-string field -- is
    MalformedInputError.
    """
    errors = exc.errors()
    if errors and all(err.get("type") == "missing" for err in errors):
        return _error_response(ValidationError())
    logger.info("Malformed request body on %s: %s", request.url.path, [e.get("type") for e in errors])
    return _error_response(MalformedInputError())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return the envelope for routing errors (404 unknown path, 405 wrong method)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail), code=f"http_{exc.status_code}").model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors (e.g. a signing failure).

    The traceback goes to the server log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(InternalError())


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """Return liveness, version, and the current account count."""
    return HealthResponse(version=__version__, accounts=len(request.app.state.directory))
