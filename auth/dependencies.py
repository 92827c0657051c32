"""
auth/dependencies.py -- FastAPI Depends() helpers for the identity core.

The directory and token issuer are built once in the API lifespan and stored
on app.state. Route handlers receive them through these dependencies rather
than reaching for module globals, so tests can swap in fresh instances by
patching the lifespan.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.directory import AccountDirectory
from auth.tokens import TokenIssuer


def get_directory(request: Request) -> AccountDirectory:
    """Return the process-wide AccountDirectory.

    Use as a FastAPI dependency:
        @router.get("/users")
        def route(directory: AccountDirectory = Depends(get_directory)): ...
    """
    return request.app.state.directory


def get_token_issuer(request: Request) -> TokenIssuer:
    """Return the TokenIssuer configured at startup."""
    return request.app.state.token_issuer
