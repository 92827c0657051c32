"""
client.py -- HTTP calls from the command line to a running identity service.

This is the command-line counterpart of the desktop client: it posts the
same JSON bodies and reads the same {"success": ...} envelopes.

Every function returns the decoded JSON envelope for any HTTP status, so the
caller branches on body["success"] exactly as the desktop client does.
Transport failures (connection refused, timeout) raise requests exceptions;
main.py reports them as connection errors.
"""

import logging
from typing import Any

import requests

logger = logging.getLogger("identity.client")

DEFAULT_BASE_URL = "http://localhost:8080"

# Module-level session shared across all client calls for connection pooling.
_session = requests.Session()
_session.max_redirects = 3

_TIMEOUT = 10


def _decode(resp: requests.Response) -> dict[str, Any]:
    """Return the JSON envelope, or a synthetic error envelope for non-JSON bodies."""
    try:
        body = resp.json()
    except ValueError:
        logger.warning("Non-JSON response from %s (HTTP %d)", resp.url, resp.status_code)
        return {"success": False, "error": f"Unexpected response (HTTP {resp.status_code})"}
    if not isinstance(body, dict):
        return {"success": False, "error": f"Unexpected response (HTTP {resp.status_code})"}
    return body


def register(username: str, password: str, base_url: str = DEFAULT_BASE_URL) -> dict[str, Any]:
    """POST /register. The username is trimmed; the password is sent as typed."""
    resp = _session.post(
        f"{base_url.rstrip('/')}/register",
        json={"username": username.strip(), "password": password},
        timeout=_TIMEOUT,
    )
    return _decode(resp)


def login(username: str, password: str, base_url: str = DEFAULT_BASE_URL) -> dict[str, Any]:
    """POST /login. Same trimming rule as register()."""
    resp = _session.post(
        f"{base_url.rstrip('/')}/login",
        json={"username": username.strip(), "password": password},
        timeout=_TIMEOUT,
    )
    return _decode(resp)


def list_users(base_url: str = DEFAULT_BASE_URL) -> dict[str, Any]:
    """GET /users."""
    resp = _session.get(f"{base_url.rstrip('/')}/users", timeout=_TIMEOUT)
    return _decode(resp)


def shorten_token(token: str) -> str:
    """Abbreviate a token for display: first 20 and last 20 characters.

    Tokens of 43 characters or fewer are returned whole, since eliding them
    would hide nothing. Real JWTs are always longer.
    """
    if not token:
        return "none"
    if len(token) <= 43:
        return token
    return f"{token[:20]}...{token[-20:]}"
