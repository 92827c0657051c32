"""
tests/conftest.py -- Shared test fixtures for the identity service.

This module provides:
  - directory: a fresh, empty AccountDirectory
  - issuer: a TokenIssuer with a fixed test key
  - api_client: TestClient over the real app; the real lifespan runs, so each
    test gets a brand-new empty directory (ids restart at 1)

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.directory import AccountDirectory
from auth.tokens import TokenIssuer

TEST_SECRET_KEY = "test-signing-key-0123456789abcdef0123456789"


@pytest.fixture
def directory() -> AccountDirectory:
    return AccountDirectory()


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_SECRET_KEY)


@pytest.fixture
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient with a freshly started app.

    Entering the TestClient context runs the lifespan, which builds a new
    AccountDirectory and TokenIssuer on app.state. Function scope keeps every
    test independent: registrations in one test never leak into another.
    """
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
