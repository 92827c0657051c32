"""
tests/test_api_routes.py -- Integration tests for the HTTP surface.

These tests exercise the full stack: FastAPI routing -> body validation ->
dependency injection -> AccountDirectory / verify_credentials / TokenIssuer
-> response model serialization -> exception handlers.

Coverage:
  - The register/login/list scenario end to end, including token claims
  - Status codes and the error envelope for every failure kind
  - Body parsing failures mapped to 400 (never FastAPI's default 422)
  - Unexpected errors rendered as a generic 500 without leaking detail
  - Health endpoint
  - Access log lines (including failed requests) and the shutdown log

Fixtures used (from conftest.py):
  - api_client: TestClient with a freshly started app (empty directory).
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from api.main import app


def _register(client: TestClient, username: str, password: str):
    return client.post("/register", json={"username": username, "password": password})


def _login(client: TestClient, username: str, password: str):
    return client.post("/login", json={"username": username, "password": password})


class TestScenario:
    """register alice -> duplicate -> login ok -> login wrong -> list."""

    def test_full_flow(self, api_client: TestClient) -> None:
        resp = _register(api_client, "alice", "pw1")
        assert resp.status_code == 201
        assert resp.json()["user"] == {"id": 1, "username": "alice"}

        resp = _register(api_client, "alice", "pw2")
        assert resp.status_code == 409

        resp = _login(api_client, "alice", "pw1")
        assert resp.status_code == 200
        claims = api_client.app.state.token_issuer.decode(resp.json()["token"])
        assert claims is not None
        assert claims["user_id"] == "1"
        assert claims["username"] == "alice"

        resp = _login(api_client, "alice", "wrong")
        assert resp.status_code == 401

        resp = api_client.get("/users")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "users": [{"id": 1, "username": "alice"}]}


class TestRegister:
    def test_success_shape(self, api_client: TestClient) -> None:
        resp = _register(api_client, "alice", "pw1")
        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        assert data["message"]
        assert data["user"] == {"id": 1, "username": "alice"}
        assert data["expires_in"] == 86400
        assert isinstance(data["token"], str) and data["token"].count(".") == 2
        assert "password" not in data["user"]
        assert resp.headers["Cache-Control"] == "no-store"

    def test_ids_are_sequential(self, api_client: TestClient) -> None:
        ids = [_register(api_client, name, "pw").json()["user"]["id"] for name in ("a", "b", "c")]
        assert ids == [1, 2, 3]

    def test_register_token_is_valid(self, api_client: TestClient) -> None:
        token = _register(api_client, "bob", "pw").json()["token"]
        claims = api_client.app.state.token_issuer.decode(token)
        assert claims["user_id"] == "1"
        assert claims["username"] == "bob"

    def test_duplicate_returns_409_envelope(self, api_client: TestClient) -> None:
        _register(api_client, "alice", "pw1")
        resp = _register(api_client, "alice", "pw2")
        assert resp.status_code == 409
        assert resp.json() == {"success": False, "error": "User already exists", "code": "conflict"}

    def test_empty_username_returns_400(self, api_client: TestClient) -> None:
        resp = _register(api_client, "", "pw")
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert resp.json()["code"] == "validation_error"

    def test_empty_password_returns_400(self, api_client: TestClient) -> None:
        resp = _register(api_client, "alice", "")
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    def test_missing_field_returns_400(self, api_client: TestClient) -> None:
        resp = api_client.post("/register", json={"username": "alice"})
        assert resp.status_code == 400
        data = resp.json()
        assert data["success"] is False
        assert data["code"] == "validation_error"
        assert data["error"] == "username and password are required"

    def test_malformed_json_returns_400(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/register",
            content=b'{"username": "alice", ',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Invalid JSON", "code": "malformed_input"}

    def test_non_object_body_returns_400(self, api_client: TestClient) -> None:
        resp = api_client.post("/register", json=["alice", "pw"])
        assert resp.status_code == 400
        assert resp.json()["code"] == "malformed_input"

    def test_non_string_field_returns_400(self, api_client: TestClient) -> None:
        resp = api_client.post("/register", json={"username": 5, "password": "pw"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "malformed_input"

    def test_failed_registration_creates_nothing(self, api_client: TestClient) -> None:
        _register(api_client, "", "pw")
        api_client.post("/register", json={"username": "x"})
        assert api_client.get("/users").json()["users"] == []


class TestLogin:
    def test_success_shape(self, api_client: TestClient) -> None:
        _register(api_client, "alice", "pw1")
        resp = _login(api_client, "alice", "pw1")
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["message"]
        assert data["user"] == {"id": 1, "username": "alice"}
        assert "expires_in" not in data
        assert resp.headers["Cache-Control"] == "no-store"

    def test_unknown_user_and_wrong_password_look_the_same(self, api_client: TestClient) -> None:
        _register(api_client, "alice", "pw1")
        wrong = _login(api_client, "alice", "nope")
        unknown = _login(api_client, "nobody", "pw1")
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json() == {"success": False, "error": "Invalid credentials", "code": "invalid_credentials"}

    def test_login_is_case_sensitive(self, api_client: TestClient) -> None:
        _register(api_client, "alice", "pw1")
        assert _login(api_client, "Alice", "pw1").status_code == 401
        assert _login(api_client, "alice", "PW1").status_code == 401

    def test_empty_fields_are_just_bad_credentials(self, api_client: TestClient) -> None:
        _register(api_client, "alice", "pw1")
        assert _login(api_client, "alice", "").status_code == 401
        assert _login(api_client, "", "").status_code == 401

    def test_missing_field_returns_400(self, api_client: TestClient) -> None:
        resp = api_client.post("/login", json={"password": "pw1"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    def test_malformed_json_returns_400(self, api_client: TestClient) -> None:
        resp = api_client.post("/login", content=b"not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "malformed_input"

    def test_each_login_gets_a_valid_token(self, api_client: TestClient) -> None:
        _register(api_client, "alice", "pw1")
        _register(api_client, "bob", "pw2")
        token = _login(api_client, "bob", "pw2").json()["token"]
        claims = api_client.app.state.token_issuer.decode(token)
        assert claims["user_id"] == "2"
        assert claims["username"] == "bob"


class TestListUsers:
    def test_empty(self, api_client: TestClient) -> None:
        resp = api_client.get("/users")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "users": []}

    def test_omits_passwords(self, api_client: TestClient) -> None:
        _register(api_client, "alice", "s3cret-one")
        _register(api_client, "bob", "s3cret-two")
        resp = api_client.get("/users")
        assert "s3cret" not in resp.text
        for user in resp.json()["users"]:
            assert set(user) == {"id", "username"}

    def test_creation_order(self, api_client: TestClient) -> None:
        for name in ("zed", "amy", "kim"):
            _register(api_client, name, "pw")
        names = [u["username"] for u in api_client.get("/users").json()["users"]]
        assert names == ["zed", "amy", "kim"]


class TestErrorEnvelope:
    def test_unknown_route_uses_envelope(self, api_client: TestClient) -> None:
        resp = api_client.get("/nope")
        assert resp.status_code == 404
        assert resp.json()["success"] is False
        assert resp.json()["code"] == "http_404"

    def test_wrong_method_uses_envelope(self, api_client: TestClient) -> None:
        resp = api_client.get("/register")
        assert resp.status_code == 405
        assert resp.json()["success"] is False

    def test_unexpected_error_is_generic_500(self) -> None:
        """A signing failure surfaces as a bare 500 -- no exception text in the body."""
        with TestClient(app, raise_server_exceptions=False) as client:
            broken = MagicMock()
            broken.issue.side_effect = RuntimeError("key material exploded")
            client.app.state.token_issuer = broken
            resp = _register(client, "alice", "pw1")
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Internal server error", "code": "internal_error"}
        assert "exploded" not in resp.text


class TestHealth:
    def test_health_reports_account_count(self, api_client: TestClient) -> None:
        assert api_client.get("/health").json()["accounts"] == 0
        _register(api_client, "alice", "pw1")
        data = api_client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["accounts"] == 1
        assert "version" in data

    def test_restart_discards_accounts(self) -> None:
        with TestClient(app) as client:
            _register(client, "alice", "pw1")
        with TestClient(app) as client:
            assert client.get("/users").json()["users"] == []
            assert _register(client, "alice", "pw1").json()["user"]["id"] == 1


class TestLogging:
    def test_failed_request_is_still_logged(self, caplog) -> None:
        """A handler that raises still produces an access log line, as a 500."""
        with caplog.at_level(logging.INFO, logger="identity.api"):
            with TestClient(app, raise_server_exceptions=False) as client:
                broken = MagicMock()
                broken.issue.side_effect = RuntimeError("key material exploded")
                client.app.state.token_issuer = broken
                _register(client, "alice", "pw1")
        assert any("POST /register 500" in r.getMessage() for r in caplog.records)

    def test_successful_request_is_logged(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="identity.api"):
            with TestClient(app) as client:
                client.get("/users")
        assert any("GET /users 200" in r.getMessage() for r in caplog.records)

    def test_shutdown_reports_discarded_accounts(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="identity.api"):
            with TestClient(app) as client:
                _register(client, "alice", "pw1")
        assert any("1 accounts discarded" in r.getMessage() for r in caplog.records)

    def test_shutdown_with_empty_directory(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="identity.api"):
            with TestClient(app):
                pass
        assert any("directory empty" in r.getMessage() for r in caplog.records)
