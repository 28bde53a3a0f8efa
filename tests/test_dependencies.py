"""
tests/test_dependencies.py -- The authentication gates in auth/dependencies.py.

verify_jwt is exercised through GET /book (any valid token), the admin-claim
check through POST /library, and permission_middleware through POST /admin.
A few cases call the gates directly with a bare Starlette Request so a custom
verify function can be injected.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from starlette.requests import Request

from auth.dependencies import extract_token, permission_middleware, require_admin_token, verify_jwt
from auth.errors import InvalidOrExpiredTokenError, MissingCredentialsError, NotFoundError
from auth.models import User
from auth.service import AuthService
from auth.tokens import create_access_token


def _expired_token(user_id: int = 1, is_admin: bool = False) -> str:
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    return create_access_token(user_id, is_admin, os.environ["JWT_SECRET"], issued_at=issued)


def _cookie(client: TestClient, token: str) -> dict:
    return {"Cookie": f"cookie={client.app.state.auth.sign_cookie(token)}"}


def _admin_body(email: str, cpf: str) -> dict:
    return {
        "admin": {
            "address": "Av. Brasil, 500",
            "birth_date": "1985-02-03",
            "cpf": cpf,
            "name": "Carla Dias",
            "phone": "+55 31 97777-1111",
        },
        "user": {"email": email, "password": "pw123456", "name": "Carla", "is_active": True, "is_admin": True},
    }


def _request(auth: AuthService, headers: dict | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    app = SimpleNamespace(state=SimpleNamespace(auth=auth))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw, "app": app})


# ---------------------------------------------------------------------------
# verify_jwt
# ---------------------------------------------------------------------------


class TestVerifyJwt:
    def test_no_token_returns_400(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.get("/book")
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Request data is incorrect or unfulfilled"

    def test_valid_header_passes(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, reader_token = api_client
        assert client.get("/book", headers={"x-access-token": reader_token}).status_code == 204

    def test_expired_header_returns_401(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.get("/book", headers={"x-access-token": _expired_token()})
        assert resp.status_code == 401
        assert resp.json()["error"]["message"].startswith("Failed to validate JWT")

    def test_garbage_header_returns_401(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        assert client.get("/book", headers={"x-access-token": "garbage"}).status_code == 401

    def test_valid_signed_cookie_passes(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, reader_token = api_client
        assert client.get("/book", headers=_cookie(client, reader_token)).status_code == 204

    def test_expired_cookie_returns_401(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        assert client.get("/book", headers=_cookie(client, _expired_token())).status_code == 401

    def test_unsigned_cookie_counts_as_absent(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, reader_token = api_client
        resp = client.get("/book", headers={"Cookie": f"cookie={reader_token}"})
        assert resp.status_code == 400

    def test_header_wins_over_cookie(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, reader_token = api_client
        good_header = {"x-access-token": reader_token, **_cookie(client, _expired_token())}
        assert client.get("/book", headers=good_header).status_code == 204
        bad_header = {"x-access-token": _expired_token(), **_cookie(client, reader_token)}
        assert client.get("/book", headers=bad_header).status_code == 401

    def test_returns_payload(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin_token, _ = api_client
        payload = verify_jwt(_request(client.app.state.auth, {"x-access-token": admin_token}))
        assert payload["isAdmin"] is True

    def test_extract_token_prefers_header(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin_token, reader_token = api_client
        auth = client.app.state.auth
        headers = {"x-access-token": admin_token, "cookie": f"cookie={auth.sign_cookie(reader_token)}"}
        assert extract_token(_request(auth, headers), auth) == admin_token


# ---------------------------------------------------------------------------
# Admin claim gate
# ---------------------------------------------------------------------------


class TestRequireAdminToken:
    def test_reader_token_forbidden(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, reader_token = api_client
        resp = client.post("/library", json={"name": "Central", "address": "Praça 1"}, headers={"x-access-token": reader_token})
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "forbidden"

    def test_admin_cookie_allowed(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin_token, _ = api_client
        resp = client.post("/library", json={"name": "Central", "address": "Praça 1"}, headers=_cookie(client, admin_token))
        assert resp.status_code == 201

    def test_direct_call_raises_http_403(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, reader_token = api_client
        with pytest.raises(HTTPException) as exc_info:
            require_admin_token(_request(client.app.state.auth, {"x-access-token": reader_token}))
        assert exc_info.value.status_code == 403


# ---------------------------------------------------------------------------
# permission_middleware
# ---------------------------------------------------------------------------


class TestPermissionMiddleware:
    def test_no_header_returns_400(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post("/admin", json=_admin_body("p1@library.test", "11122233344"))
        assert resp.status_code == 400

    def test_cookie_alone_is_not_enough(self, api_client: tuple[TestClient, str, str]) -> None:
        client, admin_token, _ = api_client
        resp = client.post(
            "/admin", json=_admin_body("p2@library.test", "11122233345"), headers=_cookie(client, admin_token)
        )
        assert resp.status_code == 400

    def test_invalid_token_returns_403(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post(
            "/admin", json=_admin_body("p3@library.test", "11122233346"), headers={"x-access-token": _expired_token()}
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "Token is expired or invalid"

    def test_deleted_user_returns_404(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        store = client.app.state.user_store
        uid = store.create_user(User(email="gone@library.test", password="hash"))
        token = client.app.state.auth.issue_token(store.get_by_id(uid))
        store.delete_user(uid)
        resp = client.post(
            "/admin", json=_admin_body("p4@library.test", "11122233347"), headers={"x-access-token": token}
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "User not found"

    def test_existing_non_admin_user_passes(self, api_client: tuple[TestClient, str, str]) -> None:
        """The gate checks the user still exists; it does not enforce the admin flag."""
        client, _, reader_token = api_client
        resp = client.post(
            "/admin", json=_admin_body("p5@library.test", "11122233348"), headers={"x-access-token": reader_token}
        )
        assert resp.status_code == 201

    def test_custom_verify_function_is_used(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        reader = client.app.state.user_store.get_by_email("reader@library.test")
        seen: list[str] = []

        def verify(token: str) -> dict:
            seen.append(token)
            return {"id": reader.id, "isAdmin": False}

        gate = permission_middleware(verify=verify)
        payload = gate(_request(client.app.state.auth, {"x-access-token": "opaque"}))
        assert seen == ["opaque"]
        assert payload["id"] == reader.id

    def test_custom_verify_failure_maps_to_403(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client

        def verify(token: str) -> dict:
            raise InvalidOrExpiredTokenError()

        gate = permission_middleware(verify=verify)
        with pytest.raises(InvalidOrExpiredTokenError) as exc_info:
            gate(_request(client.app.state.auth, {"x-access-token": "opaque"}))
        assert exc_info.value.status_code == 403

    def test_unknown_user_id_raises_not_found(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        gate = permission_middleware(verify=lambda token: {"id": 999999, "isAdmin": True})
        with pytest.raises(NotFoundError):
            gate(_request(client.app.state.auth, {"x-access-token": "opaque"}))

    def test_missing_header_raises_missing_credentials(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        with pytest.raises(MissingCredentialsError):
            permission_middleware()(_request(client.app.state.auth))
