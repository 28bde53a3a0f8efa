"""
tests/conftest.py -- Shared test fixtures for LibraryHub.

This module provides:
  - auth_config / other_auth_config: two AuthConfigs with different keys
  - user_store / catalog_store: fresh in-memory stores per test
  - auth_service: AuthService wired to user_store
  - make_admin: factory for an is_admin user plus its Admin record
  - _make_test_stores(): named shared-memory DBs for TestClient tests
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus tokens for an admin and a plain user

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for TestClient because it runs sync route handlers in a thread pool. The
named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process.

AES_KEY / ALGORITHM / JWT_SECRET must be set before any project import:
api/main.py reads Settings at import time for its CORS origins.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("AES_KEY", "test-aes-key")
os.environ.setdefault("ALGORITHM", "aes-256-cbc")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789abcdef")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Admin, User
from auth.service import AuthConfig, AuthService
from auth.store import UserStore
from auth.tokens import hash_password
from catalog.store import CatalogStore

ADMIN_EMAIL = "admin@library.test"
ADMIN_PASSWORD = "adminpass123"
READER_EMAIL = "reader@library.test"
READER_PASSWORD = "readerpass123"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        aes_key="unit-aes-key",
        algorithm="aes-256-cbc",
        jwt_secret="unit-jwt-secret",
        cookie_secret="unit-cookie-secret",
    )


@pytest.fixture
def other_auth_config() -> AuthConfig:
    """Same shape as auth_config, every secret different."""
    return AuthConfig(
        aes_key="other-aes-key",
        algorithm="aes-256-cbc",
        jwt_secret="other-jwt-secret",
        cookie_secret="other-cookie-secret",
    )


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def catalog_store() -> Generator[CatalogStore, None, None]:
    store = CatalogStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def auth_service(auth_config: AuthConfig, user_store: UserStore) -> AuthService:
    return AuthService(auth_config, users=user_store, admins=user_store)


def _create_admin(store: UserStore, email: str, password: str, cpf: str = "12345678901") -> int:
    """Create an is_admin user with its Admin record. Returns the user id."""
    uid = store.create_user(User(email=email, password=hash_password(password), name="Admin", is_admin=True))
    store.create_admin(
        Admin(
            address="Rua das Flores, 10",
            birth_date="1980-05-17",
            cpf=cpf,
            name="Ana Souza",
            phone="+55 11 99999-0000",
            user=uid,
        )
    )
    return uid


@pytest.fixture
def make_admin():
    """Factory fixture: make_admin(store, email, password, cpf=...) -> user id."""
    return _create_admin


# ---------------------------------------------------------------------------
# Integration helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, CatalogStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = f"sqlite:///file:test_libraryhub_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), CatalogStore(url)


def _patch_lifespan(user_store: UserStore, catalog: CatalogStore, auth: AuthService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.catalog = catalog
        app.state.auth = auth
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, reader_token) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use isolated in-memory stores. One admin
    (is_admin with an Admin record) and one plain reader exist up front.
    app.state.user_store is reachable from tests through client.app.
    """
    user_store, catalog = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    config = AuthConfig(
        aes_key=os.environ["AES_KEY"],
        algorithm=os.environ["ALGORITHM"],
        jwt_secret=os.environ["JWT_SECRET"],
        cookie_secret=os.environ["JWT_SECRET"],
    )
    auth = AuthService(config, users=user_store, admins=user_store)

    admin_uid = _create_admin(user_store, ADMIN_EMAIL, ADMIN_PASSWORD)
    reader_uid = user_store.create_user(
        User(email=READER_EMAIL, password=hash_password(READER_PASSWORD), name="Reader")
    )
    admin_token = auth.issue_token(user_store.get_by_id(admin_uid))
    reader_token = auth.issue_token(user_store.get_by_id(reader_uid))

    app.router.lifespan_context = _patch_lifespan(user_store, catalog, auth)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, admin_token, reader_token

    catalog.close()
    user_store.close()
