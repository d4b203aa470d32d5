"""
tests/conftest.py -- Shared test fixtures for TicketDesk.

This module provides:
  - stores:       seeded UserStore + TicketStore on isolated in-memory DBs
  - codec:        TokenCodec with a fixed test secret
  - auth_service: AuthService with a low bcrypt cost for speed
  - client:       TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Each fixture instance gets a unique name so tests never share rows.

The client uses an https base_url: the session cookie is Secure, and the
cookie jar only sends Secure cookies over https.

DEBUG and ALLOWED_HOSTS must be set before any api/ or core/ import so
get_settings() can build the module-level app.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any api/core import so get_settings() can
# auto-generate TOKEN_SECRET and accept the TestClient host.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app, init_state
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenCodec
from core.config import Settings
from tickets.service import TicketService
from tickets.store import TicketStore

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
TEST_TTL = 3600


def _memory_url(prefix: str) -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def make_stores(seed: bool = True) -> tuple[UserStore, TicketStore]:
    """Create isolated shared-memory stores, optionally with default seed rows."""
    user_store = UserStore(_memory_url("test_auth"))
    ticket_store = TicketStore(_memory_url("test_tickets"))
    if seed:
        user_store.seed_defaults(roles=["admin", "ejecutor"], dependency="General", internal_sec="Guest")
    return user_store, ticket_store


def make_settings(**overrides) -> Settings:
    values = {
        "debug": True,
        "token_secret": TEST_SECRET,
        "token_expire_seconds": TEST_TTL,
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[UserStore, TicketStore], None, None]:
    user_store, ticket_store = make_stores()
    yield user_store, ticket_store
    ticket_store.close()
    user_store.close()


@pytest.fixture
def user_store(stores) -> UserStore:
    return stores[0]


@pytest.fixture
def ticket_store(stores) -> TicketStore:
    return stores[1]


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET, TEST_TTL)


@pytest.fixture
def auth_service(user_store: UserStore, codec: TokenCodec) -> AuthService:
    return AuthService(user_store, codec, bcrypt_rounds=4)


@pytest.fixture
def ticket_service(ticket_store: TicketStore, user_store: UserStore) -> TicketService:
    return TicketService(ticket_store, user_store)


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, user_store: UserStore, ticket_store: TicketStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-created test stores into app.state through the same
    init_state() the production lifespan uses.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, settings, user_store, ticket_store)
        yield

    return test_lifespan


@pytest.fixture
def client(stores) -> Generator[TestClient, None, None]:
    """Yield a TestClient bound to fresh seeded stores."""
    user_store, ticket_store = stores
    app.router.lifespan_context = _patch_lifespan(make_settings(), user_store, ticket_store)
    with TestClient(app, base_url="https://testserver", raise_server_exceptions=True) as test_client:
        yield test_client


def register(client: TestClient, username: str = "alice", email: str = "alice@x.com", password: str = "pw123"):
    return client.post("/register", json={"username": username, "email": email, "password": password})


def login(client: TestClient, email: str = "alice@x.com", password: str = "pw123"):
    return client.post("/login", json={"email": email, "password": password})
