"""
tests/conftest.py -- Shared test fixtures for TicketDesk tests.

This module provides:
  - make_settings(): explicit Settings for unit tests (no env reads needed)
  - FakeClock: a settable clock for refresh-token expiry tests
  - _patch_lifespan(): wires test state into app.state, bypassing real startup
  - api_client: TestClient plus the injected authority and store, with an
    Admin and a User access token ready for Authorization headers

Environment variables must be set before any api/ import: api.main reads
get_settings() at module load to configure logging and middleware, and
Settings refuses to build without JWT_SECRET_KEY.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# CRITICAL: set before importing api.main so get_settings() can build.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-chars")
os.environ.setdefault(
    "USERS",
    '[{"username": "alice", "password": "pw1", "role": "Admin"},'
    ' {"username": "bob", "password": "pw2", "role": "User"}]',
)

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.tokens import TokenAuthority
from core.config import Settings
from tickets.models import Ticket
from tickets.store import TicketStore

TEST_SECRET = "unit-test-secret-key-0123456789abcdef"

SAMPLE_CSV = (
    "ticket_id,email,type,description,status,resolution\n"
    "T-1,ann@example.com,Bug,Login fails,Open,\n"
    'T-2,ben@example.com,Feature,"Export to CSV, PDF",Closed,Shipped\n'
    "T-3,cat@example.com,Question,How do I reset?,Open,\n"
)


def make_settings(**overrides) -> Settings:
    """Build Settings with test defaults; keyword arguments override any field."""
    values = {
        "jwt_secret_key": TEST_SECRET,
        "users": [
            {"username": "alice", "password": "pw1", "role": "Admin"},
            {"username": "bob", "password": "pw2", "role": "User"},
        ],
    }
    values.update(overrides)
    return Settings(**values)


@dataclass
class FakeClock:
    """Callable clock whose time only moves when a test advances it."""

    now: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def sample_tickets() -> list[Ticket]:
    return [
        Ticket("T-1", "ann@example.com", "Bug", "Login fails", "Open", ""),
        Ticket("T-2", "ben@example.com", "Feature", "Export to CSV, PDF", "Closed", "Shipped"),
        Ticket("T-3", "cat@example.com", "Question", "How do I reset?", "Open", ""),
    ]


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def authority(clock: FakeClock) -> TokenAuthority:
    """TokenAuthority on a fake clock. Do not decode its access tokens -- jose checks real time."""
    return TokenAuthority(make_settings(), clock=clock)


@pytest.fixture
def store() -> TicketStore:
    return TicketStore(sample_tickets())


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(authority: TokenAuthority, store: TicketStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-built test state into app.state so TestClient routes see the
    test authority and store rather than whatever the environment points at.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.token_authority = authority
        app.state.ticket_store = store
        yield

    return test_lifespan


@dataclass
class ApiHarness:
    client: TestClient
    authority: TokenAuthority
    store: TicketStore
    admin_token: str
    user_token: str

    def headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    """Clear slowapi counters so login-heavy tests never trip the limit."""
    limiter.reset()


@pytest.fixture
def api_client() -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness around the real app with fresh test state.

    Function-scoped: CRUD tests mutate the store, so each test starts from
    the three sample tickets.
    """
    authority = TokenAuthority(make_settings())
    store = TicketStore(sample_tickets())
    admin_token = authority.issue_access_token("alice", "Admin")
    user_token = authority.issue_access_token("bob", "User")

    app.router.lifespan_context = _patch_lifespan(authority, store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(client, authority, store, admin_token, user_token)
