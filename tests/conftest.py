"""
tests/conftest.py -- Shared test fixtures for CoverDesk integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for identities + audit
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: ApiContext with a TestClient and one token per role

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The environment must be set before any auth/core import: DEBUG lets
get_settings() auto-generate SECRET_KEY, BCRYPT_ROUNDS=4 keeps hashing fast,
ALLOWED_HOSTS admits TestClient's "testserver" host, and rate limiting is off
so repeated logins across tests never hit 429.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set before any auth/core import -- Settings are read once and cached.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost", "127.0.0.1"]')
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from audit.recorder import AuditRecorder
from audit.store import AuditStore
from auth.models import ADMIN, AGENT, CUSTOMER, Identity
from auth.passwords import hash_password
from auth.store import UserStore
from auth.tokens import issue_token

TEST_PASSWORD = "testpass123"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, AuditStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'health').
    """
    auth_url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    audit_url = f"sqlite:///file:test_audit_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=auth_url), AuditStore(db_url=audit_url)


def _patch_lifespan(user_store: UserStore, audit_store: AuditStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the SQLite files beside the store modules.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.audit_store = audit_store
        app.state.audit = AuditRecorder(audit_store)
        yield

    return test_lifespan


def _seed_user(store: UserStore, name: str, email: str, role: str) -> int:
    return store.create_user(Identity(name=name, email=email, role=role, hashed_password=hash_password(TEST_PASSWORD)))


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    user_store: UserStore
    audit_store: AuditStore
    user_ids: dict[str, int]
    tokens: dict[str, str]

    def auth(self, role: str) -> dict[str, str]:
        """Authorization header for the seeded account with `role`."""
        return {"Authorization": f"Bearer {self.tokens[role]}"}


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use isolated in-memory stores. One account per
    role is seeded (password TEST_PASSWORD) and a token minted for each.
    """
    user_store, audit_store = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])

    user_ids = {
        ADMIN: _seed_user(user_store, "Test Admin", "admin@coverdesk.test", ADMIN),
        AGENT: _seed_user(user_store, "Test Agent", "agent@coverdesk.test", AGENT),
        CUSTOMER: _seed_user(user_store, "Test Customer", "customer@coverdesk.test", CUSTOMER),
    }
    tokens = {role: issue_token(uid, role) for role, uid in user_ids.items()}

    app.router.lifespan_context = _patch_lifespan(user_store, audit_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client, user_store, audit_store, user_ids, tokens)

    user_store.close()
    audit_store.close()
