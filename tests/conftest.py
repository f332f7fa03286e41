"""
tests/conftest.py -- Shared test fixtures for MilAsset integration tests.

This module provides:
  - _make_test_stores(): fresh in-memory identity + record stores
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient with auth enforced and a logistics JWT
  - open_client: TestClient with auth disabled (NoopVerifier)

Identity DBs use plain "sqlite://" URLs. make_engine() gives those a
StaticPool, so the TestClient's worker threads all share one in-memory DB.

DEBUG must be set before any auth/core import so get_settings() auto-generates
SECRET_KEY instead of raising ValueError. RATE_LIMIT_ENABLED=false keeps the
login/signup limits from tripping across a test module.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.credentials import hash_password
from auth.models import Identity
from auth.store import IdentityStore
from auth.tokens import create_access_token
from auth.verifier import NoopVerifier, TokenVerifier
from inventory.ledger import seed_inventory
from inventory.store import MemoryRecordStore

LOGISTICS_EMAIL = "quartermaster@base.mil"
LOGISTICS_PASSWORD = "supply-chain-42"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores() -> tuple[IdentityStore, MemoryRecordStore]:
    identity_store = IdentityStore("sqlite://")
    records = MemoryRecordStore()
    seed_inventory(records)
    return identity_store, records


def _patch_lifespan(identity_store: IdentityStore, records: MemoryRecordStore, verifier):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.identity_store = identity_store
        app.state.records = records
        app.state.verifier = verifier
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, token) with auth enforced.

    The token belongs to a pre-created identity with role "logistics"
    (email LOGISTICS_EMAIL, password LOGISTICS_PASSWORD).
    """
    identity_store, records = _make_test_stores()
    uid = identity_store.create_identity(
        Identity(email=LOGISTICS_EMAIL, hashed_secret=hash_password(LOGISTICS_PASSWORD), role="logistics")
    )
    token = create_access_token(identity_id=uid, email=LOGISTICS_EMAIL, role="logistics")

    app.router.lifespan_context = _patch_lifespan(identity_store, records, TokenVerifier())

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token

    identity_store.close()
    records.close()


@pytest.fixture(scope="module")
def open_client() -> Generator[TestClient, None, None]:
    """Yield a client for the auth-disabled variant: no token needed anywhere."""
    identity_store, records = _make_test_stores()
    app.router.lifespan_context = _patch_lifespan(identity_store, records, NoopVerifier())

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    identity_store.close()
    records.close()


@pytest.fixture
def identity_store() -> Generator[IdentityStore, None, None]:
    store = IdentityStore("sqlite://")
    yield store
    store.close()
