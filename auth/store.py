"""
auth/store.py -- SQLAlchemy Core persistence layer for identities.

Pattern: Repository + Data Mapper (same as inventory/store.py).
IdentityStore is the repository; _row_to_identity is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced by the schema. SQLite's default BINARY collation
  makes both the constraint and the lookup case-sensitive, so "A@x.com" and
  "a@x.com" are distinct identities.

DB location: the memory backend passes "sqlite://", a process-lifetime
in-memory DB (reset on restart). The sql backend passes DATABASE_URL.

Concurrency: every method runs under one per-store lock. For "sqlite://"
the StaticPool shares a single DBAPI connection across request threads, and
unserialized transactions on it would interleave.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import ROLE_LOGISTICS, Identity
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_identities = Table(
    "identities",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_secret", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default=ROLE_LOGISTICS),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class IdentityStore:
    """Repository for Identity entities.

    Usage:
        store = IdentityStore("sqlite://")
        store.create_identity(Identity(email="a@x.com", hashed_secret=hash_password("pw")))
        identity = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        # A StaticPool engine hands every thread the same connection.
        self._lock = threading.Lock()
        _metadata.create_all(self.engine)

    def create_identity(self, identity: Identity) -> int:
        """Insert a new identity and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        auth.credentials.register() turns that into a Conflict, which also
        covers two concurrent signups racing past the existence check.
        """
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(
                _identities.insert().values(
                    email=identity.email,
                    hashed_secret=identity.hashed_secret,
                    role=identity.role,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> Identity | None:
        """Look up an identity by exact email (case-sensitive). Returns None if not found."""
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_identities.select().where(_identities.c.email == email)).fetchone()
        return _row_to_identity(row) if row is not None else None

    def get_by_id(self, identity_id: int) -> Identity | None:
        """Look up an identity by primary key. Returns None if not found."""
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_identities.select().where(_identities.c.id == identity_id)).fetchone()
        return _row_to_identity(row) if row is not None else None

    def count(self) -> int:
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_identities)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_identity(row) -> Identity:
    return Identity(
        id=row.id,
        email=row.email,
        hashed_secret=row.hashed_secret,
        role=row.role,
        created_at=row.created_at,
    )
