"""
inventory/store.py -- Record stores for asset and transaction collections.

Handlers never hold collections themselves. They receive a RecordStore (from
app.state.records) and call list/get/append/update/delete on a named
collection. Two implementations:

  MemoryRecordStore -- process-lifetime dicts behind one RLock. Every
      operation is atomic and returns deep copies, so a caller always reads
      its own writes and can never mutate stored records by accident.
  SQLRecordStore    -- SQLAlchemy Core. One "records" table holds every
      collection; each row is a JSON document plus its collection name.
      Swapping SQLite for PostgreSQL is a connection string change.

Records are plain dicts. The store owns the "id" key: append() assigns it
(monotonically increasing integers per store) and update() never changes it.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = build_record_store(get_settings())
    rec = store.append("purchases", {"item": "rifle", "qty": 10})
    store.get("purchases", rec["id"])
    store.close()
"""

from __future__ import annotations

import copy
import itertools
import json
import logging
import threading
from collections.abc import Callable
from typing import Optional, Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from core.config import Settings
from core.db import make_engine

logger = logging.getLogger("milasset.inventory")

Record = dict

# Called with the merged record before an update is written. Raise to abort.
UpdateCheck = Callable[[Record], None]


class RecordStore(Protocol):
    def list(self, collection: str) -> list[Record]: ...

    def get(self, collection: str, record_id: int) -> Optional[Record]: ...

    def append(self, collection: str, fields: Record) -> Record: ...

    def update(
        self, collection: str, record_id: int, changes: Record, check: Optional[UpdateCheck] = None
    ) -> Optional[Record]: ...

    def delete(self, collection: str, record_id: int) -> bool: ...

    def count(self, collection: str) -> int: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class MemoryRecordStore:
    """Thread-safe in-memory collections. Contents are lost on restart."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._collections: dict[str, dict[int, Record]] = {}
        self._ids = itertools.count(1)

    def _collection(self, name: str) -> dict[int, Record]:
        return self._collections.setdefault(name, {})

    def list(self, collection: str) -> list[Record]:
        """Return every record in insertion order."""
        with self._lock:
            return copy.deepcopy(list(self._collection(collection).values()))

    def get(self, collection: str, record_id: int) -> Optional[Record]:
        with self._lock:
            record = self._collection(collection).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def append(self, collection: str, fields: Record) -> Record:
        """Store a copy of fields under a fresh id and return the stored record.

        A caller-supplied "id" is overwritten -- ids are store-assigned only.
        """
        with self._lock:
            record = copy.deepcopy(fields)
            record["id"] = next(self._ids)
            self._collection(collection)[record["id"]] = record
            return copy.deepcopy(record)

    def update(
        self, collection: str, record_id: int, changes: Record, check: Optional[UpdateCheck] = None
    ) -> Optional[Record]:
        """Merge changes into an existing record. Returns None if absent.

        check runs on the merged record inside the lock; if it raises, the
        stored record is left untouched.
        """
        with self._lock:
            items = self._collection(collection)
            current = items.get(record_id)
            if current is None:
                return None
            merged = {**copy.deepcopy(current), **copy.deepcopy(changes), "id": record_id}
            if check is not None:
                check(merged)
            items[record_id] = merged
            return copy.deepcopy(merged)

    def delete(self, collection: str, record_id: int) -> bool:
        with self._lock:
            return self._collection(collection).pop(record_id, None) is not None

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collection(collection))

    def close(self) -> None:
        with self._lock:
            self._collections.clear()


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_metadata = MetaData()

_records = Table(
    "records",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("collection", String(50), nullable=False, index=True),
    Column("data", Text, nullable=False),  # JSON object, without "id"
)


class SQLRecordStore:
    """Document-per-row store on any SQLAlchemy-supported database."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        # Serializes this process. Cross-process writers rely on the row lock
        # taken in update().
        self._lock = threading.Lock()
        _metadata.create_all(self.engine)

    def list(self, collection: str) -> list[Record]:
        with self._lock, self.engine.connect() as conn:
            rows = conn.execute(
                _records.select().where(_records.c.collection == collection).order_by(_records.c.id)
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def get(self, collection: str, record_id: int) -> Optional[Record]:
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_select_record(collection, record_id)).fetchone()
        return _row_to_record(row) if row is not None else None

    def append(self, collection: str, fields: Record) -> Record:
        data = {k: v for k, v in fields.items() if k != "id"}
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(_records.insert().values(collection=collection, data=json.dumps(data)))
            conn.commit()
            record_id = result.inserted_primary_key[0]
        return {**data, "id": record_id}

    def update(
        self, collection: str, record_id: int, changes: Record, check: Optional[UpdateCheck] = None
    ) -> Optional[Record]:
        """Read, merge, check, and write in one transaction. Returns None if absent.

        The read takes a row lock (SELECT ... FOR UPDATE on databases that
        support it) so a concurrent update of the same record waits instead
        of merging into a stale copy.
        """
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_select_record_for_update(collection, record_id)).fetchone()
            if row is None:
                return None
            merged = {**_row_to_record(row), **changes, "id": record_id}
            if check is not None:
                check(merged)
            data = {k: v for k, v in merged.items() if k != "id"}
            conn.execute(_records.update().where(_records.c.id == record_id).values(data=json.dumps(data)))
            conn.commit()
        return merged

    def delete(self, collection: str, record_id: int) -> bool:
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(
                _records.delete().where((_records.c.collection == collection) & (_records.c.id == record_id))
            )
            conn.commit()
        return result.rowcount > 0

    def count(self, collection: str) -> int:
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_records).where(_records.c.collection == collection)
            ).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


def _select_record(collection: str, record_id: int):
    return _records.select().where((_records.c.collection == collection) & (_records.c.id == record_id))


def _select_record_for_update(collection: str, record_id: int):
    # SQLite has no FOR UPDATE. SQLAlchemy drops the clause there and the
    # store lock plus SQLite's single writer provide the isolation.
    return _select_record(collection, record_id).with_for_update()


def _row_to_record(row) -> Record:
    record = json.loads(row.data)
    record["id"] = row.id
    return record


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_record_store(settings: Settings) -> RecordStore:
    """Return the store selected by STORAGE_BACKEND.

    Connection errors from the sql backend propagate -- the lifespan treats
    them as fatal rather than serving from a broken store.
    """
    if settings.storage_backend == "sql":
        logger.info("Using SQL record store")
        return SQLRecordStore(settings.database_url)
    logger.info("Using in-memory record store")
    return MemoryRecordStore()
