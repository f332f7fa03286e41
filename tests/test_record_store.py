"""
tests/test_record_store.py -- Contract tests run against both RecordStore backends.

Each test gets a fresh store: MemoryRecordStore or SQLRecordStore on an
in-memory SQLite database.
"""

from __future__ import annotations

from collections.abc import Generator
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from core.config import Settings
from core.errors import ValidationError
from inventory.store import (
    MemoryRecordStore,
    SQLRecordStore,
    _select_record_for_update,
    build_record_store,
)


@pytest.fixture(params=["memory", "sql"])
def store(request) -> Generator:
    s = MemoryRecordStore() if request.param == "memory" else SQLRecordStore("sqlite://")
    yield s
    s.close()


def test_append_assigns_unique_ids(store):
    a = store.append("purchases", {"item": "rifle", "qty": 10})
    b = store.append("purchases", {"item": "rifle", "qty": 10})
    assert a["id"] != b["id"]
    assert a["item"] == "rifle"
    assert a["qty"] == 10


def test_list_keeps_insertion_order(store):
    for n in range(5):
        store.append("transfers", {"n": n})
    assert [r["n"] for r in store.list("transfers")] == [0, 1, 2, 3, 4]


def test_collections_are_separate(store):
    store.append("purchases", {"item": "rifle"})
    assert store.list("transfers") == []
    assert store.count("purchases") == 1
    assert store.count("transfers") == 0


def test_caller_id_is_overwritten(store):
    first = store.append("assignments", {"id": 1, "item": "radio"})
    second = store.append("assignments", {"id": 1, "item": "radio"})
    assert first["id"] != second["id"]
    assert len({r["id"] for r in store.list("assignments")}) == 2


def test_get_missing_returns_none(store):
    assert store.get("assets", 12345) is None


def test_get_checks_collection(store):
    rec = store.append("assets", {"name": "Humvee"})
    assert store.get("purchases", rec["id"]) is None


def test_update_merges(store):
    rec = store.append("assets", {"name": "Humvee", "status": "operational"})
    updated = store.update("assets", rec["id"], {"status": "deployed"})
    assert updated == {"id": rec["id"], "name": "Humvee", "status": "deployed"}
    assert store.get("assets", rec["id"]) == updated


def test_update_cannot_change_id(store):
    rec = store.append("assets", {"name": "Humvee"})
    updated = store.update("assets", rec["id"], {"id": 999})
    assert updated["id"] == rec["id"]


def test_update_missing_returns_none(store):
    assert store.update("assets", 12345, {"status": "deployed"}) is None


def test_failed_check_leaves_record(store):
    rec = store.append("assets", {"name": "Humvee", "status": "operational"})

    def reject(merged):
        raise ValidationError("nope")

    with pytest.raises(ValidationError):
        store.update("assets", rec["id"], {"status": "sunk"}, check=reject)
    assert store.get("assets", rec["id"])["status"] == "operational"


def test_delete(store):
    rec = store.append("assets", {"name": "Humvee"})
    assert store.delete("assets", rec["id"]) is True
    assert store.get("assets", rec["id"]) is None
    assert store.delete("assets", rec["id"]) is False


def test_returned_records_are_copies(store):
    payload = {"item": "rifle", "tags": ["a"]}
    rec = store.append("purchases", payload)
    payload["tags"].append("b")
    rec["tags"].append("c")
    assert store.get("purchases", rec["id"])["tags"] == ["a"]
    assert "id" not in payload


def test_nested_values_survive(store):
    rec = store.append("expenditures", {"item": "round", "meta": {"lot": "A1", "count": [1, 2]}})
    assert store.get("expenditures", rec["id"])["meta"] == {"lot": "A1", "count": [1, 2]}


def test_parallel_appends_are_all_stored(store):
    def append_batch(worker: int) -> list[int]:
        return [store.append("purchases", {"worker": worker, "n": n})["id"] for n in range(5)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        ids = [i for batch in pool.map(append_batch, range(16)) for i in batch]

    assert len(set(ids)) == 80
    assert store.count("purchases") == 80
    assert all(store.get("purchases", i) is not None for i in ids)


def test_parallel_partial_updates_keep_every_field(store):
    rec = store.append("assets", {"name": "Humvee"})

    def set_field(n: int) -> None:
        store.update("assets", rec["id"], {f"field{n}": n})

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(set_field, range(20)))

    stored = store.get("assets", rec["id"])
    assert all(stored[f"field{n}"] == n for n in range(20))


def test_update_read_locks_the_row():
    stmt = _select_record_for_update("assets", 1)
    assert "FOR UPDATE" in str(stmt.compile(dialect=postgresql.dialect()))
    # SQLite has no row locks; the clause is dropped rather than sent.
    assert "FOR UPDATE" not in str(stmt.compile(dialect=sqlite.dialect()))


class TestFactory:
    def test_memory_backend(self):
        s = build_record_store(Settings(_env_file=None, debug=True, storage_backend="memory"))
        assert isinstance(s, MemoryRecordStore)

    def test_sql_backend(self):
        s = build_record_store(
            Settings(_env_file=None, debug=True, storage_backend="sql", database_url="sqlite://")
        )
        assert isinstance(s, SQLRecordStore)
        s.close()
