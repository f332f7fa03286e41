"""
inventory/ledger.py -- Resource handlers for inventory, transactions, and assets.

Each function takes the record store plus the request payload and either
returns the resulting record(s) or raises a core.errors exception. No HTTP
here: api/routes/assets.py maps these onto endpoints and status codes.

Policy (who may call what) is not checked here -- it is attached to routes
with auth.dependencies. These functions trust their caller.

Validation is deliberately thin:
  transactions -- payload must be a non-empty JSON object, nothing more.
  assets       -- name/type/status/location required and non-empty after
                  trimming; status must be one of ASSET_STATUSES. Re-checked
                  on every update against the merged record.
"""

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Optional

from core.errors import NotFound, ValidationError
from inventory.models import (
    ASSET_REQUIRED_FIELDS,
    ASSET_STATUSES,
    ASSETS,
    INVENTORY,
    TRANSACTION_COLLECTIONS,
    Asset,
    InventorySnapshot,
)
from inventory.store import Record, RecordStore

logger = logging.getLogger("milasset.inventory")

# Rows loaded into an empty inventory collection at startup.
SEED_INVENTORY: list[InventorySnapshot] = [
    InventorySnapshot("Base Alpha", "Rifle", 500, 530, 60, 10, 100),
    InventorySnapshot("Base Alpha", "Ammunition", 20000, 17500, 0, 4500, 2000),
    InventorySnapshot("Base Bravo", "Vehicle", 40, 43, 5, 0, 8),
    InventorySnapshot("Base Charlie", "Radio", 120, 110, 15, 5, 10),
]

_ASSET_FIELDS = ("name", "type", "status", "location", "description")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Inventory snapshot
# ---------------------------------------------------------------------------


def seed_inventory(store: RecordStore) -> int:
    """Load SEED_INVENTORY if the inventory collection is empty. Returns rows added."""
    if store.count(INVENTORY) > 0:
        return 0
    for row in SEED_INVENTORY:
        store.append(INVENTORY, asdict(row))
    logger.info("Seeded inventory with %d snapshot rows", len(SEED_INVENTORY))
    return len(SEED_INVENTORY)


def list_inventory(store: RecordStore) -> list[InventorySnapshot]:
    """Return the full snapshot collection in insertion order."""
    return [
        InventorySnapshot(
            base=r["base"],
            equipment_type=r["equipment_type"],
            opening_balance=r["opening_balance"],
            closing_balance=r["closing_balance"],
            assigned=r["assigned"],
            expended=r["expended"],
            net_movement=r["net_movement"],
        )
        for r in store.list(INVENTORY)
    ]


# ---------------------------------------------------------------------------
# Transactions (purchase / transfer / assignment / expenditure)
# ---------------------------------------------------------------------------


def _collection_for(kind: str) -> str:
    try:
        return TRANSACTION_COLLECTIONS[kind]
    except KeyError:
        raise NotFound(f"Unknown transaction type '{kind}'.") from None


def record_transaction(store: RecordStore, kind: str, payload: Any) -> Record:
    """Append a transaction record and return it with its new id.

    All caller fields are kept verbatim. A caller-supplied "id" is replaced
    by the store-assigned one so ids stay unique.
    """
    collection = _collection_for(kind)
    if not isinstance(payload, dict) or not payload:
        raise ValidationError(f"A non-empty JSON object is required to record a {kind}.")
    record = store.append(collection, payload)
    logger.info("Recorded %s %s", kind, record["id"])
    return record


def list_transactions(store: RecordStore, kind: str) -> list[Record]:
    return store.list(_collection_for(kind))


# ---------------------------------------------------------------------------
# Asset entities
# ---------------------------------------------------------------------------


def _clean_asset_fields(fields: dict) -> dict:
    """Keep only known asset fields and trim string values."""
    cleaned = {}
    for key in _ASSET_FIELDS:
        if key in fields:
            value = fields[key]
            cleaned[key] = value.strip() if isinstance(value, str) else value
    return cleaned


def validate_asset(record: dict) -> None:
    """Raise ValidationError unless record is a complete, valid asset."""
    missing = [f for f in ASSET_REQUIRED_FIELDS if not isinstance(record.get(f), str) or not record[f].strip()]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}.")
    if record["status"] not in ASSET_STATUSES:
        raise ValidationError(
            f"'{record['status']}' is not a valid status.",
            detail=f"status must be one of: {', '.join(ASSET_STATUSES)}",
        )
    description = record.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError("description must be a string.")


def _record_to_asset(record: Record) -> Asset:
    return Asset(
        id=record["id"],
        name=record["name"],
        type=record["type"],
        status=record["status"],
        location=record["location"],
        description=record.get("description"),
        created_at=record.get("created_at", ""),
    )


def create_asset(store: RecordStore, fields: dict) -> Asset:
    data = _clean_asset_fields(fields)
    validate_asset(data)
    data["created_at"] = _now_iso()
    record = store.append(ASSETS, data)
    logger.info("Created asset %s (%s)", record["id"], record["status"])
    return _record_to_asset(record)


def list_assets(store: RecordStore) -> list[Asset]:
    return [_record_to_asset(r) for r in store.list(ASSETS)]


def get_asset(store: RecordStore, asset_id: int) -> Asset:
    record = store.get(ASSETS, asset_id)
    if record is None:
        raise NotFound("Asset not found")
    return _record_to_asset(record)


def update_asset(store: RecordStore, asset_id: int, changes: dict) -> Asset:
    """Partially update an asset. Unknown keys are ignored; id and created_at are fixed.

    The merged record is validated before anything is written, so a bad
    update leaves the stored asset unchanged.
    """
    data = _clean_asset_fields(changes)
    record: Optional[Record] = store.update(ASSETS, asset_id, data, check=validate_asset)
    if record is None:
        raise NotFound("Asset not found")
    logger.info("Updated asset %s", asset_id)
    return _record_to_asset(record)


def delete_asset(store: RecordStore, asset_id: int) -> None:
    if not store.delete(ASSETS, asset_id):
        raise NotFound("Asset not found")
    logger.info("Deleted asset %s", asset_id)
