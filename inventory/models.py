"""
inventory/models.py -- Domain dataclasses for the asset inventory.

These are pure data containers with zero logic. Validation and record
assembly live in inventory/ledger.py; persistence in inventory/store.py.
"""

from dataclasses import dataclass
from typing import Optional

# Collection names used by the record store.
ASSETS = "assets"
INVENTORY = "inventory"

# Transaction kind -> collection name. Kinds are the singular URL segment.
TRANSACTION_COLLECTIONS: dict[str, str] = {
    "purchase": "purchases",
    "transfer": "transfers",
    "assignment": "assignments",
    "expenditure": "expenditures",
}

ASSET_STATUSES = ("operational", "maintenance", "deployed", "decommissioned")

# Fields that must be present and non-empty after trimming.
ASSET_REQUIRED_FIELDS = ("name", "type", "status", "location")


@dataclass
class Asset:
    """A managed asset entity (aircraft, vehicle, ship, ...).

    status is one of ASSET_STATUSES. id is None before the record is stored;
    created_at is set once on insert and never changed by updates.
    """

    name: str
    type: str
    status: str
    location: str
    description: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601


@dataclass
class InventorySnapshot:
    """Balance snapshot for one equipment type at one base.

    closing_balance = opening_balance + net_movement - assigned - expended
    holds for the seeded rows; nothing enforces it on arbitrary data.
    """

    base: str
    equipment_type: str
    opening_balance: int
    closing_balance: int
    assigned: int
    expended: int
    net_movement: int
