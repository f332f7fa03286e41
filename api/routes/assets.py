"""
api/routes/assets.py -- Inventory, transaction, and asset entity routes.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /assets/inventory                -- balance snapshot rows
  POST   /assets/{purchase,transfer,assignment,expenditure}
                                          -- record a transaction (logistics only)
  GET    /assets/{purchase,transfer,assignment,expenditure}
                                          -- list recorded transactions
  GET    /assets                          -- list asset entities
  POST   /assets                          -- create asset (logistics only)
  GET    /assets/{asset_id}               -- asset detail
  PUT    /assets/{asset_id}               -- partial update (logistics only)
  DELETE /assets/{asset_id}               -- delete (logistics only)

The literal transaction paths must be registered before /assets/{asset_id}
or FastAPI would try to parse "purchase" as an asset id.

Domain errors (NotFound, ValidationError) raised by inventory.ledger are
left to propagate; api/main.py maps them to status codes.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from api.limiter import limiter
from api.models import (
    AssetCreate,
    AssetResponse,
    AssetUpdate,
    InventoryRow,
    MessageResponse,
    TransactionResponse,
)
from auth.dependencies import get_current_principal, require_role
from auth.models import ROLE_LOGISTICS
from core.config import get_settings
from inventory import ledger
from inventory.models import TRANSACTION_COLLECTIONS
from inventory.store import RecordStore

_settings = get_settings()

# Auth policy (all relaxed to public when AUTH_ENABLED=false):
# - reads:     requires auth (get_current_principal)
# - mutations: requires role "logistics" (require_role)
router = APIRouter()

_read = [Depends(get_current_principal)]
_write = [Depends(require_role(ROLE_LOGISTICS))]


# ---------------------------------------------------------------------------
# GET /assets/inventory -- snapshot rows
# ---------------------------------------------------------------------------


@router.get(
    "/assets/inventory",
    response_model=list[InventoryRow],
    dependencies=_read,
)
def get_inventory(request: Request) -> list[InventoryRow]:
    """Return every inventory snapshot row in insertion order."""
    store: RecordStore = request.app.state.records
    return [InventoryRow.from_snapshot(row) for row in ledger.list_inventory(store)]


# ---------------------------------------------------------------------------
# /assets/{kind} -- transaction ledgers
# ---------------------------------------------------------------------------


def _add_transaction_routes(kind: str) -> None:
    """Register POST and GET handlers for one transaction kind."""

    def record(request: Request, payload: Any = Body(...)) -> TransactionResponse:
        store: RecordStore = request.app.state.records
        data = ledger.record_transaction(store, kind, payload)
        return TransactionResponse(message=f"{kind.capitalize()} recorded successfully.", data=data)

    def list_records(request: Request) -> list[dict]:
        store: RecordStore = request.app.state.records
        return ledger.list_transactions(store, kind)

    record.__doc__ = f"Append a {kind} record. Caller fields are stored as given, plus a new id."
    list_records.__doc__ = f"Return all {kind} records in insertion order."

    router.add_api_route(
        f"/assets/{kind}",
        record,
        methods=["POST"],
        status_code=201,
        response_model=TransactionResponse,
        dependencies=_write,
        name=f"record_{kind}",
    )
    router.add_api_route(
        f"/assets/{kind}",
        list_records,
        methods=["GET"],
        response_model=list[dict],
        dependencies=_read,
        name=f"list_{kind}",
    )


for _kind in TRANSACTION_COLLECTIONS:
    _add_transaction_routes(_kind)


# ---------------------------------------------------------------------------
# Asset entities
# ---------------------------------------------------------------------------


@router.get("/assets", response_model=list[AssetResponse], dependencies=_read)
@limiter.limit(_settings.asset_read_rate_limit)
def list_assets(request: Request) -> list[AssetResponse]:
    """Return all asset entities in creation order."""
    store: RecordStore = request.app.state.records
    return [AssetResponse.from_asset(a) for a in ledger.list_assets(store)]


@router.post("/assets", response_model=AssetResponse, status_code=201, dependencies=_write)
@limiter.limit(_settings.asset_write_rate_limit)
def create_asset(request: Request, body: AssetCreate) -> AssetResponse:
    """Create an asset. Strings are trimmed; status must be a known value."""
    store: RecordStore = request.app.state.records
    asset = ledger.create_asset(store, body.model_dump(mode="json"))
    return AssetResponse.from_asset(asset)


@router.get("/assets/{asset_id}", response_model=AssetResponse, dependencies=_read)
@limiter.limit(_settings.asset_read_rate_limit)
def get_asset(request: Request, asset_id: int) -> AssetResponse:
    store: RecordStore = request.app.state.records
    return AssetResponse.from_asset(ledger.get_asset(store, asset_id))


@router.put("/assets/{asset_id}", response_model=AssetResponse, dependencies=_write)
@limiter.limit(_settings.asset_write_rate_limit)
def update_asset(request: Request, asset_id: int, body: AssetUpdate) -> AssetResponse:
    """Merge the supplied fields into the asset and re-validate the result.

    Only fields present in the body change. 404 if the asset does not exist.
    """
    store: RecordStore = request.app.state.records
    changes = body.model_dump(mode="json", exclude_unset=True)
    return AssetResponse.from_asset(ledger.update_asset(store, asset_id, changes))


@router.delete("/assets/{asset_id}", response_model=MessageResponse, dependencies=_write)
@limiter.limit(_settings.asset_write_rate_limit)
def delete_asset(request: Request, asset_id: int) -> MessageResponse:
    store: RecordStore = request.app.state.records
    ledger.delete_asset(store, asset_id)
    return MessageResponse(message="Asset successfully deleted")
