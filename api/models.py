"""
API request and response models for MilAsset REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
inventory/models.py, which own the internal domain representation. Route
handlers map between the two.
"""

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.credentials import MAX_SECRET_BYTES
from auth.models import Principal
from inventory.models import Asset, InventorySnapshot

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AssetStatusEnum(str, Enum):
    operational = "operational"
    maintenance = "maintenance"
    deployed = "deployed"
    decommissioned = "decommissioned"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Request body for POST /api/auth/signup and /api/auth/login.

    The secret is accepted as either "password" or "secret". bcrypt reads at
    most 72 bytes, so longer UTF-8 encodings are rejected rather than
    truncated.
    """

    model_config = ConfigDict(str_strip_whitespace=False)

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(
        min_length=1,
        max_length=72,
        validation_alias=AliasChoices("password", "secret"),
    )

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_SECRET_BYTES:
            raise ValueError(f"password must be at most {MAX_SECRET_BYTES} bytes when UTF-8 encoded")
        return v


class TokenResponse(BaseModel):
    """Response for signup, login, and refresh."""

    model_config = ConfigDict(frozen=True)

    message: str
    token: str
    token_type: str = "bearer"
    expires_in: int
    email: str
    role: str


class MeResponse(BaseModel):
    """Claims of the token on the current request."""

    model_config = ConfigDict(frozen=True)

    identity_id: int
    email: str
    role: Optional[str]
    issued_at: Optional[int] = None

    @classmethod
    def from_principal(cls, principal: Principal) -> "MeResponse":
        return cls(
            identity_id=principal.identity_id,
            email=principal.email,
            role=principal.role,
            issued_at=principal.issued_at,
        )


# ---------------------------------------------------------------------------
# Inventory snapshot
# ---------------------------------------------------------------------------


class InventoryRow(BaseModel):
    """One row of GET /api/assets/inventory. Serialized with camelCase keys."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    base: str
    equipment_type: str
    opening_balance: int
    closing_balance: int
    assigned: int
    expended: int
    net_movement: int

    @classmethod
    def from_snapshot(cls, row: InventorySnapshot) -> "InventoryRow":
        return cls(
            base=row.base,
            equipment_type=row.equipment_type,
            opening_balance=row.opening_balance,
            closing_balance=row.closing_balance,
            assigned=row.assigned,
            expended=row.expended,
            net_movement=row.net_movement,
        )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TransactionResponse(BaseModel):
    """Response for POST /api/assets/{kind}. data is the stored record, id included."""

    model_config = ConfigDict(frozen=True)

    message: str
    data: dict


# ---------------------------------------------------------------------------
# Asset entities
# ---------------------------------------------------------------------------


class AssetCreate(BaseModel):
    """Request body for POST /api/assets."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    type: str = Field(min_length=1, max_length=100)
    status: AssetStatusEnum
    location: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)


class AssetUpdate(BaseModel):
    """Request body for PUT /api/assets/{asset_id}. Every field optional (partial merge)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[str] = Field(default=None, min_length=1, max_length=100)
    status: Optional[AssetStatusEnum] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)


class AssetResponse(BaseModel):
    """An asset entity. Serialized with camelCase keys, like InventoryRow."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    type: str
    status: str
    location: str
    description: Optional[str] = None
    created_at: str

    @classmethod
    def from_asset(cls, asset: Asset) -> "AssetResponse":
        return cls(
            id=asset.id,
            name=asset.name,
            type=asset.type,
            status=asset.status,
            location=asset.location,
            description=asset.description,
            created_at=asset.created_at,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
