"""
api/routes/auth.py -- Signup, login, and token endpoints.

Routes:
  POST /api/auth/signup   -- create an identity (role "logistics"); 201 + token
  POST /api/auth/login    -- exchange email + secret for a token
  GET  /api/auth/me       -- claims of the presented token (requires auth)
  POST /api/auth/refresh  -- fresh token with the identity's current role (requires auth)

Security:
  signup and login are rate-limited per client IP (SIGNUP_RATE_LIMIT,
  LOGIN_RATE_LIMIT).
  authenticate() equalizes timing between unknown-email and bad-secret --
  use it, never inline get_by_email() + verify_password().
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import Credentials, MeResponse, TokenResponse
from auth.credentials import authenticate, register
from auth.dependencies import get_current_principal
from auth.models import Identity, Principal
from auth.store import IdentityStore
from auth.tokens import create_access_token
from core.config import get_settings
from core.errors import InvalidToken

logger = logging.getLogger("milasset.api")

_settings = get_settings()

# Auth policy:
# - POST /api/auth/signup:  public
# - POST /api/auth/login:   public
# - GET  /api/auth/me:      requires auth (get_current_principal)
# - POST /api/auth/refresh: requires auth (get_current_principal)
router = APIRouter()


def _token_response(identity: Identity, message: str, status_code: int) -> JSONResponse:
    token = create_access_token(identity.id, identity.email, identity.role)
    resp = JSONResponse(
        status_code=status_code,
        content=TokenResponse(
            message=message,
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
            email=identity.email,
            role=identity.role,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/signup", response_model=TokenResponse, status_code=201)
@limiter.limit(_settings.signup_rate_limit)  # must be BELOW @router so the route registers the limited function
def signup(request: Request, body: Credentials) -> JSONResponse:
    """Register a new identity and log it straight in.

    Every self-registered identity gets role "logistics". A duplicate email
    is a 409 and never creates a second record.
    """
    identity_store: IdentityStore = request.app.state.identity_store
    identity = register(identity_store, body.email, body.password)
    return _token_response(identity, "User registered successfully.", 201)


@router.post("/auth/login", response_model=TokenResponse)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: Credentials) -> JSONResponse:
    """Authenticate with email and secret; return a bearer token.

    404 when the email is unknown, 401 when the secret is wrong. No token is
    issued on either failure.
    """
    identity_store: IdentityStore = request.app.state.identity_store
    identity = authenticate(identity_store, body.email, body.password)
    return _token_response(identity, "Login successful.", 200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
async def me(principal: Principal = Depends(get_current_principal)) -> MeResponse:
    """Return the claims of the token on this request. The store is not consulted."""
    return MeResponse.from_principal(principal)


@router.post("/auth/refresh", response_model=TokenResponse)
def refresh(request: Request, principal: Principal = Depends(get_current_principal)) -> JSONResponse:
    """Issue a new token for the identity behind the presented one.

    Unlike ordinary requests, this re-reads the identity so the new token
    carries the role currently on record.
    """
    identity_store: IdentityStore = request.app.state.identity_store
    identity = identity_store.get_by_id(principal.identity_id)
    if identity is None or identity.email != principal.email:
        raise InvalidToken("Identity no longer exists.")
    return _token_response(identity, "Token refreshed.", 200)
