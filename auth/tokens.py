"""
auth/tokens.py -- JWT issue and decode.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       identity_id, email (as sub), role, issued-at, and expiry. Nothing is
       stored server-side; a token is valid until it expires.

  Errors: decode_access_token() raises instead of returning None so callers
       can tell the two 401 flavours apart -- ExpiredToken when the signature
       checks out but exp has passed, InvalidToken for everything else
       (forged, truncated, wrong key, missing claims).

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup: dev mode (DEBUG=true) auto-generates a
       random key with a warning; production mode refuses to start without one.

Layer rule: no imports from api/ or inventory/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from auth.models import Principal
from core.config import get_settings
from core.errors import ExpiredToken, InvalidToken

logger = logging.getLogger("milasset.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

_REQUIRED_CLAIMS = ("sub", "identity_id", "role")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(identity_id: int, email: str, role: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT with identity claims and expiry.

    Args:
        identity_id:    Numeric identity ID stored in the DB.
        email:          Email stored as the JWT subject claim.
        role:           Role at issue time. Not re-checked on later requests.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "identity_id": identity_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> Principal:
    """Verify a JWT and return its claims as a Principal.

    Raises ExpiredToken or InvalidToken; never returns a partial result.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise ExpiredToken() from exc
    except JWTError as exc:
        raise InvalidToken() from exc

    if any(claim not in payload for claim in _REQUIRED_CLAIMS):
        logger.warning("Rejected token with missing claims")
        raise InvalidToken("Token is missing required claims.")
    try:
        identity_id = int(payload["identity_id"])
    except (TypeError, ValueError) as exc:
        raise InvalidToken("Token is missing required claims.") from exc

    return Principal(
        identity_id=identity_id,
        email=str(payload["sub"]),
        role=payload["role"],
        issued_at=payload.get("iat"),
    )
