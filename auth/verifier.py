"""
auth/verifier.py -- Request-level identity verification.

Two interchangeable verifiers, chosen once at startup from AUTH_ENABLED:

  TokenVerifier -- reads "Authorization: Bearer <token>", decodes the JWT,
      then asks the revocation hook whether the token is still honoured.
  NoopVerifier  -- authentication disabled. Every request runs as the
      ANONYMOUS principal and the role gate is skipped (enforcing=False).

Keeping both behind one interface means routes are written once; turning
auth off is configuration, not a second copy of every handler.

Revocation: tokens are stateless, so by default nothing can revoke one
before it expires. RevocationHook is the extension point for a deny-list or
a "tokens issued before X are void" rule. It sees only the decoded claims.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

import logging
from typing import Protocol

from starlette.requests import Request

from auth.models import ANONYMOUS, Principal
from auth.tokens import decode_access_token
from core.config import Settings
from core.errors import InvalidToken, Unauthenticated

logger = logging.getLogger("milasset.auth")

_BEARER_SCHEME = "bearer"


class RevocationHook(Protocol):
    def is_revoked(self, principal: Principal) -> bool: ...


class NoRevocation:
    """Default hook: a correctly signed, unexpired token is always honoured."""

    def is_revoked(self, principal: Principal) -> bool:
        return False


class TokenVerifier:
    enforcing = True

    def __init__(self, revocation: RevocationHook | None = None) -> None:
        self.revocation: RevocationHook = revocation or NoRevocation()

    def verify(self, request: Request) -> Principal:
        """Return the principal for the request's bearer token.

        Raises Unauthenticated when no bearer token is present, InvalidToken
        (or ExpiredToken) when the token does not verify or was revoked.
        """
        token = bearer_token(request)
        if not token:
            raise Unauthenticated()
        principal = decode_access_token(token)
        if self.revocation.is_revoked(principal):
            logger.info("Rejected revoked token for identity %d", principal.identity_id)
            raise InvalidToken("Token has been revoked.")
        return principal


class NoopVerifier:
    enforcing = False

    def verify(self, request: Request) -> Principal:
        return ANONYMOUS


def bearer_token(request: Request) -> str | None:
    """Extract the raw token from an Authorization: Bearer header, if any.

    The scheme name is matched case-insensitively (RFC 7235).
    """
    scheme, _, token = request.headers.get("Authorization", "").strip().partition(" ")
    if scheme.lower() != _BEARER_SCHEME:
        return None
    return token.strip() or None


def build_verifier(settings: Settings, revocation: RevocationHook | None = None) -> TokenVerifier | NoopVerifier:
    if not settings.auth_enabled:
        logger.warning("Authentication is DISABLED -- all routes are public")
        return NoopVerifier()
    return TokenVerifier(revocation)
