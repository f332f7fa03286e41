"""
auth/credentials.py -- Password hashing, signup, and login checks.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). Its cost factor makes
       brute-force of low-entropy secrets expensive, and bcrypt.checkpw does
       the comparison -- secrets are never compared as plain strings.

  Timing: authenticate() runs bcrypt against _DUMMY_HASH when the email is
       unknown so both failure paths cost one bcrypt check. The two paths
       still return different errors (NotFound vs InvalidCredential) because
       the API contract distinguishes them.

Layer rule: no imports from api/ or inventory/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError

from auth.models import ROLE_LOGISTICS, Identity
from auth.store import IdentityStore
from core.errors import Conflict, InvalidCredential, NotFound, ValidationError

logger = logging.getLogger("milasset.auth")

# bcrypt only looks at the first 72 bytes of its input.
MAX_SECRET_BYTES = 72


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext secret.

    Callers must keep the secret within MAX_SECRET_BYTES; register() and the
    API request model both enforce it.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext secret matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input on bcrypt >= 4.1
        return False


# Computed once at module load so the first unknown-email login is not
# measurably slower than later ones.
_DUMMY_HASH: str = hash_password("milasset_timing_dummy")


# ---------------------------------------------------------------------------
# Credential store operations
# ---------------------------------------------------------------------------


def register(store: IdentityStore, email: str, secret: str) -> Identity:
    """Create a new identity with role "logistics".

    Raises Conflict if the email is already registered (exact, case-sensitive
    match). The UNIQUE constraint is the real guard; the lookup first only
    avoids paying for a bcrypt hash on an obvious duplicate.
    """
    if not email or not secret:
        raise ValidationError("Email and password are required.")
    if len(secret.encode("utf-8")) > MAX_SECRET_BYTES:
        raise ValidationError(f"Password must be at most {MAX_SECRET_BYTES} bytes when UTF-8 encoded.")
    if store.get_by_email(email) is not None:
        raise Conflict("An account with that email already exists.")

    identity = Identity(email=email, hashed_secret=hash_password(secret), role=ROLE_LOGISTICS)
    try:
        identity.id = store.create_identity(identity)
    except IntegrityError as exc:
        raise Conflict("An account with that email already exists.") from exc

    logger.info("Registered identity %d (%s)", identity.id, identity.role)
    return identity


def authenticate(store: IdentityStore, email: str, secret: str) -> Identity:
    """Return the identity for a valid email/secret pair.

    Raises NotFound when no identity has this email, InvalidCredential when
    the secret does not match the stored hash.
    """
    identity = store.get_by_email(email)
    if identity is None:
        # Equalize timing -- run bcrypt before reporting the miss
        verify_password(secret, _DUMMY_HASH)
        raise NotFound("No account with that email.")
    if not verify_password(secret, identity.hashed_secret):
        logger.info("Rejected login for identity %d: bad secret", identity.id)
        raise InvalidCredential()
    return identity
