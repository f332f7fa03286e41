"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in inventory/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_LOGISTICS = "logistics"

# Roles an identity may hold. Signup always assigns ROLE_LOGISTICS; the others
# exist for identities provisioned out of band.
ROLES = (ROLE_LOGISTICS, "commander", "admin")


@dataclass
class Identity:
    """A registered user.

    email is unique and compared case-sensitively exactly as given at signup.
    hashed_secret is a bcrypt hash; the plaintext is never stored.
    id is None before the record is written to the database.
    """

    email: str
    hashed_secret: str
    role: str = ROLE_LOGISTICS
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Principal:
    """The verified claims carried by a session token.

    Built from the token alone -- the identity table is not consulted, so a
    role change only shows up after the holder logs in or refreshes again.
    """

    identity_id: int
    email: str
    role: str | None
    issued_at: int | None = None


# Stand-in principal when authentication is disabled.
ANONYMOUS = Principal(identity_id=0, email="anonymous", role=None)
