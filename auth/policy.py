"""
auth/policy.py -- The role gate.

One rule: the verified principal's role must equal the route's required
role. No hierarchy, no role sets. "admin" does not imply "logistics".
"""

from __future__ import annotations

import logging

from auth.models import Principal
from core.errors import Forbidden

logger = logging.getLogger("milasset.auth")


def authorize(principal: Principal | None, required_role: str) -> Principal:
    """Return the principal if its role matches required_role, else raise Forbidden.

    Must only be called after token verification succeeded. A missing
    principal here is a wiring bug, not an auth failure, so it raises
    RuntimeError (-> 500) instead of a 401.
    """
    if principal is None:
        raise RuntimeError("authorize() called without a verified principal")
    if principal.role != required_role:
        logger.info(
            "Forbidden: identity %d has role %r, route requires %r",
            principal.identity_id,
            principal.role,
            required_role,
        )
        raise Forbidden(f"Role '{required_role}' required.")
    return principal
