"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The verifier lives on app.state.verifier (set in the lifespan) so tests and
deployments can swap it without touching routes.

get_current_principal() runs the verifier and returns the Principal.
require_role(role) wraps it with the role gate; when the verifier is not
enforcing (AUTH_ENABLED=false) the gate is skipped.

Layer rule: no imports from api/ or inventory/.
  auth/dependencies.py may import from fastapi because this module is part
  of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.models import Principal
from auth.policy import authorize


def get_current_principal(request: Request) -> Principal:
    """Require a verified identity. Errors propagate as 401s.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(principal: Principal = Depends(get_current_principal)): ...
    """
    return request.app.state.verifier.verify(request)


def require_role(role: str):
    """Build a dependency that verifies the token, then applies the role gate.

    Use as a FastAPI dependency:
        @router.post("/logistics-only")
        async def route(principal: Principal = Depends(require_role("logistics"))): ...
    """

    def _dep(request: Request, principal: Principal = Depends(get_current_principal)) -> Principal:
        if not request.app.state.verifier.enforcing:
            return principal
        return authorize(principal, role)

    return _dep
