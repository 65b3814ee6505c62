# civic_node/api/deps.py
"""
Shared request plumbing for the civic API routers.

Identity: the caller principal is read from the ``X-Civic-Principal``
header (dev-form authentication; a real deployment puts a session or
signature check in front of this). Mutating endpoints require it.

Errors: runtime GovernanceError -> HTTPException(status, detail=code).
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from ..civic_runtime.errors import GovernanceError
from ..civic_runtime.facade import GovernanceFacade

PRINCIPAL_HEADER = "X-Civic-Principal"


def get_facade(request: Request) -> GovernanceFacade:
    facade = getattr(request.app.state, "facade", None)
    if facade is None:
        raise HTTPException(status_code=503, detail="runtime_unavailable")
    return facade


def current_principal_optional(
    x_civic_principal: Optional[str] = Header(default=None, alias=PRINCIPAL_HEADER),
) -> Optional[str]:
    if x_civic_principal is None:
        return None
    p = x_civic_principal.strip()
    return p or None


def require_principal(
    x_civic_principal: Optional[str] = Header(default=None, alias=PRINCIPAL_HEADER),
) -> str:
    p = current_principal_optional(x_civic_principal)
    if not p:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="auth_required")
    return p


def http_error(e: GovernanceError) -> HTTPException:
    return HTTPException(status_code=e.http_status, detail=e.code)
