# civic_node/api/roles.py
"""
civic_node/api/roles.py
--------------------------------------------------
Role endpoints.

- GET    /roles/me                    roles held by the calling principal
- GET    /roles/members               current Admin and Member holders
- POST   /roles/members               Admin adds a Member
- DELETE /roles/members/{principal}   Admin removes a Member
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..civic_runtime.errors import GovernanceError
from ..civic_runtime.facade import GovernanceFacade
from ..civic_runtime.roles import Role
from .deps import get_facade, http_error, require_principal

router = APIRouter(prefix="/roles", tags=["roles"])


class MemberRequest(BaseModel):
    principal: str


class RolesResponse(BaseModel):
    principal: str
    roles: List[str]


@router.get("/me", response_model=RolesResponse)
def roles_me(
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> RolesResponse:
    return RolesResponse(principal=caller, roles=facade.roles_of(caller))


@router.get("/members")
def list_members(facade: GovernanceFacade = Depends(get_facade)) -> Dict[str, Any]:
    return {
        "ok": True,
        "admins": facade.roles.members(Role.ADMIN),
        "members": facade.roles.members(Role.MEMBER),
    }


@router.post("/members")
def add_member(
    payload: MemberRequest,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        facade.add_user(caller, payload.principal.strip())
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "principal": payload.principal.strip(), "roles": facade.roles_of(payload.principal.strip())}


@router.delete("/members/{principal}")
def remove_member(
    principal: str,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        facade.remove_user(caller, principal)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "principal": principal, "roles": facade.roles_of(principal)}
