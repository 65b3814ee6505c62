# civic_node/api/governance.py
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..civic_runtime.errors import GovernanceError
from ..civic_runtime.facade import GovernanceFacade
from ..civic_runtime.proposals import Proposal
from .deps import get_facade, http_error, require_principal

router = APIRouter(prefix="/governance", tags=["governance"])


class ProposalOut(BaseModel):
    id: int
    description: str
    creator: str
    vote_count: int = 0
    executed: bool = False

    @classmethod
    def from_runtime(cls, p: Proposal) -> "ProposalOut":
        return cls(
            id=p.id,
            description=p.description,
            creator=p.creator,
            vote_count=p.vote_count,
            executed=p.executed,
        )


class ProposalCreate(BaseModel):
    description: str = Field("", description="Free text; empty is allowed.")


class ProposalList(BaseModel):
    ok: bool = True
    proposals: List[ProposalOut]


@router.get("/proposals", response_model=ProposalList)
def list_proposals(facade: GovernanceFacade = Depends(get_facade)) -> ProposalList:
    return ProposalList(proposals=[ProposalOut.from_runtime(p) for p in facade.list_proposals()])


@router.get("/proposals/{proposal_id}")
def get_proposal(proposal_id: int, facade: GovernanceFacade = Depends(get_facade)) -> Dict[str, Any]:
    try:
        p = facade.get_proposal(proposal_id)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "proposal": ProposalOut.from_runtime(p)}


@router.post("/proposals")
def create_proposal(
    payload: ProposalCreate,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        p = facade.create_proposal(caller, payload.description)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "proposal": ProposalOut.from_runtime(p)}


@router.post("/proposals/{proposal_id}/vote")
def vote_proposal(
    proposal_id: int,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        p = facade.vote(caller, proposal_id)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "proposal": ProposalOut.from_runtime(p)}


@router.post("/proposals/{proposal_id}/public-action")
def public_action(
    proposal_id: int,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        p = facade.public_action_with_token_burn(caller, proposal_id)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "proposal": ProposalOut.from_runtime(p)}


@router.post("/proposals/{proposal_id}/execute")
def execute_proposal(
    proposal_id: int,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        p = facade.execute_proposal(caller, proposal_id)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "proposal": ProposalOut.from_runtime(p)}


@router.get("/proposals/{proposal_id}/votes/{principal}")
def has_voted(proposal_id: int, principal: str, facade: GovernanceFacade = Depends(get_facade)) -> Dict[str, Any]:
    try:
        facade.get_proposal(proposal_id)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "proposal_id": proposal_id, "principal": principal, "has_voted": facade.has_voted(proposal_id, principal)}
