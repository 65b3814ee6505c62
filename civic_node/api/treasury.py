# civic_node/api/treasury.py
"""
API: /treasury

Donation escrow endpoints. The ``value`` field of a donation or deposit
stands for the funds physically attached to the call; the runtime rejects
a donation whose declared ``amount`` differs from it.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..civic_runtime.errors import GovernanceError
from ..civic_runtime.escrow import Donation
from ..civic_runtime.facade import GovernanceFacade
from .deps import get_facade, http_error, require_principal

router = APIRouter(prefix="/treasury", tags=["treasury"])


class DonationOut(BaseModel):
    id: int
    proposal_id: int
    beneficiary: str
    amount: int
    executed: bool = False

    @classmethod
    def from_runtime(cls, d: Donation) -> "DonationOut":
        return cls(
            id=d.id,
            proposal_id=d.proposal_id,
            beneficiary=d.beneficiary,
            amount=d.amount,
            executed=d.executed,
        )


class DonationCreate(BaseModel):
    proposal_id: int
    amount: int = Field(..., description="Declared amount, smallest unit.")
    value: int = Field(..., description="Value attached to the call.")


class Deposit(BaseModel):
    value: int = Field(..., ge=0)


class DonationList(BaseModel):
    ok: bool = True
    donations: List[DonationOut]


@router.get("/status")
def treasury_status(facade: GovernanceFacade = Depends(get_facade)) -> Dict[str, Any]:
    donations = facade.list_donations()
    return {
        "ok": True,
        "balance": facade.escrow_balance(),
        "donations": len(donations),
        "pending": sum(1 for d in donations if not d.executed),
        "pending_amount": facade.pending_total(),
    }


@router.get("/donations", response_model=DonationList)
def list_donations(facade: GovernanceFacade = Depends(get_facade)) -> DonationList:
    return DonationList(donations=[DonationOut.from_runtime(d) for d in facade.list_donations()])


@router.get("/donations/{donation_id}")
def get_donation(donation_id: int, facade: GovernanceFacade = Depends(get_facade)) -> Dict[str, Any]:
    try:
        d = facade.get_donation(donation_id)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "donation": DonationOut.from_runtime(d)}


@router.post("/donations")
def donate(
    payload: DonationCreate,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        d = facade.donate_to_proposal(caller, payload.proposal_id, payload.amount, payload.value)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "donation": DonationOut.from_runtime(d)}


@router.post("/donations/{donation_id}/execute")
def execute_donation(
    donation_id: int,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        d = facade.execute_donation(caller, donation_id)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "donation": DonationOut.from_runtime(d)}


@router.post("/deposit")
def deposit(
    payload: Deposit,
    caller: str = Depends(require_principal),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    try:
        balance = facade.receive_funds(caller, payload.value)
    except GovernanceError as e:
        raise http_error(e)
    return {"ok": True, "balance": balance}
