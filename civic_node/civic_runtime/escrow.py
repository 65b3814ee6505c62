# civic_node/civic_runtime/escrow.py
"""
Donation escrow (record-then-pay).

Phase 1, record(): a donation is appended with its amount and a snapshot
of the beneficiary, and the attached value joins the shared pool.

Phase 2, begin_payout(): the donation is flagged executed and its amount
leaves the pool. The caller (the facade) performs the actual transfer
*after* this returns, so a re-entrant payout attempt already sees the
flag set.

The pool is one balance, not per-donation sub-accounts. Payout amounts
always come from the stored donation, never from the pool.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from .errors import AlreadyExecuted, InvalidAmount, NotFound, require


@dataclass
class Donation:
    id: int
    proposal_id: int
    beneficiary: str
    amount: int
    executed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DonationEscrow:
    def __init__(self) -> None:
        self._donations: List[Donation] = []
        self.pool_balance: int = 0

    def __len__(self) -> int:
        return len(self._donations)

    def exists(self, donation_id: int) -> bool:
        return isinstance(donation_id, int) and 0 <= donation_id < len(self._donations)

    def get(self, donation_id: int) -> Donation:
        require(self.exists(donation_id), NotFound, f"donation {donation_id} not found", donation_id=donation_id)
        return self._donations[donation_id]

    def all(self) -> List[Donation]:
        return list(self._donations)

    def pending_total(self) -> int:
        return sum(d.amount for d in self._donations if not d.executed)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record(self, proposal_id: int, beneficiary: str, amount: int) -> Donation:
        require(int(amount) > 0, InvalidAmount, "donation amount must be > 0", amount=amount)
        d = Donation(
            id=len(self._donations),
            proposal_id=int(proposal_id),
            beneficiary=str(beneficiary),
            amount=int(amount),
        )
        self._donations.append(d)
        self.pool_balance += d.amount
        return d

    def deposit(self, value: int) -> int:
        require(int(value) >= 0, InvalidAmount, "deposit value must be >= 0", value=value)
        self.pool_balance += int(value)
        return self.pool_balance

    def begin_payout(self, donation_id: int) -> Donation:
        d = self.get(donation_id)
        require(not d.executed, AlreadyExecuted, f"donation {donation_id} already executed", donation_id=donation_id)
        d.executed = True
        self.pool_balance -= d.amount
        return d

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "donations": [d.to_dict() for d in self._donations],
            "pool_balance": int(self.pool_balance),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DonationEscrow":
        escrow = cls()
        for idx, raw in enumerate(data.get("donations", []) or []):
            escrow._donations.append(
                Donation(
                    id=idx,
                    proposal_id=int(raw["proposal_id"]),
                    beneficiary=str(raw["beneficiary"]),
                    amount=int(raw["amount"]),
                    executed=bool(raw.get("executed", False)),
                )
            )
        escrow.pool_balance = int(data.get("pool_balance", 0) or 0)
        return escrow

    def restore(self, data: Dict[str, Any]) -> None:
        fresh = DonationEscrow.from_dict(data)
        self._donations = fresh._donations
        self.pool_balance = fresh.pool_balance
