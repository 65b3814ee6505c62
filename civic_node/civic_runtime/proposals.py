# civic_node/civic_runtime/proposals.py
"""
Proposal ledger.

An append-only, 0-indexed sequence of proposals plus the per-proposal set
of principals that already voted.

Invariants
----------
- ids are assigned at append time and never reused; nothing is deleted.
- ``creator`` is fixed at creation.
- ``vote_count`` only grows and always equals len(voters[proposal_id]).
- ``executed`` goes False -> True once and is never reset.
- a (proposal, principal) vote record, once set, is never cleared.

Authorization and balance gating are the facade's job, not this module's.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Set

from .errors import AlreadyExecuted, AlreadyVoted, NotFound, require

DEFAULT_PUBLIC_ACTION_SUFFIX = " [token holder action]"


@dataclass
class Proposal:
    id: int
    description: str
    creator: str
    vote_count: int = 0
    executed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProposalLedger:
    def __init__(self) -> None:
        self._proposals: List[Proposal] = []
        self._voters: List[Set[str]] = []

    def __len__(self) -> int:
        return len(self._proposals)

    def exists(self, proposal_id: int) -> bool:
        return isinstance(proposal_id, int) and 0 <= proposal_id < len(self._proposals)

    def get(self, proposal_id: int) -> Proposal:
        require(self.exists(proposal_id), NotFound, f"proposal {proposal_id} not found", proposal_id=proposal_id)
        return self._proposals[proposal_id]

    def all(self) -> List[Proposal]:
        return list(self._proposals)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append(self, description: str, creator: str) -> Proposal:
        p = Proposal(id=len(self._proposals), description=str(description), creator=str(creator))
        self._proposals.append(p)
        self._voters.append(set())
        return p

    def has_voted(self, proposal_id: int, principal: str) -> bool:
        if not self.exists(proposal_id):
            return False
        return str(principal) in self._voters[proposal_id]

    def record_vote(self, proposal_id: int, voter: str) -> Proposal:
        p = self.get(proposal_id)
        voters = self._voters[proposal_id]
        require(
            str(voter) not in voters,
            AlreadyVoted,
            f"{voter} already voted on proposal {proposal_id}",
            proposal_id=proposal_id,
            voter=voter,
        )
        voters.add(str(voter))
        p.vote_count += 1
        return p

    def append_marker(self, proposal_id: int, suffix: str = DEFAULT_PUBLIC_ACTION_SUFFIX) -> Proposal:
        # Not deduplicated: every call appends again.
        p = self.get(proposal_id)
        p.description = p.description + suffix
        return p

    def mark_executed(self, proposal_id: int) -> Proposal:
        p = self.get(proposal_id)
        require(not p.executed, AlreadyExecuted, f"proposal {proposal_id} already executed", proposal_id=proposal_id)
        p.executed = True
        return p

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposals": [p.to_dict() for p in self._proposals],
            "voters": [sorted(v) for v in self._voters],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposalLedger":
        ledger = cls()
        raw_props = data.get("proposals", []) or []
        raw_voters = data.get("voters", []) or []
        for idx, raw in enumerate(raw_props):
            voters = set(raw_voters[idx]) if idx < len(raw_voters) else set()
            ledger._proposals.append(
                Proposal(
                    id=idx,
                    description=str(raw.get("description", "")),
                    creator=str(raw["creator"]),
                    vote_count=len(voters),
                    executed=bool(raw.get("executed", False)),
                )
            )
            ledger._voters.append(voters)
        return ledger

    def restore(self, data: Dict[str, Any]) -> None:
        fresh = ProposalLedger.from_dict(data)
        self._proposals = fresh._proposals
        self._voters = fresh._voters
