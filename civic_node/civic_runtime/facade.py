# civic_node/civic_runtime/facade.py
"""
GovernanceFacade: the single entry surface of the civic runtime.

Every public mutating method is one transaction:

1. take the facade lock (calls are serialized),
2. snapshot the core state (roles, proposals + vote records, donations,
   escrow pool),
3. run precondition checks, then the read-modify-write,
4. on any exception reverse the value transfers the call made, restore
   the snapshot and re-raise; on success persist (when a store is
   attached) and publish the buffered notifications.

Transactions nest. A beneficiary receipt hook that calls back into the
facade during a payout runs a nested transaction whose failure only
rolls back its own effects. A nested call that commits hands its events
and transfers to the outer transaction: the events are published only if
that one commits too, and the transfers are reversed if it does not.

The caller principal is supplied by whoever drives the facade (HTTP
layer, tests); the facade trusts it.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .atomic_store import AtomicStateStore
from .errors import (
    AmountMismatch,
    GovernanceError,
    InsufficientBalance,
    InvalidAmount,
    InvalidPrincipal,
    TransferFailed,
    Unauthorized,
    require,
)
from .escrow import Donation, DonationEscrow
from .events import (
    DonationExecuted,
    DonationReceived,
    EventLog,
    Executed,
    ProposalCreated,
    Voted,
    event_to_dict,
)
from .funds import FundsTransfer
from .proposals import DEFAULT_PUBLIC_ACTION_SUFFIX, Proposal, ProposalLedger
from .roles import Role, RoleRegistry
from .token_gate import TokenGate, holds_minimum

log = logging.getLogger(__name__)

STATE_VERSION = 1


@dataclass
class _Frame:
    events: List[Any] = field(default_factory=list)
    # (to, amount) of every payout sent inside this transaction
    transfers: List[Tuple[str, int]] = field(default_factory=list)


class GovernanceFacade:
    def __init__(
        self,
        roles: RoleRegistry,
        tokens: TokenGate,
        funds: FundsTransfer,
        proposals: Optional[ProposalLedger] = None,
        escrow: Optional[DonationEscrow] = None,
        events: Optional[EventLog] = None,
        *,
        public_action_suffix: str = DEFAULT_PUBLIC_ACTION_SUFFIX,
        store: Optional[AtomicStateStore] = None,
    ):
        self.roles = roles
        self.tokens = tokens
        self.funds = funds
        self.proposals = proposals if proposals is not None else ProposalLedger()
        self.escrow = escrow if escrow is not None else DonationEscrow()
        self.events = events if events is not None else EventLog()
        self.public_action_suffix = public_action_suffix
        self.store = store

        self._lock = threading.RLock()
        self._frames: List[_Frame] = []

    @classmethod
    def genesis(
        cls,
        admin: str,
        tokens: TokenGate,
        funds: FundsTransfer,
        members: Iterable[str] = (),
        **kwargs: Any,
    ) -> "GovernanceFacade":
        return cls(RoleRegistry(admin, members), tokens, funds, **kwargs)

    @classmethod
    def from_state(
        cls,
        state: Dict[str, Any],
        tokens: TokenGate,
        funds: FundsTransfer,
        **kwargs: Any,
    ) -> "GovernanceFacade":
        version = int(state.get("version", STATE_VERSION))
        if version != STATE_VERSION:
            raise ValueError(f"unsupported state version {version}")
        return cls(
            RoleRegistry.from_dict(state.get("roles", {})),
            tokens,
            funds,
            ProposalLedger.from_dict(state.get("proposals", {})),
            DonationEscrow.from_dict(state.get("escrow", {})),
            EventLog.from_list(state.get("events", [])),
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    def _core_state(self) -> Dict[str, Any]:
        return {
            "roles": self.roles.to_dict(),
            "proposals": self.proposals.to_dict(),
            "escrow": self.escrow.to_dict(),
        }

    def _restore(self, snap: Dict[str, Any]) -> None:
        self.roles.restore(snap["roles"])
        self.proposals.restore(snap["proposals"])
        self.escrow.restore(snap["escrow"])

    def export_state(self, pending_events: Iterable[Any] = ()) -> Dict[str, Any]:
        with self._lock:
            state = self._core_state()
            events = self.events.to_list()
            offset = len(events)
            for i, event in enumerate(pending_events):
                events.append(event_to_dict(offset + i, event))
            state["events"] = events
            state["version"] = STATE_VERSION
            return state

    @contextmanager
    def _transaction(self, op: str, caller: str) -> Iterator[None]:
        with self._lock:
            snap = self._core_state()
            frame = _Frame()
            self._frames.append(frame)
            try:
                yield
                if len(self._frames) == 1 and self.store is not None:
                    self.store.save(self.export_state(frame.events))
            except GovernanceError as e:
                self._frames.pop()
                self._rollback(snap, frame)
                log.warning("%s by %s rejected: %s (%s)", op, caller, e.code, e)
                raise
            except Exception:
                self._frames.pop()
                self._rollback(snap, frame)
                log.exception("%s by %s failed, state rolled back", op, caller)
                raise

            self._frames.pop()
            if self._frames:
                self._frames[-1].events.extend(frame.events)
                self._frames[-1].transfers.extend(frame.transfers)
            else:
                self.events.publish(frame.events)

    def _rollback(self, snap: Dict[str, Any], frame: _Frame) -> None:
        try:
            for to, amount in reversed(frame.transfers):
                self.funds.reverse(to, amount)
                log.info("reversed payout of %s to %s", amount, to)
        finally:
            self._restore(snap)

    def _emit(self, event: Any) -> None:
        self._frames[-1].events.append(event)

    def _require_role(self, role: Role, caller: str) -> None:
        require(
            bool(caller) and self.roles.has(role, caller),
            Unauthorized,
            f"{caller or '<anonymous>'} does not hold role {role.value}",
            caller=caller,
            role=role.value,
        )

    def _require_min_holding(self, caller: str) -> None:
        require(
            bool(caller) and holds_minimum(self.tokens, caller),
            InsufficientBalance,
            f"{caller or '<anonymous>'} holds less than one token",
            caller=caller,
        )

    # ------------------------------------------------------------------
    # Proposals
    # ------------------------------------------------------------------

    def create_proposal(self, caller: str, description: str) -> Proposal:
        with self._transaction("create_proposal", caller):
            self._require_role(Role.ADMIN, caller)
            p = self.proposals.append(description, caller)
            self._emit(ProposalCreated(id=p.id, description=p.description))
        log.info("proposal %s created by %s", p.id, caller)
        return replace(p)

    def vote(self, caller: str, proposal_id: int) -> Proposal:
        with self._transaction("vote", caller):
            self._require_role(Role.MEMBER, caller)
            self.proposals.get(proposal_id)
            self._require_min_holding(caller)
            p = self.proposals.record_vote(proposal_id, caller)
            self._emit(Voted(proposal_id=p.id, voter=caller))
        log.info("%s voted on proposal %s (count=%s)", caller, p.id, p.vote_count)
        return replace(p)

    def public_action_with_token_burn(self, caller: str, proposal_id: int) -> Proposal:
        # Balance is checked, nothing is burned.
        with self._transaction("public_action", caller):
            self.proposals.get(proposal_id)
            self._require_min_holding(caller)
            p = self.proposals.append_marker(proposal_id, self.public_action_suffix)
        log.info("public action on proposal %s by %s", p.id, caller)
        return replace(p)

    def execute_proposal(self, caller: str, proposal_id: int) -> Proposal:
        with self._transaction("execute_proposal", caller):
            self._require_role(Role.ADMIN, caller)
            p = self.proposals.mark_executed(proposal_id)
            self._emit(Executed(proposal_id=p.id))
        log.info("proposal %s executed by %s", p.id, caller)
        return replace(p)

    # ------------------------------------------------------------------
    # Donations
    # ------------------------------------------------------------------

    def donate_to_proposal(self, caller: str, proposal_id: int, amount: int, value: int) -> Donation:
        with self._transaction("donate_to_proposal", caller):
            p = self.proposals.get(proposal_id)
            require(int(amount) > 0, InvalidAmount, "donation amount must be > 0", amount=amount)
            require(
                int(value) == int(amount),
                AmountMismatch,
                f"declared {amount} but attached {value}",
                amount=amount,
                value=value,
            )
            d = self.escrow.record(p.id, p.creator, int(amount))
            self._emit(DonationReceived(donation_id=d.id, proposal_id=p.id, sender=caller, amount=d.amount))
        log.info("donation %s of %s to proposal %s from %s", d.id, d.amount, d.proposal_id, caller)
        return replace(d)

    def execute_donation(self, caller: str, donation_id: int) -> Donation:
        with self._transaction("execute_donation", caller):
            self._require_role(Role.ADMIN, caller)
            # Flag first, pay second: a re-entrant payout sees executed=True.
            d = self.escrow.begin_payout(donation_id)
            beneficiary, amount = d.beneficiary, d.amount
            try:
                self.funds.send(beneficiary, amount)
            except GovernanceError:
                raise
            except Exception as e:
                raise TransferFailed(f"payout to {beneficiary} failed: {e}", to=beneficiary, amount=amount) from e
            self._frames[-1].transfers.append((beneficiary, amount))
            self._emit(DonationExecuted(donation_id=donation_id, amount=amount, beneficiary=beneficiary))
            d = self.escrow.get(donation_id)
        log.info("donation %s paid %s to %s", donation_id, amount, beneficiary)
        return replace(d)

    def receive_funds(self, caller: str, value: int) -> int:
        with self._transaction("receive_funds", caller):
            balance = self.escrow.deposit(value)
        log.info("unsolicited deposit of %s from %s", value, caller)
        return balance

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def add_user(self, caller: str, principal: str) -> None:
        with self._transaction("add_user", caller):
            self._require_role(Role.ADMIN, caller)
            require(bool(principal), InvalidPrincipal, "principal is required")
            self.roles.grant(Role.MEMBER, principal)
        log.info("%s granted member to %s", caller, principal)

    def remove_user(self, caller: str, principal: str) -> None:
        with self._transaction("remove_user", caller):
            self._require_role(Role.ADMIN, caller)
            require(bool(principal), InvalidPrincipal, "principal is required")
            self.roles.revoke(Role.MEMBER, principal)
        log.info("%s revoked member from %s", caller, principal)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_proposal(self, proposal_id: int) -> Proposal:
        with self._lock:
            return replace(self.proposals.get(proposal_id))

    def list_proposals(self) -> List[Proposal]:
        with self._lock:
            return [replace(p) for p in self.proposals.all()]

    def proposal_count(self) -> int:
        with self._lock:
            return len(self.proposals)

    def has_voted(self, proposal_id: int, principal: str) -> bool:
        with self._lock:
            return self.proposals.has_voted(proposal_id, principal)

    def get_donation(self, donation_id: int) -> Donation:
        with self._lock:
            return replace(self.escrow.get(donation_id))

    def list_donations(self) -> List[Donation]:
        with self._lock:
            return [replace(d) for d in self.escrow.all()]

    def donation_count(self) -> int:
        with self._lock:
            return len(self.escrow)

    def escrow_balance(self) -> int:
        with self._lock:
            return int(self.escrow.pool_balance)

    def pending_total(self) -> int:
        with self._lock:
            return self.escrow.pending_total()

    def roles_of(self, principal: str) -> List[str]:
        with self._lock:
            return self.roles.roles_of(principal)

    def events_since(self, seq: int = 0) -> List[Dict[str, Any]]:
        with self._lock:
            return self.events.since(seq)
