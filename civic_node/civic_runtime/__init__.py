# civic_node/civic_runtime/__init__.py
"""
Civic runtime: role registry, proposal ledger, donation escrow and the
GovernanceFacade that composes them. No HTTP dependencies.
"""

from .errors import (
    AlreadyExecuted,
    AlreadyVoted,
    AmountMismatch,
    GovernanceError,
    InsufficientBalance,
    InvalidAmount,
    InvalidPrincipal,
    NotFound,
    TransferFailed,
    Unauthorized,
)
from .escrow import Donation, DonationEscrow
from .facade import GovernanceFacade
from .funds import NativeBalances
from .proposals import Proposal, ProposalLedger
from .roles import Role, RoleRegistry
from .token_gate import InMemoryTokenLedger, TokenGate

__all__ = [
    "AlreadyExecuted",
    "AlreadyVoted",
    "AmountMismatch",
    "Donation",
    "DonationEscrow",
    "GovernanceError",
    "GovernanceFacade",
    "InMemoryTokenLedger",
    "InsufficientBalance",
    "InvalidAmount",
    "InvalidPrincipal",
    "NativeBalances",
    "NotFound",
    "Proposal",
    "ProposalLedger",
    "Role",
    "RoleRegistry",
    "TokenGate",
    "TransferFailed",
    "Unauthorized",
]
