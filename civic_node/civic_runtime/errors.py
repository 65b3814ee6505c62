# civic_node/civic_runtime/errors.py
"""
Error taxonomy for the governance / escrow runtime.

Every failure is a rejected call: it is raised synchronously to the caller
and the facade rolls back anything the call touched. None of these are
retried by the runtime.

Each class carries a stable string ``code`` (used in logs and
HTTP ``detail``) and the HTTP status the API layer maps it to.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GovernanceError(RuntimeError):
    code: str = "governance_error"
    http_status: int = 400

    def __init__(self, message: str = "", **context: Any):
        super().__init__(message or self.code)
        self.context: Dict[str, Any] = dict(context)


class Unauthorized(GovernanceError):
    """Caller lacks the role the operation requires."""

    code = "unauthorized"
    http_status = 403


class NotFound(GovernanceError):
    """Referenced proposal or donation index is out of range."""

    code = "not_found"
    http_status = 404


class AlreadyVoted(GovernanceError):
    code = "already_voted"
    http_status = 409


class AlreadyExecuted(GovernanceError):
    code = "already_executed"
    http_status = 409


class InsufficientBalance(GovernanceError):
    """Caller holds less than one minimum token unit."""

    code = "insufficient_balance"
    http_status = 400


class AmountMismatch(GovernanceError):
    """Declared donation amount differs from the value attached to the call."""

    code = "amount_mismatch"
    http_status = 400


class InvalidAmount(GovernanceError):
    code = "invalid_amount"
    http_status = 400


class InvalidPrincipal(GovernanceError):
    code = "invalid_principal"
    http_status = 400


class TransferFailed(GovernanceError):
    """Beneficiary could not receive funds; the payout is retryable."""

    code = "transfer_failed"
    http_status = 502


def require(cond: bool, exc: type[GovernanceError], message: str, **context: Optional[Any]) -> None:
    if not cond:
        raise exc(message, **context)
