# civic_node/civic_runtime/token_gate.py
"""
Token gate collaborator.

The governance runtime never does token accounting. It only asks the
fungible-token ledger two questions:

    balance_of(principal) -> int
    minimum_unit() -> int

and uses them to answer "does this principal hold at least one whole
token" (1 * minimum_unit, i.e. 10 ** decimals in the smallest unit).

InMemoryTokenLedger is the development / test implementation. It only
stores balances; there is deliberately no mint / burn / transfer here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Protocol, runtime_checkable

DEFAULT_DECIMALS = 18


@runtime_checkable
class TokenGate(Protocol):
    def balance_of(self, principal: str) -> int:
        ...

    def minimum_unit(self) -> int:
        ...


def holds_minimum(gate: TokenGate, principal: str, whole_tokens: int = 1) -> bool:
    return int(gate.balance_of(principal)) >= int(whole_tokens) * int(gate.minimum_unit())


@dataclass
class InMemoryTokenLedger:
    decimals: int = DEFAULT_DECIMALS
    balances: Dict[str, int] = field(default_factory=dict)

    def balance_of(self, principal: str) -> int:
        return int(self.balances.get(str(principal), 0) or 0)

    def minimum_unit(self) -> int:
        return 10 ** int(self.decimals)

    def set_balance(self, principal: str, amount: int) -> None:
        """Genesis / test funding only."""
        if int(amount) < 0:
            raise ValueError("balance cannot be negative")
        self.balances[str(principal)] = int(amount)

    def set_whole_tokens(self, principal: str, tokens: int) -> None:
        self.set_balance(principal, int(tokens) * self.minimum_unit())
