# civic_node/civic_runtime/funds.py
"""
Native value transfer used for escrow payouts.

The escrow needs two operations from the value layer:

    send(to, amount)      # raise TransferFailed if the recipient cannot receive
    reverse(to, amount)   # take back a send whose transaction rolled back

NativeBalances is the in-process implementation. Recipients may register a
receipt hook (called after the credit, with the sender-side call still in
flight) and may refuse funds entirely. If a hook raises, the credit is
undone and the transfer fails as a whole.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Protocol, Set

from .errors import TransferFailed

log = logging.getLogger(__name__)

ReceiptHook = Callable[[str, int], None]


class FundsTransfer(Protocol):
    def send(self, to: str, amount: int) -> None:
        ...

    def reverse(self, to: str, amount: int) -> None:
        ...


@dataclass
class NativeBalances:
    balances: Dict[str, int] = field(default_factory=dict)
    hooks: Dict[str, ReceiptHook] = field(default_factory=dict)
    refusing: Set[str] = field(default_factory=set)

    def balance_of(self, principal: str) -> int:
        return int(self.balances.get(str(principal), 0) or 0)

    def on_receive(self, principal: str, hook: ReceiptHook) -> None:
        self.hooks[str(principal)] = hook

    def refuse(self, principal: str, refuse: bool = True) -> None:
        if refuse:
            self.refusing.add(str(principal))
        else:
            self.refusing.discard(str(principal))

    def send(self, to: str, amount: int) -> None:
        to = str(to)
        amount = int(amount)
        if amount < 0:
            raise TransferFailed("negative transfer", to=to, amount=amount)
        if to in self.refusing:
            raise TransferFailed(f"{to} does not accept funds", to=to, amount=amount)

        self.balances[to] = self.balance_of(to) + amount

        hook = self.hooks.get(to)
        if hook is None:
            return
        try:
            hook(to, amount)
        except Exception as e:
            self.balances[to] = self.balance_of(to) - amount
            log.warning("receipt hook for %s rejected %s: %s", to, amount, e)
            raise TransferFailed(f"receipt hook failed: {type(e).__name__}", to=to, amount=amount) from e

    def reverse(self, to: str, amount: int) -> None:
        # Receipt hooks are not called.
        to = str(to)
        self.balances[to] = self.balance_of(to) - int(amount)
