# civic_node/civic_runtime/events.py
"""
Notifications emitted by committed governance / escrow calls.

The log is append-only and ordered by commit order; every entry gets a
monotonically increasing ``seq``. Subscribers are called synchronously
after the entry is appended. A failing subscriber is logged and skipped,
it never affects the state change that produced the event.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Type

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProposalCreated:
    name: ClassVar[str] = "ProposalCreated"
    id: int
    description: str


@dataclass(frozen=True)
class Voted:
    name: ClassVar[str] = "Voted"
    proposal_id: int
    voter: str


@dataclass(frozen=True)
class Executed:
    name: ClassVar[str] = "Executed"
    proposal_id: int


@dataclass(frozen=True)
class DonationReceived:
    name: ClassVar[str] = "DonationReceived"
    donation_id: int
    proposal_id: int
    sender: str
    amount: int


@dataclass(frozen=True)
class DonationExecuted:
    name: ClassVar[str] = "DonationExecuted"
    donation_id: int
    amount: int
    beneficiary: str


EVENT_TYPES: Dict[str, Type[Any]] = {
    cls.name: cls for cls in (ProposalCreated, Voted, Executed, DonationReceived, DonationExecuted)
}

Subscriber = Callable[[int, Any], None]


def event_to_dict(seq: int, event: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {"seq": int(seq), "event": event.name}
    out.update(asdict(event))
    return out


def event_from_dict(raw: Dict[str, Any]) -> Any:
    cls = EVENT_TYPES.get(str(raw.get("event", "")))
    if cls is None:
        raise ValueError(f"unknown event type: {raw.get('event')!r}")
    return cls(**{f.name: raw[f.name] for f in fields(cls)})


class EventLog:
    def __init__(self) -> None:
        self._entries: List[tuple[int, Any]] = []
        self._subscribers: List[Subscriber] = []

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, fn: Subscriber) -> None:
        self._subscribers.append(fn)

    def publish(self, events: Iterable[Any]) -> None:
        for event in events:
            seq = len(self._entries)
            self._entries.append((seq, event))
            for fn in list(self._subscribers):
                try:
                    fn(seq, event)
                except Exception:
                    log.exception("event subscriber failed on %s #%s", event.name, seq)

    def since(self, seq: int = 0) -> List[Dict[str, Any]]:
        return [event_to_dict(s, e) for s, e in self._entries[max(0, int(seq)):]]

    def to_list(self) -> List[Dict[str, Any]]:
        return self.since(0)

    @classmethod
    def from_list(cls, raw: Iterable[Dict[str, Any]]) -> "EventLog":
        elog = cls()
        for item in raw or []:
            elog._entries.append((len(elog._entries), event_from_dict(item)))
        return elog
