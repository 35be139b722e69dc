"""
Append-only governance event log.

Events are produced per successful operation and committed together with
its state changes. The log is the canonical way to recover the history of
proposals that no longer occupy a slot.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Iterator, List, Type, TypeVar, Union


@dataclass(frozen=True)
class ProposalCreated:
    proposal_id: bytes
    expiration: int
    created_at_block: int
    requester: str
    block_number: int = 0


@dataclass(frozen=True)
class VoteCounted:
    proposal_id: bytes
    voter: str
    weight: int
    agreed: bool
    block_number: int = 0


@dataclass(frozen=True)
class ProposalVotingFinished:
    proposal_id: bytes
    accepted: bool
    agreements: int
    disagreements: int
    block_number: int = 0


GovernanceEvent = Union[ProposalCreated, VoteCounted, ProposalVotingFinished]

E = TypeVar("E", ProposalCreated, VoteCounted, ProposalVotingFinished)


def event_to_dict(event: GovernanceEvent) -> Dict[str, Any]:
    """Serialize an event with its type name and a hex identifier."""
    data = asdict(event)
    data["proposal_id"] = "0x" + event.proposal_id.hex()
    data["event"] = type(event).__name__
    return data


class EventLog:
    """Ordered, append-only list of governance events."""

    def __init__(self) -> None:
        self._events: List[GovernanceEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[GovernanceEvent]:
        return iter(tuple(self._events))

    def __getitem__(self, index: int) -> GovernanceEvent:
        return self._events[index]

    def commit(self, events: Iterable[GovernanceEvent]) -> None:
        """Append the events of one successful operation."""
        self._events.extend(events)

    def query_filter(self, event_type: Type[E], **fields: Any) -> List[E]:
        """
        Return events of ``event_type`` whose fields equal every given value,
        in emission order. A field given as None matches anything.
        """
        matches = []
        for event in self._events:
            if not isinstance(event, event_type):
                continue
            if all(value is None or getattr(event, name) == value for name, value in fields.items()):
                matches.append(event)
        return matches

    def for_proposal(self, proposal_id: bytes) -> List[GovernanceEvent]:
        return [event for event in self._events if event.proposal_id == proposal_id]

    def to_list(self) -> List[Dict[str, Any]]:
        return [event_to_dict(event) for event in self._events]
