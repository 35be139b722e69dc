"""
Owned engine state: proposal slots, identifier index and vote records.

Slot 0 is the reserved "no slot" index. It is kept in the layout so slot
numbers match their storage positions but it never holds a proposal.
"""

from __future__ import annotations

import hashlib
import json
from typing import Dict, List, Optional, Tuple

from saltdao.core.constants import NO_SLOT_INDEX
from saltdao.governance.models import EMPTY_SLOT, OccupiedSlot, Proposal, Slot
from saltdao.governance.vote_store import VoteRecordStore


class DaoState:
    """All persisted governance state, passed explicitly into each operation."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("Proposal capacity must be at least 1")
        self.capacity = capacity
        self.slots: List[Slot] = [EMPTY_SLOT] * (capacity + 1)
        self.index: Dict[bytes, int] = {}
        self.votes = VoteRecordStore()

    def slot_indices(self) -> range:
        """Usable slot indices in scan order."""
        return range(1, self.capacity + 1)

    def slot_of(self, proposal_id: bytes) -> int:
        """Slot index bound to ``proposal_id``, or the sentinel if unknown."""
        return self.index.get(proposal_id, NO_SLOT_INDEX)

    def proposal_at(self, slot_index: int) -> Optional[Proposal]:
        slot = self.slots[slot_index]
        return slot.proposal if isinstance(slot, OccupiedSlot) else None

    def occupy(self, slot_index: int, proposal: Proposal) -> None:
        """Place ``proposal`` in a slot, unbinding whatever identifier held it."""
        if slot_index == NO_SLOT_INDEX:
            raise ValueError("Slot 0 is reserved and cannot hold a proposal")
        previous = self.proposal_at(slot_index)
        if previous is not None and self.index.get(previous.id) == slot_index:
            del self.index[previous.id]
        self.slots[slot_index] = OccupiedSlot(proposal)
        self.index[proposal.id] = slot_index

    def replace(self, slot_index: int, proposal: Proposal) -> None:
        """Overwrite the occupant of a slot in place (tally or finalization update)."""
        current = self.proposal_at(slot_index)
        if current is None or current.id != proposal.id:
            raise ValueError(f"Slot {slot_index} does not hold this proposal")
        self.slots[slot_index] = OccupiedSlot(proposal)

    def proposals(self) -> Tuple[Proposal, ...]:
        return tuple(self.slots[i].as_proposal() for i in self.slot_indices())

    def active_count(self, now: int) -> int:
        return sum(1 for p in self.proposals() if p.is_active(now))

    def to_dict(self) -> dict:
        """Canonical serialization used for digests and diagnostics."""
        return {
            "capacity": self.capacity,
            "slots": [p.to_dict() for p in self.proposals()],
            "index": {"0x" + pid.hex(): idx for pid, idx in sorted(self.index.items())},
            "votes": [
                {
                    "account": account,
                    "proposal_id": "0x" + pid.hex(),
                    "is_agreed": record.vote.is_agreed,
                    "weight": record.vote.weight,
                    "creation_checkpoint": record.creation_checkpoint,
                }
                for account, pid, record in self.votes.items()
            ],
        }

    def digest(self) -> str:
        payload = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
