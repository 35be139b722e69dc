"""
Fixed-capacity proposal slot allocation.
"""

from __future__ import annotations

from saltdao.core.governance_exceptions import CapacityError
from saltdao.governance.models import Proposal
from saltdao.governance.state import DaoState


def find_free_slot(state: DaoState, now: int) -> int:
    """
    First slot, in index order, whose occupant is not in the future.

    Empty, naturally expired and finalized slots are all reusable.

    Raises:
        CapacityError: If every slot holds an active proposal
    """
    for slot_index in state.slot_indices():
        if state.slots[slot_index].is_reusable(now):
            return slot_index
    raise CapacityError(
        "All proposal slots are occupied", details={"capacity": state.capacity, "now": now}
    )


def new_proposal(proposal_id: bytes, block_number: int, timestamp: int, voting_duration: int) -> Proposal:
    """A fresh proposal with zeroed tallies opened in the given block."""
    return Proposal(
        id=proposal_id,
        agreements=0,
        disagreements=0,
        expires_at=timestamp + voting_duration,
        creation_checkpoint=block_number,
    )
