"""
Proposal lifecycle: Active -> Finalized | Expired.

Expired is not stored; it is the query-time condition ``expires_at <= now``.
Finalized writes the expired sentinel into ``expires_at`` so the slot is
immediately reusable. Neither terminal state has further transitions.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from saltdao.core.constants import EXPIRED_SENTINEL
from saltdao.governance import guards
from saltdao.governance.models import Proposal
from saltdao.governance.state import DaoState


@dataclass(frozen=True)
class Finalization:
    accepted: bool
    proposal: Proposal


def resolve_active(state: DaoState, proposal_id: bytes, now: int) -> Tuple[int, Proposal]:
    """
    Slot index and proposal for an identifier that is open for voting.

    Raises:
        NotFoundError: If the identifier is not bound to a slot
        ExpiredOrFinalizedError: If the bound proposal is no longer active
    """
    slot_index = guards.require_mapped(state, proposal_id)
    return slot_index, guards.require_active_slot(state, slot_index, now)


def evaluate_finalization(proposal: Proposal, total_supply: int) -> Optional[Finalization]:
    """
    Finalize once one side holds a strict majority of ``total_supply``.

    The threshold is ``total_supply // 2`` and the comparison is strict, so a
    side holding exactly half never finalizes. Agreement is checked first.
    """
    half = total_supply // 2
    if proposal.agreements > half:
        accepted = True
    elif proposal.disagreements > half:
        accepted = False
    else:
        return None
    return Finalization(accepted=accepted, proposal=replace(proposal, expires_at=EXPIRED_SENTINEL))
