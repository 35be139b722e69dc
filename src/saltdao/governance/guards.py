"""
Precondition checks run at the top of each governance operation.

Each guard either returns the validated value the operation needs next or
raises the matching GovernanceError. Guards never mutate state.
"""

from __future__ import annotations

from typing import Any

from saltdao.core.constants import NO_SLOT_INDEX
from saltdao.core.governance_exceptions import (
    AuthorizationError,
    ConflictError,
    ExpiredOrFinalizedError,
    InsufficientWeightError,
    NotFoundError,
)
from saltdao.governance.ledger import VotingPowerLedger
from saltdao.governance.models import Proposal, validate_proposal_id
from saltdao.governance.state import DaoState


def require_valid_id(proposal_id: Any) -> bytes:
    return validate_proposal_id(proposal_id)


def require_current_power(ledger: VotingPowerLedger, account: str) -> int:
    power = ledger.current_voting_power(account)
    if power <= 0:
        raise AuthorizationError("Not enough balance", details={"account": account})
    return power


def require_not_active(state: DaoState, proposal_id: bytes, now: int) -> None:
    slot_index = state.slot_of(proposal_id)
    if slot_index == NO_SLOT_INDEX:
        return
    proposal = state.proposal_at(slot_index)
    if proposal is not None and proposal.is_active(now):
        raise ConflictError(
            "Proposal already exists",
            details={"proposal_id": "0x" + proposal_id.hex(), "slot": slot_index},
        )


def require_mapped(state: DaoState, proposal_id: bytes) -> int:
    slot_index = state.slot_of(proposal_id)
    if slot_index == NO_SLOT_INDEX:
        raise NotFoundError(
            "Proposal does not exist", details={"proposal_id": "0x" + proposal_id.hex()}
        )
    return slot_index


def require_active_slot(state: DaoState, slot_index: int, now: int) -> Proposal:
    proposal = state.proposal_at(slot_index)
    if proposal is None or not proposal.is_active(now):
        raise ExpiredOrFinalizedError(
            "Proposal is expired or already accepted/declined",
            details={"slot": slot_index, "now": now},
        )
    return proposal


def require_weight(ledger: VotingPowerLedger, account: str, checkpoint: int) -> int:
    weight = ledger.historical_voting_power(account, checkpoint)
    if weight <= 0:
        raise InsufficientWeightError(
            "You had not enough tokens when proposal was added",
            details={"account": account, "checkpoint": checkpoint},
        )
    return weight
