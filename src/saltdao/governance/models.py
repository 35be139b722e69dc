"""
Governance data model: proposals, votes and the slot variants that hold them.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from saltdao.core.constants import EXPIRED_SENTINEL, PROPOSAL_ID_BYTES, ZERO_PROPOSAL_ID
from saltdao.core.governance_exceptions import InvalidProposalIdError


class ProposalState(Enum):
    """Lifecycle state of a slot's occupant, derived at query time."""

    ACTIVE = "active"
    FINALIZED = "finalized"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Proposal:
    """One proposal as stored in a slot."""

    id: bytes
    agreements: int
    disagreements: int
    expires_at: int
    creation_checkpoint: int

    @classmethod
    def zero(cls) -> "Proposal":
        """The value an untouched slot reads as."""
        return cls(
            id=ZERO_PROPOSAL_ID,
            agreements=0,
            disagreements=0,
            expires_at=0,
            creation_checkpoint=0,
        )

    def is_active(self, now: int) -> bool:
        return self.expires_at > now

    @property
    def is_finalized(self) -> bool:
        return self.expires_at == EXPIRED_SENTINEL

    def state(self, now: int) -> ProposalState:
        if self.is_finalized:
            return ProposalState.FINALIZED
        if self.is_active(now):
            return ProposalState.ACTIVE
        return ProposalState.EXPIRED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": "0x" + self.id.hex(),
            "agreements": self.agreements,
            "disagreements": self.disagreements,
            "expires_at": self.expires_at,
            "creation_checkpoint": self.creation_checkpoint,
        }


@dataclass(frozen=True)
class Vote:
    """An account's current vote on one proposal identifier."""

    is_agreed: bool = False
    weight: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"is_agreed": self.is_agreed, "weight": self.weight}


NO_VOTE = Vote()


@dataclass(frozen=True)
class EmptySlot:
    """A slot that has never held a proposal."""

    def as_proposal(self) -> Proposal:
        return Proposal.zero()

    def is_reusable(self, now: int) -> bool:
        return True


@dataclass(frozen=True)
class OccupiedSlot:
    """A slot holding a proposal (active, finalized or naturally expired)."""

    proposal: Proposal

    def as_proposal(self) -> Proposal:
        return self.proposal

    def is_reusable(self, now: int) -> bool:
        return not self.proposal.is_active(now)


Slot = Union[EmptySlot, OccupiedSlot]

EMPTY_SLOT = EmptySlot()


def validate_proposal_id(proposal_id: Any) -> bytes:
    """Return ``proposal_id`` as bytes, or raise if it is not a 32-byte value."""
    if isinstance(proposal_id, str) and proposal_id.startswith("0x"):
        try:
            proposal_id = bytes.fromhex(proposal_id[2:])
        except ValueError:
            raise InvalidProposalIdError(f"Proposal id is not valid hex: {proposal_id!r}") from None
    if not isinstance(proposal_id, (bytes, bytearray)) or len(proposal_id) != PROPOSAL_ID_BYTES:
        raise InvalidProposalIdError(
            f"Proposal id must be {PROPOSAL_ID_BYTES} bytes",
            details={"proposal_id": repr(proposal_id)},
        )
    return bytes(proposal_id)


def make_proposal_id(text: str) -> bytes:
    """Derive a 32-byte identifier from a human-readable label."""
    return hashlib.sha3_256(text.encode("utf-8")).digest()
