"""
Governance core: slot allocation, vote tallying and majority finalization.
"""

from .events import EventLog, ProposalCreated, ProposalVotingFinished, VoteCounted
from .ledger import SnapshotLedger, VotingPowerLedger
from .models import (
    NO_VOTE,
    EmptySlot,
    OccupiedSlot,
    Proposal,
    ProposalState,
    Vote,
    make_proposal_id,
)
from .state import DaoState

__all__ = [
    "DaoState",
    "EmptySlot",
    "EventLog",
    "NO_VOTE",
    "OccupiedSlot",
    "Proposal",
    "ProposalCreated",
    "ProposalState",
    "ProposalVotingFinished",
    "SnapshotLedger",
    "Vote",
    "VoteCounted",
    "VotingPowerLedger",
    "make_proposal_id",
]
