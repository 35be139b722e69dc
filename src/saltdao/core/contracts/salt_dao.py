"""
SaltDao - bounded-capacity, token-weighted governance engine.

Token holders create proposals (opaque 32-byte identifiers) and cast votes
weighted by their voting power at the proposal's creation block. A
proposal finalizes as soon as one side holds a strict majority of the
total supply at that block; otherwise it simply expires.

Operations:
- add_new_proposal: claim a free slot for a new identifier
- vote_for_proposal: cast or change a vote and re-evaluate finalization
- get_vote / get_proposal / get_proposals: read-only views

Every state-changing call is a transaction mined in its own block. All
checks and ledger reads happen before any write, so a rejected call leaves
slots, vote records and the event log untouched.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, List, Tuple

from saltdao.core.chain import BlockContext, LocalChain
from saltdao.core.config import DaoConfig
from saltdao.core.constants import PROPOSALS_MAX_COUNT, VOTING_DURATION_SECONDS
from saltdao.core.governance_exceptions import GovernanceError
from saltdao.core import governance_metrics
from saltdao.governance import guards, slot_allocator, state_machine, vote_tally
from saltdao.governance.events import (
    EventLog,
    GovernanceEvent,
    ProposalCreated,
    ProposalVotingFinished,
    VoteCounted,
)
from saltdao.governance.ledger import VotingPowerLedger
from saltdao.governance.models import Proposal, Vote
from saltdao.governance.state import DaoState

logger = logging.getLogger(__name__)


class SaltDao:
    """Governance engine bound to a chain clock and a voting-power ledger."""

    def __init__(
        self,
        chain: LocalChain,
        ledger: VotingPowerLedger,
        proposals_max_count: int = PROPOSALS_MAX_COUNT,
        voting_duration: int = VOTING_DURATION_SECONDS,
    ) -> None:
        """
        Args:
            chain: Trusted clock supplying block numbers and timestamps
            ledger: Source of current and historical voting power
            proposals_max_count: Number of proposal slots (N)
            voting_duration: Seconds a proposal stays open for voting
        """
        if proposals_max_count < 1:
            raise ValueError("Proposal capacity must be at least 1")
        if voting_duration < 1:
            raise ValueError("Voting duration must be at least one second")

        self.chain = chain
        self.ledger = ledger
        self.voting_duration = voting_duration
        self.state = DaoState(proposals_max_count)
        self.events = EventLog()
        self._lock = threading.RLock()

        logger.info(
            "SaltDao initialized",
            extra={
                "event": "dao.initialized",
                "capacity": proposals_max_count,
                "voting_duration": voting_duration,
            },
        )

    @classmethod
    def from_config(cls, chain: LocalChain, ledger: VotingPowerLedger, config: DaoConfig) -> "SaltDao":
        return cls(
            chain,
            ledger,
            proposals_max_count=config.proposals_max_count,
            voting_duration=config.voting_duration_seconds,
        )

    @property
    def PROPOSALS_MAX_COUNT(self) -> int:
        return self.state.capacity

    # ==================== State-Changing Functions ====================

    def add_new_proposal(self, sender: str, proposal_id: Any) -> None:
        """
        Open voting on ``proposal_id`` in the first reusable slot.

        Raises:
            InvalidProposalIdError: If the identifier is not 32 bytes
            AuthorizationError: If the sender has no current voting power
            ConflictError: If the identifier is already active
            CapacityError: If every slot holds an active proposal
        """
        requester = sender.lower()
        with self._lock:
            block = self.chain.mine()
            try:
                pid = guards.require_valid_id(proposal_id)
                guards.require_current_power(self.ledger, requester)
                guards.require_not_active(self.state, pid, block.timestamp)
                slot_index = slot_allocator.find_free_slot(self.state, block.timestamp)
            except GovernanceError as exc:
                self._reject("create_proposal", exc, requester, block)
                raise

            proposal = slot_allocator.new_proposal(
                pid, block.number, block.timestamp, self.voting_duration
            )
            created = ProposalCreated(
                proposal_id=pid,
                expiration=proposal.expires_at,
                created_at_block=proposal.creation_checkpoint,
                requester=requester,
                block_number=block.number,
            )

            self.state.occupy(slot_index, proposal)
            self.events.commit([created])

            governance_metrics.record_proposal_created(self.state.active_count(block.timestamp))
            logger.info(
                "Proposal created",
                extra={
                    "event": "dao.proposal_created",
                    "proposal_id": pid.hex()[:16],
                    "slot": slot_index,
                    "expires_at": proposal.expires_at,
                    "checkpoint": proposal.creation_checkpoint,
                    "requester": requester[:10],
                },
            )

    def vote_for_proposal(self, sender: str, proposal_id: Any, agree: bool) -> None:
        """
        Cast or change the sender's vote on an active proposal.

        The vote weight is the sender's voting power at the proposal's
        creation block. Finalization is re-evaluated after every vote.

        Raises:
            InvalidProposalIdError: If the identifier is not 32 bytes
            NotFoundError: If the identifier is not bound to a slot
            ExpiredOrFinalizedError: If the proposal is no longer active
            InsufficientWeightError: If the sender had no power at creation
        """
        voter = sender.lower()
        agree = bool(agree)
        with self._lock:
            block = self.chain.mine()
            try:
                pid = guards.require_valid_id(proposal_id)
                slot_index, proposal = state_machine.resolve_active(self.state, pid, block.timestamp)
                checkpoint = proposal.creation_checkpoint
                weight = guards.require_weight(self.ledger, voter, checkpoint)
                total_supply = self.ledger.historical_total_supply(checkpoint)
            except GovernanceError as exc:
                self._reject("vote", exc, voter, block)
                raise

            previous = self.state.votes.prior_vote(voter, pid, checkpoint)
            updated = vote_tally.apply_vote(proposal, previous, weight, agree)
            pending: List[GovernanceEvent] = [
                VoteCounted(
                    proposal_id=pid,
                    voter=voter,
                    weight=weight,
                    agreed=agree,
                    block_number=block.number,
                )
            ]

            finalization = state_machine.evaluate_finalization(updated, total_supply)
            if finalization is not None:
                updated = finalization.proposal
                pending.append(
                    ProposalVotingFinished(
                        proposal_id=pid,
                        accepted=finalization.accepted,
                        agreements=updated.agreements,
                        disagreements=updated.disagreements,
                        block_number=block.number,
                    )
                )

            self.state.replace(slot_index, updated)
            self.state.votes.put(voter, pid, Vote(is_agreed=agree, weight=weight), checkpoint)
            self.events.commit(pending)

            governance_metrics.record_vote_counted(agree)
            logger.info(
                "Vote counted",
                extra={
                    "event": "dao.vote_counted",
                    "proposal_id": pid.hex()[:16],
                    "voter": voter[:10],
                    "weight": weight,
                    "agreed": agree,
                    "revote": previous.weight > 0,
                    "agreements": updated.agreements,
                    "disagreements": updated.disagreements,
                },
            )

            if finalization is not None:
                governance_metrics.record_finalization(
                    finalization.accepted, self.state.active_count(block.timestamp)
                )
                logger.info(
                    "Proposal voting finished",
                    extra={
                        "event": "dao.voting_finished",
                        "proposal_id": pid.hex()[:16],
                        "accepted": finalization.accepted,
                        "agreements": updated.agreements,
                        "disagreements": updated.disagreements,
                        "total_supply": total_supply,
                    },
                )

    # ==================== View Functions ====================

    def get_vote(self, sender: str, proposal_id: Any) -> Vote:
        """The caller's own vote on ``proposal_id`` (zero vote if none)."""
        return self.get_vote_of(sender, proposal_id)

    def get_vote_of(self, account: str, proposal_id: Any) -> Vote:
        pid = guards.require_valid_id(proposal_id)
        return self.state.votes.get(account.lower(), pid)

    def get_proposal(self, proposal_id: Any) -> Proposal:
        """
        The active proposal bound to ``proposal_id``.

        Raises:
            NotFoundError: If the identifier is not bound to a slot
            ExpiredOrFinalizedError: If the proposal is no longer active
        """
        pid = guards.require_valid_id(proposal_id)
        _, proposal = state_machine.resolve_active(self.state, pid, self.chain.timestamp)
        return proposal

    def get_proposals(self) -> Tuple[Proposal, ...]:
        """
        Raw snapshot of all slots in index order.

        Stale entries (naturally expired, never finalized) are included and
        untouched slots read as the zero proposal; callers filter by
        ``expires_at`` against the current time.
        """
        return self.state.proposals()

    def proposal_history(self, proposal_id: Any) -> List[GovernanceEvent]:
        """Every event recorded for ``proposal_id``, across slot reuse."""
        pid = guards.require_valid_id(proposal_id)
        return self.events.for_proposal(pid)

    def state_digest(self) -> str:
        return self.state.digest()

    # ==================== Helpers ====================

    def _reject(self, operation: str, exc: GovernanceError, account: str, block: BlockContext) -> None:
        governance_metrics.record_rejection(operation, exc)
        logger.warning(
            "Operation rejected: %s",
            exc.message,
            extra={
                "event": "dao.rejected",
                "operation": operation,
                "error": type(exc).__name__,
                "account": account[:10],
                "block": block.number,
            },
        )
