"""
Unit tests for the governance building blocks: slot allocation, vote
tallies, vote records, the proposal state machine and the event log.
"""

import pytest

from saltdao.core.constants import EXPIRED_SENTINEL, ZERO_PROPOSAL_ID
from saltdao.core.governance_exceptions import (
    CapacityError,
    ConflictError,
    DuplicateActiveProposal,
    ExpiredOrFinalizedError,
    GovernanceError,
    InvalidProposalIdError,
    NoFreeSlot,
    NotFoundError,
    ValidationError,
)
from saltdao.governance import guards, slot_allocator, state_machine, vote_tally
from saltdao.governance.events import (
    EventLog,
    ProposalCreated,
    ProposalVotingFinished,
    VoteCounted,
    event_to_dict,
)
from saltdao.governance.models import (
    EMPTY_SLOT,
    NO_VOTE,
    OccupiedSlot,
    Proposal,
    ProposalState,
    Vote,
    make_proposal_id,
    validate_proposal_id,
)
from saltdao.governance.state import DaoState
from saltdao.governance.vote_store import VoteRecordStore

PID_A = make_proposal_id("a")
PID_B = make_proposal_id("b")
NOW = 1_000


def _proposal(pid=PID_A, agreements=0, disagreements=0, expires_at=NOW + 100, checkpoint=5):
    return Proposal(
        id=pid,
        agreements=agreements,
        disagreements=disagreements,
        expires_at=expires_at,
        creation_checkpoint=checkpoint,
    )


class TestModels:
    """Proposal, Vote and slot variants"""

    def test_zero_proposal(self):
        zero = Proposal.zero()
        assert zero.id == ZERO_PROPOSAL_ID
        assert zero.expires_at == 0
        assert zero.is_finalized

    def test_activity_is_strict(self):
        proposal = _proposal(expires_at=NOW)
        assert not proposal.is_active(NOW)
        assert proposal.is_active(NOW - 1)

    def test_states(self):
        assert _proposal().state(NOW) is ProposalState.ACTIVE
        assert _proposal(expires_at=NOW - 1).state(NOW) is ProposalState.EXPIRED
        assert _proposal(expires_at=EXPIRED_SENTINEL).state(NOW) is ProposalState.FINALIZED

    def test_slot_variants(self):
        assert EMPTY_SLOT.is_reusable(NOW)
        assert EMPTY_SLOT.as_proposal() == Proposal.zero()
        assert not OccupiedSlot(_proposal()).is_reusable(NOW)
        assert OccupiedSlot(_proposal(expires_at=NOW)).is_reusable(NOW)

    def test_proposal_to_dict(self):
        data = _proposal(agreements=7).to_dict()
        assert data["id"] == "0x" + PID_A.hex()
        assert data["agreements"] == 7

    def test_default_vote(self):
        assert NO_VOTE == Vote()
        assert NO_VOTE.to_dict() == {"is_agreed": False, "weight": 0}

    def test_make_proposal_id_is_deterministic(self):
        assert make_proposal_id("x") == make_proposal_id("x")
        assert len(make_proposal_id("x")) == 32
        assert make_proposal_id("x") != make_proposal_id("y")

    def test_validate_accepts_bytes_and_hex(self):
        assert validate_proposal_id(PID_A) == PID_A
        assert validate_proposal_id(bytearray(PID_A)) == PID_A
        assert validate_proposal_id("0x" + PID_A.hex()) == PID_A

    @pytest.mark.parametrize("bad", [b"", b"\x01" * 31, b"\x01" * 33, "0xzz", "plain", 42, None])
    def test_validate_rejects(self, bad):
        with pytest.raises(InvalidProposalIdError):
            validate_proposal_id(bad)

    def test_invalid_id_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            validate_proposal_id(b"short")


class TestDaoState:
    """Slot layout and identifier index"""

    def test_initial_layout(self):
        state = DaoState(3)
        assert len(state.slots) == 4
        assert list(state.slot_indices()) == [1, 2, 3]
        assert state.proposals() == (Proposal.zero(),) * 3

    def test_slot_zero_is_reserved(self):
        state = DaoState(3)
        with pytest.raises(ValueError):
            state.occupy(0, _proposal())

    def test_occupy_binds_and_unbinds(self):
        state = DaoState(3)
        state.occupy(1, _proposal(PID_A))
        assert state.slot_of(PID_A) == 1

        state.occupy(1, _proposal(PID_B))
        assert state.slot_of(PID_B) == 1
        assert state.slot_of(PID_A) == 0

    def test_replace_requires_same_occupant(self):
        state = DaoState(3)
        state.occupy(2, _proposal(PID_A))
        state.replace(2, _proposal(PID_A, agreements=9))
        assert state.proposal_at(2).agreements == 9

        with pytest.raises(ValueError):
            state.replace(2, _proposal(PID_B))
        with pytest.raises(ValueError):
            state.replace(1, _proposal(PID_A))

    def test_active_count(self):
        state = DaoState(3)
        state.occupy(1, _proposal(PID_A))
        state.occupy(2, _proposal(PID_B, expires_at=NOW))
        assert state.active_count(NOW) == 1

    def test_digest_tracks_state(self):
        first, second = DaoState(3), DaoState(3)
        assert first.digest() == second.digest()

        first.occupy(1, _proposal())
        assert first.digest() != second.digest()

        second.occupy(1, _proposal())
        assert first.digest() == second.digest()

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            DaoState(0)


class TestSlotAllocator:
    """First-fit slot selection"""

    def test_first_empty_slot(self):
        assert slot_allocator.find_free_slot(DaoState(3), NOW) == 1

    def test_skips_active_slots(self):
        state = DaoState(3)
        state.occupy(1, _proposal(PID_A))
        assert slot_allocator.find_free_slot(state, NOW) == 2

    def test_prefers_lowest_reusable_index(self):
        state = DaoState(3)
        for i, label in enumerate(("x", "y", "z"), start=1):
            state.occupy(i, _proposal(make_proposal_id(label)))
        state.replace(3, _proposal(make_proposal_id("z"), expires_at=EXPIRED_SENTINEL))
        state.replace(2, _proposal(make_proposal_id("y"), expires_at=NOW))

        assert slot_allocator.find_free_slot(state, NOW) == 2

    def test_full(self):
        state = DaoState(2)
        state.occupy(1, _proposal(PID_A))
        state.occupy(2, _proposal(PID_B))

        with pytest.raises(CapacityError, match="All proposal slots are occupied"):
            slot_allocator.find_free_slot(state, NOW)

    def test_new_proposal(self):
        proposal = slot_allocator.new_proposal(PID_A, 12, NOW, 300)
        assert proposal == _proposal(expires_at=NOW + 300, checkpoint=12)


class TestVoteTally:
    """Delta updates of running sums"""

    def test_first_vote(self):
        updated = vote_tally.apply_vote(_proposal(), NO_VOTE, 10, True)
        assert (updated.agreements, updated.disagreements) == (10, 0)

    def test_switch_side(self):
        proposal = _proposal(agreements=10)
        updated = vote_tally.apply_vote(proposal, Vote(True, 10), 10, False)
        assert (updated.agreements, updated.disagreements) == (0, 10)

    def test_same_vote_is_idempotent(self):
        proposal = _proposal(disagreements=10)
        assert vote_tally.apply_vote(proposal, Vote(False, 10), 10, False) == proposal

    def test_underflow_rejected(self):
        with pytest.raises(ValueError):
            vote_tally.remove_contribution(_proposal(agreements=5), Vote(True, 10))
        with pytest.raises(ValueError):
            vote_tally.remove_contribution(_proposal(disagreements=5), Vote(False, 10))


class TestVoteRecordStore:
    """Per-account vote records"""

    def test_default_is_zero_vote(self):
        assert VoteRecordStore().get("0xabc", PID_A) == NO_VOTE

    def test_put_and_get(self):
        store = VoteRecordStore()
        store.put("0xabc", PID_A, Vote(True, 5), 3)
        assert store.get("0xabc", PID_A) == Vote(True, 5)
        assert len(store) == 1

    def test_prior_vote_ignores_earlier_proposal_with_same_id(self):
        store = VoteRecordStore()
        store.put("0xabc", PID_A, Vote(True, 5), 3)

        assert store.prior_vote("0xabc", PID_A, 3) == Vote(True, 5)
        assert store.prior_vote("0xabc", PID_A, 9) == NO_VOTE

    def test_items_sorted(self):
        store = VoteRecordStore()
        store.put("0xbbb", PID_A, Vote(True, 1), 1)
        store.put("0xaaa", PID_A, Vote(False, 2), 1)
        assert [account for account, _, _ in store.items()] == ["0xaaa", "0xbbb"]


class TestStateMachine:
    """Finalization threshold and active resolution"""

    @pytest.mark.parametrize(
        "agreements, disagreements, supply, expected",
        [
            (51, 0, 100, True),
            (0, 51, 100, False),
            (50, 0, 100, None),
            (0, 50, 100, None),
            (50, 50, 100, None),
            (51, 0, 101, True),
            (50, 0, 101, None),
            (1, 0, 1, True),
            (0, 0, 0, None),
        ],
    )
    def test_threshold(self, agreements, disagreements, supply, expected):
        proposal = _proposal(agreements=agreements, disagreements=disagreements)
        result = state_machine.evaluate_finalization(proposal, supply)

        if expected is None:
            assert result is None
        else:
            assert result.accepted is expected
            assert result.proposal.expires_at == EXPIRED_SENTINEL
            assert result.proposal.agreements == agreements

    def test_resolve_active(self):
        state = DaoState(3)
        state.occupy(2, _proposal())
        assert state_machine.resolve_active(state, PID_A, NOW) == (2, _proposal())

    def test_resolve_unknown(self):
        with pytest.raises(NotFoundError, match="Proposal does not exist"):
            state_machine.resolve_active(DaoState(3), PID_A, NOW)

    def test_resolve_expired(self):
        state = DaoState(3)
        state.occupy(1, _proposal(expires_at=NOW))
        with pytest.raises(ExpiredOrFinalizedError):
            state_machine.resolve_active(state, PID_A, NOW)


class TestGuards:
    """Precondition checks"""

    def test_not_active_passes_for_unknown_and_expired(self):
        state = DaoState(3)
        guards.require_not_active(state, PID_A, NOW)

        state.occupy(1, _proposal(expires_at=NOW))
        guards.require_not_active(state, PID_A, NOW)

    def test_not_active_rejects_active(self):
        state = DaoState(3)
        state.occupy(1, _proposal())
        with pytest.raises(ConflictError) as exc_info:
            guards.require_not_active(state, PID_A, NOW)
        assert exc_info.value.details["slot"] == 1


class TestExceptions:
    """Error taxonomy"""

    def test_aliases(self):
        assert DuplicateActiveProposal is ConflictError
        assert NoFreeSlot is CapacityError

    def test_error_attributes(self):
        error = CapacityError("All proposal slots are occupied", details={"capacity": 3})
        assert str(error) == error.message == "All proposal slots are occupied"
        assert error.details == {"capacity": 3}
        assert error.recoverable is False
        assert isinstance(error, GovernanceError)


class TestEventLog:
    """Event buffering and filtering"""

    def _log(self):
        log = EventLog()
        log.commit([ProposalCreated(PID_A, NOW, 1, "0xabc", 1)])
        log.commit(
            [
                VoteCounted(PID_A, "0xabc", 5, True, 2),
                ProposalVotingFinished(PID_A, True, 5, 0, 2),
            ]
        )
        log.commit([ProposalCreated(PID_B, NOW, 3, "0xdef", 3)])
        return log

    def test_query_by_type(self):
        log = self._log()
        assert len(log.query_filter(ProposalCreated)) == 2
        assert len(log) == 4

    def test_query_by_field(self):
        log = self._log()
        [event] = log.query_filter(ProposalCreated, requester="0xdef")
        assert event.proposal_id == PID_B

    def test_none_matches_anything(self):
        assert len(self._log().query_filter(ProposalCreated, requester=None)) == 2

    def test_for_proposal(self):
        assert len(self._log().for_proposal(PID_A)) == 3

    def test_event_to_dict(self):
        data = event_to_dict(VoteCounted(PID_A, "0xabc", 5, True, 2))
        assert data["event"] == "VoteCounted"
        assert data["proposal_id"] == "0x" + PID_A.hex()
        assert data["weight"] == 5
