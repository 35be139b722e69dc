"""
Per-(account, proposal identifier) vote records.

Records persist indefinitely and are independent of slot reuse: a vote on an
identifier stays readable after its slot has been finalized, expired and
handed to an unrelated proposal. Each record also remembers the creation
checkpoint of the proposal it was cast on, so a vote left over from an
earlier proposal with the same identifier is never subtracted from a newer
proposal's tally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

from saltdao.governance.models import NO_VOTE, Vote


@dataclass(frozen=True)
class VoteRecord:
    vote: Vote
    creation_checkpoint: int


class VoteRecordStore:
    """Point-lookup key-value store: account -> identifier -> VoteRecord."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[bytes, VoteRecord]] = {}

    def get(self, account: str, proposal_id: bytes) -> Vote:
        """The account's recorded vote, or the zero vote if it never voted."""
        record = self._records.get(account, {}).get(proposal_id)
        return record.vote if record else NO_VOTE

    def prior_vote(self, account: str, proposal_id: bytes, creation_checkpoint: int) -> Vote:
        """The vote currently counted in the tally of the proposal created at ``creation_checkpoint``."""
        record = self._records.get(account, {}).get(proposal_id)
        if record is None or record.creation_checkpoint != creation_checkpoint:
            return NO_VOTE
        return record.vote

    def put(self, account: str, proposal_id: bytes, vote: Vote, creation_checkpoint: int) -> None:
        self._records.setdefault(account, {})[proposal_id] = VoteRecord(vote, creation_checkpoint)

    def items(self) -> Iterator[Tuple[str, bytes, VoteRecord]]:
        for account in sorted(self._records):
            for proposal_id in sorted(self._records[account]):
                yield account, proposal_id, self._records[account][proposal_id]

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())
