"""
Local execution environment for SaltDao.

Provides the trusted clock and checkpoint source that governance operations
read: a block height that only increases and a block timestamp. The chain
auto-mines, so each state-changing transaction lands in its own block one
interval after its predecessor, the way a development node behaves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from saltdao.core.constants import BLOCK_INTERVAL_SECONDS, GENESIS_TIMESTAMP

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockContext:
    """Height and timestamp of one mined block."""

    number: int
    timestamp: int


class LocalChain:
    """Auto-mining block clock."""

    def __init__(
        self,
        genesis_timestamp: int = GENESIS_TIMESTAMP,
        block_interval: int = BLOCK_INTERVAL_SECONDS,
    ) -> None:
        if block_interval < 1:
            raise ValueError("Block interval must be at least one second")
        self.block_interval = block_interval
        self._head = BlockContext(number=0, timestamp=genesis_timestamp)

    @property
    def latest(self) -> BlockContext:
        return self._head

    @property
    def block_number(self) -> int:
        return self._head.number

    @property
    def timestamp(self) -> int:
        return self._head.timestamp

    def mine(self) -> BlockContext:
        """Mine the next block and return it."""
        return self._advance(self.block_interval)

    def increase_time(self, seconds: int) -> BlockContext:
        """Mine an empty block ``seconds`` after the current head."""
        if seconds < 0:
            raise ValueError("Cannot move the chain clock backwards")
        block = self._advance(seconds)
        logger.debug(
            "Chain time increased",
            extra={"event": "chain.time_increased", "seconds": seconds, "block": block.number},
        )
        return block

    def _advance(self, seconds: int) -> BlockContext:
        self._head = BlockContext(
            number=self._head.number + 1,
            timestamp=self._head.timestamp + seconds,
        )
        return self._head
