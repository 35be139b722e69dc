"""
Voting-power ledger interface consumed by the governance engine.

The engine never computes balances or delegation itself. It only asks a
ledger for point-in-time snapshots of an account's voting power and of the
total supply.
"""

from __future__ import annotations

import bisect
import logging
from typing import Mapping, Protocol, runtime_checkable

from saltdao.core.governance_exceptions import LedgerError

logger = logging.getLogger(__name__)


@runtime_checkable
class VotingPowerLedger(Protocol):
    """Point-in-time voting power queries."""

    def current_voting_power(self, account: str) -> int:
        ...

    def historical_voting_power(self, account: str, checkpoint: int) -> int:
        ...

    def historical_total_supply(self, checkpoint: int) -> int:
        ...


class SnapshotLedger:
    """
    In-memory ledger seeded with explicit checkpoint tables.

    ``power`` maps checkpoint -> {account: power} and ``supply`` maps
    checkpoint -> total supply. A query resolves to the latest seeded
    checkpoint at or before the one asked; before the first seeded
    checkpoint every value is zero. ``current_voting_power`` reads the
    latest seeded checkpoint.
    """

    def __init__(
        self,
        power: Mapping[int, Mapping[str, int]] | None = None,
        supply: Mapping[int, int] | None = None,
    ) -> None:
        self._power: dict[int, dict[str, int]] = {}
        self._supply: dict[int, int] = {}
        for checkpoint, table in (power or {}).items():
            for account, value in table.items():
                self.set_power(checkpoint, account, value)
        for checkpoint, value in (supply or {}).items():
            self.set_supply(checkpoint, value)

    def set_power(self, checkpoint: int, account: str, value: int) -> None:
        if checkpoint < 0 or value < 0:
            raise LedgerError("Snapshot checkpoint and power must be non-negative")
        self._power.setdefault(checkpoint, {})[account.lower()] = value

    def set_supply(self, checkpoint: int, value: int) -> None:
        if checkpoint < 0 or value < 0:
            raise LedgerError("Snapshot checkpoint and supply must be non-negative")
        self._supply[checkpoint] = value

    def current_voting_power(self, account: str) -> int:
        if not self._power:
            return 0
        return self.historical_voting_power(account, max(self._power))

    def historical_voting_power(self, account: str, checkpoint: int) -> int:
        account = account.lower()
        # Latest checkpoint at or before ``checkpoint`` that mentions the account
        seeded = sorted(c for c, table in self._power.items() if account in table)
        pos = bisect.bisect_right(seeded, checkpoint)
        if pos == 0:
            return 0
        return self._power[seeded[pos - 1]][account]

    def historical_total_supply(self, checkpoint: int) -> int:
        seeded = sorted(self._supply)
        pos = bisect.bisect_right(seeded, checkpoint)
        if pos == 0:
            return 0
        return self._supply[seeded[pos - 1]]
