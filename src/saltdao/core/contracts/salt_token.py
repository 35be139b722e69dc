"""
SaltToken - fungible token with vote delegation and block checkpoints.

This is the voting-power ledger SaltDao runs against. It provides:
- Basic token operations (transfer, balance_of)
- Vote delegation: an account's balance only counts as voting power once
  delegated, to itself or to another account
- Per-block checkpoints of delegated votes and of total supply, so that
  power can be queried retroactively at any mined block
- Events (Transfer, DelegateChanged, DelegateVotesChanged)

The full supply is minted to the deployer in the deployment block.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field

from saltdao.core.chain import LocalChain
from saltdao.core.constants import (
    TOKEN_DECIMALS,
    TOKEN_INITIAL_SUPPLY,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    UINT256_MAX,
    ZERO_ADDRESS,
)
from saltdao.core.governance_exceptions import LedgerError

logger = logging.getLogger(__name__)


@dataclass
class TokenEvent:
    """Represents a token event."""

    event_type: str  # "Transfer", "DelegateChanged" or "DelegateVotesChanged"
    from_address: str
    to_address: str
    value: int
    block_number: int = 0


@dataclass
class Checkpoint:
    """Value recorded at the end of ``from_block``."""

    from_block: int
    value: int


@dataclass
class SaltToken:
    """
    Checkpointed voting token.

    Every state-changing call is a transaction: it mines a block on the
    shared chain and its effects are recorded against that block number.
    """

    chain: LocalChain
    deployer: str
    name: str = TOKEN_NAME
    symbol: str = TOKEN_SYMBOL
    decimals: int = TOKEN_DECIMALS
    initial_supply: int = TOKEN_INITIAL_SUPPLY

    total_supply: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    delegation: dict[str, str] = field(default_factory=dict)
    vote_checkpoints: dict[str, list[Checkpoint]] = field(default_factory=dict)
    supply_checkpoints: list[Checkpoint] = field(default_factory=list)
    events: list[TokenEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.deployer = self._normalize(self.deployer)
        self._validate_address(self.deployer, "deployer")
        self._validate_amount(self.initial_supply)
        block = self.chain.mine()
        if self.initial_supply > 0:
            self._mint(self.deployer, self.initial_supply, block.number)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def delegates(self, account: str) -> str:
        """Current delegate of ``account`` (zero address if none)."""
        return self.delegation.get(self._normalize(account), ZERO_ADDRESS)

    def get_votes(self, account: str) -> int:
        """Voting power delegated to ``account`` right now."""
        checkpoints = self.vote_checkpoints.get(self._normalize(account), [])
        return checkpoints[-1].value if checkpoints else 0

    def get_past_votes(self, account: str, block_number: int) -> int:
        """
        Voting power delegated to ``account`` at the end of ``block_number``.

        Raises:
            LedgerError: If the block has not been mined yet
        """
        self._require_mined(block_number)
        checkpoints = self.vote_checkpoints.get(self._normalize(account), [])
        return self._lookup(checkpoints, block_number)

    def get_past_total_supply(self, block_number: int) -> int:
        """
        Total supply at the end of ``block_number``.

        Raises:
            LedgerError: If the block has not been mined yet
        """
        self._require_mined(block_number)
        return self._lookup(self.supply_checkpoints, block_number)

    # VotingPowerLedger protocol

    def current_voting_power(self, account: str) -> int:
        return self.get_votes(account)

    def historical_voting_power(self, account: str, checkpoint: int) -> int:
        return self.get_past_votes(account, checkpoint)

    def historical_total_supply(self, checkpoint: int) -> int:
        return self.get_past_total_supply(checkpoint)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient, moving delegated votes along.

        Raises:
            LedgerError: If the transfer fails
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)
        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise LedgerError(
                "ERC20: transfer amount exceeds balance",
                details={"amount": amount, "balance": sender_balance},
            )

        block = self.chain.mine()
        self.balances[sender_norm] = sender_balance - amount
        self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount
        self._emit("Transfer", sender_norm, recipient_norm, amount, block.number)

        self._move_voting_power(
            self.delegates(sender_norm), self.delegates(recipient_norm), amount, block.number
        )

        logger.debug(
            "Token transfer",
            extra={
                "event": "token.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
                "block": block.number,
            },
        )
        return True

    def delegate(self, sender: str, delegatee: str) -> bool:
        """Delegate all of the sender's voting power to ``delegatee``."""
        sender_norm = self._normalize(sender)
        delegatee_norm = self._normalize(delegatee)

        block = self.chain.mine()
        previous = self.delegates(sender_norm)
        self.delegation[sender_norm] = delegatee_norm
        self._emit("DelegateChanged", previous, delegatee_norm, 0, block.number)

        self._move_voting_power(
            previous, delegatee_norm, self.balances.get(sender_norm, 0), block.number
        )

        logger.info(
            "Votes delegated",
            extra={
                "event": "token.delegate",
                "delegator": sender_norm[:10],
                "from_delegate": previous[:10],
                "to_delegate": delegatee_norm[:10],
                "block": block.number,
            },
        )
        return True

    # ==================== Helpers ====================

    def _mint(self, to: str, amount: int, block_number: int) -> None:
        if self.total_supply + amount > UINT256_MAX:
            raise LedgerError("ERC20: mint would overflow total supply")
        self.total_supply += amount
        self.balances[to] = self.balances.get(to, 0) + amount
        self._write_checkpoint(self.supply_checkpoints, self.total_supply, block_number)
        self._emit("Transfer", ZERO_ADDRESS, to, amount, block_number)
        self._move_voting_power(ZERO_ADDRESS, self.delegates(to), amount, block_number)

        logger.info(
            "Token minted",
            extra={
                "event": "token.mint",
                "token": self.symbol,
                "to": to[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            },
        )

    def _move_voting_power(self, src: str, dst: str, amount: int, block_number: int) -> None:
        if src == dst or amount == 0:
            return
        if src != ZERO_ADDRESS:
            checkpoints = self.vote_checkpoints.setdefault(src, [])
            old = checkpoints[-1].value if checkpoints else 0
            self._write_checkpoint(checkpoints, old - amount, block_number)
            self._emit("DelegateVotesChanged", src, src, old - amount, block_number)
        if dst != ZERO_ADDRESS:
            checkpoints = self.vote_checkpoints.setdefault(dst, [])
            old = checkpoints[-1].value if checkpoints else 0
            self._write_checkpoint(checkpoints, old + amount, block_number)
            self._emit("DelegateVotesChanged", dst, dst, old + amount, block_number)

    @staticmethod
    def _write_checkpoint(checkpoints: list[Checkpoint], value: int, block_number: int) -> None:
        if checkpoints and checkpoints[-1].from_block == block_number:
            checkpoints[-1].value = value
        else:
            checkpoints.append(Checkpoint(from_block=block_number, value=value))

    @staticmethod
    def _lookup(checkpoints: list[Checkpoint], block_number: int) -> int:
        blocks = [c.from_block for c in checkpoints]
        pos = bisect.bisect_right(blocks, block_number)
        return checkpoints[pos - 1].value if pos else 0

    def _require_mined(self, block_number: int) -> None:
        if block_number > self.chain.block_number:
            raise LedgerError(
                "ERC20Votes: block not yet mined",
                details={"block": block_number, "head": self.chain.block_number},
            )

    def _normalize(self, address: str) -> str:
        """Normalize address to lowercase."""
        return address.lower()

    def _validate_address(self, address: str, field: str) -> None:
        if address == ZERO_ADDRESS or not address:
            raise LedgerError(f"ERC20: {field} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if amount < 0:
            raise LedgerError("ERC20: amount cannot be negative")
        if amount > UINT256_MAX:
            raise LedgerError("ERC20: amount exceeds uint256")

    def _emit(self, event_type: str, from_addr: str, to_addr: str, value: int, block_number: int) -> None:
        self.events.append(
            TokenEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                value=value,
                block_number=block_number,
            )
        )
