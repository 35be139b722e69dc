"""
SaltDao Constants

Magic numbers used by the governance engine and the bundled token,
organized by category.

NOTE: Values marked with [CONSENSUS] change the outcome of replayed
operations. Two nodes running with different values will diverge.
"""

from typing import Final

# =============================================================================
# TIME CONSTANTS (in seconds)
# =============================================================================

SECONDS_PER_MINUTE: Final[int] = 60
SECONDS_PER_HOUR: Final[int] = 3600  # 60 * 60
SECONDS_PER_DAY: Final[int] = 86400  # 60 * 60 * 24

# =============================================================================
# GOVERNANCE CONSTANTS [CONSENSUS]
# =============================================================================

# Number of proposals that may be tracked at the same time
PROPOSALS_MAX_COUNT: Final[int] = 3

# Time a proposal stays open for voting
VOTING_DURATION_SECONDS: Final[int] = 3 * SECONDS_PER_DAY

# Slot index reserved as "no slot"; never holds a live proposal
NO_SLOT_INDEX: Final[int] = 0

# expiresAt value written on finalization (always in the past)
EXPIRED_SENTINEL: Final[int] = 0

# Size of a proposal identifier in bytes
PROPOSAL_ID_BYTES: Final[int] = 32

ZERO_PROPOSAL_ID: Final[bytes] = b"\x00" * PROPOSAL_ID_BYTES

# =============================================================================
# TOKEN CONSTANTS
# =============================================================================

TOKEN_NAME: Final[str] = "SaltToken"
TOKEN_SYMBOL: Final[str] = "SLT"
TOKEN_DECIMALS: Final[int] = 6
TOKEN_INITIAL_SUPPLY: Final[int] = 100 * 10**TOKEN_DECIMALS

UINT256_MAX: Final[int] = 2**256 - 1
ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

# =============================================================================
# LOCAL CHAIN DEFAULTS
# =============================================================================

GENESIS_TIMESTAMP: Final[int] = 1_700_000_000
BLOCK_INTERVAL_SECONDS: Final[int] = 1
