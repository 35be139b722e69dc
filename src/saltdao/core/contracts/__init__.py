"""
SaltDao contracts.

- SaltToken: checkpointed voting token (the voting-power ledger)
- SaltDao: bounded-capacity proposal and voting engine
"""

from .salt_dao import SaltDao
from .salt_token import SaltToken, TokenEvent

__all__ = [
    "SaltDao",
    "SaltToken",
    "TokenEvent",
]
