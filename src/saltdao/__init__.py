"""
SaltDao - Token-Weighted Governance Engine

A bounded-capacity proposal engine where token holders create proposals
and cast votes weighted by their historical voting power.

Main Components:
- Contracts: SaltToken (checkpointed voting-power ledger) and SaltDao
- Governance: slot allocation, vote tallying and majority finalization
- Simulation: deterministic replay of operation scenarios
"""

__version__ = "0.1.0"
__author__ = "SaltDao Development Team"

__all__ = []
