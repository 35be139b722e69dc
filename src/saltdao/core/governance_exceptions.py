"""
Governance exception hierarchy for SaltDao.

Every failure of a state-changing operation is raised synchronously and
aborts the whole operation; no partial effect is ever committed. Callers
own retry policy, so none of these errors is marked recoverable.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class GovernanceError(Exception):
    """Base exception for all governance-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried as-is
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Validation Errors ====================


class ValidationError(GovernanceError):
    """Raised when operation input is malformed."""
    pass


class InvalidProposalIdError(ValidationError):
    """Raised when a proposal identifier is not a 32-byte value."""
    pass


# ==================== Proposal Creation Errors ====================


class AuthorizationError(GovernanceError):
    """Raised when the requester holds no current voting power."""
    pass


class ConflictError(GovernanceError):
    """Raised when the identifier is already bound to an active slot."""
    pass


class CapacityError(GovernanceError):
    """Raised when every proposal slot is still occupied."""
    pass


# ==================== Voting Errors ====================


class NotFoundError(GovernanceError):
    """Raised when an identifier is not mapped to any slot."""
    pass


class ExpiredOrFinalizedError(GovernanceError):
    """Raised when the proposal's slot is expired or already finalized."""
    pass


class InsufficientWeightError(GovernanceError):
    """Raised when the voter had no power at the proposal's creation checkpoint."""
    pass


# ==================== Collaborator Errors ====================


class LedgerError(GovernanceError):
    """Raised by voting-power ledgers (bad checkpoint, short balance, ...)."""
    pass


# Names used by the operation contracts
NoVotingPower = AuthorizationError
DuplicateActiveProposal = ConflictError
NoFreeSlot = CapacityError
NotFound = NotFoundError
ExpiredOrFinalized = ExpiredOrFinalizedError
InsufficientWeight = InsufficientWeightError


__all__ = [
    "GovernanceError",
    "ValidationError",
    "InvalidProposalIdError",
    "AuthorizationError",
    "ConflictError",
    "CapacityError",
    "NotFoundError",
    "ExpiredOrFinalizedError",
    "InsufficientWeightError",
    "LedgerError",
    "NoVotingPower",
    "DuplicateActiveProposal",
    "NoFreeSlot",
    "NotFound",
    "ExpiredOrFinalized",
    "InsufficientWeight",
]
