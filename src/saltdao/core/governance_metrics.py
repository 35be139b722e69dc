"""
Governance instrumentation for SaltDao.

Provides Prometheus metrics for proposal and vote activity, with helper
functions that are safe to call from the commit path of an operation.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

proposals_created_counter = Counter(
    "saltdao_proposals_created_total", "Total proposals created"
)

votes_counted_counter = Counter(
    "saltdao_votes_counted_total", "Total votes counted, including revotes", ["side"]
)

proposals_finalized_counter = Counter(
    "saltdao_proposals_finalized_total", "Total proposals finalized by majority", ["outcome"]
)

operations_rejected_counter = Counter(
    "saltdao_operations_rejected_total",
    "Total state-changing operations rejected",
    ["operation", "error"],
)

active_proposals_gauge = Gauge(
    "saltdao_active_proposals", "Proposals active as of the last committed operation"
)


def record_proposal_created(active_count: int) -> None:
    proposals_created_counter.inc()
    active_proposals_gauge.set(active_count)


def record_vote_counted(agree: bool) -> None:
    votes_counted_counter.labels(side="agree" if agree else "disagree").inc()


def record_finalization(accepted: bool, active_count: int) -> None:
    proposals_finalized_counter.labels(outcome="accepted" if accepted else "rejected").inc()
    active_proposals_gauge.set(active_count)


def record_rejection(operation: str, error: Exception) -> None:
    """Count a rejected operation by its error class name."""
    operations_rejected_counter.labels(operation=operation, error=type(error).__name__).inc()
