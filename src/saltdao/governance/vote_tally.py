"""
Running agreement/disagreement sums with delta updates.

A (re)vote first removes the account's previous contribution from the side
it was counted on and then adds the new weight to the chosen side. Casting
the same vote twice therefore leaves the tally unchanged.
"""

from __future__ import annotations

from dataclasses import replace

from saltdao.governance.models import Proposal, Vote


def remove_contribution(proposal: Proposal, previous: Vote) -> Proposal:
    if previous.weight == 0:
        return proposal
    if previous.is_agreed:
        if previous.weight > proposal.agreements:
            raise ValueError("Previous vote exceeds the agreement tally")
        return replace(proposal, agreements=proposal.agreements - previous.weight)
    if previous.weight > proposal.disagreements:
        raise ValueError("Previous vote exceeds the disagreement tally")
    return replace(proposal, disagreements=proposal.disagreements - previous.weight)


def add_contribution(proposal: Proposal, weight: int, agree: bool) -> Proposal:
    if agree:
        return replace(proposal, agreements=proposal.agreements + weight)
    return replace(proposal, disagreements=proposal.disagreements + weight)


def apply_vote(proposal: Proposal, previous: Vote, weight: int, agree: bool) -> Proposal:
    """Proposal with ``previous`` swapped for a ``weight`` vote on ``agree``'s side."""
    return add_contribution(remove_contribution(proposal, previous), weight, agree)
