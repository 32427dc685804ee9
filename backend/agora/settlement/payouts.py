"""
Payout Calculator

Splits the whole pool (long + short) among the winning side.

Formulas:
- Winner: payout = stake / winning_stake * total_pool
- Loser:  payout = 0
- No stake on the winning side: everyone gets 0 and nothing is distributed
"""

import math

from pydantic import BaseModel, Field

from .exceptions import ConservationError
from .models import Participant, ParticipantResult, Side

CONSERVATION_REL_TOL = 1e-6


class ParticipantPayout(BaseModel):
    participant_id: str
    payout: float
    result: ParticipantResult


class PayoutPlan(BaseModel):
    """Payout and result for every participant of one game."""

    winning_side: Side
    total_pool: float
    winning_stake: float
    entries: list[ParticipantPayout] = Field(default_factory=list)

    @property
    def total_distributed(self) -> float:
        return math.fsum(entry.payout for entry in self.entries)

    @property
    def winners_count(self) -> int:
        return sum(1 for entry in self.entries if entry.result == "win")

    @property
    def losers_count(self) -> int:
        return sum(1 for entry in self.entries if entry.result == "lose")


def compute_payouts(
    participants: list[Participant],
    winning_side: Side,
    total_pool: float,
) -> PayoutPlan:
    """Compute each participant's payout. Pure: never touches storage."""
    winners = [p for p in participants if p.side == winning_side]
    losers = [p for p in participants if p.side != winning_side]
    winning_stake = math.fsum(p.stake for p in winners)

    entries: list[ParticipantPayout] = []
    for p in winners:
        payout = (p.stake / winning_stake) * total_pool if winning_stake > 0 else 0.0
        entries.append(ParticipantPayout(participant_id=p.id, payout=payout, result="win"))
    for p in losers:
        entries.append(ParticipantPayout(participant_id=p.id, payout=0.0, result="lose"))

    return PayoutPlan(
        winning_side=winning_side,
        total_pool=total_pool,
        winning_stake=winning_stake,
        entries=entries,
    )


def verify_conservation(plan: PayoutPlan, rel_tol: float = CONSERVATION_REL_TOL) -> None:
    """Raise ConservationError unless the plan distributes exactly the pool.

    With no winning stake the plan must distribute nothing at all.
    """
    distributed = plan.total_distributed
    if plan.winning_stake > 0:
        if not math.isclose(distributed, plan.total_pool, rel_tol=rel_tol, abs_tol=1e-9):
            raise ConservationError(plan.total_pool, distributed)
    elif distributed != 0:
        raise ConservationError(0.0, distributed)
