# scorer_api/nrr_math.py
from __future__ import annotations

from typing import TYPE_CHECKING

from scorer_api.overs import OversLike, balls_to_overs, overs_to_balls

if TYPE_CHECKING:
    from scorer_api.models import TeamStats

NRR_DECIMALS = 3


def decimal_overs(overs: OversLike) -> float:
    """Overs notation as the number it reads as: "10.3" -> 10.3."""
    return balls_to_overs(overs_to_balls(overs))


def run_rate(runs: int, overs: OversLike) -> float:
    """Runs per over, dividing by the overs value as written: 103 off 10.3 -> 10.0."""
    ov = decimal_overs(overs)
    if ov == 0.0:
        return 0.0
    return runs / ov


def nrr(stats: "TeamStats") -> float:
    """
    Net Run Rate = (runs_scored / overs_faced) - (runs_conceded / overs_bowled)

    A team that has not both batted and bowled yet has NRR 0.
    """
    if decimal_overs(stats.total_overs_faced) == 0.0 or decimal_overs(stats.total_overs_bowled) == 0.0:
        return 0.0

    rr_for = run_rate(stats.total_runs_scored, stats.total_overs_faced)
    rr_against = run_rate(stats.total_runs_conceded, stats.total_overs_bowled)
    return round(rr_for - rr_against, NRR_DECIMALS)


def required_run_rate(runs_needed: int, balls_left: int) -> float:
    if balls_left <= 0 or runs_needed <= 0:
        return 0.0
    return runs_needed * 6.0 / balls_left
