# scorer_api/awards.py
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from scorer_api.innings import MAX_WICKETS, player_figures
from scorer_api.models import InningsState, Match, PlayerStats
from scorer_api.nrr_math import run_rate
from scorer_api.overs import BALLS_PER_OVER, overs_to_balls

MIN_BALLS_FOR_STRIKE_RATE = 6
MIN_BALLS_FOR_ECONOMY = BALLS_PER_OVER


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def decide_result(match: Match, team_name: Callable[[str], str]) -> Tuple[Optional[str], str]:
    """
    Returns (winner_id, result_message) for a match with both innings.

    - Side batting first wins by the run margin.
    - Side batting second wins by wickets in hand.
    - Equal totals: tie, no winner.
    """
    inn1 = match.innings1
    inn2 = match.innings2
    if inn1 is None or inn2 is None:
        return None, "Match ended"

    score1 = inn1.total_runs
    score2 = inn2.total_runs

    if score1 > score2:
        winner = inn1.batting_team_id
        return winner, f"{team_name(winner)} won by {_plural(score1 - score2, 'run')}"
    if score2 > score1:
        winner = inn2.batting_team_id
        return winner, f"{team_name(winner)} won by {_plural(MAX_WICKETS - inn2.wickets, 'wicket')}"
    return None, "Match Tied"


def impact_score(stats: PlayerStats) -> int:
    """
    Match impact of one player's figures.

    Batting: 1 per run, strike-rate bands (min 6 balls), 1 per four, 2 per six,
    milestone bonus (50+: 10, 30+: 5).
    Bowling: 25 per wicket, haul bonus (3+: 15, 2+: 5), economy bands (min 1 over).
    """
    score = stats.runs

    if stats.balls >= MIN_BALLS_FOR_STRIKE_RATE:
        strike_rate = stats.runs * 100.0 / stats.balls
        if strike_rate >= 200:
            score += 15
        elif strike_rate >= 150:
            score += 10
        elif strike_rate >= 120:
            score += 5

    score += stats.fours
    score += stats.sixes * 2

    if stats.runs >= 50:
        score += 10
    elif stats.runs >= 30:
        score += 5

    score += stats.wickets * 25
    if stats.wickets >= 3:
        score += 15
    elif stats.wickets >= 2:
        score += 5

    if overs_to_balls(stats.overs_bowled) >= MIN_BALLS_FOR_ECONOMY:
        economy = run_rate(stats.runs_conceded, stats.overs_bowled)
        if economy <= 4:
            score += 15
        elif economy <= 6:
            score += 10
        elif economy <= 8:
            score += 5
        elif economy >= 12:
            score -= 5

    return score


def _participants(innings_list: List[InningsState]) -> List[str]:
    seen: Dict[str, None] = {}
    for innings in innings_list:
        for pid in innings.batting_order:
            seen.setdefault(pid, None)
        for ball in innings.history:
            seen.setdefault(ball.batter_id, None)
            seen.setdefault(ball.bowler_id, None)
    return list(seen)


def impact_table(match: Match) -> List[Tuple[str, int]]:
    """(player_id, impact) for every participant, in first-encountered order."""
    innings_list = [i for i in (match.innings1, match.innings2) if i is not None]
    figures = player_figures(innings_list)
    return [(pid, impact_score(figures.get(pid, PlayerStats()))) for pid in _participants(innings_list)]


def man_of_the_match(match: Match) -> Optional[str]:
    best_id: Optional[str] = None
    best_score: Optional[int] = None
    for pid, score in impact_table(match):
        # strict comparison: earlier participant keeps a tie
        if best_score is None or score > best_score:
            best_id, best_score = pid, score
    return best_id
