# scorer_api/points_table.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Literal, Optional, Tuple

from scorer_api.innings import MAX_WICKETS
from scorer_api.models import InningsState, Match, Team, TeamStats
from scorer_api.nrr_math import nrr
from scorer_api.overs import OversLike, add_overs

logger = logging.getLogger(__name__)

ResultType = Literal["WIN", "NR", "TIE"]

# (winner, loser) points per phase of the tournament
POINTS_GROUP = (10, 0)
POINTS_SEMI_FINAL = (8, 3)
POINTS_FINAL = (10, 6)
POINTS_TIE = 5
POINTS_NO_RESULT = 5

# Non-cricket knockout brackets: fixed (win, loss) points per stage
KNOCKOUT_POINTS: Dict[str, Tuple[int, int]] = {
    "round_1": (6, 0),
    "semi_final": (8, 3),
    "final": (10, 6),
}
KNOCKOUT_GAMES = ("badminton", "table_tennis", "chess", "carrom")


def points_for(match: Match) -> Tuple[int, int]:
    """(winner points, loser points) for the match's stage."""
    if match.knockout_stage in ("SF1", "SF2"):
        return POINTS_SEMI_FINAL
    if match.knockout_stage == "FINAL":
        return POINTS_FINAL
    return POINTS_GROUP


def knockout_points(game_type: str, stage: str, won: bool) -> int:
    if game_type not in KNOCKOUT_GAMES:
        raise ValueError(f"Not a knockout game: {game_type}")
    if stage not in KNOCKOUT_POINTS:
        raise ValueError(f"Invalid knockout stage: {stage}")
    win_pts, loss_pts = KNOCKOUT_POINTS[stage]
    return win_pts if won else loss_pts


def innings_overs_for_nrr(innings: InningsState, total_overs: int) -> OversLike:
    """All-out innings count as the full overs allocation."""
    if innings.wickets >= MAX_WICKETS:
        return total_overs
    return innings.overs


def apply_result(
    row_a: TeamStats,
    row_b: TeamStats,
    *,
    result: ResultType = "WIN",
    a_won: Optional[bool] = None,
    points: Tuple[int, int] = POINTS_GROUP,
) -> None:
    """
    Updates played/won/lost/tied/no_result/points ONLY.
    Aggregates are updated separately via apply_innings_totals.

    Rules:
    - WIN: a_won says which row won; winner/loser points come from `points`
    - NR : both get POINTS_NO_RESULT, no_result += 1
    - TIE: both get POINTS_TIE, tied += 1
    """
    row_a.played += 1
    row_b.played += 1

    if result == "NR":
        row_a.no_result += 1
        row_b.no_result += 1
        row_a.points += POINTS_NO_RESULT
        row_b.points += POINTS_NO_RESULT
        return

    if result == "TIE":
        row_a.tied += 1
        row_b.tied += 1
        row_a.points += POINTS_TIE
        row_b.points += POINTS_TIE
        return

    if result != "WIN":
        raise ValueError(f"Invalid result: {result}")

    if a_won is None:
        raise ValueError("a_won is required when result='WIN'")

    win_pts, loss_pts = points
    winner, loser = (row_a, row_b) if a_won else (row_b, row_a)
    winner.won += 1
    winner.points += win_pts
    loser.lost += 1
    loser.points += loss_pts


def apply_innings_totals(batting: TeamStats, bowling: TeamStats, runs: int, overs: OversLike) -> None:
    batting.total_runs_scored += int(runs)
    batting.total_overs_faced = add_overs(batting.total_overs_faced, overs)
    bowling.total_runs_conceded += int(runs)
    bowling.total_overs_bowled = add_overs(bowling.total_overs_bowled, overs)


def apply_match(teams: Dict[str, Team], match: Match) -> bool:
    """
    Folds one finished match into the two teams' stats.
    Returns False (and changes nothing) when the match has nothing to apply.
    """
    if match.status == "abandoned":
        team_a = teams.get(match.team_a_id)
        team_b = teams.get(match.team_b_id)
        if team_a is None or team_b is None:
            return False
        apply_result(team_a.stats, team_b.stats, result="NR")
        return True

    if match.status != "completed" or match.innings1 is None or match.innings2 is None:
        return False

    inn1 = match.innings1
    inn2 = match.innings2
    team1 = teams.get(inn1.batting_team_id)
    team2 = teams.get(inn2.batting_team_id)
    if team1 is None or team2 is None:
        return False

    if match.winner_id is None:
        apply_result(team1.stats, team2.stats, result="TIE")
    else:
        apply_result(
            team1.stats,
            team2.stats,
            result="WIN",
            a_won=match.winner_id == team1.id,
            points=points_for(match),
        )

    apply_innings_totals(team1.stats, team2.stats, inn1.total_runs, innings_overs_for_nrr(inn1, match.total_overs))
    apply_innings_totals(team2.stats, team1.stats, inn2.total_runs, innings_overs_for_nrr(inn2, match.total_overs))

    team1.stats.nrr = nrr(team1.stats)
    team2.stats.nrr = nrr(team2.stats)
    return True


def recompute_standings(teams: List[Team], matches: Iterable[Match]) -> int:
    """
    Rebuilds every team's stats from the finished matches, so each one is
    counted exactly once however often a match is re-opened by undo.
    Returns the number of matches applied.
    """
    by_id = {t.id: t for t in teams}
    for t in teams:
        t.stats = TeamStats()

    applied = 0
    for m in matches:
        if apply_match(by_id, m):
            applied += 1

    logger.info("Standings recomputed from %d finished matches", applied)
    return applied


def compute_sorted_table(teams: List[Team], group: Optional[str] = None) -> List[dict]:
    """
    Returns points table sorted by:
    1) Points (desc)
    2) NRR (desc)
    """
    rows = [t for t in teams if group is None or t.group == group]

    def key_fn(t: Team):
        return (t.stats.points, nrr(t.stats))

    sorted_rows = sorted(rows, key=key_fn, reverse=True)

    out: List[dict] = []
    for idx, t in enumerate(sorted_rows, start=1):
        s = t.stats
        out.append({
            "pos": idx,
            "team_id": t.id,
            "team": t.name,
            "group": t.group,
            "played": s.played,
            "won": s.won,
            "lost": s.lost,
            "tied": s.tied,
            "nr": s.no_result,
            "points": s.points,
            "nrr": nrr(s),
            "runs_for": s.total_runs_scored,
            "overs_for": s.total_overs_faced,
            "runs_against": s.total_runs_conceded,
            "overs_against": s.total_overs_bowled,
        })
    return out
