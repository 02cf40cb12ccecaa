# scorer_api/analytics.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from scorer_api.models import InningsState, Match, Player, Team, TournamentState
from scorer_api.nrr_math import decimal_overs, run_rate

# Economy used to rank a bowler who has not completed a ball
NO_ECONOMY = 999.0

PROJECTION_RATES = (6, 8, 10)


def _strike_rate(p: Player) -> float:
    if p.stats.balls <= 0:
        return 0.0
    return round(p.stats.runs * 100.0 / p.stats.balls, 2)


def _economy(p: Player) -> float:
    if decimal_overs(p.stats.overs_bowled) == 0.0:
        return NO_ECONOMY
    return run_rate(p.stats.runs_conceded, p.stats.overs_bowled)


def _batting_row(p: Player, team: Team) -> Dict[str, Any]:
    s = p.stats
    return {
        "player_id": p.id,
        "name": p.name,
        "team_id": team.id,
        "team": team.name,
        "runs": s.runs,
        "balls": s.balls,
        "fours": s.fours,
        "sixes": s.sixes,
        "strike_rate": _strike_rate(p),
    }


def _bowling_row(p: Player, team: Team) -> Dict[str, Any]:
    s = p.stats
    econ = _economy(p)
    return {
        "player_id": p.id,
        "name": p.name,
        "team_id": team.id,
        "team": team.name,
        "wickets": s.wickets,
        "overs": s.overs_bowled,
        "runs_conceded": s.runs_conceded,
        "economy": None if econ == NO_ECONOMY else round(econ, 2),
    }


def leaderboards(state: TournamentState, team_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Tournament batting and bowling tables from the roster figures.

    - batting: players who scored or faced a ball, most runs first
    - bowling: players who took a wicket or bowled, most wickets then best economy
    - orange_cap / purple_cap: the top row of each table (None when empty)
    - totals: runs, wickets, fours and sixes across the whole tournament,
      whatever team filter is applied to the tables
    """
    everyone = [(p, t) for t in state.teams for p in t.players]
    shown = [(p, t) for p, t in everyone if team_id is None or t.id == team_id]

    batters = sorted(
        (pt for pt in shown if pt[0].stats.runs > 0 or pt[0].stats.balls > 0),
        key=lambda pt: -pt[0].stats.runs,
    )
    bowlers = sorted(
        (pt for pt in shown if pt[0].stats.wickets > 0 or decimal_overs(pt[0].stats.overs_bowled) > 0),
        key=lambda pt: (-pt[0].stats.wickets, _economy(pt[0])),
    )

    batting = [_batting_row(p, t) for p, t in batters]
    bowling = [_bowling_row(p, t) for p, t in bowlers]

    return {
        "team_id": team_id,
        "batting": batting,
        "bowling": bowling,
        "orange_cap": batting[0] if batting else None,
        "purple_cap": bowling[0] if bowling else None,
        "totals": {
            "runs": sum(p.stats.runs for p, _ in everyone),
            "wickets": sum(p.stats.wickets for p, _ in everyone),
            "fours": sum(p.stats.fours for p, _ in everyone),
            "sixes": sum(p.stats.sixes for p, _ in everyone),
        },
    }


def over_summary(innings: InningsState, total_overs: int) -> List[Dict[str, int]]:
    """
    Runs and wickets per over (manhattan) with the running total (worm),
    one row for each over of the allocation; overs not yet bowled are zeros.
    """
    rows: List[Dict[str, int]] = []
    cumulative = 0
    for over_no in range(int(total_overs)):
        balls = [b for b in innings.history if b.over_number == over_no]
        runs = sum(b.total_runs for b in balls)
        cumulative += runs
        rows.append({
            "over": over_no + 1,
            "runs": runs,
            "wickets": sum(1 for b in balls if b.is_wicket),
            "cumulative_runs": cumulative,
        })
    return rows


def projected_score(innings: InningsState, total_overs: int) -> Dict[str, Any]:
    """
    Final total if the remaining overs go at the current rate, and at 6, 8 and 10 an over.
    """
    current = decimal_overs(innings.overs)
    crr = run_rate(innings.total_runs, innings.overs)
    remaining = max(0.0, total_overs - current)

    projections = {"current_rate": round(innings.total_runs + remaining * crr)}
    for rate in PROJECTION_RATES:
        projections[f"at_{rate}"] = round(innings.total_runs + remaining * rate)

    return {
        "runs": innings.total_runs,
        "overs": innings.overs,
        "run_rate": round(crr, 2),
        "projected": projections,
    }


def match_analytics(match: Match) -> Dict[str, Any]:
    innings = match.current_innings
    return {
        "match_id": match.id,
        "innings1": over_summary(match.innings1, match.total_overs) if match.innings1 is not None else None,
        "innings2": over_summary(match.innings2, match.total_overs) if match.innings2 is not None else None,
        "projection": projected_score(innings, match.total_overs) if innings is not None else None,
    }
