# scorer_api/match_engine.py
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from scorer_api import innings as innings_engine
from scorer_api.awards import decide_result, man_of_the_match
from scorer_api.config import DEFAULT_TOTAL_OVERS
from scorer_api.errors import InvalidBallError, InvalidTransitionError, NotFoundError
from scorer_api.models import BallEvent, Match, Player, Team, Toss, TournamentState
from scorer_api.phases import (
    Abandoned,
    AwaitingToss,
    Completed,
    FirstInnings,
    InningsBreak,
    PLAYING_PHASES,
    ReadyToStart,
    SecondInnings,
    match_phase,
    phase_name,
)
from scorer_api.points_table import recompute_standings

logger = logging.getLogger(__name__)


# -----------------------------
# Results
# -----------------------------
@dataclass
class MatchEvent:
    """A fact that changed, for whoever persists or broadcasts state."""
    kind: str
    match_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Outcome:
    match: Optional[Match] = None
    events: List[MatchEvent] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.events)


# -----------------------------
# Lookups
# -----------------------------
def get_match(state: TournamentState, match_id: str) -> Match:
    match = state.find_match(match_id)
    if match is None:
        raise NotFoundError(f"Unknown match: {match_id}")
    return match


def get_team(state: TournamentState, team_id: str) -> Team:
    team = state.find_team(team_id)
    if team is None:
        raise NotFoundError(f"Unknown team: {team_id}")
    return team


def match_roster(state: TournamentState, match: Match) -> Dict[str, Player]:
    roster: Dict[str, Player] = {}
    for team_id in (match.team_a_id, match.team_b_id):
        team = state.find_team(team_id)
        if team is None:
            continue
        for p in team.players:
            roster[p.id] = p
    return roster


def _require_player(roster: Dict[str, Player], player_id: str, team_id: str, role: str) -> None:
    p = roster.get(player_id)
    if p is None or p.team_id != team_id:
        raise InvalidBallError(f"Unknown {role} for this side: {player_id}")


# -----------------------------
# Commit (only after everything that can fail has run)
# -----------------------------
def _commit(state: TournamentState, match: Match, players: Optional[Dict[str, Player]] = None) -> None:
    for i, m in enumerate(state.matches):
        if m.id == match.id:
            state.matches[i] = match
            break
    else:
        state.matches.append(match)

    for p in (players or {}).values():
        team = state.find_team(p.team_id)
        if team is None:
            continue
        for i, existing in enumerate(team.players):
            if existing.id == p.id:
                team.players[i] = p
                break


def _finish(state: TournamentState, match: Match, events: List[MatchEvent]) -> None:
    """Second innings over (or match ended by hand): settle the result."""
    match.status = "completed"
    match.play_status = "active"
    match.winner_id, match.result_message = decide_result(match, state.team_name)
    match.man_of_the_match_id = man_of_the_match(match) if match.innings2 is not None else None
    events.append(MatchEvent("match_completed", match.id, {
        "winner_id": match.winner_id,
        "result_message": match.result_message,
        "man_of_the_match_id": match.man_of_the_match_id,
    }))
    logger.info("Match %s completed: %s", match.id, match.result_message)


def _refresh_standings(state: TournamentState, events: List[MatchEvent]) -> None:
    recompute_standings(state.teams, state.matches)
    events.append(MatchEvent("standings_updated"))


# -----------------------------
# Setup
# -----------------------------
def create_match(
    state: TournamentState,
    team_a_id: str,
    team_b_id: str,
    total_overs: Optional[int] = None,
    knockout_stage: Optional[str] = None,
) -> Outcome:
    get_team(state, team_a_id)
    get_team(state, team_b_id)
    if team_a_id == team_b_id:
        raise InvalidTransitionError("team_a and team_b must be different")

    overs = DEFAULT_TOTAL_OVERS if total_overs is None else int(total_overs)
    if overs <= 0:
        raise InvalidTransitionError("total_overs must be positive")
    if knockout_stage not in (None, "SF1", "SF2", "FINAL"):
        raise InvalidTransitionError(f"Invalid knockout stage: {knockout_stage}")

    match = Match(
        team_a_id=team_a_id,
        team_b_id=team_b_id,
        total_overs=overs,
        group_stage=knockout_stage is None,
        knockout_stage=knockout_stage,
    )
    _commit(state, match)
    logger.info("Match %s created: %s vs %s (%d overs)", match.id, team_a_id, team_b_id, overs)
    return Outcome(match, [MatchEvent("match_created", match.id)])


def record_toss(state: TournamentState, match_id: str, winner_id: str, choice: str) -> Outcome:
    match = get_match(state, match_id)
    if not isinstance(match_phase(match), AwaitingToss):
        raise InvalidTransitionError(f"Toss already recorded (phase={phase_name(match_phase(match))})")
    if winner_id not in (match.team_a_id, match.team_b_id):
        raise InvalidTransitionError(f"Toss winner {winner_id} is not playing this match")
    if choice not in ("bat", "bowl"):
        raise InvalidTransitionError(f"Invalid toss choice: {choice}")

    work = copy.deepcopy(match)
    work.toss = Toss(winner_id=winner_id, choice=choice)
    work.status = "scheduled"
    _commit(state, work)
    return Outcome(work, [MatchEvent("toss_recorded", work.id, {"winner_id": winner_id, "choice": choice})])


def batting_first(match: Match) -> str:
    toss = match.toss
    if toss is None:
        raise InvalidTransitionError("Toss not recorded")
    a_bats = (toss.winner_id == match.team_a_id) == (toss.choice == "bat")
    return match.team_a_id if a_bats else match.team_b_id


def start_innings(
    state: TournamentState,
    match_id: str,
    striker_id: str,
    non_striker_id: str,
    bowler_id: str,
) -> Outcome:
    match = get_match(state, match_id)
    phase = match_phase(match)

    if isinstance(phase, ReadyToStart):
        batting_id = batting_first(match)
        bowling_id = match.team_b_id if batting_id == match.team_a_id else match.team_a_id
        number = 1
    elif isinstance(phase, InningsBreak):
        batting_id = phase.innings1.bowling_team_id
        bowling_id = phase.innings1.batting_team_id
        number = 2
    else:
        raise InvalidTransitionError(f"Cannot start an innings (phase={phase_name(phase)})")

    if striker_id == non_striker_id:
        raise InvalidBallError("striker and non-striker must be different players")
    roster = match_roster(state, match)
    _require_player(roster, striker_id, batting_id, "striker")
    _require_player(roster, non_striker_id, batting_id, "non-striker")
    _require_player(roster, bowler_id, bowling_id, "bowler")

    work = copy.deepcopy(match)
    new = innings_engine.new_innings(
        batting_team_id=batting_id,
        bowling_team_id=bowling_id,
        striker_id=striker_id,
        non_striker_id=non_striker_id,
        bowler_id=bowler_id,
    )
    if number == 1:
        work.innings1 = new
    else:
        work.innings2 = new
    work.status = "live"
    work.play_status = "active"
    _commit(state, work)

    logger.info("Match %s: innings %d started, %s batting", work.id, number, batting_id)
    return Outcome(work, [MatchEvent("innings_started", work.id, {"innings": number, "batting_team_id": batting_id})])


# -----------------------------
# Live play
# -----------------------------
def _live_innings_phase(match: Match):
    phase = match_phase(match)
    if not isinstance(phase, PLAYING_PHASES):
        raise InvalidTransitionError(f"No innings in progress (phase={phase_name(phase)})")
    return phase


def set_next_bowler(state: TournamentState, match_id: str, bowler_id: str) -> Outcome:
    match = get_match(state, match_id)
    _live_innings_phase(match)
    innings = match.current_innings
    _require_player(match_roster(state, match), bowler_id, innings.bowling_team_id, "bowler")

    work = copy.deepcopy(match)
    work.current_innings.current_bowler_id = bowler_id
    work.play_status = "active"
    _commit(state, work)
    return Outcome(work, [MatchEvent("bowler_changed", work.id, {"bowler_id": bowler_id})])


def seat_next_batter(state: TournamentState, match_id: str, batter_id: str) -> Outcome:
    match = get_match(state, match_id)
    _live_innings_phase(match)

    work = copy.deepcopy(match)
    innings_engine.seat_next_batter(work.current_innings, batter_id, match_roster(state, match))
    _commit(state, work)
    return Outcome(work, [MatchEvent("batter_seated", work.id, {"batter_id": batter_id})])


def swap_strike(state: TournamentState, match_id: str) -> Outcome:
    match = get_match(state, match_id)
    _live_innings_phase(match)

    work = copy.deepcopy(match)
    innings = work.current_innings
    innings.striker_id, innings.non_striker_id = innings.non_striker_id, innings.striker_id
    _commit(state, work)
    return Outcome(work, [MatchEvent("strike_swapped", work.id, {"striker_id": innings.striker_id})])


def record_ball(
    state: TournamentState,
    match_id: str,
    ball: BallEvent,
    next_batter_id: Optional[str] = None,
) -> Outcome:
    """
    Records one delivery on the live innings. Either the whole delivery is
    applied (innings, player figures, match status, standings) or, on any
    error, nothing is.
    """
    match = get_match(state, match_id)
    phase = _live_innings_phase(match)
    if match.play_status == "waiting_for_bowler":
        raise InvalidTransitionError("Over completed: select the next bowler first")
    if match.current_innings.awaiting_batter:
        raise InvalidTransitionError("Wicket fell: select the next batter first")

    work = copy.deepcopy(match)
    target = phase.target if isinstance(phase, SecondInnings) else None
    result = innings_engine.record_ball(
        work.current_innings,
        ball,
        match_roster(state, match),
        next_batter_id,
        total_overs=work.total_overs,
        target=target,
    )
    stored = result.ball
    events = [MatchEvent("ball_recorded", work.id, {
        "ball_id": stored.id,
        "over_number": stored.over_number,
        "ball_in_over": stored.ball_in_over,
        "commentary": stored.commentary,
        "score": result.innings.score_line,
        "overs": result.innings.overs,
    })]
    if stored.is_wicket:
        events.append(MatchEvent("wicket", work.id, {
            "batter_id": stored.wicket_player_id,
            "wicket_type": stored.wicket_type,
        }))

    if result.over_completed:
        work.play_status = "waiting_for_bowler"
        events.append(MatchEvent("over_completed", work.id, {"overs": result.innings.overs}))

    finished = False
    if result.innings_over:
        if isinstance(phase, FirstInnings):
            work.status = "innings_break"
            work.play_status = "active"
            events.append(MatchEvent("innings_ended", work.id, {
                "innings": 1,
                "score": result.innings.score_line,
                "target": result.innings.total_runs + 1,
            }))
            logger.info("Match %s: innings break, target %d", work.id, result.innings.total_runs + 1)
        else:
            events.append(MatchEvent("innings_ended", work.id, {"innings": 2, "score": result.innings.score_line}))
            _finish(state, work, events)
            finished = True

    _commit(state, work, result.players)
    if finished:
        _refresh_standings(state, events)
    return Outcome(work, events)


def undo_last_ball(state: TournamentState, match_id: str) -> Outcome:
    """
    Single-level undo of the latest delivery. Re-opens an innings break or a
    completed match when that delivery ended it. Nothing to undo is a no-op.
    """
    match = get_match(state, match_id)
    phase = match_phase(match)
    if isinstance(phase, Abandoned):
        raise InvalidTransitionError("Match was abandoned")

    innings = match.current_innings
    if innings is None or not innings.history:
        return Outcome(match, [])

    reopened_completed = isinstance(phase, Completed)
    work = copy.deepcopy(match)
    result = innings_engine.undo_last_ball(work.current_innings, match_roster(state, match))

    work.play_status = "active"
    events = [MatchEvent("ball_undone", work.id, {
        "ball_id": result.ball.id,
        "score": result.innings.score_line,
        "overs": result.innings.overs,
    })]
    if work.status in ("completed", "innings_break"):
        events.append(MatchEvent("match_reopened", work.id, {"from_status": work.status}))
        work.status = "live"
        work.winner_id = None
        work.result_message = None
        work.man_of_the_match_id = None

    _commit(state, work, result.players)
    if reopened_completed:
        _refresh_standings(state, events)
    logger.info("Match %s: undid ball %s", work.id, result.ball.id)
    return Outcome(work, events)


# -----------------------------
# Ending
# -----------------------------
def end_match(state: TournamentState, match_id: str) -> Outcome:
    match = get_match(state, match_id)
    phase = match_phase(match)
    if not isinstance(phase, (FirstInnings, InningsBreak, SecondInnings)):
        raise InvalidTransitionError(f"Cannot end match (phase={phase_name(phase)})")

    work = copy.deepcopy(match)
    events: List[MatchEvent] = []
    _finish(state, work, events)
    _commit(state, work)
    _refresh_standings(state, events)
    return Outcome(work, events)


def abandon_match(state: TournamentState, match_id: str) -> Outcome:
    match = get_match(state, match_id)
    phase = match_phase(match)
    if isinstance(phase, (Completed, Abandoned)):
        raise InvalidTransitionError(f"Cannot abandon match (phase={phase_name(phase)})")

    work = copy.deepcopy(match)
    work.status = "abandoned"
    work.play_status = "active"
    work.winner_id = None
    work.result_message = "Match abandoned"
    events = [MatchEvent("match_abandoned", work.id)]
    _commit(state, work)
    _refresh_standings(state, events)
    logger.info("Match %s abandoned", work.id)
    return Outcome(work, events)
