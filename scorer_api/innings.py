# scorer_api/innings.py
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from scorer_api.commentary import generate_commentary
from scorer_api.errors import InvalidBallError, InvalidTransitionError
from scorer_api.models import (
    BallEvent,
    FallOfWicket,
    InningsState,
    Partnership,
    Player,
    PlayerStats,
)
from scorer_api.overs import BALLS_PER_OVER, add_overs, balls_to_overs, overs_to_balls, subtract_ball

logger = logging.getLogger(__name__)

MAX_WICKETS = 10


@dataclass
class BallResult:
    """
    What record_ball hands back to the match engine.

    players holds updated copies of the batter and bowler; the caller commits
    them to the team rosters.
    """
    innings: InningsState
    ball: BallEvent
    players: Dict[str, Player] = field(default_factory=dict)
    over_completed: bool = False
    innings_over: bool = False


@dataclass
class UndoResult:
    innings: InningsState
    ball: BallEvent
    players: Dict[str, Player] = field(default_factory=dict)
    over_reopened: bool = False


# -----------------------------
# Helpers
# -----------------------------
def new_innings(
    *,
    batting_team_id: str,
    bowling_team_id: str,
    striker_id: str,
    non_striker_id: str,
    bowler_id: str,
) -> InningsState:
    return InningsState(
        batting_team_id=batting_team_id,
        bowling_team_id=bowling_team_id,
        striker_id=striker_id,
        non_striker_id=non_striker_id,
        current_bowler_id=bowler_id,
        batting_order=[striker_id, non_striker_id],
        current_partnership=Partnership(batter1_id=striker_id, batter2_id=non_striker_id),
    )


def _swap_strike(innings: InningsState) -> None:
    innings.striker_id, innings.non_striker_id = innings.non_striker_id, innings.striker_id


def _remove_last(items: List[str], value: str) -> None:
    for i in range(len(items) - 1, -1, -1):
        if items[i] == value:
            del items[i]
            return


def apply_ball_to_stats(ball: BallEvent, batter: PlayerStats, bowler: PlayerStats, *, direction: int = 1) -> None:
    """
    Adds (direction=1) or removes (direction=-1) one delivery's contribution to
    the batter's and bowler's figures. Everything needed is on the BallEvent,
    which makes this its own compensating delta for undo.
    """
    batter.runs += direction * ball.runs_scored
    if ball.faced_by_batter:
        batter.balls += direction
    if ball.is_boundary_four:
        batter.fours += direction
    if ball.is_boundary_six:
        batter.sixes += direction

    bowler.runs_conceded += direction * ball.bowler_runs
    if ball.bowler_wicket:
        bowler.wickets += direction
    if ball.is_valid_ball:
        if direction > 0:
            bowler.overs_bowled = add_overs(bowler.overs_bowled, "0.1")
        else:
            bowler.overs_bowled = subtract_ball(bowler.overs_bowled)


def innings_complete(innings: InningsState, *, total_overs: Optional[int] = None, target: Optional[int] = None) -> bool:
    """
    All out, overs used up, or (chasing only) target reached.
    """
    if innings.wickets >= MAX_WICKETS:
        return True
    if total_overs is not None and innings.legal_balls >= int(total_overs) * BALLS_PER_OVER:
        return True
    if target is not None and innings.total_runs >= target:
        return True
    return False


# -----------------------------
# Validation (runs before anything is touched)
# -----------------------------
def validate_ball(
    innings: InningsState,
    ball: BallEvent,
    players: Mapping[str, Player],
    next_batter_id: Optional[str] = None,
) -> None:
    if not ball.batter_id or not ball.bowler_id:
        raise InvalidBallError("batter_id and bowler_id are required")

    if ball.runs_scored < 0 or ball.extras < 0:
        raise InvalidBallError("runs_scored and extras cannot be negative")

    if ball.batter_id != innings.striker_id:
        raise InvalidBallError(f"batter {ball.batter_id} is not on strike")
    if ball.bowler_id != innings.current_bowler_id:
        raise InvalidBallError(f"bowler {ball.bowler_id} is not the current bowler")

    batter = players.get(ball.batter_id)
    bowler = players.get(ball.bowler_id)
    if batter is None or batter.team_id != innings.batting_team_id:
        raise InvalidBallError(f"Unknown batter for batting side: {ball.batter_id}")
    if bowler is None or bowler.team_id != innings.bowling_team_id:
        raise InvalidBallError(f"Unknown bowler for bowling side: {ball.bowler_id}")

    illegal_delivery = ball.extra_type in ("wide", "no-ball")
    if ball.is_valid_ball == illegal_delivery:
        raise InvalidBallError("is_valid_ball must be False exactly for wides and no-balls")
    if ball.extra_type is None and ball.extras != 0:
        raise InvalidBallError("extras given without an extra_type")
    if ball.extra_type == "wide" and ball.runs_scored != 0:
        raise InvalidBallError("runs cannot be scored off the bat on a wide")

    if ball.is_wicket:
        if not ball.wicket_player_id:
            raise InvalidBallError("wicket_player_id is required for a wicket")
        if ball.wicket_type is None:
            raise InvalidBallError("wicket_type is required for a wicket")
        if ball.wicket_player_id not in (innings.striker_id, innings.non_striker_id):
            raise InvalidBallError(f"Dismissed player {ball.wicket_player_id} is not at the crease")
    elif ball.wicket_player_id or ball.wicket_type:
        raise InvalidBallError("wicket details given but is_wicket is False")

    if next_batter_id is not None:
        if not ball.is_wicket:
            raise InvalidBallError("next_batter_id is only accepted with a wicket")
        _validate_incoming(innings, next_batter_id, players)


def _validate_incoming(innings: InningsState, batter_id: str, players: Mapping[str, Player]) -> None:
    incoming = players.get(batter_id)
    if incoming is None or incoming.team_id != innings.batting_team_id:
        raise InvalidBallError(f"Unknown batter for batting side: {batter_id}")
    if batter_id in innings.batting_order:
        raise InvalidBallError(f"Batter {batter_id} has already batted")


# -----------------------------
# Ball processing
# -----------------------------
def _apply_ball(
    innings: InningsState,
    ball: BallEvent,
    next_batter_id: Optional[str],
    names: Mapping[str, str],
) -> Tuple[BallEvent, bool]:
    """
    Applies one delivery to the innings in the fixed order the scorer relies on.
    Returns (stored ball, over_completed). Player figures are handled by the caller.
    """
    legal_before = overs_to_balls(innings.overs)
    over_before = innings.overs
    free_hit_before = innings.is_free_hit

    # 1) position in the over, from the count before this ball
    in_over = legal_before % BALLS_PER_OVER
    ball_in_over = in_over + 1 if ball.is_valid_ball else in_over

    # 2) score
    innings.total_runs += ball.total_runs

    # 3) partnership
    partnership = innings.current_partnership
    if not ball.is_wicket and partnership is not None:
        if ball.faced_by_batter:
            partnership.balls += 1
        partnership.runs += ball.total_runs

    # 4) wicket + fall of wicket
    victim = ball.wicket_player_id
    if ball.is_wicket:
        innings.wickets += 1
        if victim:
            innings.players_out.append(victim)
            innings.fow.append(FallOfWicket(
                score=innings.total_runs,
                wicket_count=innings.wickets,
                over=over_before,
                batter_id=victim,
            ))

    # 6) overs
    over_completed = False
    if ball.is_valid_ball:
        legal_after = legal_before + 1
        innings.overs = balls_to_overs(legal_after)
        over_completed = legal_after % BALLS_PER_OVER == 0

    # 7) history
    seated = next_batter_id if (ball.is_wicket and victim and next_batter_id) else None
    stored = replace(
        ball,
        over_number=legal_before // BALLS_PER_OVER,
        ball_in_over=ball_in_over,
        free_hit=free_hit_before,
        incoming_batter_id=seated,
        partnership_before=copy.deepcopy(partnership) if seated else None,
    )
    stored = replace(
        stored,
        commentary=generate_commentary(
            stored,
            names.get(ball.bowler_id),
            names.get(ball.batter_id),
            is_free_hit=free_hit_before,
        ),
    )
    innings.history.append(stored)

    # 8) odd runs off the bat change strike
    if ball.runs_scored % 2 == 1:
        _swap_strike(innings)

    # 9) replacement batter takes the dismissed batter's end
    if seated:
        if victim == innings.striker_id:
            innings.striker_id = seated
        else:
            innings.non_striker_id = seated
        innings.batting_order.append(seated)
        innings.current_partnership = Partnership(
            batter1_id=innings.striker_id,
            batter2_id=innings.non_striker_id,
        )

    # 10) change of ends
    if over_completed:
        _swap_strike(innings)

    # 11) free hit
    if ball.extra_type == "no-ball":
        innings.is_free_hit = True
    elif ball.is_valid_ball:
        innings.is_free_hit = False

    return stored, over_completed


def record_ball(
    innings: InningsState,
    ball: BallEvent,
    players: Mapping[str, Player],
    next_batter_id: Optional[str] = None,
    *,
    total_overs: Optional[int] = None,
    target: Optional[int] = None,
) -> BallResult:
    """
    Records one delivery on `innings` (which the caller owns; pass a copy if the
    original must survive a failure further up).

    Raises InvalidBallError before touching anything if the ball is malformed.
    """
    validate_ball(innings, ball, players, next_batter_id)

    names = {pid: p.name for pid, p in players.items()}
    stored, over_completed = _apply_ball(innings, ball, next_batter_id, names)

    # 5) batter / bowler figures, on copies
    batter = copy.deepcopy(players[ball.batter_id])
    bowler = copy.deepcopy(players[ball.bowler_id])
    apply_ball_to_stats(stored, batter.stats, bowler.stats)

    # 12) end of innings
    done = innings_complete(innings, total_overs=total_overs, target=target)

    logger.debug(
        "Ball %s.%s: %s (%s, %s ov)",
        stored.over_number, stored.ball_in_over, stored.commentary, innings.score_line, innings.overs,
    )
    return BallResult(
        innings=innings,
        ball=stored,
        players={batter.id: batter, bowler.id: bowler},
        over_completed=over_completed,
        innings_over=done,
    )


def undo_last_ball(innings: InningsState, players: Mapping[str, Player]) -> Optional[UndoResult]:
    """
    Reverses the most recent delivery using only that BallEvent and the current
    innings. Returns None (no-op) when there is nothing to undo.
    """
    if not innings.history:
        return None

    ball = innings.history.pop()
    legal_after = overs_to_balls(innings.overs)
    over_completed = ball.is_valid_ball and legal_after % BALLS_PER_OVER == 0

    # 11) free hit state as it was when the ball was bowled
    innings.is_free_hit = ball.free_hit

    # 10) change of ends
    if over_completed:
        _swap_strike(innings)

    # 9) replacement batter walks back, dismissed batter returns to that end
    victim = ball.wicket_player_id
    if ball.is_wicket and ball.incoming_batter_id and victim:
        if innings.striker_id == ball.incoming_batter_id:
            innings.striker_id = victim
        else:
            innings.non_striker_id = victim
        _remove_last(innings.batting_order, ball.incoming_batter_id)
        innings.current_partnership = copy.deepcopy(ball.partnership_before)

    # 8) strike change from odd runs
    if ball.runs_scored % 2 == 1:
        _swap_strike(innings)

    # 6) overs
    if ball.is_valid_ball:
        innings.overs = balls_to_overs(legal_after - 1)
    innings.current_bowler_id = ball.bowler_id

    # 5) player figures
    restored: Dict[str, Player] = {}
    batter = players.get(ball.batter_id)
    bowler = players.get(ball.bowler_id)
    if batter is not None and bowler is not None:
        batter = copy.deepcopy(batter)
        bowler = copy.deepcopy(bowler)
        apply_ball_to_stats(ball, batter.stats, bowler.stats, direction=-1)
        restored = {batter.id: batter, bowler.id: bowler}

    # 4) wicket
    if ball.is_wicket:
        innings.wickets -= 1
        if victim:
            _remove_last(innings.players_out, victim)
            if innings.fow:
                innings.fow.pop()

    # 3) partnership
    partnership = innings.current_partnership
    if not ball.is_wicket and partnership is not None:
        if ball.faced_by_batter:
            partnership.balls -= 1
        partnership.runs -= ball.total_runs

    # 2) score
    innings.total_runs -= ball.total_runs

    logger.debug("Undid ball %s (%s.%s)", ball.id, ball.over_number, ball.ball_in_over)
    return UndoResult(innings=innings, ball=ball, players=restored, over_reopened=over_completed)


def seat_next_batter(innings: InningsState, batter_id: str, players: Mapping[str, Player]) -> InningsState:
    """
    Fills the vacant crease slot after a dismissal recorded without a replacement.
    The last history ball is re-stored with the replacement so undo stays exact.
    """
    if not innings.awaiting_batter:
        raise InvalidTransitionError("No batter is waiting to be replaced")

    last = innings.history[-1] if innings.history else None
    if last is None or not last.is_wicket or last.incoming_batter_id:
        raise InvalidTransitionError("The last delivery is not an open dismissal")

    _validate_incoming(innings, batter_id, players)

    partnership_before = copy.deepcopy(innings.current_partnership)
    if innings.striker_id in innings.players_out:
        innings.striker_id = batter_id
    else:
        innings.non_striker_id = batter_id
    innings.batting_order.append(batter_id)
    innings.current_partnership = Partnership(
        batter1_id=innings.striker_id,
        batter2_id=innings.non_striker_id,
    )
    innings.history[-1] = replace(last, incoming_batter_id=batter_id, partnership_before=partnership_before)
    return innings


# -----------------------------
# Replay (verification path)
# -----------------------------
def replay_innings(innings: InningsState) -> InningsState:
    """
    Rebuilds an innings from its history alone, starting from the opening pair.
    Manual strike swaps are not part of history, so the crease positions of a
    replay only match when none were made.
    """
    if len(innings.batting_order) < 2:
        raise ValueError("Innings has no opening pair")

    first_bowler = innings.history[0].bowler_id if innings.history else innings.current_bowler_id
    rebuilt = new_innings(
        batting_team_id=innings.batting_team_id,
        bowling_team_id=innings.bowling_team_id,
        striker_id=innings.batting_order[0],
        non_striker_id=innings.batting_order[1],
        bowler_id=first_bowler,
    )
    for ball in innings.history:
        rebuilt.current_bowler_id = ball.bowler_id
        _apply_ball(rebuilt, ball, ball.incoming_batter_id, {})
        # keep the stored text; names are not part of the innings
        rebuilt.history[-1] = replace(rebuilt.history[-1], commentary=ball.commentary)
    rebuilt.current_bowler_id = innings.current_bowler_id
    return rebuilt


def player_figures(innings_list: Iterable[InningsState]) -> Dict[str, PlayerStats]:
    """
    Per-player figures summed over the given innings, in first-seen order.
    """
    figures: Dict[str, PlayerStats] = {}
    for innings in innings_list:
        for ball in innings.history:
            batter = figures.setdefault(ball.batter_id, PlayerStats())
            bowler = figures.setdefault(ball.bowler_id, PlayerStats())
            apply_ball_to_stats(ball, batter, bowler)
    return figures
