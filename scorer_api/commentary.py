# scorer_api/commentary.py
from __future__ import annotations

from typing import Optional

from scorer_api.models import BallEvent

_WICKET_LINES = {
    "bowled": "BOWLED HIM! Cleaned up!",
    "caught": "CAUGHT! Straight to the fielder.",
    "run-out": "RUN OUT! What a disaster between the wickets.",
}

_RUN_LINES = {
    0: "no run, solid defense.",
    1: "1 run, rotates the strike.",
    2: "2 runs, good running.",
    4: "FOUR! Glorious shot through the gap.",
    6: "SIX! That is huge! Out of the park!",
}


def _short_name(name: Optional[str], fallback: str) -> str:
    if not name or not name.strip():
        return fallback
    return name.split()[-1]


def generate_commentary(
    ball: BallEvent,
    bowler_name: Optional[str],
    batter_name: Optional[str],
    is_free_hit: bool = False,
) -> str:
    """
    One line of text for a delivery, e.g. "3.4 - Khan to Patel, FOUR! ...".
    Pure: the same ball and names always give the same line.
    """
    bowler = _short_name(bowler_name, "Bowler")
    batter = _short_name(batter_name, "Batter")
    head = f"{ball.over_number}.{ball.ball_in_over} - "

    if ball.is_wicket:
        action = _WICKET_LINES.get(ball.wicket_type or "", "OUT!")
        return f"{head}{bowler} to {batter}, {action}"

    if ball.extra_type == "wide":
        return f"{head}{bowler} to {batter}, WIDE ball."
    if ball.extra_type == "no-ball":
        return f"{head}{bowler} to {batter}, NO BALL! Free hit coming up."

    action = _RUN_LINES.get(ball.runs_scored, f"{ball.runs_scored} runs.")
    prefix = "FREE HIT: " if is_free_hit else ""
    return f"{head}{prefix}{bowler} to {batter}, {action}"
