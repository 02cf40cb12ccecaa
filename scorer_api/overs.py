# scorer_api/overs.py
from __future__ import annotations

from typing import Union

BALLS_PER_OVER = 6
OversLike = Union[str, int, float]


def overs_to_balls(overs: OversLike) -> int:
    """
    Converts cricket overs notation to balls.

    Supported inputs:
    - "20.0", "19.4", "7.2" (string overs notation)
    - 20 (int overs)
    - 19.4 (float) -> read to one decimal place, so 19.4 and "19.4" agree

    Rule: ".x" means x balls (0-5). Example: 19.4 = 19*6 + 4 = 118 balls.
    """
    if overs is None:
        raise ValueError("Overs cannot be None")

    if isinstance(overs, bool):
        raise ValueError(f"Invalid overs: {overs}")

    if isinstance(overs, float):
        s = f"{overs:.1f}"
    else:
        s = str(overs).strip()
    if not s:
        raise ValueError("Overs cannot be empty")

    # Allow plain integer overs "20"
    if "." not in s:
        ov_i = int(s)
        if ov_i < 0:
            raise ValueError(f"Invalid overs: {overs}")
        return ov_i * BALLS_PER_OVER

    ov_part, ball_part = s.split(".", 1)
    ov_i = int(ov_part) if ov_part else 0

    ball_part = ball_part.strip()
    balls_i = int(ball_part) if ball_part else 0

    if ov_i < 0 or s.startswith("-"):
        raise ValueError(f"Invalid overs: {overs}")
    if balls_i < 0 or balls_i > 5:
        raise ValueError(f"Invalid overs format: {overs} (balls part must be 0-5)")

    return ov_i * BALLS_PER_OVER + balls_i


def balls_to_overs(balls: int) -> float:
    """119 balls -> 19.5"""
    if balls <= 0:
        return 0.0
    whole, part = divmod(int(balls), BALLS_PER_OVER)
    return round(whole + part / 10.0, 1)


def balls_in_current_over(overs: OversLike) -> int:
    """Legal balls bowled in the over in progress (the digit after the point)."""
    return overs_to_balls(overs) % BALLS_PER_OVER


def add_overs(a: OversLike, b: OversLike) -> float:
    """
    Adds two overs values through ball counts, so 10.4 + 0.3 = 11.1 (not 10.7).
    """
    return balls_to_overs(overs_to_balls(a) + overs_to_balls(b))


def subtract_ball(overs: OversLike) -> float:
    """One legal ball backwards: 11.0 -> 10.5, 10.3 -> 10.2."""
    balls = overs_to_balls(overs)
    if balls <= 0:
        raise ValueError("Cannot subtract a ball from 0.0 overs")
    return balls_to_overs(balls - 1)


def format_overs(overs: OversLike) -> str:
    balls = overs_to_balls(overs)
    return f"{balls // BALLS_PER_OVER}.{balls % BALLS_PER_OVER}"
