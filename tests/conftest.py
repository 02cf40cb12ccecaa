"""
Pytest fixtures for the scorer tests.
Two 11-player sides with readable ids: "tt1".."tt11" (Tech Titans) and "aa1".."aa11" (Aqua Avengers).
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from scorer_api import cache, match_engine
from scorer_api.models import BallEvent, Player, Team, TournamentState


def _team(team_id, name, group, prefix):
    team = Team(id=team_id, name=name, group=group)
    team.players = [
        Player(id=f"{prefix}{i}", name=f"{name} Player{i}", team_id=team_id)
        for i in range(1, 12)
    ]
    return team


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def state():
    return TournamentState(teams=[
        _team("tt", "Tech Titans", "A", "tt"),
        _team("aa", "Aqua Avengers", "A", "aa"),
    ])


@pytest.fixture
def players(state):
    """All players of both sides keyed by id."""
    return {p.id: p for t in state.teams for p in t.players}


@pytest.fixture
def make_match(state):
    """Creates a match where Tech Titans bat first, opening with tt1/tt2 against aa1."""
    def _make(total_overs=2, knockout_stage=None):
        match = match_engine.create_match(state, "tt", "aa", total_overs, knockout_stage).match
        match_engine.record_toss(state, match.id, "tt", "bat")
        match_engine.start_innings(state, match.id, "tt1", "tt2", "aa1")
        return match.id
    return _make


@pytest.fixture
def bowl(state):
    """
    Records a delivery for the current striker/bowler of a match.
    Extra keyword arguments go to BallEvent; next_batter_id goes to record_ball.
    """
    def _bowl(match_id, runs=0, next_batter_id=None, **kwargs):
        innings = state.find_match(match_id).current_innings
        extra_type = kwargs.get("extra_type")
        kwargs.setdefault("is_valid_ball", extra_type not in ("wide", "no-ball"))
        ball = BallEvent(
            batter_id=innings.striker_id,
            bowler_id=innings.current_bowler_id,
            runs_scored=runs,
            **kwargs,
        )
        return match_engine.record_ball(state, match_id, ball, next_batter_id)
    return _bowl


@pytest.fixture
def bowl_over(state, bowl):
    """Six legal deliveries of the given runs each, then a new bowler."""
    def _over(match_id, runs=0, next_bowler=None):
        outcome = None
        for _ in range(6):
            outcome = bowl(match_id, runs)
            if state.find_match(match_id).status != "live":
                return outcome
        if next_bowler:
            match_engine.set_next_bowler(state, match_id, next_bowler)
        return outcome
    return _over
