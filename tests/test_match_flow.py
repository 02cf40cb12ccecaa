"""Tests for the match lifecycle: toss, innings, results, undo across phases."""

import copy

import pytest

from scorer_api import match_engine
from scorer_api.errors import InvalidBallError, InvalidTransitionError, NotFoundError
from scorer_api.models import BallEvent
from scorer_api.phases import SecondInnings, match_phase
from scorer_api.tournament import standings


def _rows(state):
    return {r["team_id"]: r for r in standings(state)}


def _kinds(outcome):
    return [e.kind for e in outcome.events]


@pytest.fixture
def first_innings_of_12(state, make_match, bowl_over):
    """Tech Titans make 12/0 in 2 overs; returns the match id at the innings break."""
    mid = make_match(total_overs=2)
    bowl_over(mid, 1, "aa2")
    bowl_over(mid, 1)
    return mid


@pytest.fixture
def chasing(state, first_innings_of_12):
    mid = first_innings_of_12
    match_engine.start_innings(state, mid, "aa1", "aa2", "tt1")
    return mid


class TestSetup:

    def test_create_match_defaults(self, state):
        match = match_engine.create_match(state, "tt", "aa", 5).match
        assert match.status == "toss"
        assert match.group_stage is True
        assert state.find_match(match.id) is match

    def test_create_match_rejects_same_team(self, state):
        with pytest.raises(InvalidTransitionError):
            match_engine.create_match(state, "tt", "tt", 5)

    def test_unknown_team_or_match(self, state):
        with pytest.raises(NotFoundError):
            match_engine.create_match(state, "tt", "zz", 5)
        with pytest.raises(NotFoundError):
            match_engine.get_match(state, "nope")

    def test_toss_only_once(self, state):
        mid = match_engine.create_match(state, "tt", "aa", 5).match.id
        match_engine.record_toss(state, mid, "aa", "bowl")
        with pytest.raises(InvalidTransitionError):
            match_engine.record_toss(state, mid, "aa", "bat")

    def test_toss_winner_bowling_puts_other_side_in(self, state):
        mid = match_engine.create_match(state, "tt", "aa", 5).match.id
        match_engine.record_toss(state, mid, "aa", "bowl")
        assert match_engine.batting_first(state.find_match(mid)) == "tt"

    def test_innings_needs_toss(self, state):
        mid = match_engine.create_match(state, "tt", "aa", 5).match.id
        with pytest.raises(InvalidTransitionError):
            match_engine.start_innings(state, mid, "tt1", "tt2", "aa1")

    def test_innings_rejects_players_from_wrong_side(self, state):
        mid = match_engine.create_match(state, "tt", "aa", 5).match.id
        match_engine.record_toss(state, mid, "tt", "bat")
        with pytest.raises(InvalidBallError):
            match_engine.start_innings(state, mid, "tt1", "aa2", "aa1")
        with pytest.raises(InvalidBallError):
            match_engine.start_innings(state, mid, "tt1", "tt1", "aa1")

    def test_start_innings_goes_live(self, state, make_match):
        mid = make_match()
        match = state.find_match(mid)
        assert match.status == "live"
        assert match.innings1.batting_team_id == "tt"
        assert match.innings1.batting_order == ["tt1", "tt2"]


class TestLivePlay:

    def test_over_completion_waits_for_new_bowler(self, state, make_match, bowl):
        mid = make_match()
        for _ in range(5):
            bowl(mid)
        outcome = bowl(mid)
        assert "over_completed" in _kinds(outcome)
        assert state.find_match(mid).play_status == "waiting_for_bowler"

        with pytest.raises(InvalidTransitionError):
            bowl(mid)

        match_engine.set_next_bowler(state, mid, "aa2")
        match = state.find_match(mid)
        assert match.play_status == "active"
        assert match.current_innings.current_bowler_id == "aa2"
        bowl(mid)
        assert state.find_match(mid).innings1.overs == 1.1

    def test_wicket_without_replacement_blocks_next_ball(self, state, make_match, bowl):
        mid = make_match()
        outcome = bowl(mid, is_wicket=True, wicket_type="caught", wicket_player_id="tt1")
        assert "wicket" in _kinds(outcome)

        with pytest.raises(InvalidTransitionError):
            bowl(mid)

        match_engine.seat_next_batter(state, mid, "tt3")
        assert state.find_match(mid).current_innings.striker_id == "tt3"
        bowl(mid, 4)
        assert state.find_player("tt3").stats.runs == 4

    def test_player_figures_reach_the_roster(self, state, make_match, bowl):
        mid = make_match()
        bowl(mid, 4)
        bowl(mid, extras=1, extra_type="wide")
        assert state.find_player("tt1").stats.runs == 4
        assert state.find_player("tt1").stats.fours == 1
        assert state.find_player("aa1").stats.runs_conceded == 5
        assert state.find_player("aa1").stats.overs_bowled == 0.1

    def test_manual_swap_strike(self, state, make_match):
        mid = make_match()
        match_engine.swap_strike(state, mid)
        assert state.find_match(mid).current_innings.striker_id == "tt2"

    def test_failed_ball_changes_nothing(self, state, make_match, bowl):
        mid = make_match()
        bowl(mid, 2)
        before_match = copy.deepcopy(state.find_match(mid))
        before_players = copy.deepcopy(state.teams)

        bad = BallEvent(batter_id="tt1", bowler_id="aa2", runs_scored=4)
        with pytest.raises(InvalidBallError):
            match_engine.record_ball(state, mid, bad)

        assert state.find_match(mid) == before_match
        assert state.teams == before_players

    def test_no_balls_before_innings(self, state):
        mid = match_engine.create_match(state, "tt", "aa", 5).match.id
        with pytest.raises(InvalidTransitionError):
            match_engine.record_ball(state, mid, BallEvent(batter_id="tt1", bowler_id="aa1"))


class TestInningsBreak:

    def test_first_innings_ends_on_overs(self, state, first_innings_of_12):
        match = state.find_match(first_innings_of_12)
        assert match.status == "innings_break"
        assert match.play_status == "active"
        assert match.innings1.score_line == "12/0"
        assert match.target == 13

    def test_innings_ended_event_carries_target(self, state, make_match, bowl_over):
        mid = make_match(total_overs=1)
        outcome = bowl_over(mid, 2)
        ended = [e for e in outcome.events if e.kind == "innings_ended"]
        assert ended and ended[0].data["target"] == 13

    def test_second_innings_swaps_sides(self, state, chasing):
        match = state.find_match(chasing)
        phase = match_phase(match)
        assert isinstance(phase, SecondInnings)
        assert phase.target == 13
        assert match.innings2.batting_team_id == "aa"
        assert match.innings2.bowling_team_id == "tt"

    def test_second_innings_rejects_players_from_batting_first_side(self, state, first_innings_of_12):
        with pytest.raises(InvalidBallError):
            match_engine.start_innings(state, first_innings_of_12, "tt1", "tt2", "aa1")

    def test_undo_reopens_innings_break(self, state, first_innings_of_12):
        outcome = match_engine.undo_last_ball(state, first_innings_of_12)
        assert "match_reopened" in _kinds(outcome)

        match = state.find_match(first_innings_of_12)
        assert match.status == "live"
        assert match.play_status == "active"
        assert match.innings1.overs == 1.5
        assert match.innings1.total_runs == 11
        assert match.current_innings.current_bowler_id == "aa2"


class TestResults:

    def test_chase_wins_by_wickets(self, state, chasing, bowl):
        bowl(chasing, 6)
        bowl(chasing, 6)
        outcome = bowl(chasing, 1)

        match = state.find_match(chasing)
        assert match.status == "completed"
        assert match.winner_id == "aa"
        assert match.result_message == "Aqua Avengers won by 10 wickets"
        assert match.man_of_the_match_id is not None
        assert "match_completed" in _kinds(outcome)
        assert "standings_updated" in _kinds(outcome)

        rows = _rows(state)
        assert (rows["aa"]["won"], rows["aa"]["points"]) == (1, 10)
        assert (rows["tt"]["lost"], rows["tt"]["points"]) == (1, 0)

    def test_defence_wins_by_runs(self, state, chasing, bowl_over):
        bowl_over(chasing, 0, "tt2")
        bowl_over(chasing, 0)

        match = state.find_match(chasing)
        assert match.status == "completed"
        assert match.winner_id == "tt"
        assert match.result_message == "Tech Titans won by 12 runs"

    def test_equal_scores_tie(self, state, chasing, bowl_over):
        bowl_over(chasing, 1, "tt2")
        bowl_over(chasing, 1)

        match = state.find_match(chasing)
        assert match.winner_id is None
        assert match.result_message == "Match Tied"
        rows = _rows(state)
        assert rows["tt"]["tied"] == rows["aa"]["tied"] == 1
        assert rows["tt"]["points"] == rows["aa"]["points"] == 5

    def test_wicket_margin_counts_wickets_in_hand(self, state, chasing, bowl):
        bowl(chasing, is_wicket=True, wicket_type="bowled", wicket_player_id="aa1", next_batter_id="aa3")
        bowl(chasing, 6)
        bowl(chasing, 6)
        bowl(chasing, 1)

        match = state.find_match(chasing)
        assert match.winner_id == "aa"
        assert match.result_message == "Aqua Avengers won by 9 wickets"

    def test_semi_final_points(self, state, make_match, bowl_over):
        mid = make_match(total_overs=1, knockout_stage="SF1")
        bowl_over(mid, 1)
        match_engine.start_innings(state, mid, "aa1", "aa2", "tt1")
        bowl_over(mid, 0)

        rows = _rows(state)
        assert rows["tt"]["points"] == 8
        assert rows["aa"]["points"] == 3

    def test_undo_reopens_completed_match_and_standings(self, state, chasing, bowl):
        bowl(chasing, 6)
        bowl(chasing, 6)
        bowl(chasing, 1)

        outcome = match_engine.undo_last_ball(state, chasing)
        kinds = _kinds(outcome)
        assert "match_reopened" in kinds and "standings_updated" in kinds

        match = state.find_match(chasing)
        assert match.status == "live"
        assert match.winner_id is None
        assert match.result_message is None
        assert match.man_of_the_match_id is None
        assert _rows(state)["aa"]["played"] == 0

        bowl(chasing, 1)
        rows = _rows(state)
        assert rows["aa"]["played"] == 1
        assert rows["aa"]["points"] == 10

    def test_undo_with_nothing_bowled_is_noop(self, state, make_match):
        mid = make_match()
        before = copy.deepcopy(state.find_match(mid))
        outcome = match_engine.undo_last_ball(state, mid)
        assert outcome.changed is False
        assert state.find_match(mid) == before


class TestEndAndAbandon:

    def test_end_match_during_second_innings(self, state, chasing, bowl):
        bowl(chasing, 4)
        match_engine.end_match(state, chasing)
        match = state.find_match(chasing)
        assert match.status == "completed"
        assert match.winner_id == "tt"
        assert match.result_message == "Tech Titans won by 8 runs"

    def test_end_match_in_first_innings(self, state, make_match, bowl):
        mid = make_match()
        bowl(mid, 4)
        match_engine.end_match(state, mid)
        match = state.find_match(mid)
        assert match.status == "completed"
        assert match.result_message == "Match ended"
        assert match.man_of_the_match_id is None
        assert _rows(state)["tt"]["played"] == 0

    def test_end_match_requires_started_match(self, state):
        mid = match_engine.create_match(state, "tt", "aa", 5).match.id
        with pytest.raises(InvalidTransitionError):
            match_engine.end_match(state, mid)

    def test_abandon_scores_no_result(self, state, make_match):
        mid = make_match()
        match_engine.abandon_match(state, mid)
        match = state.find_match(mid)
        assert match.status == "abandoned"
        assert match.result_message == "Match abandoned"

        rows = _rows(state)
        assert rows["tt"]["nr"] == rows["aa"]["nr"] == 1
        assert rows["tt"]["points"] == 5

    def test_abandoned_match_is_final(self, state, make_match):
        mid = make_match()
        match_engine.abandon_match(state, mid)
        with pytest.raises(InvalidTransitionError):
            match_engine.abandon_match(state, mid)
        with pytest.raises(InvalidTransitionError):
            match_engine.undo_last_ball(state, mid)
