"""Tests for points, NRR aggregates and the sorted standings table."""

import pytest

from scorer_api.models import InningsState, Match, Team, TeamStats
from scorer_api.points_table import (
    POINTS_FINAL,
    POINTS_GROUP,
    apply_result,
    compute_sorted_table,
    innings_overs_for_nrr,
    knockout_points,
    points_for,
    recompute_standings,
)


def _innings(batting, bowling, runs, overs, wickets=0):
    return InningsState(
        batting_team_id=batting,
        bowling_team_id=bowling,
        striker_id=f"{batting}1",
        non_striker_id=f"{batting}2",
        current_bowler_id=f"{bowling}1",
        total_runs=runs,
        overs=overs,
        wickets=wickets,
    )


def _finished(first, second, runs1, overs1, runs2, overs2, winner, *, wickets1=0, knockout_stage=None, total_overs=20):
    return Match(
        team_a_id=first,
        team_b_id=second,
        total_overs=total_overs,
        group_stage=knockout_stage is None,
        knockout_stage=knockout_stage,
        status="completed",
        innings1=_innings(first, second, runs1, overs1, wickets1),
        innings2=_innings(second, first, runs2, overs2),
        winner_id=winner,
    )


@pytest.fixture
def teams():
    return [
        Team(id="a1", name="Alpha", group="A"),
        Team(id="a2", name="Bravo", group="A"),
        Team(id="a3", name="Charlie", group="A"),
        Team(id="b1", name="Delta", group="B"),
    ]


class TestApplyResult:

    def test_win(self):
        a, b = TeamStats(), TeamStats()
        apply_result(a, b, result="WIN", a_won=False)
        assert (a.played, a.lost, a.points) == (1, 1, 0)
        assert (b.played, b.won, b.points) == (1, 1, 10)

    def test_final_points(self):
        a, b = TeamStats(), TeamStats()
        apply_result(a, b, result="WIN", a_won=True, points=POINTS_FINAL)
        assert (a.points, b.points) == (10, 6)

    def test_tie_and_no_result(self):
        a, b = TeamStats(), TeamStats()
        apply_result(a, b, result="TIE")
        apply_result(a, b, result="NR")
        assert (a.tied, a.no_result, a.points) == (1, 1, 10)
        assert (b.tied, b.no_result, b.points) == (1, 1, 10)
        assert a.played == 2

    def test_win_needs_a_side(self):
        with pytest.raises(ValueError):
            apply_result(TeamStats(), TeamStats(), result="WIN")

    def test_unknown_result(self):
        with pytest.raises(ValueError):
            apply_result(TeamStats(), TeamStats(), result="DRAW")


class TestPoints:

    @pytest.mark.parametrize("stage, expected", [
        (None, POINTS_GROUP),
        ("SF1", (8, 3)),
        ("SF2", (8, 3)),
        ("FINAL", (10, 6)),
    ])
    def test_points_for_stage(self, stage, expected):
        match = Match(team_a_id="a", team_b_id="b", total_overs=10, knockout_stage=stage)
        assert points_for(match) == expected

    @pytest.mark.parametrize("stage, won, expected", [
        ("round_1", True, 6),
        ("round_1", False, 0),
        ("semi_final", True, 8),
        ("semi_final", False, 3),
        ("final", True, 10),
        ("final", False, 6),
    ])
    def test_knockout_points(self, stage, won, expected):
        assert knockout_points("chess", stage, won) == expected

    def test_knockout_points_rejects_cricket(self):
        with pytest.raises(ValueError):
            knockout_points("cricket", "final", True)


class TestInningsOversForNrr:

    def test_all_out_counts_full_allocation(self):
        innings = _innings("a1", "a2", 98, 15.2, wickets=10)
        assert innings_overs_for_nrr(innings, 20) == 20

    def test_otherwise_actual_overs(self):
        innings = _innings("a1", "a2", 98, 15.2, wickets=4)
        assert innings_overs_for_nrr(innings, 20) == 15.2


class TestRecomputeStandings:

    def test_aggregates_and_nrr(self, teams):
        matches = [_finished("a1", "a2", 160, 20.0, 150, 20.0, "a1")]
        applied = recompute_standings(teams, matches)
        assert applied == 1

        alpha = teams[0].stats
        assert (alpha.total_runs_scored, alpha.total_overs_faced) == (160, 20.0)
        assert (alpha.total_runs_conceded, alpha.total_overs_bowled) == (150, 20.0)
        assert alpha.nrr == 0.5
        assert teams[1].stats.nrr == -0.5

    def test_all_out_side_charged_full_overs(self, teams):
        matches = [_finished("a1", "a2", 90, 12.3, 91, 10.0, "a2", wickets1=10)]
        recompute_standings(teams, matches)
        assert teams[0].stats.total_overs_faced == 20.0
        assert teams[1].stats.total_overs_bowled == 20.0

    def test_recompute_counts_each_match_once(self, teams):
        matches = [_finished("a1", "a2", 160, 20.0, 150, 20.0, "a1")]
        recompute_standings(teams, matches)
        recompute_standings(teams, matches)
        assert teams[0].stats.played == 1
        assert teams[0].stats.points == 10

    def test_unfinished_matches_are_skipped(self, teams):
        live = _finished("a1", "a2", 50, 6.0, 10, 1.0, None)
        live.status = "live"
        assert recompute_standings(teams, [live]) == 0
        assert teams[0].stats == TeamStats()

    def test_abandoned_is_no_result(self, teams):
        match = Match(team_a_id="a1", team_b_id="a3", total_overs=20, status="abandoned")
        recompute_standings(teams, [match])
        assert teams[0].stats.no_result == 1
        assert teams[2].stats.points == 5
        assert teams[0].stats.total_overs_faced == 0.0


class TestSortedTable:

    def test_sorted_by_points_then_nrr(self, teams):
        matches = [
            _finished("a1", "a2", 160, 20.0, 150, 20.0, "a1"),
            _finished("a3", "a2", 200, 20.0, 100, 20.0, "a3"),
        ]
        recompute_standings(teams, matches)
        table = compute_sorted_table(teams, "A")

        assert [r["team_id"] for r in table] == ["a3", "a1", "a2"]
        assert [r["pos"] for r in table] == [1, 2, 3]
        assert table[0]["nrr"] == 5.0

    def test_group_filter(self, teams):
        assert [r["team_id"] for r in compute_sorted_table(teams, "B")] == ["b1"]
        assert len(compute_sorted_table(teams)) == 4

    def test_row_shape(self, teams):
        row = compute_sorted_table(teams, "B")[0]
        assert set(row) == {
            "pos", "team_id", "team", "group", "played", "won", "lost", "tied", "nr",
            "points", "nrr", "runs_for", "overs_for", "runs_against", "overs_against",
        }
