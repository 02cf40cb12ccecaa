"""Tests for overs notation arithmetic."""

import itertools

import pytest

from scorer_api.overs import (
    add_overs,
    balls_in_current_over,
    balls_to_overs,
    format_overs,
    overs_to_balls,
    subtract_ball,
)


class TestOversToBalls:

    @pytest.mark.parametrize("overs,balls", [
        ("19.4", 118),
        ("20.0", 120),
        ("20", 120),
        (20, 120),
        (19.4, 118),
        (0.5, 5),
        ("7.", 42),
    ])
    def test_known_values(self, overs, balls):
        assert overs_to_balls(overs) == balls

    @pytest.mark.parametrize("overs", ["10.6", "10.9", 10.7, "-1.0", "", None])
    def test_rejects_invalid(self, overs):
        with pytest.raises(ValueError):
            overs_to_balls(overs)

    def test_balls_to_overs_never_shows_six(self):
        for balls in range(0, 200):
            digit = round(balls_to_overs(balls) * 10) % 10
            assert 0 <= digit <= 5

    def test_balls_to_overs_round_trip(self):
        for balls in range(0, 300):
            assert overs_to_balls(balls_to_overs(balls)) == balls


class TestAddOvers:

    def test_straddles_over_boundary(self):
        assert add_overs(10.4, 0.3) == 11.1

    def test_two_partial_overs(self):
        assert add_overs(4.5, 4.5) == 9.4

    def test_zero_is_identity(self):
        assert add_overs(0, 12.3) == 12.3

    def test_commutative_and_associative(self):
        samples = [0.0, 0.1, 0.5, 3.3, 10.4, 19.5]
        for a, b in itertools.product(samples, repeat=2):
            assert add_overs(a, b) == add_overs(b, a)
        for a, b, c in itertools.product(samples, repeat=3):
            assert add_overs(add_overs(a, b), c) == add_overs(a, add_overs(b, c))


class TestHelpers:

    def test_subtract_ball_crosses_boundary(self):
        assert subtract_ball(11.0) == 10.5
        assert subtract_ball(10.3) == 10.2

    def test_subtract_ball_from_zero(self):
        with pytest.raises(ValueError):
            subtract_ball(0.0)

    def test_balls_in_current_over(self):
        assert balls_in_current_over(4.2) == 2
        assert balls_in_current_over(5.0) == 0

    def test_format_overs(self):
        assert format_overs(9.4) == "9.4"
        assert format_overs(12) == "12.0"
