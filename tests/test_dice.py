"""Tests for rpg_adventure.dice — modifiers and d20 check resolution."""

import random

import pytest

from conftest import FixedRolls
from rpg_adventure.dice import modifier, resolve


class TestModifier:
    @pytest.mark.parametrize("score, expected", [
        (1, -5), (3, -4), (8, -1), (9, -1), (10, 0), (11, 0),
        (12, 1), (15, 2), (16, 3), (18, 4), (20, 5),
    ])
    def test_floor_of_half_distance_from_ten(self, score: int, expected: int) -> None:
        assert modifier(score) == expected

    def test_odd_scores_below_ten_round_down(self) -> None:
        # floor, not truncation toward zero
        assert modifier(7) == -2


class TestResolve:
    def test_success_when_total_meets_dc(self) -> None:
        result = resolve(16, 15, FixedRolls(12))
        assert result.roll == 12
        assert result.modifier == 3
        assert result.total == 15
        assert result.outcome == "success"

    def test_fail_when_total_below_dc(self) -> None:
        result = resolve(16, 15, FixedRolls(11))
        assert result.total == 14
        assert result.outcome == "fail"

    def test_negative_modifier_applied(self) -> None:
        result = resolve(8, 10, FixedRolls(10))
        assert result.modifier == -1
        assert result.total == 9
        assert result.outcome == "fail"

    def test_outcome_matches_rule_for_every_roll(self) -> None:
        for roll in range(1, 21):
            for score in (3, 10, 18):
                for dc in (5, 12, 20):
                    result = resolve(score, dc, FixedRolls(roll))
                    expected = "success" if roll + modifier(score) >= dc else "fail"
                    assert result.outcome == expected

    def test_roll_is_within_d20_range(self) -> None:
        rng = random.Random(7)
        rolls = {resolve(10, 10, rng).roll for _ in range(500)}
        assert rolls <= set(range(1, 21))
        assert 1 in rolls and 20 in rolls

    def test_seeded_rng_is_deterministic(self) -> None:
        first = [resolve(12, 11, random.Random(42)) for _ in range(3)]
        second = [resolve(12, 11, random.Random(42)) for _ in range(3)]
        assert first == second

    def test_one_draw_per_call(self) -> None:
        rolls = FixedRolls(3, 17)
        assert resolve(10, 10, rolls).roll == 3
        assert resolve(10, 10, rolls).roll == 17
        assert rolls.rolls == []
