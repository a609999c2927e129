"""Tests for the difficulty adjuster."""

import itertools

import pytest

from diagnostic.config import MIN_LEVEL, MAX_LEVEL, DEFAULT_LEVEL
from diagnostic.services.difficulty import (
    next_difficulty, starting_level, difficulty_label, label_to_level, clamp_level
)


class TestMicroAdaptation:
    def test_correct_steps_up(self):
        assert next_difficulty(3, True) == 4

    def test_incorrect_steps_down(self):
        assert next_difficulty(3, False) == 2

    def test_clamped_at_max(self):
        assert next_difficulty(5, True) == 5

    def test_clamped_at_min(self):
        assert next_difficulty(1, False) == 1

    def test_out_of_range_prior_is_clamped_first(self):
        assert next_difficulty(9, False) == 4
        assert next_difficulty(-3, True) == 2

    def test_signal_beats_prior_score(self):
        assert next_difficulty(2, True, prior_score=95) == 3

    def test_bounded_over_every_short_sequence(self):
        for outcomes in itertools.product([True, False], repeat=8):
            level = DEFAULT_LEVEL
            for correct in outcomes:
                level = next_difficulty(level, correct)
                assert MIN_LEVEL <= level <= MAX_LEVEL


class TestStartingLevel:
    @pytest.mark.parametrize("score,expected", [
        (0, 2), (39, 2), (40, 3), (69, 3), (70, 4), (100, 4),
    ])
    def test_score_bands(self, score, expected):
        assert next_difficulty(prior_score=score) == expected

    def test_monotonic(self):
        levels = [starting_level(s) for s in range(0, 101)]
        assert levels == sorted(levels)

    def test_cold_start_is_default(self):
        assert next_difficulty() == DEFAULT_LEVEL

    def test_partial_signal_falls_through(self):
        assert next_difficulty(prior_difficulty=5) == DEFAULT_LEVEL
        assert next_difficulty(was_correct=True, prior_score=10) == 2


class TestLabels:
    @pytest.mark.parametrize("level,label", [
        (1, "easy"), (2, "easy"), (3, "medium"), (4, "medium"), (5, "hard"),
    ])
    def test_difficulty_label(self, level, label):
        assert difficulty_label(level) == label

    def test_label_to_level(self):
        assert label_to_level("easy") == 2
        assert label_to_level("medium") == 3
        assert label_to_level("hard") == 4
        assert label_to_level("unknown") == DEFAULT_LEVEL

    def test_clamp_level(self):
        assert clamp_level(0) == MIN_LEVEL
        assert clamp_level(6) == MAX_LEVEL
        assert clamp_level(3) == 3
