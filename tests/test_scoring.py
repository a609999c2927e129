"""Tests for the score aggregator and weak-area policy."""

import pytest

from diagnostic.services.policy import weak_fundamentals, should_auto_complete, mastery_level
from diagnostic.services.scoring import (
    aggregate, primary_fundamental, practice_score, profile_overall, round_half_up
)


def answer(qid, correct, fundamentals):
    return {"question_id": qid, "correct": correct, "fundamentals": fundamentals}


class TestPrimaryFundamental:
    def test_highest_weight(self):
        assert primary_fundamental({"listening": 1, "retention": 3}) == "retention"

    def test_tie_broken_alphabetically(self):
        assert primary_fundamental({"retention": 2, "grasping": 2}) == "grasping"
        assert primary_fundamental({"listening": 1, "application": 1}) == "application"

    def test_missing_or_unknown_weights(self):
        assert primary_fundamental({}) is None
        assert primary_fundamental(None) is None
        assert primary_fundamental({"speaking": 5}) is None
        assert primary_fundamental({"listening": 0}) is None


class TestAggregate:
    def test_scenario_listening_and_grasping(self):
        answers = [
            answer("q1", True, {"listening": 1}),
            answer("q2", False, {"grasping": 1}),
        ]
        per_fundamental, overall = aggregate(answers)
        assert per_fundamental == {"listening": 100, "grasping": 0, "retention": 0, "application": 0}
        assert overall == 25

    def test_empty_answers(self):
        per_fundamental, overall = aggregate([])
        assert per_fundamental == {"listening": 0, "grasping": 0, "retention": 0, "application": 0}
        assert overall == 0

    def test_rounds_half_up(self):
        answers = [answer(f"q{i}", i == 0, {"retention": 1}) for i in range(8)]
        per_fundamental, _ = aggregate(answers)
        assert per_fundamental["retention"] == 13

    def test_two_thirds(self):
        answers = [
            answer("q1", True, {"application": 1}),
            answer("q2", True, {"application": 1}),
            answer("q3", False, {"application": 1}),
        ]
        per_fundamental, overall = aggregate(answers)
        assert per_fundamental["application"] == 67
        assert overall == 17

    def test_unclassifiable_answer_ignored(self):
        per_fundamental, overall = aggregate([answer("q1", True, {})])
        assert set(per_fundamental.values()) == {0}
        assert overall == 0

    def test_idempotent(self):
        answers = [
            answer("q1", True, {"listening": 2, "grasping": 1}),
            answer("q2", False, {"grasping": 1}),
            answer("q3", True, {"retention": 1}),
        ]
        assert aggregate(answers) == aggregate(answers)
        assert len(answers) == 3

    def test_scores_within_bounds(self):
        answers = [answer(f"q{i}", i % 3 == 0, {"listening": 1}) for i in range(17)]
        per_fundamental, overall = aggregate(answers)
        for value in list(per_fundamental.values()) + [overall]:
            assert 0 <= value <= 100


class TestPracticeScore:
    def test_percentage(self):
        assert practice_score([{"correct": True}, {"correct": False}, {"correct": True}]) == 67

    def test_empty(self):
        assert practice_score([]) == 0

    def test_profile_overall_missing_as_zero(self):
        assert profile_overall({"listening": 80, "grasping": 60}) == 35

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(12.5) == 13
        assert round_half_up(12.4999) == 12


class TestWeakFundamentals:
    def test_scenario_threshold_70(self):
        scores = {"listening": 80, "grasping": 60, "retention": 50, "application": 90}
        assert set(weak_fundamentals(scores, threshold=70)) == {"grasping", "retention"}

    def test_threshold_is_strict(self):
        scores = {"listening": 70, "grasping": 70, "retention": 70, "application": 69}
        assert weak_fundamentals(scores, threshold=70) == ["application"]

    def test_unassessed_is_weak(self):
        assert weak_fundamentals({"listening": 100}, threshold=70) == ["grasping", "retention", "application"]

    def test_default_threshold(self):
        scores = {"listening": 69, "grasping": 70, "retention": 100, "application": 100}
        assert weak_fundamentals(scores) == ["listening"]


class TestCompletionPolicy:
    @pytest.mark.parametrize("count,expected,result", [
        (2, 3, False), (3, 3, True), (4, 3, True), (10, None, False),
    ])
    def test_should_auto_complete(self, count, expected, result):
        assert should_auto_complete(count, expected) is result

    def test_mastery_level(self):
        assert mastery_level(39) == "Beginner"
        assert mastery_level(40) == "Intermediate"
        assert mastery_level(70) == "Advanced"
