"""Tests for answer grading and merging."""

import pytest

from diagnostic.errors import InvalidInputError
from diagnostic.jsonutil import dump_json
from diagnostic.models.question import Question
from diagnostic.services.answers import build_answer_record, merge_answer, latest_answer


def make_question(options=("a", "b", "c"), correct_choice=1):
    return Question(id="q1", text="?", difficulty=2, options=dump_json(list(options)),
                    correct_choice=correct_choice, fundamentals=dump_json({"retention": 1}))


class TestBuildAnswerRecord:
    def test_grades_against_correct_choice(self):
        assert build_answer_record(make_question(), 1)["correct"] is True
        assert build_answer_record(make_question(), 0)["correct"] is False

    def test_skip_never_correct(self):
        record = build_answer_record(make_question(correct_choice=None), -1)
        assert record["correct"] is False

    def test_question_without_options_accepts_only_skip(self):
        question = make_question(options=(), correct_choice=None)
        assert build_answer_record(question, -1)["chosen_index"] == -1
        with pytest.raises(InvalidInputError):
            build_answer_record(question, 0)

    def test_bool_is_not_an_index(self):
        with pytest.raises(InvalidInputError):
            build_answer_record(make_question(), True)


class TestMergeAnswer:
    def test_appends_new_question(self):
        merged = merge_answer([{"question_id": "a"}], {"question_id": "b"})
        assert [r["question_id"] for r in merged] == ["a", "b"]

    def test_replaces_in_place(self):
        answers = [{"question_id": "a", "chosen_index": 0}, {"question_id": "b", "chosen_index": 0}]
        merged = merge_answer(answers, {"question_id": "a", "chosen_index": 2})
        assert merged == [{"question_id": "a", "chosen_index": 2}, {"question_id": "b", "chosen_index": 0}]
        assert answers[0]["chosen_index"] == 0


class TestLatestAnswer:
    def test_by_timestamp_not_position(self):
        answers = [
            {"question_id": "a", "answered_at": "2026-01-01T10:05:00+00:00"},
            {"question_id": "b", "answered_at": "2026-01-01T10:01:00+00:00"},
        ]
        assert latest_answer(answers)["question_id"] == "a"

    def test_empty(self):
        assert latest_answer([]) is None
