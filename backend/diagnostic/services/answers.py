"""
Answer records: validation, grading and merging.

A record snapshots what the question looked like when it was answered
(difficulty and fundamental weights) and whether the answer was correct at
that moment. Later edits to the question never change a stored record.
"""

from datetime import datetime, timezone

from diagnostic.config import SKIPPED_CHOICE
from diagnostic.errors import InvalidInputError
from diagnostic.models.question import Question


def validate_choice(question: Question, chosen_index: int):
    """Reject a chosen index that is neither the skip marker nor a valid option index."""
    if chosen_index == SKIPPED_CHOICE:
        return
    option_count = len(question.options_list)
    if not isinstance(chosen_index, int) or isinstance(chosen_index, bool) \
            or not 0 <= chosen_index < option_count:
        raise InvalidInputError(
            "chosen_index {} is out of bounds for question {} with {} options".format(
                chosen_index, question.id, option_count),
            context={"question_id": question.id}
        )


def build_answer_record(question: Question, chosen_index: int) -> dict:
    """Validate and grade an answer, returning the record to store."""
    validate_choice(question, chosen_index)
    correct = (
        chosen_index != SKIPPED_CHOICE
        and question.correct_choice is not None
        and chosen_index == question.correct_choice
    )
    return {
        "question_id": question.id,
        "chosen_index": chosen_index,
        "correct": correct,
        "difficulty": question.difficulty,
        "fundamentals": question.fundamentals_dict,
        "answered_at": datetime.now(timezone.utc).isoformat(),
    }


def merge_answer(answers: list, record: dict) -> list:
    """
    Insert ``record`` or replace the existing record for the same question.

    A replaced record keeps its position, so the list stays in order of
    first arrival and holds at most one record per question id.
    """
    merged = []
    replaced = False
    for existing in answers:
        if existing["question_id"] == record["question_id"]:
            merged.append(record)
            replaced = True
        else:
            merged.append(existing)
    if not replaced:
        merged.append(record)
    return merged


def latest_answer(answers: list):
    """Most recently submitted record, or None."""
    if not answers:
        return None
    return max(answers, key=lambda a: a.get("answered_at") or "")
