"""
Question Store Adapter - read-only access to the question bank.

Difficulty filtering runs in SQL. Fundamental filtering runs in Python
because the weights live in a JSON text column.
"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from diagnostic.config import MIN_LEVEL, MAX_LEVEL
from diagnostic.models.question import Question
from diagnostic.services.difficulty import difficulty_label
from diagnostic.services.scoring import primary_fundamental


class QuestionStore:
    """Lookups over the questions table for one database session."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, question_id: str) -> Optional[Question]:
        return self.db.query(Question).filter(Question.id == question_id).first()

    def get_many(self, question_ids: Iterable[str]) -> list:
        """Questions for ``question_ids`` in the given order; unknown ids are skipped."""
        question_ids = list(question_ids)
        if not question_ids:
            return []
        found = {
            q.id: q for q in
            self.db.query(Question).filter(Question.id.in_(question_ids)).all()
        }
        return [found[qid] for qid in question_ids if qid in found]

    def by_difficulty_range(self, low: int, high: int,
                            fundamental: Optional[str] = None) -> list:
        """Questions with ``low <= difficulty <= high`` (clamped), optionally by primary fundamental."""
        low, high = max(MIN_LEVEL, low), min(MAX_LEVEL, high)
        questions = self.db.query(Question).filter(
            Question.difficulty >= low,
            Question.difficulty <= high
        ).order_by(Question.difficulty, Question.id).all()
        if fundamental is None:
            return questions
        return [q for q in questions if primary_fundamental(q.fundamentals_dict) == fundamental]

    def all(self, fundamental: Optional[str] = None) -> list:
        return self.by_difficulty_range(MIN_LEVEL, MAX_LEVEL, fundamental)


def client_question(question: Question) -> dict:
    """Serialize a question for learners: the correct choice is never included."""
    fundamentals = question.fundamentals_dict
    return {
        "id": question.id,
        "text": question.text,
        "difficulty": question.difficulty,
        "difficulty_label": difficulty_label(question.difficulty),
        "options": question.options_list,
        "fundamentals": fundamentals,
        "primary_fundamental": primary_fundamental(fundamentals),
    }
