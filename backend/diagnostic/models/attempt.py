"""
Attempt model - one diagnostic run for one learner.

The attempt row is the document the engine mutates on every answer:
- the ordered answer records as JSON (one per question id)
- the aggregates recomputed from those answers
- the completion marker, after which the document is frozen
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from diagnostic.database import Base
from diagnostic.jsonutil import parse_json

STATUS_OPEN = "OPEN"
STATUS_COMPLETED = "COMPLETED"


class Attempt(Base):
    """
    SQLAlchemy model for the attempts table.

    Statuses:
    - OPEN: accepting answers
    - COMPLETED: terminal; aggregates and weak fundamentals are final

    ``version`` is SQLAlchemy's optimistic-concurrency counter. Every UPDATE
    is issued as ``... WHERE version = <loaded version>``, so a writer that
    lost a race fails instead of overwriting the winner's answers.
    """
    __tablename__ = "attempts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique attempt identifier")
    learner_id = Column(String(128), ForeignKey("learners.id"), nullable=False,
                        doc="Learner taking the diagnostic")
    status = Column(Text, nullable=False, default=STATUS_OPEN,
                    doc="OPEN | COMPLETED")
    started_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        doc="When the attempt was started")
    completed_at = Column(DateTime, nullable=True,
                          doc="When the attempt was completed (NULL while open)")
    answers = Column(Text, nullable=False, default="[]",
                     doc="Answer records as a JSON list, in arrival order")
    expected_question_count = Column(Integer, nullable=True,
                                     doc="Auto-complete once this many distinct questions are answered")
    last_served_question_id = Column(String(128), nullable=True,
                                     doc="Question most recently handed to the client")
    prior_score = Column(Integer, nullable=True,
                         doc="Learner's overall score when the attempt started")
    aggregates = Column(Text, nullable=False, default="{}",
                        doc="Per-fundamental percentages as JSON")
    overall_score = Column(Integer, nullable=False, default=0,
                           doc="Mean of the four fundamental percentages")
    weak_fundamentals = Column(Text, nullable=False, default="[]",
                               doc="Fundamentals below the weak threshold at completion")
    version = Column(Integer, nullable=False, default=1)

    learner = relationship("Learner", back_populates="attempts")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_attempts_learner_id", "learner_id"),
        Index("ix_attempts_started_at", "started_at"),
    )

    @property
    def answers_list(self):
        return parse_json(self.answers, [])

    @property
    def aggregates_dict(self):
        return parse_json(self.aggregates, {})

    @property
    def weak_fundamentals_list(self):
        return parse_json(self.weak_fundamentals, [])

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def answered_ids(self) -> set:
        return {a["question_id"] for a in self.answers_list}

    @property
    def answer_count(self) -> int:
        """Number of distinct questions answered."""
        return len(self.answered_ids)

    def __repr__(self):
        return f"<Attempt(id={self.id}, learner={self.learner_id}, status='{self.status}')>"
