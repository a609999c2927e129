"""
PracticeSession model - targeted practice for one weak fundamental.

Sessions are generated after a diagnostic (or on demand) and hold the
question ids to practise plus the learner's answers, merged by question id
the same way diagnostic answers are.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, ForeignKey, Integer, String, Boolean, Index
from sqlalchemy.orm import relationship
from diagnostic.database import Base
from diagnostic.jsonutil import parse_json


class PracticeSession(Base):
    """SQLAlchemy model for the practice_sessions table."""
    __tablename__ = "practice_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique session identifier")
    learner_id = Column(String(128), ForeignKey("learners.id"), nullable=False,
                        doc="Learner the session was generated for")
    attempt_id = Column(String(36), ForeignKey("attempts.id"), nullable=True,
                        doc="Diagnostic attempt that triggered the session, if any")
    fundamental = Column(Text, nullable=False,
                         doc="Fundamental being practised")
    question_ids = Column(Text, nullable=False, default="[]",
                          doc="Question ids as a JSON list")
    answers = Column(Text, nullable=False, default="[]",
                     doc="Answer records as a JSON list")
    score = Column(Integer, nullable=True,
                   doc="Percentage of answers that are correct")
    completed = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    ended_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    learner = relationship("Learner", back_populates="practice_sessions")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_practice_sessions_learner_id", "learner_id"),
    )

    @property
    def question_ids_list(self):
        return parse_json(self.question_ids, [])

    @property
    def answers_list(self):
        return parse_json(self.answers, [])

    def __repr__(self):
        return f"<PracticeSession(id={self.id}, fundamental='{self.fundamental}', completed={self.completed})>"
