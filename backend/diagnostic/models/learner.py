"""
Learner model - a student taking diagnostics and practice sessions.

Identity comes from the external authentication layer, so learners are
keyed by that provider's id and created lazily on their first attempt.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, Integer, String
from sqlalchemy.orm import relationship
from diagnostic.database import Base
from diagnostic.jsonutil import parse_json


class Learner(Base):
    """
    SQLAlchemy model for the learners table.

    ``fundamental_scores`` holds the learner's latest profile as JSON
    ({fundamental: percentage}), refreshed when a diagnostic completes and
    blended after each completed practice session.
    """
    __tablename__ = "learners"

    id = Column(String(128), primary_key=True,
                doc="Learner identifier issued by the authentication provider")
    full_name = Column(Text, nullable=True,
                       doc="Display name, when known")
    email = Column(Text, nullable=True,
                   doc="Contact email, when known")
    fundamental_scores = Column(Text, nullable=False, default="{}",
                                doc="Latest per-fundamental percentages as JSON")
    overall_score = Column(Integer, nullable=True,
                           doc="Mean of fundamental_scores; NULL until first diagnostic completes")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when learner record was created")

    attempts = relationship("Attempt", back_populates="learner")
    practice_sessions = relationship("PracticeSession", back_populates="learner")

    @property
    def scores_dict(self):
        return parse_json(self.fundamental_scores, {})

    def __repr__(self):
        return f"<Learner(id={self.id}, overall={self.overall_score})>"
