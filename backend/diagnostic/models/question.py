"""
Question model - a multiple-choice assessment item.

Questions are maintained by the content pipeline (see routes/ingest.py) and
are read-only to the diagnostic engine.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Text, Integer, DateTime, String, Index
from diagnostic.database import Base
from diagnostic.jsonutil import parse_json


class Question(Base):
    """
    SQLAlchemy model for the questions table.

    ``options`` is a JSON list of strings and ``fundamentals`` a JSON map of
    fundamental -> positive weight, e.g. {"listening": 3, "retention": 1}.
    The heaviest fundamental is the question's primary classification.
    """
    __tablename__ = "questions"

    id = Column(String(128), primary_key=True,
                doc="Question identifier from the content source")
    text = Column(Text, nullable=False,
                  doc="Question prompt shown to the learner")
    difficulty = Column(Integer, nullable=False, default=3,
                        doc="Ordinal difficulty 1..5")
    options = Column(Text, nullable=False, default="[]",
                     doc="Answer options as a JSON list")
    correct_choice = Column(Integer, nullable=True,
                            doc="Index of the correct option; never sent to clients")
    explanation = Column(Text, nullable=True,
                         doc="Explanation shown after answering")
    fundamentals = Column(Text, nullable=False, default="{}",
                          doc="Fundamental weights as JSON")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when question was first ingested")

    __table_args__ = (
        Index("ix_questions_difficulty", "difficulty"),
    )

    @property
    def options_list(self):
        return parse_json(self.options, [])

    @property
    def fundamentals_dict(self):
        return parse_json(self.fundamentals, {})

    def __repr__(self):
        return f"<Question(id={self.id}, difficulty={self.difficulty})>"
