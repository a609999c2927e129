"""
Question ingestion API routes - the content pipeline's entry point.

This module implements:
- POST /api/ingest/questions: batch upsert of question records
- GET /api/questions/{id}: client-safe view of one question

Every record is validated on its own. A bad record is reported in the
summary and skipped; valid records in the same batch are still stored.
"""

import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from diagnostic.config import FUNDAMENTALS, MIN_LEVEL, MAX_LEVEL
from diagnostic.database import get_db
from diagnostic.errors import NotFoundError
from diagnostic.jsonutil import dump_json
from diagnostic.models.question import Question
from diagnostic.services.difficulty import LABEL_LEVELS, label_to_level
from diagnostic.services.question_store import QuestionStore, client_question
from diagnostic.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("ingest")


# ── Pydantic schemas ─────────────────────────────────────────

class QuestionRecord(BaseModel):
    """Schema for a single question in the ingestion payload."""
    id: str = Field(..., min_length=1, description="Question identifier from the content source")
    text: str = Field(..., description="Question prompt")
    difficulty: Union[int, str] = Field(..., description="Ordinal difficulty 1..5, or easy/medium/hard")
    options: List[str] = Field(default_factory=list, description="Answer options in display order")
    correct_choice: Optional[int] = Field(None, description="Index of the correct option")
    explanation: Optional[str] = Field(None, description="Explanation shown after answering")
    fundamentals: Dict[str, float] = Field(default_factory=dict, description="Fundamental -> weight")


class QuestionIngestionRequest(BaseModel):
    """Schema for batch ingestion request body."""
    questions: List[QuestionRecord]


class QuestionIngestionSummary(BaseModel):
    """Schema for ingestion response with processing stats."""
    total_received: int
    created: int
    updated: int
    errors: int
    details: list


def record_level(record: QuestionRecord) -> Optional[int]:
    """Numeric difficulty of a record; labels map to their representative level."""
    if isinstance(record.difficulty, str):
        label = record.difficulty.strip().lower()
        return label_to_level(label) if label in LABEL_LEVELS else None
    return record.difficulty


def validate_question(record: QuestionRecord) -> Optional[str]:
    """Return the first invariant the record violates, or None."""
    if not record.text.strip():
        return "text must not be empty"
    level = record_level(record)
    if level is None:
        return "unknown difficulty label {!r}".format(record.difficulty)
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        return "difficulty must be between {} and {}".format(MIN_LEVEL, MAX_LEVEL)
    if record.correct_choice is not None:
        if not record.options:
            return "correct_choice given but question has no options"
        if not 0 <= record.correct_choice < len(record.options):
            return "correct_choice {} is not a valid option index".format(record.correct_choice)
    if not record.fundamentals:
        return "at least one fundamental weight is required"
    unknown = [f for f in record.fundamentals if f not in FUNDAMENTALS]
    if unknown:
        return "unknown fundamentals: {}".format(", ".join(sorted(unknown)))
    if any(weight <= 0 for weight in record.fundamentals.values()):
        return "fundamental weights must be positive"
    return None


@router.post("/api/ingest/questions", response_model=QuestionIngestionSummary)
def ingest_questions(request: QuestionIngestionRequest, db: Session = Depends(get_db)):
    """
    Batch upsert questions.

    Processing pipeline for each record:
    1. Validate invariants (difficulty range, option index, fundamental weights)
    2. Update the stored question with the same id, or create it
    """
    start_time = time.time()

    total = len(request.questions)
    created = 0
    updated = 0
    errors = 0
    details = []

    log_with_context(logger, "INFO", "Starting ingestion of {} questions".format(total))

    for record in request.questions:
        problem = validate_question(record)
        if problem:
            errors += 1
            details.append({"question_id": record.id, "status": "ERROR", "reason": problem})
            log_with_context(logger, "WARNING", "Rejected question {}: {}".format(record.id, problem),
                             context={"question_id": record.id})
            continue

        question = db.query(Question).filter(Question.id == record.id).first()
        if question is None:
            question = Question(id=record.id, created_at=datetime.now(timezone.utc))
            db.add(question)
            created += 1
            status = "CREATED"
        else:
            updated += 1
            status = "UPDATED"

        question.text = record.text
        question.difficulty = record_level(record)
        question.options = dump_json(record.options)
        question.correct_choice = record.correct_choice
        question.explanation = record.explanation
        question.fundamentals = dump_json(record.fundamentals)
        db.flush()

        details.append({"question_id": record.id, "status": status})

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to commit question batch: {}".format(str(e)))
        raise HTTPException(status_code=500, detail="Database commit failed")

    duration_ms = (time.time() - start_time) * 1000

    log_with_context(logger, "INFO",
        "Ingestion complete: {} created, {} updated, {} errors".format(created, updated, errors),
        extra_data={"duration_ms": round(duration_ms, 2), "total_questions": total})

    return QuestionIngestionSummary(
        total_received=total,
        created=created,
        updated=updated,
        errors=errors,
        details=details
    )


@router.get("/api/questions/{question_id}")
def get_question(question_id: str, db: Session = Depends(get_db)):
    """A single question without its correct choice."""
    question = QuestionStore(db).get(question_id)
    if not question:
        raise NotFoundError("Question not found", context={"question_id": question_id})
    return {"question": client_question(question)}
