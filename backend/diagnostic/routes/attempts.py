"""
Diagnostic API routes - the adaptive test lifecycle.

Provides endpoints for:
- Starting an attempt
- Fetching an attempt, or a learner's latest attempt
- Serving the next question
- Submitting answers
- Completing an attempt (optionally generating practice sessions)
"""

import time
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from diagnostic.config import SKIPPED_CHOICE
from diagnostic.database import get_db
from diagnostic.models.attempt import Attempt
from diagnostic.routes.practice import serialize_session
from diagnostic.services import diagnostic as diagnostic_service
from diagnostic.services.question_store import client_question
from diagnostic.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class StartAttemptRequest(BaseModel):
    """Schema for starting a diagnostic attempt."""
    learner_id: str = Field(..., min_length=1, description="Learner identifier from the auth provider")
    expected_question_count: Optional[int] = Field(None, ge=1, description="Auto-complete after this many answers")
    full_name: Optional[str] = Field(None, description="Learner display name")
    email: Optional[str] = Field(None, description="Learner email")


class NextQuestionRequest(BaseModel):
    """Schema for requesting the next question."""
    prior_difficulty: Optional[int] = Field(None, description="Difficulty of the previous question")
    was_correct: Optional[bool] = Field(None, description="Whether the previous answer was correct")
    excluded_ids: List[str] = Field(default_factory=list, description="Question ids the client has already seen")


class SubmitAnswerRequest(BaseModel):
    """Schema for submitting one answer."""
    question_id: str = Field(..., min_length=1)
    chosen_index: int = Field(..., ge=SKIPPED_CHOICE, description="Option index, or -1 for timed out / skipped")


class CompleteAttemptRequest(BaseModel):
    """Schema for completing an attempt."""
    generate_practice: bool = Field(True, description="Create practice sessions for weak fundamentals; false opts out")


def serialize_attempt(attempt: Attempt) -> dict:
    """Serialize an Attempt ORM object to a dict for API response."""
    return {
        "id": str(attempt.id),
        "learner_id": attempt.learner_id,
        "status": attempt.status,
        "started_at": attempt.started_at.isoformat() if attempt.started_at else None,
        "completed_at": attempt.completed_at.isoformat() if attempt.completed_at else None,
        "answers": attempt.answers_list,
        "answer_count": attempt.answer_count,
        "expected_question_count": attempt.expected_question_count,
        "last_served_question_id": attempt.last_served_question_id,
        "prior_score": attempt.prior_score,
        "aggregates": attempt.aggregates_dict,
        "overall_score": attempt.overall_score,
        "weak_fundamentals": attempt.weak_fundamentals_list,
    }


@router.post("/api/diagnostic/attempts", status_code=201)
def start_attempt(request: StartAttemptRequest, db: Session = Depends(get_db)):
    """Start a new diagnostic attempt for a learner."""
    attempt = diagnostic_service.start_attempt(
        db, request.learner_id,
        expected_question_count=request.expected_question_count,
        full_name=request.full_name,
        email=request.email
    )
    return {"attempt": serialize_attempt(attempt)}


@router.get("/api/diagnostic/attempts/latest")
def get_latest_attempt(
    learner_id: str = Query(..., min_length=1, description="Learner to look up"),
    db: Session = Depends(get_db)
):
    """Latest diagnostic attempt of a learner; ``attempt`` is null when there is none."""
    attempt = diagnostic_service.latest_attempt(db, learner_id)
    if not attempt:
        return {"attempt": None, "message": "No diagnostic attempts found for this learner"}
    return {"attempt": serialize_attempt(attempt)}


@router.get("/api/diagnostic/attempts/{attempt_id}")
def get_attempt(attempt_id: str, db: Session = Depends(get_db)):
    """Get a diagnostic attempt with its answers and scores."""
    return {"attempt": serialize_attempt(diagnostic_service.get_attempt(db, attempt_id))}


@router.post("/api/diagnostic/attempts/{attempt_id}/next-question")
def next_question(attempt_id: str, request: NextQuestionRequest, db: Session = Depends(get_db)):
    """
    Serve the next question of an attempt.

    An exhausted question bank is not an error: the response carries
    ``"question": null``.
    """
    start_time = time.time()
    question, target = diagnostic_service.next_question(
        db, attempt_id,
        prior_difficulty=request.prior_difficulty,
        was_correct=request.was_correct,
        excluded_ids=request.excluded_ids
    )

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Served question {} for attempt {}".format(question.id if question else None, attempt_id),
        context={"attempt_id": attempt_id},
        extra_data={"duration_ms": round(duration_ms, 2)})

    if question is None:
        return {
            "question": None,
            "target_difficulty": target,
            "message": "No suitable question available"
        }
    return {"question": client_question(question), "target_difficulty": target}


@router.post("/api/diagnostic/attempts/{attempt_id}/answers")
def submit_answer(attempt_id: str, request: SubmitAnswerRequest, db: Session = Depends(get_db)):
    """Submit (or revise) the answer to one question."""
    return diagnostic_service.submit_answer(db, attempt_id, request.question_id, request.chosen_index)


@router.post("/api/diagnostic/attempts/{attempt_id}/complete")
def complete_attempt(attempt_id: str, request: Optional[CompleteAttemptRequest] = None,
                     db: Session = Depends(get_db)):
    """
    Complete an attempt; repeated calls return the same scores.

    Practice sessions are generated for the weak fundamentals unless the
    body sets ``generate_practice`` to false.
    """
    request = request or CompleteAttemptRequest()
    result = diagnostic_service.complete_attempt(
        db, attempt_id, generate_practice=request.generate_practice
    )
    result["practice_sessions"] = [serialize_session(s) for s in result["practice_sessions"]]
    return result
