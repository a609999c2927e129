"""
Practice API routes - sessions generated for weak fundamentals.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from diagnostic.config import SKIPPED_CHOICE, PRACTICE_QUESTION_COUNT
from diagnostic.database import get_db
from diagnostic.models.practice_session import PracticeSession
from diagnostic.services import practice as practice_service
from diagnostic.services.question_store import QuestionStore, client_question

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class GeneratePracticeRequest(BaseModel):
    learner_id: str = Field(..., min_length=1)
    fundamentals: List[str] = Field(..., min_length=1, description="Fundamentals to practise")
    attempt_id: Optional[str] = Field(None, description="Diagnostic attempt that triggered the request")
    count: int = Field(PRACTICE_QUESTION_COUNT, ge=1, le=50, description="Questions per session")


class PracticeAnswer(BaseModel):
    question_id: str = Field(..., min_length=1)
    chosen_index: int = Field(..., ge=SKIPPED_CHOICE, description="Option index, or -1 for timed out / skipped")


class SavePracticeRequest(BaseModel):
    answers: List[PracticeAnswer] = Field(..., min_length=1)
    completed: Optional[bool] = None


def serialize_session(session: PracticeSession, questions: list = None) -> dict:
    """Serialize a PracticeSession; ``questions`` expands ids into client-safe questions."""
    return {
        "id": str(session.id),
        "learner_id": session.learner_id,
        "attempt_id": session.attempt_id,
        "fundamental": session.fundamental,
        "question_ids": session.question_ids_list,
        "questions": [client_question(q) for q in questions] if questions is not None else None,
        "answers": session.answers_list,
        "score": session.score,
        "completed": bool(session.completed),
        "progress": practice_service.session_progress(session),
        "started_at": session.started_at.isoformat() if session.started_at else None,
        "ended_at": session.ended_at.isoformat() if session.ended_at else None,
    }


@router.post("/api/practice/generate")
def generate_practice(request: GeneratePracticeRequest, db: Session = Depends(get_db)):
    """Ensure a practice session exists for each requested fundamental."""
    sessions = practice_service.generate_practice_sessions(
        db, request.learner_id, request.fundamentals,
        count=request.count, attempt_id=request.attempt_id
    )
    return {"practice_sessions": [serialize_session(s) for s in sessions]}


@router.get("/api/practice/sessions")
def list_sessions(
    learner_id: str = Query(..., min_length=1),
    attempt_id: Optional[str] = Query(None, description="Only sessions generated from this attempt"),
    db: Session = Depends(get_db)
):
    sessions = practice_service.list_practice_sessions(db, learner_id, attempt_id)
    return {"practice_sessions": [serialize_session(s) for s in sessions]}


@router.get("/api/practice/sessions/{session_id}")
def get_session(session_id: str, db: Session = Depends(get_db)):
    """A practice session with its questions expanded (correct choices stripped)."""
    session = practice_service.get_practice_session(db, session_id)
    questions = QuestionStore(db).get_many(session.question_ids_list)
    return serialize_session(session, questions)


@router.patch("/api/practice/sessions/{session_id}")
def save_answers(session_id: str, request: SavePracticeRequest, db: Session = Depends(get_db)):
    """Save answers and optionally mark the session completed."""
    return practice_service.save_practice_answers(
        db, session_id,
        [a.model_dump() for a in request.answers],
        completed=request.completed
    )
