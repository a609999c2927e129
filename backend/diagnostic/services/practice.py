"""
Practice Service - targeted practice for weak fundamentals.

Generation rules:
1. At most one open session per learner and fundamental: an existing
   incomplete session with questions is reused
2. New sessions draw questions whose primary fundamental matches, near the
   difficulty implied by the learner's score for that fundamental, topped
   up from other difficulties when that window is thin
3. Answers merge by question id and are graded server-side; completing a
   session blends its score into the learner profile
"""

import random
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from diagnostic.config import FUNDAMENTALS, PRACTICE_QUESTION_COUNT
from diagnostic.errors import NotFoundError, InvalidInputError, TerminalStateError
from diagnostic.jsonutil import dump_json
from diagnostic.logging_config import get_logger, log_with_context
from diagnostic.models.learner import Learner
from diagnostic.models.practice_session import PracticeSession
from diagnostic.services.answers import build_answer_record, merge_answer
from diagnostic.services.attempt_store import DocumentStore
from diagnostic.services.difficulty import next_difficulty
from diagnostic.services.question_store import QuestionStore
from diagnostic.services.scoring import practice_score, profile_overall, round_half_up
from diagnostic.services.selector import candidate_window

logger = get_logger("practice")


def _validate_fundamentals(fundamentals: list):
    unknown = [f for f in fundamentals if f not in FUNDAMENTALS]
    if unknown:
        raise InvalidInputError("Unknown fundamentals: {}".format(", ".join(unknown)))


def _pick_questions(store: QuestionStore, fundamental: str, target: int,
                    count: int, rng: random.Random) -> list:
    low, high = candidate_window(target)
    near = store.by_difficulty_range(low, high, fundamental)
    rng.shuffle(near)
    chosen = near[:count]

    if len(chosen) < count:
        chosen_ids = {q.id for q in chosen}
        rest = [q for q in store.all(fundamental) if q.id not in chosen_ids]
        rng.shuffle(rest)
        chosen.extend(rest[:count - len(chosen)])
    return chosen


def generate_practice_sessions(db: Session, learner_id: str, fundamentals: list,
                               count: int = PRACTICE_QUESTION_COUNT,
                               attempt_id: str = None,
                               rng: random.Random = None) -> list:
    """
    Ensure an open practice session exists for each fundamental.

    Returns the reused and newly created sessions. A fundamental with no
    questions in the bank gets no session.
    """
    _validate_fundamentals(fundamentals)
    learner = db.query(Learner).filter(Learner.id == learner_id).first()
    if not learner:
        raise NotFoundError("Learner not found", context={"learner_id": learner_id})

    rng = rng or random.Random()
    store = QuestionStore(db)
    profile = learner.scores_dict
    sessions = []
    created = 0

    for fundamental in dict.fromkeys(fundamentals):
        existing = db.query(PracticeSession).filter(
            PracticeSession.learner_id == learner_id,
            PracticeSession.fundamental == fundamental,
            PracticeSession.completed.is_(False)
        ).order_by(PracticeSession.started_at).all()
        reusable = next((s for s in existing if s.question_ids_list), None)
        if reusable:
            sessions.append(reusable)
            continue

        target = next_difficulty(prior_score=profile.get(fundamental))
        questions = _pick_questions(store, fundamental, target, count, rng)
        if not questions:
            log_with_context(logger, "WARNING",
                "No questions available for fundamental {}".format(fundamental),
                context={"learner_id": learner_id})
            continue

        session = PracticeSession(
            learner_id=learner_id,
            attempt_id=attempt_id,
            fundamental=fundamental,
            question_ids=dump_json([q.id for q in questions]),
            answers="[]",
            completed=False,
            started_at=datetime.now(timezone.utc)
        )
        db.add(session)
        sessions.append(session)
        created += 1

    db.commit()
    for session in sessions:
        db.refresh(session)

    log_with_context(logger, "INFO",
        "Practice sessions ready: {} created, {} reused".format(created, len(sessions) - created),
        context={"learner_id": learner_id, "attempt_id": attempt_id},
        extra_data={"fundamentals": list(fundamentals)})
    return sessions


def list_practice_sessions(db: Session, learner_id: str, attempt_id: Optional[str] = None) -> list:
    query = db.query(PracticeSession).filter(PracticeSession.learner_id == learner_id)
    if attempt_id:
        query = query.filter(PracticeSession.attempt_id == attempt_id)
    return query.order_by(PracticeSession.started_at.desc()).all()


def get_practice_session(db: Session, session_id: str) -> PracticeSession:
    session = db.query(PracticeSession).filter(PracticeSession.id == session_id).first()
    if not session:
        raise NotFoundError("Practice session not found", context={"session_id": session_id})
    return session


def session_progress(session: PracticeSession) -> int:
    """Answered share of the session's questions, 0..100."""
    total = len(session.question_ids_list)
    if not total:
        return 0
    return min(100, round_half_up(len(session.answers_list) / total * 100))


def _blend_profile(learner: Learner, fundamental: str, session_score: int):
    scores = learner.scores_dict
    previous = scores.get(fundamental)
    if previous is None:
        scores[fundamental] = session_score
    else:
        scores[fundamental] = round_half_up((previous + session_score) / 2)
    learner.fundamental_scores = dump_json(scores)
    learner.overall_score = profile_overall(scores)


def save_practice_answers(db: Session, session_id: str, answers: list,
                          completed: Optional[bool] = None) -> dict:
    """
    Merge ``answers`` ([{question_id, chosen_index}, ...]) into a session.

    All answers are validated before anything is written; one bad answer
    rejects the whole batch.
    """
    store = QuestionStore(db)

    def merge(session: PracticeSession):
        if session.completed:
            raise TerminalStateError("Practice session is already completed",
                                     context={"session_id": session.id})

        allowed = set(session.question_ids_list)
        merged = session.answers_list
        for answer in answers:
            question_id = answer["question_id"]
            if question_id not in allowed:
                raise InvalidInputError(
                    "Question {} is not part of this session".format(question_id),
                    context={"session_id": session.id})
            question = store.get(question_id)
            if question is None:
                raise NotFoundError("Question not found", context={"question_id": question_id})
            merged = merge_answer(merged, build_answer_record(question, answer["chosen_index"]))

        score = practice_score(merged)
        session.answers = dump_json(merged)
        session.score = score

        if completed:
            session.completed = True
            session.ended_at = datetime.now(timezone.utc)
            if session.learner is not None:
                _blend_profile(session.learner, session.fundamental, score)

        return {
            "session_id": session.id,
            "score": score,
            "answer_count": len(merged),
            "completed": bool(session.completed),
        }

    result = DocumentStore(db).with_practice_transaction(session_id, merge)
    log_with_context(logger, "INFO",
        "Practice answers saved: score={} answers={}".format(result["score"], result["answer_count"]),
        context={"session_id": session_id},
        extra_data={"completed": result["completed"]})
    return result
