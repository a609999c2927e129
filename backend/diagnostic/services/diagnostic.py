"""
Diagnostic Service - the adaptive test lifecycle.

Control flow for one attempt:
1. start_attempt: create an OPEN attempt, remembering the learner's prior score
2. next_question: difficulty adjuster -> candidate pool -> selector
3. submit_answer: grade, merge by question id, recompute aggregates,
   auto-complete when the expected question count is reached
4. complete_attempt: freeze the attempt, derive weak fundamentals and
   optionally hand them to practice-session generation

Every mutation goes through DocumentStore.with_attempt_transaction so the
load-check-merge-write sequence is atomic per attempt.
"""

import random
import time
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from diagnostic.errors import NotFoundError, TerminalStateError, TransientStoreError
from diagnostic.jsonutil import dump_json
from diagnostic.logging_config import get_logger, log_with_context
from diagnostic.models.attempt import Attempt, STATUS_OPEN, STATUS_COMPLETED
from diagnostic.models.learner import Learner
from diagnostic.services.answers import build_answer_record, merge_answer, latest_answer
from diagnostic.services.attempt_store import DocumentStore
from diagnostic.services.difficulty import next_difficulty
from diagnostic.services.policy import weak_fundamentals, should_auto_complete, mastery_level
from diagnostic.services.practice import generate_practice_sessions
from diagnostic.services.question_store import QuestionStore
from diagnostic.services.scoring import aggregate
from diagnostic.services.selector import select_question, candidate_window

logger = get_logger("adaptive")
scoring_logger = get_logger("scoring")


def get_learner(db: Session, learner_id: str) -> Optional[Learner]:
    return db.query(Learner).filter(Learner.id == learner_id).first()


def find_or_create_learner(db: Session, learner_id: str, full_name: str = None,
                           email: str = None) -> Learner:
    """
    Return the learner with this id, creating it on first sight.

    Two requests creating the same new learner at once collide on the
    primary key; the loser gets TransientStoreError and nothing is saved.
    """
    learner = get_learner(db, learner_id)
    if learner:
        return learner

    learner = Learner(
        id=learner_id,
        full_name=full_name,
        email=email.strip().lower() if email else None,
        created_at=datetime.now(timezone.utc)
    )
    db.add(learner)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        log_with_context(logger, "WARNING",
            "Learner {} was created concurrently".format(learner_id),
            context={"learner_id": learner_id},
            extra_data={"error": str(e)})
        raise TransientStoreError("Learner was created concurrently; nothing was saved",
                                  context={"learner_id": learner_id}) from e

    log_with_context(logger, "INFO", "Created learner {}".format(learner_id),
                     context={"learner_id": learner_id})
    return learner


def start_attempt(db: Session, learner_id: str, expected_question_count: int = None,
                  full_name: str = None, email: str = None) -> Attempt:
    """Create a new OPEN attempt with no answers."""
    learner = find_or_create_learner(db, learner_id, full_name, email)

    attempt = Attempt(
        learner_id=learner.id,
        status=STATUS_OPEN,
        started_at=datetime.now(timezone.utc),
        answers="[]",
        expected_question_count=expected_question_count,
        prior_score=learner.overall_score,
        aggregates="{}",
        overall_score=0,
        weak_fundamentals="[]"
    )
    db.add(attempt)
    db.commit()
    db.refresh(attempt)

    log_with_context(logger, "INFO", "Attempt started",
                     context={"attempt_id": attempt.id, "learner_id": learner.id},
                     extra_data={"expected_question_count": expected_question_count,
                                 "prior_score": learner.overall_score})
    return attempt


def get_attempt(db: Session, attempt_id: str) -> Attempt:
    attempt = db.query(Attempt).filter(Attempt.id == attempt_id).first()
    if not attempt:
        raise NotFoundError("Attempt not found", context={"attempt_id": attempt_id})
    return attempt


def latest_attempt(db: Session, learner_id: str) -> Optional[Attempt]:
    """The learner's most recently started attempt, or None."""
    return db.query(Attempt).filter(
        Attempt.learner_id == learner_id
    ).order_by(Attempt.started_at.desc()).first()


def _ensure_open(attempt: Attempt):
    if attempt.is_completed:
        raise TerminalStateError("Attempt is already completed",
                                 context={"attempt_id": attempt.id})


def _finalize(attempt: Attempt, per_fundamental: dict, overall: int):
    """Move an attempt to COMPLETED and publish its scores to the learner profile."""
    weak = weak_fundamentals(per_fundamental)
    attempt.status = STATUS_COMPLETED
    attempt.completed_at = datetime.now(timezone.utc)
    attempt.aggregates = dump_json(per_fundamental)
    attempt.overall_score = overall
    attempt.weak_fundamentals = dump_json(weak)

    learner = attempt.learner
    if learner is not None:
        learner.fundamental_scores = dump_json(per_fundamental)
        learner.overall_score = overall

    log_with_context(scoring_logger, "INFO",
        "Attempt completed: overall={} weak={}".format(overall, ",".join(weak) or "none"),
        context={"attempt_id": attempt.id, "learner_id": attempt.learner_id},
        extra_data={"aggregates": per_fundamental, "answer_count": attempt.answer_count})
    return weak


def next_question(db: Session, attempt_id: str, prior_difficulty: int = None,
                  was_correct: bool = None, excluded_ids: Iterable[str] = (),
                  rng: random.Random = None) -> tuple:
    """
    Pick the next question for an open attempt.

    When the caller sends no (prior_difficulty, was_correct) pair, the
    attempt's most recent answer supplies it. With no answers at all the
    learner's prior score, or the default level, sets the target and the
    pick is random.

    Returns:
        (question or None, target difficulty). None means the bank has no
        question left that the attempt has not seen.
    """
    store = QuestionStore(db)

    def pick(attempt: Attempt):
        _ensure_open(attempt)
        answers = attempt.answers_list

        difficulty, correct = prior_difficulty, was_correct
        if difficulty is None or correct is None:
            last = latest_answer(answers)
            if last is not None:
                difficulty, correct = last["difficulty"], last["correct"]

        adaptive = difficulty is not None and correct is not None
        if adaptive:
            target = next_difficulty(difficulty, correct)
        else:
            target = next_difficulty(prior_score=attempt.prior_score)

        excluded = set(excluded_ids) | attempt.answered_ids
        low, high = candidate_window(target)
        question = select_question(store.by_difficulty_range(low, high), target,
                                   excluded, adaptive=adaptive, rng=rng)
        if question is None:
            # Window exhausted: widen to the whole bank
            question = select_question(store.all(), target, excluded,
                                       adaptive=adaptive, rng=rng)

        if question is not None:
            attempt.last_served_question_id = question.id

        log_with_context(logger, "INFO",
            "Next question: {} (target difficulty {})".format(
                question.id if question else "none available", target),
            context={"attempt_id": attempt.id},
            extra_data={"target_difficulty": target, "adaptive": adaptive,
                        "excluded": len(excluded)})
        return question, target

    return DocumentStore(db).with_attempt_transaction(attempt_id, pick)


def submit_answer(db: Session, attempt_id: str, question_id: str, chosen_index: int) -> dict:
    """
    Record an answer atomically.

    Re-submitting for an already answered question replaces that record.
    Raises NotFoundError, TerminalStateError or InvalidInputError; on any
    failure the stored attempt is left untouched.
    """
    start_time = time.time()
    store = QuestionStore(db)

    def merge(attempt: Attempt):
        _ensure_open(attempt)

        question = store.get(question_id)
        if question is None:
            raise NotFoundError("Question not found", context={"question_id": question_id})

        record = build_answer_record(question, chosen_index)
        answered = attempt.answered_ids
        if attempt.last_served_question_id and question_id != attempt.last_served_question_id \
                and question_id not in answered:
            log_with_context(logger, "WARNING",
                "Answer for {} does not match last served question {}".format(
                    question_id, attempt.last_served_question_id),
                context={"attempt_id": attempt.id, "question_id": question_id})

        answers = merge_answer(attempt.answers_list, record)
        per_fundamental, overall = aggregate(answers)

        attempt.answers = dump_json(answers)
        attempt.aggregates = dump_json(per_fundamental)
        attempt.overall_score = overall

        answer_count = len(answers)
        completed = should_auto_complete(answer_count, attempt.expected_question_count)
        if completed:
            _finalize(attempt, per_fundamental, overall)

        return {
            "attempt_id": attempt.id,
            "question_id": question_id,
            "correct": record["correct"],
            "revised": question_id in answered,
            "aggregates": per_fundamental,
            "overall_score": overall,
            "answer_count": answer_count,
            "completed": completed,
        }

    result = DocumentStore(db).with_attempt_transaction(attempt_id, merge)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(scoring_logger, "INFO",
        "Answer recorded: correct={} answers={} overall={}".format(
            result["correct"], result["answer_count"], result["overall_score"]),
        context={"attempt_id": attempt_id, "question_id": question_id},
        extra_data={"duration_ms": round(duration_ms, 2), "completed": result["completed"]})
    return result


def complete_attempt(db: Session, attempt_id: str, generate_practice: bool = False,
                     rng: random.Random = None) -> dict:
    """
    Complete an attempt, or return the stored outcome if it already is.

    With ``generate_practice`` a practice session is ensured for every weak
    fundamental.
    """
    def finish(attempt: Attempt):
        if attempt.is_completed:
            return attempt.aggregates_dict, attempt.overall_score, attempt.weak_fundamentals_list, False
        per_fundamental, overall = aggregate(attempt.answers_list)
        weak = _finalize(attempt, per_fundamental, overall)
        return per_fundamental, overall, weak, True

    per_fundamental, overall, weak, newly_completed = \
        DocumentStore(db).with_attempt_transaction(attempt_id, finish)

    if not newly_completed:
        log_with_context(logger, "INFO", "Attempt was already completed",
                         context={"attempt_id": attempt_id})

    sessions = []
    if generate_practice and weak:
        attempt = get_attempt(db, attempt_id)
        sessions = generate_practice_sessions(db, attempt.learner_id, weak,
                                              attempt_id=attempt_id, rng=rng)

    return {
        "attempt_id": attempt_id,
        "aggregates": per_fundamental,
        "overall_score": overall,
        "weak_fundamentals": weak,
        "levels": {f: mastery_level(score) for f, score in per_fundamental.items()},
        "practice_sessions": sessions,
    }
