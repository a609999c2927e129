"""Tests for the transactional document store."""

import pytest
from sqlalchemy.exc import OperationalError

from diagnostic.database import SessionLocal
from diagnostic.errors import NotFoundError, InvalidInputError, TransientStoreError
from diagnostic.models.attempt import Attempt
from diagnostic.services.attempt_store import DocumentStore


def stored_attempt(attempt_id):
    session = SessionLocal()
    try:
        return session.query(Attempt).filter(Attempt.id == attempt_id).first()
    finally:
        session.close()


class TestAttemptTransaction:
    def test_commits_mutation_and_returns_result(self, db, attempt):
        def mutate(row):
            row.last_served_question_id = "L3"
            return "done"

        assert DocumentStore(db).with_attempt_transaction(attempt.id, mutate) == "done"
        assert stored_attempt(attempt.id).last_served_question_id == "L3"

    def test_version_increments(self, db, attempt):
        before = stored_attempt(attempt.id).version

        def mutate(row):
            row.last_served_question_id = "L2"

        DocumentStore(db).with_attempt_transaction(attempt.id, mutate)
        assert stored_attempt(attempt.id).version == before + 1

    def test_missing_attempt(self, db):
        with pytest.raises(NotFoundError) as exc:
            DocumentStore(db).with_attempt_transaction("missing", lambda row: None)
        assert exc.value.context == {"attempt_id": "missing"}

    def test_domain_error_rolls_back(self, db, attempt):
        def mutate(row):
            row.last_served_question_id = "L5"
            raise InvalidInputError("bad answer")

        with pytest.raises(InvalidInputError):
            DocumentStore(db).with_attempt_transaction(attempt.id, mutate)
        assert stored_attempt(attempt.id).last_served_question_id is None

    def test_concurrent_writer_wins(self, db, attempt):
        def mutate(row):
            other = SessionLocal()
            try:
                competing = other.query(Attempt).filter(Attempt.id == attempt.id).first()
                competing.last_served_question_id = "G1"
                other.commit()
            finally:
                other.close()
            row.last_served_question_id = "L1"

        with pytest.raises(TransientStoreError):
            DocumentStore(db).with_attempt_transaction(attempt.id, mutate)
        assert stored_attempt(attempt.id).last_served_question_id == "G1"

    def test_session_usable_after_conflict(self, db, attempt):
        def conflicting(row):
            other = SessionLocal()
            try:
                competing = other.query(Attempt).filter(Attempt.id == attempt.id).first()
                competing.last_served_question_id = "G1"
                other.commit()
            finally:
                other.close()
            row.last_served_question_id = "L1"

        store = DocumentStore(db)
        with pytest.raises(TransientStoreError):
            store.with_attempt_transaction(attempt.id, conflicting)

        def mutate(row):
            row.last_served_question_id = "L4"

        store.with_attempt_transaction(attempt.id, mutate)
        assert stored_attempt(attempt.id).last_served_question_id == "L4"

    def test_store_failure_logged_with_traceback(self, db, attempt, caplog):
        def mutate(row):
            raise OperationalError("UPDATE attempts", {}, Exception("disk I/O error"))

        with pytest.raises(TransientStoreError):
            DocumentStore(db).with_attempt_transaction(attempt.id, mutate)

        errors = [r for r in caplog.records if r.name == "diagnostic.db" and r.levelname == "ERROR"]
        assert len(errors) == 1
        assert errors[0].exc_info is not None
        assert errors[0].context == {"attempt_id": attempt.id}


class TestPracticeTransaction:
    def test_missing_session(self, db):
        with pytest.raises(NotFoundError) as exc:
            DocumentStore(db).with_practice_transaction("missing", lambda row: None)
        assert exc.value.context == {"session_id": "missing"}
