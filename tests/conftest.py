"""Shared fixtures for the diagnostic service tests."""

import os
import tempfile

# Point the service at a throwaway SQLite file before the package is imported
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="diagnostic-tests-"), "test.db"
)

import random

import pytest
from fastapi.testclient import TestClient

from diagnostic.database import SessionLocal, create_tables, drop_tables
from diagnostic.jsonutil import dump_json
from diagnostic.main import app
from diagnostic.models.question import Question
from diagnostic.services import diagnostic as diagnostic_service


@pytest.fixture(autouse=True)
def fresh_tables():
    drop_tables()
    create_tables()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def add_question(db):
    """Factory inserting one question; returns its id."""
    def _add(question_id, difficulty=3, fundamentals=None, options=("a", "b", "c"),
             correct_choice=0, text=None):
        db.add(Question(
            id=question_id,
            text=text or f"Question {question_id}",
            difficulty=difficulty,
            options=dump_json(list(options)),
            correct_choice=correct_choice,
            explanation="",
            fundamentals=dump_json(fundamentals or {"listening": 1}),
        ))
        db.commit()
        return question_id
    return _add


@pytest.fixture
def question_bank(add_question):
    """
    Listening and grasping questions at every level, a few retention and
    application questions. Correct choice is always option 0.
    """
    for level in range(1, 6):
        add_question(f"L{level}", level, {"listening": 3, "retention": 1})
        add_question(f"G{level}", level, {"grasping": 2})
    add_question("R2", 2, {"retention": 1})
    add_question("R3", 3, {"retention": 2, "application": 1})
    add_question("A3", 3, {"application": 1})
    return ["L1", "L2", "L3", "L4", "L5", "G1", "G2", "G3", "G4", "G5", "R2", "R3", "A3"]


@pytest.fixture
def attempt(db, question_bank):
    return diagnostic_service.start_attempt(db, "learner-1")
