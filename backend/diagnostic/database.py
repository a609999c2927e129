"""
Database engine and session management for the diagnostic document store.

Attempts and practice sessions are stored as one row each, with their
answer lists, aggregates and weak-fundamental lists serialized as JSON in
text columns. Every mutation of such a row is a read-modify-write that
services/attempt_store.py runs inside a single transaction, guarded by the
row's version counter.

PostgreSQL (via the Alembic migration) in deployments; SQLite with tables
created on startup for local development and the test suite.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from diagnostic.config import DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW

IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _engine_options(url: str) -> dict:
    if url.startswith("postgresql"):
        return {
            "pool_size": DB_POOL_SIZE,
            "max_overflow": DB_MAX_OVERFLOW,
            "pool_pre_ping": True,
        }
    if url.startswith("sqlite"):
        # Route handlers run in FastAPI's thread pool
        return {"connect_args": {"check_same_thread": False}}
    return {}


engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))

if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _sqlite_on_connect(dbapi_connection, connection_record):
        # WAL lets readers proceed while one attempt row is being written;
        # foreign keys keep attempts and practice sessions tied to a learner
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base for learners, questions, attempts and practice sessions."""
    pass


def get_db():
    """
    FastAPI dependency: one session per request.

    Services commit their own units of work; this only guarantees the
    session is closed, and any open transaction discarded, once the
    request finishes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create the schema from the ORM models (SQLite only; PostgreSQL runs the migration)."""
    Base.metadata.create_all(bind=engine)


def drop_tables():
    """Drop the whole schema; the test suite calls this between tests."""
    Base.metadata.drop_all(bind=engine)
