"""
Transactional read-modify-write for attempt and practice-session documents.

``with_attempt_transaction(attempt_id, fn)`` is the only way the engine
mutates an attempt:

1. load the row fresh from the database (FOR UPDATE where supported)
2. run ``fn(attempt)``, which validates and mutates the loaded object
3. commit; the UPDATE is guarded by the row's version counter

If ``fn`` raises, or the commit finds that another writer bumped the
version first, the session is rolled back and nothing is persisted.
Failures are not retried here: re-running a mutation that may already have
been applied is the caller's decision.
"""

import time
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from diagnostic.errors import NotFoundError, TransientStoreError
from diagnostic.logging_config import get_logger, log_with_context
from diagnostic.models.attempt import Attempt
from diagnostic.models.practice_session import PracticeSession

logger = get_logger("db")


class DocumentStore:
    """Runs callables against a single row inside one database transaction."""

    def __init__(self, db: Session):
        self.db = db

    def _run(self, model, label: str, key: str, row_id: str, fn: Callable):
        start_time = time.time()
        try:
            row = self.db.query(model).filter(
                model.id == row_id
            ).populate_existing().with_for_update().first()
            if row is None:
                raise NotFoundError(f"{label} not found", context={key: row_id})

            result = fn(row)
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            log_with_context(logger, "WARNING",
                "Concurrent update rejected for {} {}".format(label.lower(), row_id),
                context={key: row_id},
                extra_data={"error": str(e)})
            raise TransientStoreError(
                f"{label} was modified concurrently; nothing was saved",
                context={key: row_id}
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            log_with_context(logger, "ERROR",
                "Store failure during {} transaction: {}".format(label.lower(), str(e)),
                context={key: row_id},
                exc_info=True)
            raise TransientStoreError(
                f"Store failure while updating {label.lower()}",
                context={key: row_id}
            ) from e
        except Exception:
            self.db.rollback()
            raise

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "DEBUG",
            "{} transaction committed".format(label),
            context={key: row_id},
            extra_data={"duration_ms": round(duration_ms, 2)})
        return result

    def with_attempt_transaction(self, attempt_id: str, fn: Callable):
        """Apply ``fn(attempt)`` atomically; returns whatever ``fn`` returns."""
        return self._run(Attempt, "Attempt", "attempt_id", attempt_id, fn)

    def with_practice_transaction(self, session_id: str, fn: Callable):
        """Apply ``fn(practice_session)`` atomically; returns whatever ``fn`` returns."""
        return self._run(PracticeSession, "Practice session", "session_id", session_id, fn)
