"""
Domain errors raised by the diagnostic services.

Each class is one failure kind the API distinguishes. Routes do not catch
them; the handlers registered in main.py turn them into JSON responses
with the matching status code. An exhausted question pool is not an error
and is reported as ``None`` by the selector.
"""


class DiagnosticError(Exception):
    """Base class. ``kind`` is the machine-readable error name."""

    kind = "diagnostic_error"
    status_code = 500

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class NotFoundError(DiagnosticError):
    """Referenced attempt, question, learner or practice session does not exist."""

    kind = "not_found"
    status_code = 404


class InvalidInputError(DiagnosticError):
    """Request data violates an invariant (e.g. chosen index out of bounds)."""

    kind = "invalid_input"
    status_code = 400


class TerminalStateError(DiagnosticError):
    """Mutation attempted on a completed attempt."""

    kind = "attempt_already_completed"
    status_code = 409


class TransientStoreError(DiagnosticError):
    """The store failed or a concurrent writer won the race. Nothing was persisted."""

    kind = "transient_store_failure"
    status_code = 503
