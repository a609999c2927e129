"""
Structured JSON logging configuration (Monolog-style).

Every log line is a single JSON object on stdout. Entries are tagged with a
channel (http, db, adaptive, scoring, practice, ingest), the current request
ID and any business context (attempt_id, learner_id, question_id).
"""

import logging
import json
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

from diagnostic.config import LOG_LEVEL

# ──────────────────────────────────────────────────────────────
# Request ID of the HTTP request currently being served. Set by the
# middleware in main.py and stamped onto every entry emitted meanwhile.
# ──────────────────────────────────────────────────────────────
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

CHANNELS = ("http", "db", "adaptive", "scoring", "practice", "ingest")


class StructuredJsonFormatter(logging.Formatter):
    """
    Render a LogRecord as one JSON object:

    - timestamp: ISO 8601 UTC with millisecond precision
    - level: INFO, WARNING, ERROR, DEBUG
    - message: human readable text
    - channel: subsystem that emitted the entry
    - context: request_id plus business identifiers
    - extra: free-form metadata (duration_ms, counts, ...)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": getattr(record, "channel", record.name.split(".")[-1] if "." in record.name else "app"),
            "context": {
                "request_id": request_id_var.get(""),
                **(getattr(record, "context", {}) or {})
            },
            "extra": getattr(record, "extra_data", {}) or {}
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging():
    """
    Install the JSON formatter on the root logger and set the level of
    every channel logger. Safe to call more than once.
    """
    formatter = StructuredJsonFormatter()

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    level = getattr(logging, LOG_LEVEL, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        logging.getLogger(f"diagnostic.{channel}").setLevel(level)

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    """Return the logger for a channel (http, db, adaptive, scoring, practice, ingest)."""
    return logging.getLogger(f"diagnostic.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None,
                     exc_info: bool = False):
    """
    Emit a structured entry on ``logger``.

    Args:
        logger: Channel logger from get_logger()
        level: Level name (INFO, WARNING, ERROR, DEBUG)
        message: Human readable message
        context: Business identifiers (attempt_id, learner_id, question_id)
        extra_data: Additional metadata (duration_ms, answer_count, ...)
        exc_info: Attach the active exception traceback
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.log(
        log_level,
        message,
        exc_info=exc_info,
        extra={"context": context or {}, "extra_data": extra_data or {}, "channel": logger.name.split(".")[-1]}
    )


def generate_request_id() -> str:
    """Generate a new UUID for request tracking."""
    return str(uuid.uuid4())
