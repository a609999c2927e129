"""
Runtime configuration read from the environment.

All tunables are plain module constants resolved at import time, mirroring
how database.py and logging_config.py read their own settings.
"""

import os

# ──────────────────────────────────────────────────────────────
# Storage / logging
# ──────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./diagnostic.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))

# ──────────────────────────────────────────────────────────────
# Diagnostic engine
# ──────────────────────────────────────────────────────────────
FUNDAMENTALS = ("listening", "grasping", "retention", "application")

MIN_LEVEL = 1
MAX_LEVEL = 5
DEFAULT_LEVEL = 3

SKIPPED_CHOICE = -1          # chosen_index for timed out / skipped answers

WEAK_THRESHOLD = int(os.getenv("WEAK_THRESHOLD", "70"))
PRACTICE_QUESTION_COUNT = int(os.getenv("PRACTICE_QUESTION_COUNT", "5"))
