"""
Question Selector - picks the next unseen question from a candidate pool.

Selection rules:
1. Candidates whose id is excluded are never returned
2. With an adaptive signal, the exact target difficulty wins; otherwise the
   closest difficulty, lower level first at equal distance, then pool order
3. Without a signal (first question of an attempt) the pick is uniformly
   random so the opening question cannot be predicted
4. An empty pool yields None: the bank is exhausted, which is a normal
   outcome rather than an error
"""

import random
from typing import Iterable, Optional, Sequence

from diagnostic.config import MIN_LEVEL, MAX_LEVEL
from diagnostic.services.difficulty import clamp_level


def _question_id(question) -> str:
    if isinstance(question, dict):
        return question.get("id")
    return question.id


def _difficulty(question) -> int:
    if isinstance(question, dict):
        return question.get("difficulty")
    return question.difficulty


def candidate_window(target: int, spread: int = 1) -> tuple:
    """Inclusive (low, high) difficulty range around ``target``, clamped."""
    target = clamp_level(target)
    return max(MIN_LEVEL, target - spread), min(MAX_LEVEL, target + spread)


def select_question(candidates: Sequence, target_difficulty: int,
                    excluded: Iterable[str] = (), adaptive: bool = True,
                    rng: Optional[random.Random] = None):
    """
    Choose one question from ``candidates``.

    Args:
        candidates: Question objects (ORM rows or dicts with id/difficulty)
        target_difficulty: Level produced by the difficulty adjuster
        excluded: Question ids that must not be returned
        adaptive: True when the target came from a previous answer
        rng: Random source for the non-adaptive pick (seed it in tests)

    Returns:
        The chosen question, or None when every candidate is excluded
    """
    excluded = set(excluded)
    pool = [q for q in candidates if _question_id(q) not in excluded]
    if not pool:
        return None

    if not adaptive:
        rng = rng or random.Random()
        return rng.choice(pool)

    target = clamp_level(target_difficulty)
    # min() keeps the first of equal keys, so pool order breaks the last tie
    return min(pool, key=lambda q: (abs(_difficulty(q) - target), _difficulty(q)))
