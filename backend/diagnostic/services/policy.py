"""
Completion & weak-area policy.

A fundamental is weak when its percentage is strictly below the threshold.
An unassessed fundamental scores 0 and is therefore weak: it has not been
demonstrated yet.
"""

from typing import Optional

from diagnostic.config import FUNDAMENTALS, WEAK_THRESHOLD


def weak_fundamentals(per_fundamental: dict, threshold: int = WEAK_THRESHOLD) -> list:
    """Fundamentals scoring below ``threshold``, in the fixed fundamental order."""
    return [f for f in FUNDAMENTALS if per_fundamental.get(f, 0) < threshold]


def should_auto_complete(answer_count: int, expected_count: Optional[int]) -> bool:
    return expected_count is not None and answer_count >= expected_count


def mastery_level(score: int) -> str:
    if score < 40:
        return "Beginner"
    if score < 70:
        return "Intermediate"
    return "Advanced"
