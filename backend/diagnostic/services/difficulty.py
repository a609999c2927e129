"""
Difficulty Adjuster - chooses the difficulty level of the next question.

Three signals, strongest first:
1. Previous question's difficulty and whether it was answered correctly
   (one step up on correct, one step down on incorrect, bounded to 1..5)
2. A prior aggregate score (placement from an earlier diagnostic)
3. Nothing at all: the middle level

This is a bounded increment/decrement heuristic, not an IRT model.
"""

from typing import Optional

from diagnostic.config import MIN_LEVEL, MAX_LEVEL, DEFAULT_LEVEL

# (exclusive upper score bound, starting level); scores >= 70 start at 4
SCORE_BANDS = (
    (40, 2),
    (70, 3),
)
HIGH_SCORE_LEVEL = 4

LABEL_LEVELS = {"easy": 2, "medium": 3, "hard": 4}


def clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, int(level)))


def starting_level(score: float) -> int:
    """Map a 0..100 score to a starting level; monotonic non-decreasing."""
    for upper, level in SCORE_BANDS:
        if score < upper:
            return level
    return HIGH_SCORE_LEVEL


def next_difficulty(prior_difficulty: Optional[int] = None,
                    was_correct: Optional[bool] = None,
                    prior_score: Optional[float] = None) -> int:
    """
    Return the target difficulty for the next question.

    Always returns a level within [MIN_LEVEL, MAX_LEVEL]; never raises.
    """
    if prior_difficulty is not None and was_correct is not None:
        current = clamp_level(prior_difficulty)
        if was_correct:
            return min(current + 1, MAX_LEVEL)
        return max(current - 1, MIN_LEVEL)

    if prior_score is not None:
        return starting_level(prior_score)

    return DEFAULT_LEVEL


def difficulty_label(level: int) -> str:
    """Client-facing label for a numeric level."""
    if level <= 2:
        return "easy"
    if level <= 4:
        return "medium"
    return "hard"


def label_to_level(label: str) -> int:
    """Representative numeric level for a label; unknown labels map to the default."""
    return LABEL_LEVELS.get(label, DEFAULT_LEVEL)
