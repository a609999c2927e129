"""
Score Aggregator - folds answer records into per-fundamental percentages.

Aggregation formula:
1. Classify every answer by the primary fundamental of the question as it
   was when answered (highest weight, alphabetical tie-break)
2. per fundamental: round(100 * correct / answered), 0 when unanswered
3. overall: round(mean of the four fundamental percentages)

Rounding is half-up (12.5 -> 13). Scores are always recomputed from the
full answer list; there are no running counters to drift out of sync when
an answer is revised.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from diagnostic.config import FUNDAMENTALS

# Fixed tie-break order for equally weighted fundamentals
TIE_BREAK_ORDER = tuple(sorted(FUNDAMENTALS))


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def primary_fundamental(weights: Optional[dict]) -> Optional[str]:
    """
    Return the heaviest fundamental in a weight map.

    Unknown keys and non-positive weights are ignored. Returns None when no
    known fundamental carries a positive weight.
    """
    best = None
    best_weight = 0
    for fundamental in TIE_BREAK_ORDER:
        weight = (weights or {}).get(fundamental) or 0
        if weight > best_weight:
            best, best_weight = fundamental, weight
    return best


def aggregate(answers: list) -> tuple:
    """
    Compute (per_fundamental, overall) for a list of answer records.

    Each record is a dict with at least ``correct`` and ``fundamentals``
    (the snapshotted weight map). The function is pure and idempotent.

    Returns:
        ({fundamental: percentage} for all four fundamentals, overall percentage)
    """
    totals = {f: 0 for f in FUNDAMENTALS}
    correct = {f: 0 for f in FUNDAMENTALS}

    for answer in answers:
        fundamental = primary_fundamental(answer.get("fundamentals"))
        if fundamental is None:
            continue
        totals[fundamental] += 1
        if answer.get("correct"):
            correct[fundamental] += 1

    per_fundamental = {
        f: round_half_up(correct[f] / totals[f] * 100) if totals[f] else 0
        for f in FUNDAMENTALS
    }
    overall = round_half_up(sum(per_fundamental.values()) / len(FUNDAMENTALS))
    return per_fundamental, overall


def practice_score(answers: list) -> int:
    """Percentage of correct answers in a practice session; 0 when empty."""
    if not answers:
        return 0
    correct_count = sum(1 for a in answers if a.get("correct"))
    return round_half_up(correct_count / len(answers) * 100)


def profile_overall(scores: dict) -> int:
    """Mean over the four fundamentals of a learner profile, missing ones as 0."""
    return round_half_up(sum(scores.get(f, 0) for f in FUNDAMENTALS) / len(FUNDAMENTALS))
