"""Tests for the question selector."""

import random

from diagnostic.services.selector import select_question, candidate_window


def q(qid, difficulty):
    return {"id": qid, "difficulty": difficulty}


POOL = [q("a2", 2), q("b3", 3), q("c3", 3), q("d4", 4), q("e5", 5)]


class TestAdaptiveSelection:
    def test_exact_match_preferred(self):
        assert select_question(POOL, 3, set())["id"] == "b3"

    def test_exact_match_skips_excluded(self):
        assert select_question(POOL, 3, {"b3"})["id"] == "c3"

    def test_falls_back_to_closest(self):
        picked = select_question(POOL, 3, {"b3", "c3"})
        assert picked["id"] == "a2"

    def test_lower_level_wins_equal_distance(self):
        pool = [q("up", 4), q("down", 2)]
        assert select_question(pool, 3, set())["id"] == "down"

    def test_deterministic(self):
        first = select_question(POOL, 4, {"d4"})
        for _ in range(20):
            assert select_question(POOL, 4, {"d4"}) is first

    def test_target_clamped(self):
        assert select_question(POOL, 9, set())["id"] == "e5"


class TestRandomSelection:
    def test_seeded_pick_is_reproducible(self):
        one = select_question(POOL, 3, set(), adaptive=False, rng=random.Random(7))
        two = select_question(POOL, 3, set(), adaptive=False, rng=random.Random(7))
        assert one is two

    def test_any_candidate_can_be_picked(self):
        rng = random.Random(3)
        seen = {select_question(POOL, 3, set(), adaptive=False, rng=rng)["id"] for _ in range(200)}
        assert seen == {c["id"] for c in POOL}


class TestExclusion:
    def test_never_returns_excluded(self):
        rng = random.Random(11)
        for target in range(1, 6):
            for size in range(len(POOL)):
                excluded = {c["id"] for c in POOL[:size]}
                for adaptive in (True, False):
                    picked = select_question(POOL, target, excluded, adaptive=adaptive, rng=rng)
                    assert picked is not None
                    assert picked["id"] not in excluded

    def test_exhausted_pool_returns_none(self):
        assert select_question(POOL, 3, {c["id"] for c in POOL}) is None
        assert select_question([], 3, set(), adaptive=False) is None


class TestCandidateWindow:
    def test_middle(self):
        assert candidate_window(3) == (2, 4)

    def test_clamped_edges(self):
        assert candidate_window(1) == (1, 2)
        assert candidate_window(5) == (4, 5)
