"""
Tests for candidate sets and best-candidate selection.
"""

import unittest

import pytest

from mercy_detector.selection.candidates import (Candidate, CandidateSet,
                                                 ScoreDirection)
from mercy_detector.selection.selector import select_best


def _candidates(*pairs):
    return [Candidate(label, score) for label, score in pairs]


class TestSelectBest(unittest.TestCase):
    def test_maximize_picks_highest(self):
        cands = _candidates(("Mercy", 0.4), ("Lucio", 0.9), ("Ana", 0.1))
        self.assertEqual(select_best(cands, ScoreDirection.MAXIMIZE_IS_BETTER), "Lucio")

    def test_minimize_picks_lowest(self):
        cands = _candidates(("Mercy", 0.4), ("Lucio", 0.9), ("Ana", 0.1))
        self.assertEqual(select_best(cands, ScoreDirection.MINIMIZE_IS_BETTER), "Ana")

    def test_empty_returns_none(self):
        self.assertIsNone(select_best([], ScoreDirection.MAXIMIZE_IS_BETTER))
        self.assertIsNone(
            select_best(
                CandidateSet(ScoreDirection.MINIMIZE_IS_BETTER),
                ScoreDirection.MINIMIZE_IS_BETTER,
            )
        )

    def test_first_seen_wins_ties(self):
        cands = _candidates(("Mercy", 0.5), ("Lucio", 0.5))
        self.assertEqual(select_best(cands, ScoreDirection.MAXIMIZE_IS_BETTER), "Mercy")
        self.assertEqual(select_best(cands, ScoreDirection.MINIMIZE_IS_BETTER), "Mercy")

    def test_single_candidate_wins_regardless_of_score(self):
        # No threshold: even a terrible score is selected
        cands = _candidates(("Mercy", -1e9))
        self.assertEqual(select_best(cands, ScoreDirection.MAXIMIZE_IS_BETTER), "Mercy")

    def test_negative_scores(self):
        cands = _candidates(("a", -3.0), ("b", -1.5), ("c", -2.0))
        self.assertEqual(select_best(cands, ScoreDirection.MAXIMIZE_IS_BETTER), "b")
        self.assertEqual(select_best(cands, ScoreDirection.MINIMIZE_IS_BETTER), "a")

    def test_accepts_generator(self):
        gen = (Candidate(str(i), float(i)) for i in range(5))
        self.assertEqual(select_best(gen, ScoreDirection.MAXIMIZE_IS_BETTER), "4")

    def test_candidate_set_direction_mismatch_raises(self):
        cset = CandidateSet(ScoreDirection.MINIMIZE_IS_BETTER)
        cset.add("Mercy", 0.2)
        with self.assertRaises(ValueError):
            select_best(cset, ScoreDirection.MAXIMIZE_IS_BETTER)


class TestCandidateSet(unittest.TestCase):
    def test_add_and_iterate_in_order(self):
        cset = CandidateSet(ScoreDirection.MAXIMIZE_IS_BETTER)
        cset.add("Mercy", 1)
        cset.add("Lucio", 2.5)
        self.assertEqual(len(cset), 2)
        self.assertEqual([c.label for c in cset], ["Mercy", "Lucio"])
        self.assertIsInstance(cset.candidates[0].score, float)

    def test_extend_same_direction(self):
        a = CandidateSet(ScoreDirection.MAXIMIZE_IS_BETTER)
        a.add("Mercy", 1)
        b = CandidateSet(ScoreDirection.MAXIMIZE_IS_BETTER)
        b.add("Lucio", 3)
        a.extend(b)
        self.assertEqual(select_best(a, ScoreDirection.MAXIMIZE_IS_BETTER), "Lucio")

    def test_extend_rejects_mixed_directions(self):
        a = CandidateSet(ScoreDirection.MAXIMIZE_IS_BETTER)
        b = CandidateSet(ScoreDirection.MINIMIZE_IS_BETTER)
        b.add("Lucio", 3)
        with self.assertRaises(ValueError):
            a.extend(b)
        self.assertEqual(len(a), 0)


@pytest.mark.parametrize(
    "direction,expected",
    [
        (ScoreDirection.MAXIMIZE_IS_BETTER, "high"),
        (ScoreDirection.MINIMIZE_IS_BETTER, "low"),
    ],
)
def test_direction_decides_winner(direction, expected):
    cands = _candidates(("mid", 0.5), ("high", 0.99), ("low", 0.01))
    assert select_best(cands, direction) == expected


def test_maximize_example():
    cands = _candidates(("A", 0.2), ("B", 0.9), ("C", 0.5))
    assert select_best(cands, ScoreDirection.MAXIMIZE_IS_BETTER) == "B"
