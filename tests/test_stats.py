"""
Confidence aggregation tests.
"""

from __future__ import annotations

import itertools
import unittest

import helpers  # noqa: F401  (puts src/ on sys.path)
from read_journal.stats import ConfidenceStats


class ConfidenceStatsTests(unittest.TestCase):
    def test_mean_of_nothing_is_zero(self) -> None:
        stats = ConfidenceStats()
        self.assertEqual(stats.mean(), 0.0)
        self.assertEqual(stats.count, 0)

    def test_mean_is_order_independent(self) -> None:
        values = [0.9, 0.8, 0.55, 0.31]
        expected = sum(values) / len(values)
        for order in itertools.permutations(values):
            with self.subTest(order=order):
                stats = ConfidenceStats()
                for value in order:
                    stats.record(value)
                self.assertEqual(stats.count, len(values))
                self.assertAlmostEqual(stats.mean(), expected)

    def test_two_pages(self) -> None:
        stats = ConfidenceStats()
        stats.record(0.90)
        stats.record(0.80)
        self.assertAlmostEqual(stats.mean(), 0.85)


if __name__ == "__main__":
    unittest.main()
