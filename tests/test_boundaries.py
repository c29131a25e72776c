from __future__ import annotations

import sys
import unittest
from pathlib import Path

import numpy as np


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stepheight.fitting.boundaries import FitBoundaries, generate_boundaries  # noqa: E402


UM = 1e-6


class FitBoundariesTests(unittest.TestCase):
    def test_default_lengths_for_rectangular_feature(self) -> None:
        b = generate_boundaries(-50 * UM, 50 * UM)

        self.assertAlmostEqual(b.feature_width, 100 * UM, delta=1e-15)
        self.assertAlmostEqual(b.wall_width, 100 * UM, delta=1e-15)
        self.assertAlmostEqual(b.x1, -150 * UM, delta=1e-15)
        self.assertAlmostEqual(b.x2, -150 * UM + 200 * UM / 3, delta=1e-15)
        self.assertAlmostEqual(b.x3, -100 * UM / 6, delta=1e-15)
        self.assertAlmostEqual(b.x4, 100 * UM / 6, delta=1e-15)
        self.assertAlmostEqual(b.x5, 150 * UM - 200 * UM / 3, delta=1e-15)
        self.assertAlmostEqual(b.x6, 150 * UM, delta=1e-15)

        positions = [b.x1, b.x2, b.x3, b.x4, b.x5, b.x6]
        self.assertEqual(positions, sorted(positions))

    def test_custom_lengths(self) -> None:
        b = FitBoundaries(length_e=4.0, length_a=1.0, length_c=0.5).generate(0.0, 2.0)

        self.assertEqual((b.x1, b.x2, b.x3, b.x4, b.x5, b.x6), (-3.0, -1.0, 0.5, 1.5, 3.0, 5.0))

    def test_swapped_edges_give_same_boundaries(self) -> None:
        self.assertEqual(generate_boundaries(-50 * UM, 50 * UM),
                         generate_boundaries(50 * UM, -50 * UM))
        self.assertEqual(generate_boundaries(-5.0, 5.0, -7.0, 7.0),
                         generate_boundaries(5.0, -5.0, 7.0, -7.0))

    def test_walls_extend_reference_domains(self) -> None:
        b = generate_boundaries(-5.0, 5.0, -7.0, 7.0)

        self.assertEqual(b.feature_width, 10.0)
        self.assertEqual(b.wall_width, 14.0)
        self.assertEqual(b.x1, -17.0)
        self.assertEqual(b.x6, 17.0)
        self.assertAlmostEqual(b.x3, -5.0 / 3.0)
        self.assertAlmostEqual(b.x4, 5.0 / 3.0)

    def test_walls_inside_edges_are_clamped(self) -> None:
        self.assertEqual(generate_boundaries(-5.0, 5.0, -3.0, 3.0),
                         generate_boundaries(-5.0, 5.0))

    def test_coinciding_edges_collapse(self) -> None:
        b = generate_boundaries(10.0, 10.0)

        self.assertEqual(b.feature_width, 0.0)
        for pos in (b.x1, b.x2, b.x3, b.x4, b.x5, b.x6):
            self.assertEqual(pos, 10.0)

    def test_masks_are_closed_intervals(self) -> None:
        b = FitBoundaries(4.0, 1.0, 0.5).generate(0.0, 2.0)
        x = np.array([-3.0, -2.0, -1.0, -0.5, 0.5, 1.0, 1.5, 2.0, 3.0, 5.0, 6.0])

        np.testing.assert_array_equal(
            b.reference_mask(x),
            [True, True, True, False, False, False, False, False, True, True, False])
        np.testing.assert_array_equal(
            b.feature_mask(x),
            [False, False, False, False, True, True, True, False, False, False, False])

    def test_shifted_moves_positions_not_widths(self) -> None:
        b = FitBoundaries(4.0, 1.0, 0.5).generate(0.0, 2.0)
        moved = b.shifted(10.0)

        self.assertEqual(moved.x1, 7.0)
        self.assertEqual(moved.x6, 15.0)
        self.assertEqual(moved.left_edge, 10.0)
        self.assertEqual(moved.feature_width, b.feature_width)
        self.assertEqual(moved.span, (7.0, 15.0))


if __name__ == "__main__":
    unittest.main()
