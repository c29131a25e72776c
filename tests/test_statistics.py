from __future__ import annotations

import sys
import unittest
from pathlib import Path

import numpy as np


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stepheight.feature_types import FeatureType, FitStatus  # noqa: E402
from stepheight.fitting import (  # noqa: E402
    FitResult,
    FitStatistics,
    fit_profile,
    format_fit_result,
    format_statistics,
    summarize,
)
from utils.logger import get_logger  # noqa: E402


UM = 1e-6


def _result(height: float, residual_x, residual_z, pt: float | None = None,
            radius: float = np.nan, feature_type: FeatureType = FeatureType.A1_GROOVE) -> FitResult:
    residual_x = np.asarray(residual_x, dtype=float)
    residuals = np.column_stack([residual_x, np.zeros(len(residual_x)), residual_z])
    return FitResult(
        feature_type=feature_type,
        status=FitStatus.SUCCESS,
        height=height,
        pt=height if pt is None else pt,
        range_of_residuals=float(np.ptp(residuals[:, 2])),
        radius=radius,
        asymmetry=0.0,
        y_position=10 * UM,
        residuals=residuals,
    )


class SummarizeTests(unittest.TestCase):
    def test_nan_values_are_ignored(self) -> None:
        stats = summarize([1.0, 2.0, np.nan, 3.0])

        self.assertEqual(stats["n"], 3)
        self.assertEqual(stats["average"], 2.0)
        self.assertEqual(stats["range"], 2.0)
        self.assertEqual(stats["min"], 1.0)
        self.assertEqual(stats["max"], 3.0)
        self.assertAlmostEqual(stats["std"], 1.0)

    def test_single_value_has_no_std(self) -> None:
        stats = summarize([4.0])

        self.assertEqual(stats["average"], 4.0)
        self.assertEqual(stats["range"], 0.0)
        self.assertTrue(np.isnan(stats["std"]))

    def test_infinite_values_are_kept(self) -> None:
        stats = summarize([1.0, np.inf, np.nan])

        self.assertEqual(stats["n"], 2)
        self.assertEqual(stats["average"], np.inf)
        self.assertEqual(stats["max"], np.inf)
        self.assertEqual(stats["range"], np.inf)

    def test_empty(self) -> None:
        stats = summarize([])

        self.assertEqual(stats["n"], 0)
        self.assertTrue(np.isnan(stats["average"]))


class FitStatisticsTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        get_logger()

    def test_scalar_channels(self) -> None:
        statistics = FitStatistics()
        for height in (1.0, 2.0, 3.0):
            statistics.update(_result(height, [0.0, 1.0], [0.0, 0.0], pt=height + 0.5))

        self.assertEqual(statistics.number_of_samples, 3)
        self.assertEqual(statistics.average_height, 2.0)
        self.assertEqual(statistics.height_range, 2.0)
        self.assertAlmostEqual(statistics.height_std_dev, 1.0)
        self.assertEqual(statistics.average_pt, 2.5)
        self.assertEqual(statistics.pt_range, 2.0)
        self.assertTrue(np.isnan(statistics.average_radius))
        self.assertTrue(np.isnan(statistics.radius_range))

    def test_identical_fits_give_zero_ranges(self) -> None:
        x = np.linspace(-300 * UM, 300 * UM, 601)
        z = np.where(np.abs(x) <= 50 * UM, -1 * UM, 0.0)
        profile = np.column_stack([x, np.zeros(len(x)), z])
        result = fit_profile(profile, FeatureType.A1_GROOVE, -50 * UM, 50 * UM)

        statistics = FitStatistics()
        for _ in range(4):
            statistics.update(result)

        self.assertEqual(statistics.number_of_samples, 4)
        self.assertEqual(statistics.height_range, 0.0)
        self.assertEqual(statistics.pt_range, 0.0)
        self.assertAlmostEqual(statistics.average_height, result.height, delta=1e-18)
        np.testing.assert_allclose(statistics.average_residual_plot[:, 2],
                                   result.residuals[:, 2], atol=1e-20)

    def test_average_residual_plot(self) -> None:
        statistics = FitStatistics()
        self.assertIsNone(statistics.average_residual_plot)

        statistics.update(_result(1.0, [0.0, 1.0, 2.0], [1.0, 2.0, 3.0]))
        statistics.update(_result(1.0, [0.0, 1.0, 2.0], [3.0, 4.0, 5.0]))

        plot = statistics.average_residual_plot
        np.testing.assert_array_equal(plot[:, 0], [0.0, 1.0, 2.0])
        np.testing.assert_array_equal(plot[:, 2], [2.0, 3.0, 4.0])

    def test_skip_policy_leaves_out_deviating_residuals(self) -> None:
        statistics = FitStatistics(residual_policy="skip")
        statistics.update(_result(1.0, [0.0, 1.0, 2.0], [1.0, 1.0, 1.0]))
        with self.assertLogs("StepHeight", level="WARNING"):
            statistics.update(_result(3.0, [0.0, 2.0], [5.0, 5.0]))

        self.assertEqual(statistics.number_of_samples, 2)
        self.assertEqual(statistics.average_height, 2.0)
        self.assertEqual(statistics.number_of_residual_plots, 1)
        np.testing.assert_array_equal(statistics.average_residual_plot[:, 2], [1.0, 1.0, 1.0])

    def test_interpolate_policy_resamples(self) -> None:
        statistics = FitStatistics(residual_policy="interpolate")
        statistics.update(_result(1.0, [0.0, 1.0, 2.0], [0.0, 0.0, 0.0]))
        statistics.update(_result(1.0, [0.0, 2.0], [2.0, 4.0]))

        self.assertEqual(statistics.number_of_residual_plots, 2)
        np.testing.assert_allclose(statistics.average_residual_plot[:, 2], [1.0, 1.5, 2.0])

    def test_unsuccessful_results_are_ignored(self) -> None:
        statistics = FitStatistics()
        statistics.update(_result(2.0, [0.0, 1.0], [1.0, 1.0]))
        failed = FitResult(feature_type=FeatureType.A1_GROOVE, status=FitStatus.NO_DATA)
        with self.assertLogs("StepHeight", level="WARNING"):
            statistics.update(failed)

        self.assertEqual(statistics.number_of_samples, 1)
        self.assertEqual(statistics.get_statistics()["height"]["n"], 1)
        self.assertEqual(statistics.average_height, 2.0)
        self.assertEqual(statistics.number_of_residual_plots, 1)

    def test_unbounded_radius_is_not_dropped(self) -> None:
        x = np.linspace(-300 * UM, 300 * UM, 601)
        flat = np.column_stack([x, np.zeros(len(x)), np.zeros(len(x))])
        result = fit_profile(flat, FeatureType.A2_GROOVE, -50 * UM, 50 * UM)
        self.assertTrue(result.success)
        self.assertTrue(np.isinf(result.radius))

        statistics = FitStatistics()
        statistics.update(result)

        self.assertEqual(statistics.get_statistics()["radius"]["n"], 1)
        self.assertTrue(np.isinf(statistics.average_radius))
        self.assertIn("Average radius = inf um", format_statistics(statistics))

    def test_unknown_policy(self) -> None:
        with self.assertRaises(ValueError):
            FitStatistics(residual_policy="drop")

    def test_restart_clears_everything(self) -> None:
        statistics = FitStatistics()
        statistics.update(_result(1.0, [0.0, 1.0], [1.0, 2.0], radius=2.0))
        statistics.restart()

        self.assertEqual(statistics.number_of_samples, 0)
        self.assertIsNone(statistics.average_residual_plot)
        self.assertTrue(np.isnan(statistics.average_height))

        statistics.update(_result(5.0, [0.0], [7.0]))
        self.assertEqual(statistics.average_height, 5.0)
        np.testing.assert_array_equal(statistics.average_residual_plot[:, 2], [7.0])

    def test_get_statistics(self) -> None:
        statistics = FitStatistics()
        statistics.update(_result(1.0, [0.0], [0.0], radius=1e-3))
        statistics.update(_result(3.0, [0.0], [0.0], radius=3e-3))

        stats = statistics.get_statistics()
        self.assertEqual(stats["number_of_samples"], 2)
        self.assertEqual(stats["height"]["average"], 2.0)
        self.assertAlmostEqual(stats["radius"]["range"], 2e-3)


class FormattingTests(unittest.TestCase):
    def test_flat_topped_line(self) -> None:
        line = format_fit_result(7, _result(1 * UM, [0.0, 1.0], [0.0, 0.0]))
        columns = line.split()

        self.assertEqual(len(columns), 5)
        self.assertEqual(columns[0], "7")
        self.assertEqual(columns[1], "10.0")
        self.assertEqual(columns[2], "1.0000")

    def test_cylindrical_line(self) -> None:
        result = _result(1 * UM, [0.0, 1.0], [0.0, 0.0], radius=1e-3,
                         feature_type=FeatureType.A2_GROOVE)
        columns = format_fit_result(0, result).split()

        self.assertEqual(len(columns), 7)
        self.assertEqual(columns[5], "1000.0")
        self.assertEqual(columns[6], "0.000")

    def test_format_statistics(self) -> None:
        statistics = FitStatistics()
        statistics.update(_result(1 * UM, [0.0], [0.0]))
        text = format_statistics(statistics)

        self.assertIn("N profiles = 1", text)
        self.assertIn("Average height = 1.00000 um", text)
        self.assertNotIn("radius", text)


if __name__ == "__main__":
    unittest.main()
