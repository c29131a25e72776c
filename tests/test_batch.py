from __future__ import annotations

import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import stepheight_batch  # noqa: E402


def _groove_heights(num_profiles: int = 5, num_points: int = 601) -> np.ndarray:
    """Heights in nm: 1 um deep groove between 250 and 350 um, offset per profile."""
    z = np.zeros((num_profiles, num_points))
    z[:, 250:351] = -1000.0
    z += 10.0 * np.arange(num_profiles)[:, None]
    return z


def _write_sdf(path: Path, z_nm: np.ndarray, x_offset: float = 0.0) -> None:
    lines = [
        "aBCR-1.0",
        "ManufacID   = Synthetic",
        f"NumPoints   = {z_nm.shape[1]}",
        f"NumProfiles = {z_nm.shape[0]}",
        "Xscale      = 1.0E-6",
        "Yscale      = 1.0E-6",
        "Zscale      = 1.0E-9",
        "*",
    ]
    for row in z_nm:
        lines.append(" ".join(str(int(v)) for v in row))
    lines += ["*", f"XOffset = {x_offset!r}", "*"]
    path.write_text("\n".join(lines) + "\n", encoding="latin-1")


class FileNameTests(unittest.TestCase):
    def test_single_name(self) -> None:
        self.assertEqual(stepheight_batch.resolve_file_names(["scan"], "prn", "csv"),
                         ("scan.sdf", "scan.prn", "scan.csv"))

    def test_output_names(self) -> None:
        self.assertEqual(stepheight_batch.resolve_file_names(["scan.sdf", "out"], "prn", "csv"),
                         ("scan.sdf", "out.prn", "out.csv"))
        self.assertEqual(
            stepheight_batch.resolve_file_names(["scan.sdf", "out", "res"], "txt", "dat"),
            ("scan.sdf", "out.txt", "res.dat"))

    def test_missing_name(self) -> None:
        with self.assertRaises(ValueError):
            stepheight_batch.resolve_file_names([], "prn", "csv")


class BatchRunTests(unittest.TestCase):
    def test_groove_evaluation_writes_report_and_residuals(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scan = Path(tmp) / "scan.sdf"
            _write_sdf(scan, _groove_heights())

            code = stepheight_batch.main(
                [str(scan), "--type", "3", "--X1", "250", "--X2", "350", "-q", "--plot"])

            self.assertEqual(code, 0)
            report = (Path(tmp) / "scan.prn").read_text(encoding="utf-8").splitlines()
            self.assertIn("FeatureType               = A1Groove", report)
            self.assertIn("NumberOfValidProfiles     = 5", report)
            self.assertIn("NumberOfDiscardedProfiles = 0", report)
            self.assertIn("AverageHeight             = 1.00000 um", report)
            self.assertIn("DisjointScanFields        = 1", report)
            self.assertEqual(report[-5].split()[0], "0")
            self.assertEqual(report[-1].split()[0], "4")

            residuals = (Path(tmp) / "scan.csv").read_text(encoding="utf-8").splitlines()
            self.assertEqual(residuals[0], "x coordinate in um,average fit residuals in nm")
            self.assertGreater(len(residuals), 100)
            self.assertTrue((Path(tmp) / "scan.png").exists())

    def test_y_band_and_output_name(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scan = Path(tmp) / "scan.sdf"
            _write_sdf(scan, _groove_heights())

            code = stepheight_batch.main(
                [str(scan), str(Path(tmp) / "result"), "--type", "3", "--X1", "250",
                 "--X2", "350", "--Y0", "1", "--Ywidth", "2.5", "-q", "--separator", ";"])

            self.assertEqual(code, 0)
            report = (Path(tmp) / "result.prn").read_text(encoding="utf-8")
            self.assertIn("NumberOfValidProfiles     = 3", report)
            self.assertNotIn("infinity", report)
            residuals = (Path(tmp) / "result.csv").read_text(encoding="utf-8")
            self.assertIn(";", residuals.splitlines()[1])

    def test_multifile_evaluation(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            z = _groove_heights(num_points=600)
            for i, patch in enumerate("ABC"):
                _write_sdf(Path(tmp) / f"step{patch}.sdf", z[:, 200 * i:200 * (i + 1)],
                           x_offset=1e-3 + i * 200e-6)

            code = stepheight_batch.main(
                [str(Path(tmp) / "step"), "--multifile", "--type", "3", "--X1", "250",
                 "--X2", "350", "-q"])

            self.assertEqual(code, 0)
            report = (Path(tmp) / "step.prn").read_text(encoding="utf-8")
            self.assertIn("DisjointScanFields        = 3", report)
            self.assertIn("NumberOfPointsPerProfile  = 600", report)
            self.assertIn("AverageHeight             = 1.00000 um", report)


class BatchExitCodeTests(unittest.TestCase):
    def _run(self, argv) -> int:
        with self.assertRaises(SystemExit) as cm:
            stepheight_batch.main(argv)
        return cm.exception.code

    def test_missing_file_name(self) -> None:
        self.assertEqual(self._run(["-q"]), 1)

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(self._run([str(Path(tmp) / "nothing.sdf"), "-q"]), 2)

    def test_incompatible_patches(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            z = _groove_heights(num_points=600)
            _write_sdf(Path(tmp) / "stepA.sdf", z[:, :200])
            _write_sdf(Path(tmp) / "stepB.sdf", z[:, 200:400], x_offset=200e-6)
            _write_sdf(Path(tmp) / "stepC.sdf", z[:4, 400:], x_offset=400e-6)

            self.assertEqual(self._run([str(Path(tmp) / "step"), "--multifile", "-q"]), 11)

    def test_no_valid_profile(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scan = Path(tmp) / "scan.sdf"
            _write_sdf(scan, _groove_heights())

            code = self._run([str(scan), "--type", "3", "--X1", "250", "--X2", "350",
                              "--maxspan", "0", "-q"])
            self.assertEqual(code, 3)

    def test_edge_outside_profile(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scan = Path(tmp) / "scan.sdf"
            _write_sdf(scan, _groove_heights())

            code = self._run([str(scan), "--type", "3", "--X1", "10", "--X2", "590", "-q"])
            self.assertEqual(code, 30)

    def test_single_edge_not_supported(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scan = Path(tmp) / "scan.sdf"
            _write_sdf(scan, _groove_heights())

            code = self._run([str(scan), "--type", "5", "--X1", "250", "--X2", "350", "-q"])
            self.assertEqual(code, 40)


if __name__ == "__main__":
    unittest.main()
