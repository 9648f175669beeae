#!/usr/bin/env python3

from __future__ import annotations

import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from benchmark_models import classify_exponent, fit_loglog_exponent, percentile, summarize  # noqa: E402
from benchmark_profiles import default_profile, load_custom_profile, profile_to_dict  # noqa: E402
import rank_benchmark as rb  # noqa: E402


class BenchmarkModelsTests(unittest.TestCase):
    def test_percentile(self) -> None:
        vals = [1.0, 2.0, 3.0, 4.0, 5.0]
        self.assertAlmostEqual(percentile(vals, 0.5), 3.0)
        self.assertAlmostEqual(percentile(vals, 0.95), 4.8)
        self.assertEqual(percentile([], 0.5), 0.0)

    def test_summarize(self) -> None:
        stats = summarize(100, [10.0, 12.0, 11.0, 50.0])
        self.assertEqual(stats.samples, 4)
        self.assertAlmostEqual(stats.median_ns, 11.5)
        self.assertGreaterEqual(stats.p99_ns, stats.p95_ns)

    def test_loglog_fit_linear(self) -> None:
        xs = [1, 2, 4, 8, 16]
        fit = fit_loglog_exponent(xs, xs)
        self.assertAlmostEqual(fit["slope"], 1.0, delta=0.01)
        self.assertAlmostEqual(fit["r2"], 1.0, delta=0.01)

    def test_loglog_fit_constant(self) -> None:
        fit = fit_loglog_exponent([1, 10, 100], [5, 5, 5])
        self.assertAlmostEqual(fit["slope"], 0.0, delta=1e-9)

    def test_loglog_fit_too_few_points(self) -> None:
        self.assertEqual(fit_loglog_exponent([10], [3])["slope"], 0.0)

    def test_classify(self) -> None:
        self.assertEqual(classify_exponent(0.1, 0.5), "sublinear")
        self.assertEqual(classify_exponent(0.9, 0.5), "linear-or-worse")


class BenchmarkProfileTests(unittest.TestCase):
    def test_default_profiles(self) -> None:
        quick = default_profile("quick", seed=7)
        self.assertEqual(quick.seed, 7)
        self.assertLess(max(quick.sizes), max(default_profile("full", seed=7).sizes))
        with self.assertRaises(ValueError):
            default_profile("nope", seed=7)

    def test_custom_profile_from_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "profile.json"
            path.write_text(json.dumps({"sizes": [100, 200], "queries": 10}), encoding="utf-8")
            profile = load_custom_profile(path, default_seed=3)
        self.assertEqual(profile.sizes, [100, 200])
        self.assertEqual(profile.queries, 10)
        self.assertEqual(profile.seed, 3)
        self.assertEqual(profile_to_dict(profile)["name"], "custom")

    def test_custom_profile_rejects_bad_sizes(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "profile.json"
            path.write_text(json.dumps({"sizes": [0]}), encoding="utf-8")
            with self.assertRaises(ValueError):
                load_custom_profile(path, default_seed=3)


class RankBenchmarkTests(unittest.TestCase):
    def test_scan_rank_agrees_with_rank(self) -> None:
        import random

        index = rb.build_index(500, 40, random.Random(1))
        for k in range(-1, 42):
            self.assertEqual(rb.scan_rank(index, k), index.rank(k))

    def test_small_custom_run_exports_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            config = Path(td) / "profile.json"
            config.write_text(
                json.dumps({"sizes": [50, 100], "queries": 20, "max_exponent": 10.0}),
                encoding="utf-8",
            )
            out = Path(td) / "out" / "bench.json"
            with redirect_stdout(io.StringIO()):
                code = rb.main(["--profile", "custom", "--config", str(config), "--export-json", str(out)])
            self.assertEqual(code, 0)
            payload = json.loads(out.read_text(encoding="utf-8"))
        self.assertEqual([row["n"] for row in payload["rows"]], [50, 100])
        self.assertIn("rank_fit", payload)
        self.assertEqual(payload["verdict"], "sublinear")


if __name__ == "__main__":
    unittest.main()
