#!/usr/bin/env python3

from __future__ import annotations

import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT / "demo"))

import correctness_checker as cc  # noqa: E402


class CorrectnessCheckerCITests(unittest.TestCase):
    def test_compute_exit_code_mismatch_fails(self) -> None:
        out = cc._compute_exit_code(3)
        self.assertEqual(out.exit_code, 2)
        self.assertEqual(out.result, "fail")

    def test_compute_exit_code_clean_passes(self) -> None:
        out = cc._compute_exit_code(0)
        self.assertEqual(out.exit_code, 0)
        self.assertEqual(out.result, "pass")

    def test_short_run_is_clean_and_logged(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log_path = Path(td) / "ops.jsonl"
            with redirect_stdout(io.StringIO()):
                code = cc.main(["--ops", "2000", "--duration", "120", "--seed", "42", "--log", str(log_path)])
            self.assertEqual(code, 0)
            records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
        summary = records[-1]
        self.assertEqual(summary["op"], "summary")
        self.assertEqual(summary["ops"], 2000)
        self.assertEqual(summary["mismatches"], 0)
        self.assertEqual(summary["result"], "pass")
        self.assertGreater(summary["verifications"], 0)

    def test_same_seed_same_trace(self) -> None:
        def ops_for(seed: int) -> list:
            checker = cc.CorrectnessChecker(seed=seed, duration=60, verbose=False, log_path=None, max_ops=300)
            with redirect_stdout(io.StringIO()):
                checker.run()
            return [checker.writes, len(checker.index), list(checker.index.items())]

        self.assertEqual(ops_for(5), ops_for(5))

    def test_detects_broken_index(self) -> None:
        checker = cc.CorrectnessChecker(seed=1, duration=60, verbose=False, log_path=None, max_ops=0)
        checker.index.upsert("ghost", 1)
        with self.assertRaises(cc.MismatchError):
            checker._full_verify()
        self.assertEqual(checker.mismatches, 1)

    def test_negative_ops_rejected(self) -> None:
        with redirect_stdout(io.StringIO()):
            self.assertEqual(cc.main(["--ops", "-1"]), 1)


if __name__ == "__main__":
    unittest.main()
