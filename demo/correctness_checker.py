#!/usr/bin/env python3
"""
Correctness Checker: Long-running chaotic test with shadow state verification.

Drives a RankedIndex and the formal reference model with the same random
stream of upserts, increments, removals and queries, and verifies every
result. Any mismatch between the two is a potential bug.

Usage:
    python demo/correctness_checker.py [--duration=60] [--ops=N] [--seed=42] [--verbose] [--log=PATH]

Options:
    --duration=N   Run for N seconds (default: 60)
    --ops=N        Stop after N operations instead (default: unlimited)
    --seed=N       RNG seed for reproducibility (default: random)
    --verbose      Print every operation
    --log=PATH     JSONL audit trail (default: none)

Exit codes:
    0  no mismatches
    2  at least one mismatch
"""

from __future__ import annotations

import argparse
import json
import random
import sys
import time
from pathlib import Path
from typing import NamedTuple

# ---------------------------------------------------------------------------
# Ensure rankmap and the reference model are importable
# ---------------------------------------------------------------------------

_REPO = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_REPO / "python"))
sys.path.insert(0, str(_REPO / "formal"))

from rankmap import RankedIndex  # noqa: E402
from reference_model import ReferenceModel  # noqa: E402


# ---------------------------------------------------------------------------
# Identity Factory
# ---------------------------------------------------------------------------

class IdentityFactory:
    """Draws identities of mixed hashable types from a bounded pool."""

    def __init__(self, rng: random.Random, pool_size: int = 500):
        self._rng = rng
        self._pool_size = pool_size

    def make(self):
        n = self._rng.randrange(self._pool_size)
        kind = n % 3
        if kind == 0:
            return f"player_{n}"
        elif kind == 1:
            return n
        return ("sku", n)


# ---------------------------------------------------------------------------
# Operation Log (JSONL)
# ---------------------------------------------------------------------------

class OperationLog:
    """Append-only JSONL audit trail."""

    def __init__(self, path: str | None):
        self._file = None
        if path:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._file = open(path, "w", encoding="utf-8")
        self._seq = 0

    def log(self, **fields):
        self._seq += 1
        record = {"seq": self._seq, "t": time.time(), **fields}
        if self._file:
            self._file.write(json.dumps(record, default=str) + "\n")

    def close(self):
        if self._file:
            self._file.flush()
            self._file.close()
            self._file = None


# ---------------------------------------------------------------------------
# Mismatch Error / exit codes
# ---------------------------------------------------------------------------

class MismatchError(Exception):
    """Raised on verification failure."""
    pass


class ExitDecision(NamedTuple):
    exit_code: int
    result: str


def _compute_exit_code(mismatches: int) -> ExitDecision:
    if mismatches:
        return ExitDecision(2, "fail")
    return ExitDecision(0, "pass")


# ---------------------------------------------------------------------------
# Correctness Checker
# ---------------------------------------------------------------------------

class CorrectnessChecker:
    """Orchestrator: runs random operations and verifies results."""

    # Operation weights
    WEIGHTS = [
        ("upsert", 35),
        ("increment", 10),
        ("remove", 12),
        ("query_nearest", 12),
        ("query_rank", 10),
        ("query_select", 6),
        ("query_range", 6),
        ("query_top_k", 5),
        ("query_position", 4),
    ]

    KEY_SPACE = 1000

    def __init__(
        self,
        seed: int,
        duration: float,
        verbose: bool,
        log_path: str | None,
        max_ops: int | None = None,
    ):
        self.seed = seed
        self.duration = duration
        self.max_ops = max_ops
        self.verbose = verbose
        self.rng = random.Random(seed)
        self.factory = IdentityFactory(self.rng)
        self.oplog = OperationLog(log_path)
        self.index = RankedIndex()
        self.shadow = ReferenceModel()

        # Stats
        self.ops = 0
        self.writes = 0
        self.mismatches = 0
        self.verifications = 0

        self._choices = [name for name, _ in self.WEIGHTS]
        self._weights_list = [weight for _, weight in self.WEIGHTS]

    def _done(self, start: float) -> bool:
        if self.max_ops is not None and self.ops >= self.max_ops:
            return True
        return time.monotonic() - start >= self.duration

    def run(self) -> int:
        """Main loop. Returns the process exit code."""
        print(f"Correctness Checker | seed={self.seed} | duration={self.duration}s")
        print("=" * 64)

        start = time.monotonic()
        last_report = start
        report_interval = 10  # seconds

        try:
            while not self._done(start):
                op_name = self.rng.choices(self._choices, self._weights_list, k=1)[0]
                getattr(self, f"_op_{op_name}")()
                self.ops += 1

                # Periodic full verification
                if self.ops % 200 == 0:
                    self._full_verify()

                now = time.monotonic()
                if now - last_report >= report_interval:
                    elapsed_s = int(now - start)
                    print(f"  [{elapsed_s}s]  {self.ops} ops | {len(self.shadow)} entries")
                    self.oplog.log(op="progress", elapsed=elapsed_s, ops=self.ops,
                                   entries=len(self.shadow))
                    last_report = now

            self._full_verify()

        except MismatchError as e:
            print(f"\nFATAL MISMATCH: {e}")
            self.oplog.log(op="FATAL", error=str(e))
        finally:
            elapsed_s = round(time.monotonic() - start, 2)
            decision = _compute_exit_code(self.mismatches)
            print("=" * 64)
            print(
                f"SUMMARY: {self.ops} ops | {self.writes} writes | "
                f"{self.mismatches} MISMATCHES | result={decision.result}"
            )
            print(f"Duration: {elapsed_s}s | Verifications: {self.verifications}")
            print("=" * 64)
            self.oplog.log(
                op="summary",
                seed=self.seed,
                ops=self.ops,
                writes=self.writes,
                mismatches=self.mismatches,
                verifications=self.verifications,
                elapsed=elapsed_s,
                result=decision.result,
            )
            self.oplog.close()
        return decision.exit_code

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _key(self) -> int:
        return self.rng.randrange(self.KEY_SPACE)

    def _trace(self, op: str, **fields) -> None:
        if self.verbose:
            print(f"  {op} {fields}")
        self.oplog.log(op=op, **fields)

    def _check(self, context: str, got, expected) -> None:
        self.verifications += 1
        if got != expected:
            self.mismatches += 1
            self.oplog.log(op="MISMATCH", type=context, expected=expected, got=got)
            raise MismatchError(f"{context}: expected {expected!r}, got {got!r}")

    @staticmethod
    def _pair(bucket):
        return bucket.key, bucket.ids

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def _op_upsert(self):
        ident, key = self.factory.make(), self._key()
        got = self.index.upsert(ident, key).value
        expected = self.shadow.upsert(ident, key)
        self.writes += 1
        self._trace("upsert", ident=ident, key=key, outcome=got)
        self._check("upsert", got, expected)

    def _op_increment(self):
        ident, delta = self.factory.make(), self.rng.randint(-50, 50)
        old = self.shadow.get(ident)
        new = (0 if old is None else old) + delta
        got = self.index.increment(ident, delta)
        self.shadow.upsert(ident, new)
        self.writes += 1
        self._trace("increment", ident=ident, delta=delta, key=got)
        self._check("increment", got, new)

    def _op_remove(self):
        ident = self.factory.make()
        got = self.index.remove(ident).value
        expected = self.shadow.remove(ident)
        self.writes += 1
        self._trace("remove", ident=ident, outcome=got)
        self._check("remove", got, expected)

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def _op_query_nearest(self):
        k = self._key()
        self._check(f"floor({k})", self._pair(self.index.floor(k)), self.shadow.floor(k))
        self._check(f"lower({k})", self._pair(self.index.lower(k)), self.shadow.lower(k))
        self._check(f"ceiling({k})", self._pair(self.index.ceiling(k)), self.shadow.ceiling(k))
        self._check(f"higher({k})", self._pair(self.index.higher(k)), self.shadow.higher(k))

    def _op_query_rank(self):
        k = self._key()
        self._check(f"rank({k})", self.index.rank(k), self.shadow.rank(k))
        self._check(f"count_below({k})", self.index.count_below(k), self.shadow.count_below(k))

    def _op_query_select(self):
        n = len(self.shadow)
        if not n:
            return
        i = self.rng.randrange(n)
        self._check(f"select({i})", self.index.select(i), self.shadow.select(i))

    def _op_query_range(self):
        lo = self._key()
        hi = lo + self.rng.randrange(100)
        got = [self._pair(b) for b in self.index.range_inclusive(lo, hi)]
        self._check(f"range_inclusive({lo}, {hi})", got, self.shadow.range_inclusive(lo, hi))

    def _op_query_top_k(self):
        n = self.rng.randrange(20)
        descending = self.rng.random() < 0.5
        self._check(
            f"top_k({n}, descending={descending})",
            self.index.top_k(n, descending=descending),
            self.shadow.top_k(n, descending=descending),
        )

    def _op_query_position(self):
        ident = self.factory.make()
        self._check(f"position({ident!r})", self.index.position(ident), self.shadow.position(ident))

    # ------------------------------------------------------------------
    # Full verification
    # ------------------------------------------------------------------

    def _full_verify(self):
        self.index.validate()
        self._check("len", len(self.index), len(self.shadow))
        self._check("keys", list(self.index._tree.keys()), self.shadow.keys())
        for ident in self.shadow.identities():
            self._check(f"get({ident!r})", self.index.get(ident), self.shadow.get(ident))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="rankmap Correctness Checker: chaotic test with shadow verification"
    )
    parser.add_argument("--duration", type=float, default=60,
                        help="Run duration in seconds (default: 60)")
    parser.add_argument("--ops", type=int, default=None,
                        help="Stop after this many operations")
    parser.add_argument("--seed", type=int, default=None,
                        help="RNG seed (default: random)")
    parser.add_argument("--verbose", action="store_true",
                        help="Print every operation")
    parser.add_argument("--log", type=str, default=None,
                        help="JSONL log path (default: none)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.ops is not None and args.ops < 0:
        print("--ops must be >= 0", file=sys.stderr)
        return 1

    seed = args.seed if args.seed is not None else random.randint(0, 2**32 - 1)

    checker = CorrectnessChecker(
        seed=seed,
        duration=args.duration,
        verbose=args.verbose,
        log_path=args.log,
        max_ops=args.ops,
    )
    return checker.run()


if __name__ == "__main__":
    sys.exit(main())
