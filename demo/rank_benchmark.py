#!/usr/bin/env python3
"""
Rank scaling benchmark for rankmap.

Times RankedIndex.rank() at increasing entry counts and fits the log-log
growth exponent. For comparison it also times a rank computed by walking
every bucket at or below the key, which grows linearly with the number of
distinct keys.

Usage:
    python demo/rank_benchmark.py [--profile=quick|full|custom] [--config=PATH] [--export-json=PATH]

Exit codes:
    0  rank cost grows sublinearly
    3  fitted exponent exceeds the profile's max_exponent
"""

from __future__ import annotations

import argparse
import gc
import json
import platform
import random
import sys
import time
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from benchmark_models import classify_exponent, fit_loglog_exponent, summarize  # noqa: E402
from benchmark_profiles import (  # noqa: E402
    BenchmarkProfile,
    default_profile,
    load_custom_profile,
    profile_to_dict,
)
from rankmap import RankedIndex  # noqa: E402

# Optional psutil import for RSS memory.
try:
    import psutil
except ImportError:  # pragma: no cover - optional dependency
    psutil = None

DEFAULT_SEED = 12345


def get_process_rss_mb() -> float:
    """Get current process RSS memory in MB (0 if psutil unavailable)."""
    if psutil is None:
        return 0.0
    try:
        return psutil.Process().memory_info().rss / (1024 * 1024)
    except psutil.Error:
        return 0.0


def build_index(n: int, distinct_keys: int | None, rng: random.Random) -> RankedIndex:
    key_space = distinct_keys if distinct_keys else n * 10
    index = RankedIndex()
    for i in range(n):
        index.upsert(i, rng.randrange(key_space))
    return index


def scan_rank(index: RankedIndex, key) -> int:
    """Rank by visiting every bucket at or below key."""
    return sum(len(b.ids) for b in index.irange(None, key))


def time_queries(fn, keys: list) -> list[float]:
    out = []
    clock = time.perf_counter_ns
    for k in keys:
        t0 = clock()
        fn(k)
        out.append(float(clock() - t0))
    return out


def run_profile(profile: BenchmarkProfile) -> dict[str, Any]:
    rng = random.Random(profile.seed)
    rows = []
    for n in profile.sizes:
        rss_before = get_process_rss_mb()
        index = build_index(n, profile.distinct_keys, rng)
        rss_after = get_process_rss_mb()
        key_space = profile.distinct_keys if profile.distinct_keys else n * 10
        keys = [rng.randrange(key_space) for _ in range(profile.queries)]

        gc.collect()
        augmented = summarize(n, time_queries(index.rank, keys))
        scan = summarize(n, time_queries(lambda k: scan_rank(index, k), keys[: max(1, profile.queries // 10)]))

        # Both paths must agree before their timings mean anything.
        for k in keys[:20]:
            if index.rank(k) != scan_rank(index, k):
                raise AssertionError(f"rank mismatch at n={n}, key={k}")

        print(
            f"  n={n:>8}  keys={index._tree.node_count:>8}  height={index._tree.height:>3}  "
            f"rank p50={augmented.median_ns:>9.0f}ns  scan p50={scan.median_ns:>12.0f}ns  "
            f"rss+={rss_after - rss_before:.1f}MB"
        )
        rows.append({
            "n": n,
            "distinct_keys": index._tree.node_count,
            "height": index._tree.height,
            "rank": asdict(augmented),
            "scan": asdict(scan),
            "rss_delta_mb": rss_after - rss_before,
        })

    sizes = [row["n"] for row in rows]
    rank_fit = fit_loglog_exponent(sizes, [row["rank"]["median_ns"] for row in rows])
    scan_fit = fit_loglog_exponent(sizes, [row["scan"]["median_ns"] for row in rows])
    return {"rows": rows, "rank_fit": rank_fit, "scan_fit": scan_fit}


def _resolve_profile(args: argparse.Namespace) -> BenchmarkProfile:
    if args.profile == "custom":
        if args.config is None:
            raise ValueError("--profile=custom requires --config")
        return load_custom_profile(Path(args.config), args.seed)
    return default_profile(args.profile, args.seed)


def run_benchmark(args: argparse.Namespace) -> tuple[int, dict[str, Any]]:
    profile = _resolve_profile(args)
    print(f"rankmap rank benchmark | profile={profile.name} | seed={profile.seed}")
    print("=" * 64)
    result = run_profile(profile)

    slope = result["rank_fit"]["slope"]
    verdict = classify_exponent(slope, profile.max_exponent)
    print("=" * 64)
    print(
        f"rank exponent={slope:.3f} (r2={result['rank_fit']['r2']:.2f}) -> {verdict} | "
        f"scan exponent={result['scan_fit']['slope']:.3f}"
    )

    payload = {
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "psutil_available": psutil is not None,
        "profile": profile_to_dict(profile),
        "verdict": verdict,
        **result,
    }

    if args.export_json:
        out_json = Path(args.export_json)
        out_json.parent.mkdir(parents=True, exist_ok=True)
        with out_json.open("w") as f:
            json.dump(payload, f, indent=2)
        print(f"Benchmark JSON exported: {out_json}")

    return (0 if verdict == "sublinear" else 3), payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="rankmap rank scaling benchmark")
    parser.add_argument("--profile", choices=["quick", "full", "custom"], default="quick")
    parser.add_argument("--config", type=str, help="Path to custom profile JSON config")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)
    parser.add_argument("--export-json", type=str, default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        code, _payload = run_benchmark(args)
    except ValueError as exc:
        parser.error(str(exc))
    return code


if __name__ == "__main__":
    raise SystemExit(main())
