#!/usr/bin/env python3
"""Rank benchmark profile definitions."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any


@dataclass
class BenchmarkProfile:
    name: str
    sizes: list[int]
    queries: int
    distinct_keys: int | None  # None: every entry gets its own key
    max_exponent: float
    seed: int


def default_profile(profile_name: str, seed: int) -> BenchmarkProfile:
    if profile_name == "quick":
        return BenchmarkProfile(
            name="quick",
            sizes=[1_000, 4_000, 16_000],
            queries=500,
            distinct_keys=None,
            max_exponent=0.5,
            seed=seed,
        )
    if profile_name == "full":
        return BenchmarkProfile(
            name="full",
            sizes=[1_000, 4_000, 16_000, 64_000, 256_000],
            queries=2_000,
            distinct_keys=None,
            max_exponent=0.5,
            seed=seed,
        )
    raise ValueError(f"unknown profile {profile_name!r}")


def load_custom_profile(config_path: Path, default_seed: int) -> BenchmarkProfile:
    with config_path.open() as f:
        raw = json.load(f)

    sizes = [int(n) for n in raw.get("sizes", [1_000, 4_000, 16_000])]
    if not sizes or any(n <= 0 for n in sizes):
        raise ValueError("sizes must be a non-empty list of positive ints")
    distinct = raw.get("distinct_keys")
    return BenchmarkProfile(
        name=str(raw.get("name", "custom")),
        sizes=sizes,
        queries=int(raw.get("queries", 500)),
        distinct_keys=None if distinct is None else int(distinct),
        max_exponent=float(raw.get("max_exponent", 0.5)),
        seed=int(raw.get("seed", default_seed)),
    )


def profile_to_dict(profile: BenchmarkProfile) -> dict[str, Any]:
    return asdict(profile)
