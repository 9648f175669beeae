#!/usr/bin/env python3
"""Statistics and model-fitting utilities for the rank benchmark (stdlib-only)."""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass


@dataclass
class QueryStats:
    n: int
    samples: int
    median_ns: float
    p95_ns: float
    p99_ns: float


def percentile(values: list[float], p: float) -> float:
    """Linear-interpolated percentile, p in [0, 1]."""
    if not values:
        return 0.0
    s = sorted(values)
    pos = (len(s) - 1) * p
    lo, hi = math.floor(pos), math.ceil(pos)
    if lo == hi:
        return s[lo]
    w = pos - lo
    return s[lo] * (1.0 - w) + s[hi] * w


def summarize(n: int, latencies_ns: list[float]) -> QueryStats:
    return QueryStats(
        n=n,
        samples=len(latencies_ns),
        median_ns=statistics.median(latencies_ns) if latencies_ns else 0.0,
        p95_ns=percentile(latencies_ns, 0.95),
        p99_ns=percentile(latencies_ns, 0.99),
    )


def fit_loglog_exponent(xs: list[float], ys: list[float]) -> dict[str, float]:
    """
    Least-squares fit of log(y) = slope * log(x) + intercept.

    A slope near 0 means cost grows no faster than a log factor; near 1
    means cost is linear in x.
    """
    points = [(math.log(x), math.log(y)) for x, y in zip(xs, ys) if x > 0 and y > 0]
    if len(points) < 2:
        return {"slope": 0.0, "intercept": 0.0, "r2": 0.0}
    logx = [x for x, _ in points]
    logy = [y for _, y in points]
    if len(set(logx)) < 2:
        return {"slope": 0.0, "intercept": 0.0, "r2": 0.0}

    slope, intercept = statistics.linear_regression(logx, logy)
    if len(set(logy)) < 2:
        r2 = 1.0
    else:
        r2 = statistics.correlation(logx, logy) ** 2
    return {"slope": slope, "intercept": intercept, "r2": r2}


def classify_exponent(slope: float, threshold: float) -> str:
    return "sublinear" if slope < threshold else "linear-or-worse"
