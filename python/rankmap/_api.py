"""
Internal helper functions for the rankmap facade.

This module is private API. Do not import directly.
"""

from __future__ import annotations

import numbers
from decimal import Decimal

_SENTINEL = object()


def _coerce_key(x: object):
    """
    Validate x as an ordering key.

    Keys must be real numbers so that every pair of keys compares. numpy
    scalars pass because numpy registers them with the ``numbers`` ABCs;
    Decimal is accepted explicitly since it only registers as a Number.

    Args:
        x: Candidate key.

    Returns:
        x unchanged.

    Raises:
        TypeError: If x is bool (to prevent True -> 1 accidents)
            or not a real number.
        ValueError: If x is NaN, which is unordered against every key.
    """
    if isinstance(x, bool):
        raise TypeError("key must be a real number (bool not allowed)")
    if not isinstance(x, (numbers.Real, Decimal)):
        raise TypeError(f"key must be a real number, not {type(x).__name__}")
    if x != x:
        raise ValueError("key must not be NaN")
    return x


def _coerce_bound(x: object):
    """Like _coerce_key but None means unbounded."""
    if x is None:
        return None
    return _coerce_key(x)


def _coerce_count(n: object) -> int:
    """Validate a result-size argument such as top_k(n)."""
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        raise TypeError(f"n must be int, not {type(n).__name__}")
    n = int(n)
    if n < 0:
        raise ValueError(f"n must be non-negative, not {n}")
    return n


def _check_flag(name: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{name} must be bool")
    return value
