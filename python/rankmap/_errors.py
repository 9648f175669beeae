"""Exception types raised by rankmap."""

from __future__ import annotations


class RankMapError(Exception):
    """Base class for rankmap errors."""


class InvariantViolation(RankMapError):
    """
    The tree and the identity index disagree, or a tree invariant is broken.

    No sequence of public operations can produce this. Seeing it means a bug
    in rankmap itself (or code that reached into private attributes).
    """
