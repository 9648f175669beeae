"""
rankmap: Order-statistics indexed multimap for Python.

This module provides the RankedIndex class for filing identities (player
names, item ids, student names) under a numeric key (score, price, grade)
and querying them with:

- Identity lookup: index[ident], ident in index, index.get(ident)
- Nearest-key lookups: floor(k), ceiling(k), lower(k), higher(k)
- Order statistics: rank(k), count_below(k), select(i), position(ident)
- Lazy ranges: range_inclusive(lo, hi), irange(lo, hi, inclusive=...)
- Top-k in either direction: top_k(n, descending=True)

Every query above runs in O(log n) (plus the size of its output): rank is
read off cached subtree entry counts, never by scanning distinct keys.

Example:
    >>> from rankmap import RankedIndex
    >>>
    >>> scores = RankedIndex()
    >>> scores.upsert("alice", 100)
    <Outcome.INSERTED: 'inserted'>
    >>> scores.upsert("bob", 200)
    <Outcome.INSERTED: 'inserted'>
    >>> scores.upsert("alice", 170)      # moves alice to a new bucket
    <Outcome.MOVED: 'moved'>
    >>> scores.top_k(1, descending=True)
    [(200, 'bob')]
    >>> scores.position("alice")
    2

Thread Safety:
    Single-writer by default: callers serialize writes themselves. Pass
    synchronized=True (or use RankedIndex.for_threads()) to guard every
    composite update and read with one re-entrant lock; range queries then
    return tuples snapshotted under the lock instead of lazy iterators.
"""

from __future__ import annotations

try:
    from importlib.metadata import version as _pkg_version

    __version__ = _pkg_version("rankmap")
except Exception:
    __version__ = "0+unknown"

import enum
import logging
import threading
from collections.abc import Hashable, Iterator
from contextlib import nullcontext

from rankmap._api import _SENTINEL, _check_flag, _coerce_key
from rankmap._errors import InvariantViolation, RankMapError
from rankmap._index import Entry, IdentityIndex
from rankmap._tree import EMPTY_BUCKET, Bucket, OrderedMultimap

logger = logging.getLogger(__name__)

# Type aliases
Pair = tuple[object, Hashable]
PairIter = Iterator[Pair]


class Outcome(enum.Enum):
    """Result of a RankedIndex mutation."""

    INSERTED = "inserted"
    MOVED = "moved"
    UNCHANGED = "unchanged"
    REMOVED = "removed"
    NOT_FOUND = "not_found"


class RankedIndex:
    """
    Identities filed under numeric keys, kept in two synchronized structures.

    An OrderedMultimap answers the ordered queries and an IdentityIndex maps
    each identity back to its current key. Every write goes through
    upsert()/remove(), which update both in a fixed order:

    1. look up the identity's current key
    2. same key: stop (no tree mutation)
    3. different key: leave the old bucket first
    4. join the bucket for the new key
    5. record the new key in the identity index

    so an identity is never in two buckets at once. If step 4 raises, the
    identity is put back under its old key before the exception propagates.
    It rejoins that bucket at the end, so its order among tied identities
    may change; keys, bucket membership and counts are as before the call.

    Args:
        items: Optional mapping or iterable of (identity, key) pairs to
            load with update().
        synchronized: Guard all operations with a re-entrant lock.
            Default: False.
        check_invariants: Run validate() after every mutation. Slow;
            meant for tests and debugging. Default: False.

    Raises:
        TypeError: A flag is not a bool.

    Preset constructors:
        RankedIndex.for_threads()    # synchronized=True
        RankedIndex.for_debugging()  # check_invariants=True
    """

    __slots__ = ("_tree", "_ids", "_lock", "_synchronized", "_check_invariants")

    def __init__(self, items=None, *, synchronized=False, check_invariants=False):
        self._synchronized = _check_flag("synchronized", synchronized)
        self._check_invariants = _check_flag("check_invariants", check_invariants)
        self._tree = OrderedMultimap()
        self._ids = IdentityIndex()
        self._lock = threading.RLock() if synchronized else nullcontext()
        if items is not None:
            self.update(items)

    @classmethod
    def for_threads(cls, items=None, **overrides) -> "RankedIndex":
        """Create a RankedIndex shared between threads (synchronized=True)."""
        defaults = dict(synchronized=True)
        defaults.update(overrides)
        return cls(items, **defaults)

    @classmethod
    def for_debugging(cls, items=None, **overrides) -> "RankedIndex":
        """Create a RankedIndex that validates itself after every write."""
        defaults = dict(check_invariants=True)
        defaults.update(overrides)
        return cls(items, **defaults)

    @property
    def synchronized(self) -> bool:
        return self._synchronized

    @property
    def check_invariants(self) -> bool:
        return self._check_invariants

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _detach(self, ident, key) -> None:
        """Take ident out of the bucket at key; it must be there."""
        if not self._tree.remove(key, ident):
            logger.error("identity %r indexed under %r is missing from its bucket", ident, key)
            raise InvariantViolation(
                f"identity {ident!r} indexed under {key!r} but missing from that bucket"
            )

    def _after_write(self) -> None:
        if self._check_invariants:
            self.validate()

    def _materialize(self, it):
        return tuple(it) if self._synchronized else it

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def upsert(self, ident: Hashable, key, payload=_SENTINEL) -> Outcome:
        """
        File ident under key, moving it if it is filed elsewhere.

        Args:
            ident: Hashable identity.
            key: Real-number key.
            payload: Optional opaque value stored with the entry. Omitted
                means keep the current payload (None for new identities).

        Returns:
            Outcome.INSERTED for a new identity, Outcome.MOVED when the key
            changed, Outcome.UNCHANGED when it already had this key (only
            the payload, if given, is replaced).
        """
        key = _coerce_key(key)
        with self._lock:
            entry = self._ids.entry(ident)
            if entry is not None and entry.key == key:
                if payload is not _SENTINEL and payload is not entry.payload:
                    self._ids.put(ident, entry.key, payload)
                return Outcome.UNCHANGED
            if payload is _SENTINEL:
                payload = None if entry is None else entry.payload
            if entry is not None:
                self._detach(ident, entry.key)
            try:
                self._tree.insert(key, ident)
            except BaseException:
                if entry is not None:
                    self._tree.insert(entry.key, ident)
                raise
            self._ids.put(ident, key, payload)
            if entry is None:
                logger.debug("upsert %r -> %r", ident, key)
                outcome = Outcome.INSERTED
            else:
                logger.debug("move %r: %r -> %r", ident, entry.key, key)
                outcome = Outcome.MOVED
            self._after_write()
            return outcome

    def increment(self, ident: Hashable, delta, start=0):
        """
        Add delta to ident's key (start + delta for a new identity).

        The read and the upsert happen under one lock acquisition.

        Returns:
            The new key.
        """
        delta = _coerce_key(delta)
        with self._lock:
            key = self._ids.get(ident, start) + delta
            self.upsert(ident, key)
            return key

    def remove(self, ident: Hashable) -> Outcome:
        """
        Drop ident from both structures.

        Returns:
            Outcome.REMOVED, or Outcome.NOT_FOUND if ident is unknown (in
            which case nothing changes).
        """
        with self._lock:
            entry = self._ids.entry(ident)
            if entry is None:
                return Outcome.NOT_FOUND
            self._detach(ident, entry.key)
            self._ids.remove(ident)
            logger.debug("remove %r (was %r)", ident, entry.key)
            self._after_write()
            return Outcome.REMOVED

    def pop(self, ident: Hashable, default=_SENTINEL):
        """Remove ident and return its key; KeyError without a default."""
        with self._lock:
            key = self._ids.get(ident, _SENTINEL)
            if key is _SENTINEL:
                if default is _SENTINEL:
                    raise KeyError(ident)
                return default
            self.remove(ident)
            return key

    def update(self, items) -> None:
        """Upsert every (identity, key) pair from a mapping or iterable."""
        if hasattr(items, "items"):
            items = items.items()
        with self._lock:
            for item in items:
                try:
                    ident, key = item
                except (TypeError, ValueError) as exc:
                    raise ValueError("update() expects (identity, key) pairs") from exc
                self.upsert(ident, key)

    def clear(self) -> None:
        with self._lock:
            self._tree.clear()
            self._ids.clear()

    # ------------------------------------------------------------------
    # Identity lookups
    # ------------------------------------------------------------------

    def get(self, ident: Hashable, default=None):
        """Key currently filed for ident, or default."""
        with self._lock:
            return self._ids.get(ident, default)

    def __getitem__(self, ident: Hashable):
        with self._lock:
            key = self._ids.get(ident, _SENTINEL)
        if key is _SENTINEL:
            raise KeyError(ident)
        return key

    def entry(self, ident: Hashable) -> Entry | None:
        """Full Entry (identity, key, payload) for ident, or None."""
        with self._lock:
            return self._ids.entry(ident)

    def __contains__(self, ident: object) -> bool:
        with self._lock:
            return ident in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Hashable]:
        """Iterate identities in ascending key order."""
        with self._lock:
            return iter(self._materialize(ident for _, ident in self._tree))

    def items(self) -> PairIter:
        """Iterate (identity, key) pairs in ascending key order."""
        with self._lock:
            return iter(self._materialize((ident, key) for key, ident in self._tree))

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(entries={len(self)}, "
            f"keys={self._tree.node_count}, synchronized={self._synchronized})"
        )

    # ------------------------------------------------------------------
    # Ordered queries (delegated to the tree)
    # ------------------------------------------------------------------

    def rank(self, key) -> int:
        """Count entries with key' <= key."""
        with self._lock:
            return self._tree.rank(key)

    def count_below(self, key) -> int:
        """Count entries with key' < key."""
        with self._lock:
            return self._tree.count_below(key)

    def count_range(self, lo, hi) -> int:
        with self._lock:
            return self._tree.count_range(lo, hi)

    def position(self, ident: Hashable, descending=True) -> int | None:
        """
        1-based competition rank of ident, or None if it is unknown.

        Tied identities share a position: with descending=True the position
        is 1 + the number of entries with a strictly greater key.
        """
        with self._lock:
            key = self._ids.get(ident, _SENTINEL)
            if key is _SENTINEL:
                return None
            if descending:
                return len(self._tree) - self._tree.rank(key) + 1
            return self._tree.count_below(key) + 1

    def select(self, index: int) -> Pair:
        with self._lock:
            return self._tree.select(index)

    def at(self, key) -> Bucket:
        with self._lock:
            return self._tree.at(key)

    def floor(self, key) -> Bucket:
        with self._lock:
            return self._tree.floor(key)

    def ceiling(self, key) -> Bucket:
        with self._lock:
            return self._tree.ceiling(key)

    def lower(self, key) -> Bucket:
        with self._lock:
            return self._tree.lower(key)

    def higher(self, key) -> Bucket:
        with self._lock:
            return self._tree.higher(key)

    def min(self) -> Bucket:
        with self._lock:
            return self._tree.min()

    def max(self) -> Bucket:
        with self._lock:
            return self._tree.max()

    def top_k(self, n: int, descending=False) -> list[Pair]:
        """First n (key, identity) entries in key order."""
        with self._lock:
            return self._tree.top_k(n, descending=descending)

    def range_inclusive(self, lo, hi):
        """Buckets with lo <= key <= hi, ascending."""
        with self._lock:
            return self._materialize(self._tree.range_inclusive(lo, hi))

    def irange(self, lo=None, hi=None, inclusive=(True, True), reverse=False):
        with self._lock:
            return self._materialize(
                self._tree.irange(lo, hi, inclusive=inclusive, reverse=reverse)
            )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """
        Check the tree invariants and that both structures agree.

        Raises:
            InvariantViolation: The structures are out of sync or the tree
                is malformed.
        """
        with self._lock:
            try:
                self._tree.validate()
                if len(self._tree) != len(self._ids):
                    raise InvariantViolation(
                        f"tree holds {len(self._tree)} entries, "
                        f"identity index holds {len(self._ids)}"
                    )
                for entry in self._ids.entries():
                    if entry.identity not in self._tree.at(entry.key).ids:
                        raise InvariantViolation(
                            f"identity {entry.identity!r} not in bucket {entry.key!r}"
                        )
            except InvariantViolation as exc:
                logger.error("RankedIndex invariant violated: %s", exc)
                raise


from rankmap.adapters import GradeBook, Leaderboard, StockPriceHistory, StoreInventory  # noqa: E402
from rankmap.intervals import BookingCalendar, CourseScheduler, EventCalendar  # noqa: E402

__all__ = [
    # Primary classes
    "RankedIndex",
    "OrderedMultimap",
    "IdentityIndex",
    # Result types
    "Bucket",
    "EMPTY_BUCKET",
    "Entry",
    "Outcome",
    # Exceptions
    "RankMapError",
    "InvariantViolation",
    # Domain adapters
    "Leaderboard",
    "StoreInventory",
    "GradeBook",
    "StockPriceHistory",
    # Interval checkers
    "BookingCalendar",
    "CourseScheduler",
    "EventCalendar",
    # Type aliases
    "Pair",
    "PairIter",
    # Version
    "__version__",
]
