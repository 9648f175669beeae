"""
Order-statistics multimap: an AVL tree mapping key -> bucket of identities.

Each node caches two aggregates over its subtree, refreshed bottom-up on every
insertion, deletion and rotation:

- ``height`` for the AVL balance check
- ``size``, the number of *entries* (identities), not nodes

Because ``size`` counts entries, ``rank`` and ``select`` only ever walk one
root-to-leaf path, and a bucket of tied identities contributes its full size.

Nodes carry child links only (no parent pointers), so the structure is a
plain acyclic object graph; every rebalancing helper returns the new subtree
root and the caller relinks it.

This module is private API. Use ``rankmap.OrderedMultimap``.
"""

from __future__ import annotations

import operator
from collections.abc import Hashable, Iterator
from itertools import islice
from typing import NamedTuple

from rankmap._api import _coerce_bound, _coerce_count, _coerce_key
from rankmap._errors import InvariantViolation


class Bucket(NamedTuple):
    """
    One key of an OrderedMultimap and the identities stored under it.

    ``ids`` keeps bucket insertion order. A Bucket is falsy when it holds no
    identities, which only happens for ``EMPTY_BUCKET``, the absent result
    returned by lookups that find nothing.

    Example:
        >>> key, ids = tree.floor(170)
        >>> if tree.floor(170):
        ...     print(key, ids)
    """

    key: object
    ids: tuple

    def __bool__(self) -> bool:
        return bool(self.ids)

    @property
    def found(self) -> bool:
        """True unless this is the absent bucket."""
        return bool(self.ids)


EMPTY_BUCKET = Bucket(None, ())


class _Node:
    __slots__ = ("key", "bucket", "left", "right", "height", "size")

    def __init__(self, key, ident):
        self.key = key
        # dict as an insertion-ordered set
        self.bucket = {ident: None}
        self.left = None
        self.right = None
        self.height = 1
        self.size = 1

    def update(self) -> None:
        """Recompute height and entry count from the children."""
        left, right = self.left, self.right
        lh = ls = rh = rs = 0
        if left is not None:
            lh, ls = left.height, left.size
        if right is not None:
            rh, rs = right.height, right.size
        self.height = 1 + (lh if lh > rh else rh)
        self.size = len(self.bucket) + ls + rs

    def view(self) -> Bucket:
        return Bucket(self.key, tuple(self.bucket))


# ----------------------------------------------------------------------
# Structural helpers (each returns the new subtree root)
# ----------------------------------------------------------------------


def _height(node) -> int:
    return 0 if node is None else node.height


def _size(node) -> int:
    return 0 if node is None else node.size


def _rotate_left(node: _Node) -> _Node:
    new_root = node.right
    node.right = new_root.left
    new_root.left = node
    node.update()
    new_root.update()
    return new_root


def _rotate_right(node: _Node) -> _Node:
    new_root = node.left
    node.left = new_root.right
    new_root.right = node
    node.update()
    new_root.update()
    return new_root


def _rebalance(node: _Node) -> _Node:
    node.update()
    balance = _height(node.left) - _height(node.right)
    if balance > 1:
        if _height(node.left.left) < _height(node.left.right):
            node.left = _rotate_left(node.left)
        return _rotate_right(node)
    if balance < -1:
        if _height(node.right.right) < _height(node.right.left):
            node.right = _rotate_right(node.right)
        return _rotate_left(node)
    return node


def _insert(node, key, ident) -> _Node:
    if node is None:
        return _Node(key, ident)
    if key < node.key:
        node.left = _insert(node.left, key, ident)
    elif node.key < key:
        node.right = _insert(node.right, key, ident)
    else:
        node.bucket[ident] = None
    return _rebalance(node)


def _pop_min(node: _Node):
    """Detach the leftmost node; return (new subtree root, detached node)."""
    if node.left is None:
        return node.right, node
    node.left, smallest = _pop_min(node.left)
    return _rebalance(node), smallest


def _unlink(node: _Node):
    if node.left is None:
        return node.right
    if node.right is None:
        return node.left
    # The successor node itself moves up, bucket and all.
    right, successor = _pop_min(node.right)
    successor.left = node.left
    successor.right = right
    return _rebalance(successor)


def _discard(node: _Node, key, ident):
    if key < node.key:
        node.left = _discard(node.left, key, ident)
    elif node.key < key:
        node.right = _discard(node.right, key, ident)
    else:
        del node.bucket[ident]
        if not node.bucket:
            return _unlink(node)
    return _rebalance(node)


# ----------------------------------------------------------------------
# Public tree
# ----------------------------------------------------------------------


class OrderedMultimap:
    """
    Sorted multimap of numeric keys to buckets of identities.

    Supports the order-statistics queries in logarithmic time:

    - insert / remove of one (key, identity) entry
    - floor / ceiling / lower / higher nearest-key lookups
    - rank (entries with key <= k) and select (k-th smallest entry)
    - lazy bounded range traversal and top-k in either direction

    Identities only need to be hashable. The same identity may sit under
    several keys here; keeping one key per identity is the job of
    ``RankedIndex``.

    Example:
        >>> tree = OrderedMultimap()
        >>> tree.insert(100, "alice")
        True
        >>> tree.insert(150, "carol")
        True
        >>> tree.rank(120)
        1
        >>> tree.ceiling(120)
        Bucket(key=150, ids=('carol',))

    Thread Safety:
        None. Readers may share an instance only while nobody writes.
        Iterators raise RuntimeError if the tree changes under them.
    """

    __slots__ = ("_root", "_nodes", "_version")

    def __init__(self, items=None):
        """Create a tree, optionally filled from (key, identity) pairs."""
        self._root = None
        self._nodes = 0
        self._version = 0
        if items is not None:
            for key, ident in items:
                self.insert(key, ident)

    # ------------------------------------------------------------------
    # Size
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        """Number of entries (identities), counting every bucket member."""
        return _size(self._root)

    @property
    def node_count(self) -> int:
        """Number of distinct keys."""
        return self._nodes

    @property
    def height(self) -> int:
        return _height(self._root)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(entries={len(self)}, "
            f"keys={self._nodes})"
        )

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def insert(self, key, ident: Hashable) -> bool:
        """
        Add ident to the bucket at key, creating the node if needed.

        Returns:
            True if the entry was added, False if ident was already in
            that bucket (nothing changes).

        Raises:
            TypeError: key is not a real number, or ident is unhashable.
            ValueError: key is NaN.
        """
        key = _coerce_key(key)
        node = self._find(key)
        if node is not None and ident in node.bucket:
            return False
        self._root = _insert(self._root, key, ident)
        if node is None:
            self._nodes += 1
        self._version += 1
        return True

    def remove(self, key, ident: Hashable) -> bool:
        """
        Remove ident from the bucket at key; drop the node once empty.

        Returns:
            True if removed, False if ident was not in that bucket
            (not found; nothing changes).
        """
        key = _coerce_key(key)
        node = self._find(key)
        if node is None or ident not in node.bucket:
            return False
        emptied = len(node.bucket) == 1
        self._root = _discard(self._root, key, ident)
        if emptied:
            self._nodes -= 1
        self._version += 1
        return True

    def clear(self) -> None:
        self._root = None
        self._nodes = 0
        self._version += 1

    # ------------------------------------------------------------------
    # Point and nearest-key lookups
    # ------------------------------------------------------------------

    def _find(self, key):
        node = self._root
        while node is not None:
            if key < node.key:
                node = node.left
            elif node.key < key:
                node = node.right
            else:
                return node
        return None

    def _below(self, key, inclusive: bool):
        node, best = self._root, None
        while node is not None:
            if node.key < key or (inclusive and node.key == key):
                best = node
                node = node.right
            else:
                node = node.left
        return best

    def _above(self, key, inclusive: bool):
        node, best = self._root, None
        while node is not None:
            if key < node.key or (inclusive and node.key == key):
                best = node
                node = node.left
            else:
                node = node.right
        return best

    @staticmethod
    def _view(node) -> Bucket:
        return EMPTY_BUCKET if node is None else node.view()

    def __contains__(self, key) -> bool:
        return self._find(_coerce_key(key)) is not None

    def at(self, key) -> Bucket:
        """Bucket stored exactly at key, or EMPTY_BUCKET."""
        return self._view(self._find(_coerce_key(key)))

    def floor(self, key) -> Bucket:
        """Bucket with the greatest key <= key, or EMPTY_BUCKET."""
        return self._view(self._below(_coerce_key(key), True))

    def lower(self, key) -> Bucket:
        """Bucket with the greatest key < key, or EMPTY_BUCKET."""
        return self._view(self._below(_coerce_key(key), False))

    def ceiling(self, key) -> Bucket:
        """Bucket with the smallest key >= key, or EMPTY_BUCKET."""
        return self._view(self._above(_coerce_key(key), True))

    def higher(self, key) -> Bucket:
        """Bucket with the smallest key > key, or EMPTY_BUCKET."""
        return self._view(self._above(_coerce_key(key), False))

    def min(self) -> Bucket:
        node = self._root
        if node is None:
            return EMPTY_BUCKET
        while node.left is not None:
            node = node.left
        return node.view()

    def max(self) -> Bucket:
        node = self._root
        if node is None:
            return EMPTY_BUCKET
        while node.right is not None:
            node = node.right
        return node.view()

    # ------------------------------------------------------------------
    # Order statistics
    # ------------------------------------------------------------------

    def rank(self, key) -> int:
        """
        Count entries with key' <= key.

        Walks the search path once, adding the left-subtree size and the
        bucket size of every node at or below key. O(log n).
        """
        key = _coerce_key(key)
        node, total = self._root, 0
        while node is not None:
            if key < node.key:
                node = node.left
            else:
                total += _size(node.left) + len(node.bucket)
                if not node.key < key:
                    break
                node = node.right
        return total

    def count_below(self, key) -> int:
        """Count entries with key' < key."""
        key = _coerce_key(key)
        node, total = self._root, 0
        while node is not None:
            if node.key < key:
                total += _size(node.left) + len(node.bucket)
                node = node.right
            else:
                node = node.left
        return total

    def count_range(self, lo, hi) -> int:
        """Count entries with lo <= key' <= hi without visiting them."""
        lo, hi = _coerce_key(lo), _coerce_key(hi)
        if hi < lo:
            return 0
        return self.rank(hi) - self.count_below(lo)

    def select(self, index: int):
        """
        Return the (key, identity) entry at position index in key order.

        Negative indices count from the largest key, as with lists.
        Within a bucket, identities are ordered by insertion.

        Raises:
            IndexError: index is out of range.
        """
        if isinstance(index, bool):
            raise TypeError("index must be int (bool not allowed)")
        index = operator.index(index)
        n = len(self)
        if index < 0:
            index += n
        if not 0 <= index < n:
            raise IndexError("select index out of range")
        node = self._root
        while True:
            left = _size(node.left)
            if index < left:
                node = node.left
                continue
            index -= left
            if index < len(node.bucket):
                return node.key, next(islice(node.bucket, index, None))
            index -= len(node.bucket)
            node = node.right

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _walk(self, lo, hi, lo_inc: bool, hi_inc: bool, reverse: bool):
        """Yield nodes within the bounds, pruning subtrees outside them."""
        version = self._version

        def too_low(k):
            return lo is not None and (k < lo or (not lo_inc and k == lo))

        def too_high(k):
            return hi is not None and (hi < k or (not hi_inc and k == hi))

        stack = []
        node = self._root
        while stack or node is not None:
            if node is not None:
                if not reverse:
                    if too_low(node.key):
                        node = node.right
                    else:
                        stack.append(node)
                        node = node.left
                else:
                    if too_high(node.key):
                        node = node.left
                    else:
                        stack.append(node)
                        node = node.right
                continue
            node = stack.pop()
            if (too_low if reverse else too_high)(node.key):
                return
            yield node
            if self._version != version:
                raise RuntimeError("OrderedMultimap mutated during iteration")
            node = node.left if reverse else node.right

    def irange(self, lo=None, hi=None, inclusive=(True, True), reverse=False) -> Iterator[Bucket]:
        """
        Lazily iterate buckets whose keys fall between lo and hi.

        Args:
            lo: Lower bound, or None for unbounded.
            hi: Upper bound, or None for unbounded.
            inclusive: Pair of bools for whether lo and hi are included.
            reverse: Iterate from hi down to lo.

        Returns:
            A fresh iterator on every call. Costs O(log n + K) for K
            matched buckets.
        """
        lo, hi = _coerce_bound(lo), _coerce_bound(hi)
        lo_inc, hi_inc = inclusive
        return (node.view() for node in self._walk(lo, hi, lo_inc, hi_inc, reverse))

    def range_inclusive(self, lo, hi) -> Iterator[Bucket]:
        """Lazily iterate buckets with lo <= key <= hi, ascending."""
        return self.irange(_coerce_key(lo), _coerce_key(hi))

    def _entries(self, reverse: bool = False):
        for node in self._walk(None, None, True, True, reverse):
            # No bucket copy: top_k(n) reads only n identities.
            for ident in node.bucket:
                yield node.key, ident

    def __iter__(self):
        """Iterate (key, identity) entries in ascending key order."""
        return self._entries()

    def keys(self) -> Iterator:
        return (node.key for node in self._walk(None, None, True, True, False))

    def buckets(self, reverse: bool = False) -> Iterator[Bucket]:
        return self.irange(reverse=reverse)

    def top_k(self, n: int, descending: bool = False) -> list:
        """
        First n (key, identity) entries in the requested key order.

        Crosses bucket boundaries; tied identities keep bucket insertion
        order in both directions. O(log n + n).
        """
        n = _coerce_count(n)
        return list(islice(self._entries(reverse=descending), n))

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """
        Check ordering, balance, cached heights and entry counts.

        Raises:
            InvariantViolation: On the first broken invariant found.
        """
        nodes = 0

        def check(node, lo, hi):
            nonlocal nodes
            if node is None:
                return 0, 0
            if not node.bucket:
                raise InvariantViolation(f"empty bucket left at key {node.key!r}")
            if (lo is not None and not lo < node.key) or (hi is not None and not node.key < hi):
                raise InvariantViolation(f"key {node.key!r} out of search order")
            lh, ls = check(node.left, lo, node.key)
            rh, rs = check(node.right, node.key, hi)
            if abs(lh - rh) > 1:
                raise InvariantViolation(f"unbalanced at key {node.key!r}: {lh} vs {rh}")
            height = 1 + max(lh, rh)
            size = len(node.bucket) + ls + rs
            if node.height != height:
                raise InvariantViolation(
                    f"stale height at key {node.key!r}: {node.height} != {height}"
                )
            if node.size != size:
                raise InvariantViolation(
                    f"stale entry count at key {node.key!r}: {node.size} != {size}"
                )
            nodes += 1
            return height, size

        check(self._root, None, None)
        if nodes != self._nodes:
            raise InvariantViolation(f"node count {self._nodes} != {nodes} reachable")
