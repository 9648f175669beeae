"""Formal reference model for the rankmap checker.

This module provides a deterministic, executable model of the abstract
upsert/remove/query semantics of RankedIndex. It keeps a plain sorted list
of (key, seq, identity) triples next to a dict, and answers every query by
bisect or by brute force. Slow, but obviously right.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Any, Hashable


@dataclass(frozen=True)
class Filed:
    key: Any
    seq: int


class ReferenceModel:
    """Single-threaded oracle; seq numbers reproduce bucket insertion order."""

    def __init__(self) -> None:
        self._op_seq = 0
        self._index: list[tuple[Any, int, Hashable]] = []  # (key, seq, ident)
        self._filed: dict[Hashable, Filed] = {}

    @property
    def op_seq(self) -> int:
        return self._op_seq

    def __len__(self) -> int:
        return len(self._index)

    def upsert(self, ident: Hashable, key: Any) -> str:
        self._op_seq += 1
        old = self._filed.get(ident)
        if old is not None:
            if old.key == key:
                return "unchanged"
            self._index.remove((old.key, old.seq, ident))
        bisect.insort(self._index, (key, self._op_seq, ident))
        self._filed[ident] = Filed(key, self._op_seq)
        return "inserted" if old is None else "moved"

    def remove(self, ident: Hashable) -> str:
        self._op_seq += 1
        old = self._filed.pop(ident, None)
        if old is None:
            return "not_found"
        self._index.remove((old.key, old.seq, ident))
        return "removed"

    def get(self, ident: Hashable) -> Any:
        filed = self._filed.get(ident)
        return None if filed is None else filed.key

    def identities(self) -> list[Hashable]:
        return list(self._filed)

    def keys(self) -> list[Any]:
        return sorted({key for key, _, _ in self._index})

    def bucket(self, key: Any) -> tuple:
        return tuple(ident for k, _, ident in self._index if k == key)

    def _pick(self, candidates: list[Any], last: bool) -> tuple[Any, tuple]:
        if not candidates:
            return None, ()
        key = candidates[-1] if last else candidates[0]
        return key, self.bucket(key)

    def floor(self, key: Any) -> tuple[Any, tuple]:
        return self._pick([k for k in self.keys() if k <= key], last=True)

    def lower(self, key: Any) -> tuple[Any, tuple]:
        return self._pick([k for k in self.keys() if k < key], last=True)

    def ceiling(self, key: Any) -> tuple[Any, tuple]:
        return self._pick([k for k in self.keys() if k >= key], last=False)

    def higher(self, key: Any) -> tuple[Any, tuple]:
        return self._pick([k for k in self.keys() if k > key], last=False)

    def rank(self, key: Any) -> int:
        return sum(1 for k, _, _ in self._index if k <= key)

    def count_below(self, key: Any) -> int:
        return sum(1 for k, _, _ in self._index if k < key)

    def range_inclusive(self, lo: Any, hi: Any) -> list[tuple[Any, tuple]]:
        return [(k, self.bucket(k)) for k in self.keys() if lo <= k <= hi]

    def select(self, index: int) -> tuple[Any, Hashable]:
        key, _, ident = self._index[index]
        return key, ident

    def top_k(self, n: int, descending: bool = False) -> list[tuple[Any, Hashable]]:
        if not descending:
            return [(k, ident) for k, _, ident in self._index[:n]]
        # Descending by key, ties still in insertion order.
        ordered = sorted(self._index, key=lambda t: (-t[0], t[1]))
        return [(k, ident) for k, _, ident in ordered[:n]]

    def position(self, ident: Hashable) -> int | None:
        filed = self._filed.get(ident)
        if filed is None:
            return None
        return 1 + sum(1 for k, _, _ in self._index if k > filed.key)
