"""Identity -> current key lookup table used by RankedIndex."""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class Entry:
    """An identity, the key it is currently filed under, and its payload."""

    identity: Hashable
    key: object
    payload: object = None


class IdentityIndex:
    """dict-backed map from identity to its Entry. O(1) expected per call."""

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[Hashable, Entry] = {}

    def put(self, ident: Hashable, key, payload=None) -> None:
        self._entries[ident] = Entry(ident, key, payload)

    def get(self, ident: Hashable, default=None):
        """Return the key filed for ident, or default."""
        entry = self._entries.get(ident)
        return default if entry is None else entry.key

    def entry(self, ident: Hashable) -> Entry | None:
        return self._entries.get(ident)

    def remove(self, ident: Hashable) -> bool:
        """Forget ident. Returns False if it was not present."""
        return self._entries.pop(ident, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, ident: object) -> bool:
        return ident in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._entries)

    def entries(self) -> Iterator[Entry]:
        return iter(self._entries.values())
