"""
Half-open interval bookkeeping on top of OrderedMultimap.

Intervals are ``[start, end)``: two intervals that only share a boundary
(10-12 and 12-13) do not overlap.
"""

from __future__ import annotations

import itertools
import logging

from rankmap._api import _coerce_key
from rankmap._tree import OrderedMultimap

logger = logging.getLogger(__name__)

Interval = tuple[object, object]


def _check_interval(start, end) -> Interval:
    start, end = _coerce_key(start), _coerce_key(end)
    if not start < end:
        raise ValueError(f"interval end must be greater than start: [{start!r}, {end!r})")
    return start, end


class BookingCalendar:
    """
    Disjoint bookings keyed by start time.

    The tree maps each start to a one-element bucket holding that
    booking's end, so the neighbours of a candidate are one floor and one
    ceiling lookup away.

    Example:
        >>> cal = BookingCalendar()
        >>> cal.book(10, 12)
        True
        >>> cal.can_book(12, 13)
        True
        >>> cal.can_book(11, 14)
        False
    """

    __slots__ = ("_by_start",)

    def __init__(self):
        self._by_start = OrderedMultimap()

    def can_book(self, start, end) -> bool:
        """
        True iff [start, end) overlaps no booking.

        The booking starting at or before start must end by start, and the
        booking starting at or after start must start no earlier than end.
        """
        start, end = _check_interval(start, end)
        before = self._by_start.floor(start)
        if before and before.ids[0] > start:
            return False
        after = self._by_start.ceiling(start)
        if after and after.key < end:
            return False
        return True

    def book(self, start, end) -> bool:
        """Insert [start, end) if it fits. Returns whether it was booked."""
        if not self.can_book(start, end):
            logger.debug("rejected booking [%r, %r)", start, end)
            return False
        self._place(start, end)
        return True

    def add_booking(self, start, end) -> None:
        """
        Insert [start, end) without an overlap check.

        A booking that already starts at start is replaced.
        """
        start, end = _check_interval(start, end)
        self._place(start, end)

    def _place(self, start, end) -> None:
        for old_end in self._by_start.at(start).ids:
            self._by_start.remove(start, old_end)
        self._by_start.insert(start, end)

    def bookings(self) -> list[Interval]:
        return [(b.key, b.ids[0]) for b in self._by_start.buckets()]

    def __len__(self) -> int:
        return self._by_start.node_count

    def __iter__(self):
        return iter(self.bookings())


class CourseScheduler(BookingCalendar):
    """Non-overlapping course slots."""

    __slots__ = ()

    def add_course(self, start, end) -> bool:
        return self.book(start, end)

    def can_enroll(self, start, end) -> bool:
        """Book the slot if it is free; enrolling claims the slot."""
        return self.book(start, end)

    def courses_in_range(self, lo, hi) -> list[Interval]:
        """Courses whose start lies in [lo, hi], in start order."""
        return [(b.key, b.ids[0]) for b in self._by_start.range_inclusive(lo, hi)]


class EventCalendar:
    """
    Events that may overlap one another.

    Events are filed by start time under generated ids. An overlap query
    only visits events that start before the query window closes.
    """

    __slots__ = ("_by_start", "_events", "_ids")

    def __init__(self):
        self._by_start = OrderedMultimap()
        self._events: dict[int, Interval] = {}
        self._ids = itertools.count(1)

    def add_event(self, start, end) -> int:
        """File [start, end); return its event id."""
        start, end = _check_interval(start, end)
        event_id = next(self._ids)
        self._events[event_id] = (start, end)
        self._by_start.insert(start, event_id)
        return event_id

    def remove_event(self, event_id: int) -> bool:
        interval = self._events.pop(event_id, None)
        if interval is None:
            return False
        self._by_start.remove(interval[0], event_id)
        return True

    def find_overlapping(self, low, high) -> list[Interval]:
        """Events with start < high and end > low, in start order."""
        low, high = _coerce_key(low), _coerce_key(high)
        found = []
        for bucket in self._by_start.irange(None, high, inclusive=(True, False)):
            for event_id in bucket.ids:
                interval = self._events[event_id]
                if interval[1] > low:
                    found.append(interval)
        return found

    def __len__(self) -> int:
        return len(self._events)
