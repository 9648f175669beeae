"""
Domain adapters over RankedIndex and OrderedMultimap.

Each adapter renames the core operations for one domain; none adds ordering
logic of its own. Lookups that find nothing return None, False or an empty
collection.
"""

from __future__ import annotations

from collections.abc import Hashable

from rankmap import EMPTY_BUCKET, Bucket, OrderedMultimap, Outcome, RankedIndex
from rankmap._api import _coerce_key


class Leaderboard:
    """
    Players ranked by cumulative score, highest first.

    Ranks are competition ranks: tied players share a rank and the next
    player's rank skips past them (200, 150, 150, 100 -> 1, 2, 2, 4).

    Example:
        >>> board = Leaderboard()
        >>> board.add_points("Alice", 100)
        100
        >>> board.add_points("Bob", 200)
        200
        >>> board.get_rank("Alice")
        2
    """

    __slots__ = ("_scores",)

    def __init__(self, **options):
        self._scores = RankedIndex(**options)

    def add_points(self, name: Hashable, points):
        """Add points to name's score (new players start at 0); return the total."""
        return self._scores.increment(name, points)

    def score(self, name: Hashable):
        return self._scores.get(name)

    def get_rank(self, name: Hashable) -> int | None:
        return self._scores.position(name, descending=True)

    def get_top_players(self, n: int) -> list[tuple[Hashable, object]]:
        """Up to n (name, score) pairs, highest score first."""
        return [(name, score) for score, name in self._scores.top_k(n, descending=True)]

    def remove_player(self, name: Hashable) -> bool:
        return self._scores.remove(name) is Outcome.REMOVED

    def __len__(self) -> int:
        return len(self._scores)

    def __contains__(self, name: object) -> bool:
        return name in self._scores


class StoreInventory:
    """
    Items tracked by id and price.

    Price queries return Buckets (price, item ids) or dicts of
    price -> item ids, in ascending price order.
    """

    __slots__ = ("_prices",)

    def __init__(self, **options):
        self._prices = RankedIndex(**options)

    def add_item(self, item_id: Hashable, price) -> Outcome:
        """Add an item or reprice an existing one."""
        return self._prices.upsert(item_id, price)

    def remove_item(self, item_id: Hashable) -> bool:
        return self._prices.remove(item_id) is Outcome.REMOVED

    def get_item_price(self, item_id: Hashable):
        return self._prices.get(item_id)

    def get_items_in_price_range(self, lo, hi) -> dict:
        return {b.key: b.ids for b in self._prices.range_inclusive(lo, hi)}

    def count_items_in_price_range(self, lo, hi) -> int:
        return self._prices.count_range(lo, hi)

    def get_most_expensive_item(self) -> Bucket:
        return self._prices.max()

    def get_least_expensive_item(self) -> Bucket:
        return self._prices.min()

    def get_item_just_cheaper_than(self, price) -> Bucket:
        return self._prices.lower(price)

    def get_item_just_more_expensive_than(self, price) -> Bucket:
        return self._prices.higher(price)

    def get_next_higher_price(self, price):
        """Smallest stocked price strictly above price, or None."""
        return self._prices.higher(price).key

    def get_all_items_cheaper_than(self, price) -> dict:
        buckets = self._prices.irange(None, price, inclusive=(True, False))
        return {b.key: b.ids for b in buckets}

    def get_all_items_more_expensive_than(self, price) -> dict:
        buckets = self._prices.irange(price, None, inclusive=(False, True))
        return {b.key: b.ids for b in buckets}

    def get_all_items_cheaper_than_item(self, item_id: Hashable) -> dict:
        """Items priced strictly below item_id's price; empty if item_id is unknown."""
        price = self._prices.get(item_id)
        return {} if price is None else self.get_all_items_cheaper_than(price)

    def get_all_items_more_expensive_than_item(self, item_id: Hashable) -> dict:
        price = self._prices.get(item_id)
        return {} if price is None else self.get_all_items_more_expensive_than(price)

    def __len__(self) -> int:
        return len(self._prices)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._prices


class GradeBook:
    """Students filed by grade."""

    __slots__ = ("_grades",)

    def __init__(self, **options):
        self._grades = RankedIndex(**options)

    def add_student(self, name: Hashable, grade) -> Outcome:
        return self._grades.upsert(name, grade)

    def remove_student(self, name: Hashable) -> bool:
        return self._grades.remove(name) is Outcome.REMOVED

    def get_grade(self, name: Hashable):
        return self._grades.get(name)

    def get_top_student(self) -> Bucket:
        return self._grades.max()

    def get_lowest_student(self) -> Bucket:
        return self._grades.min()

    def get_students_in_grade_range(self, lo, hi) -> list[Bucket]:
        return list(self._grades.range_inclusive(lo, hi))

    def percentile_rank(self, name: Hashable) -> float | None:
        """Percentage of students graded at or below name's grade."""
        grade = self._grades.get(name)
        if grade is None:
            return None
        return 100.0 * self._grades.rank(grade) / len(self._grades)

    def __len__(self) -> int:
        return len(self._grades)


class StockPriceHistory:
    """
    One price per timestamp for a single stock.

    Backed by a bare OrderedMultimap keyed by timestamp whose one-element
    bucket holds the price; adding a price at an existing timestamp
    replaces it.
    """

    __slots__ = ("_by_ts",)

    def __init__(self):
        self._by_ts = OrderedMultimap()

    def add_stock_price(self, ts, price) -> None:
        price = _coerce_key(price)
        for old in self._by_ts.at(ts).ids:
            self._by_ts.remove(ts, old)
        self._by_ts.insert(ts, price)

    @staticmethod
    def _price(bucket: Bucket):
        return bucket.ids[0] if bucket else None

    def get_stock_price_at(self, ts):
        return self._price(self._by_ts.at(ts))

    def get_nearest_earlier_stock_price(self, ts):
        """Price at the latest timestamp <= ts, or None."""
        return self._price(self._by_ts.floor(ts))

    def get_nearest_later_stock_price(self, ts):
        """Price at the earliest timestamp >= ts, or None."""
        return self._price(self._by_ts.ceiling(ts))

    def prices_between(self, t1, t2) -> list[tuple[object, object]]:
        """(timestamp, price) pairs with t1 <= timestamp <= t2."""
        return [(b.key, b.ids[0]) for b in self._by_ts.range_inclusive(t1, t2)]

    def latest(self) -> tuple[object, object] | None:
        bucket = self._by_ts.max()
        return None if bucket is EMPTY_BUCKET else (bucket.key, bucket.ids[0])

    def __len__(self) -> int:
        return len(self._by_ts)
