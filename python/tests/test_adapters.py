"""
Tests for the domain adapters (leaderboard, inventory, grading, stock history).

Scenarios follow the console demos the adapters were written for.
"""

import pytest

from rankmap import EMPTY_BUCKET, Bucket, GradeBook, Leaderboard, StockPriceHistory, StoreInventory


# =============================================================================
# Leaderboard
# =============================================================================


class TestLeaderboard:
    @pytest.fixture
    def board(self):
        board = Leaderboard(check_invariants=True)
        board.add_points("Alice", 100)
        board.add_points("Bob", 200)
        board.add_points("Charlie", 150)
        return board

    def test_top_two(self, board):
        assert board.get_top_players(2) == [("Bob", 200), ("Charlie", 150)]

    def test_add_points_accumulates(self, board):
        assert board.add_points("Alice", 70) == 170
        assert board.score("Alice") == 170

    def test_rank_after_points(self, board):
        """Only Bob (200) outscores Alice at 170."""
        board.add_points("Alice", 70)
        assert board.get_rank("Alice") == 2
        assert board.get_rank("Bob") == 1
        assert board.get_rank("Charlie") == 3

    def test_remove_then_top(self, board):
        board.add_points("Alice", 70)
        assert board.remove_player("Bob") is True
        assert board.get_top_players(10) == [("Alice", 170), ("Charlie", 150)]

    def test_removed_player_has_no_rank(self, board):
        board.remove_player("Charlie")
        assert board.get_rank("Charlie") is None
        assert board.remove_player("Charlie") is False
        assert "Charlie" not in board
        assert len(board) == 2

    def test_ties_share_rank(self):
        board = Leaderboard()
        for name, pts in [("a", 200), ("b", 150), ("c", 150), ("d", 100)]:
            board.add_points(name, pts)
        assert [board.get_rank(n) for n in "abcd"] == [1, 2, 2, 4]

    def test_fractional_points_keep_their_type(self):
        from decimal import Decimal

        board = Leaderboard()
        assert board.add_points("Eve", 1.5) == 1.5
        assert board.add_points("Eve", 2.25) == 3.75
        assert board.add_points("Dan", Decimal("0.1")) == Decimal("0.1")
        assert isinstance(board.score("Dan"), Decimal)
        assert board.get_top_players(1) == [("Eve", 3.75)]

    def test_negative_points(self, board):
        board.add_points("Bob", -120)
        assert board.get_top_players(1) == [("Charlie", 150)]


# =============================================================================
# Store inventory
# =============================================================================


class TestStoreInventory:
    @pytest.fixture
    def store(self):
        store = StoreInventory(check_invariants=True)
        for item_id, price in [(1, 100), (2, 200), (3, 150), (4, 50)]:
            store.add_item(item_id, price)
        return store

    @staticmethod
    def ids(buckets):
        return {i for ids in buckets.values() for i in ids}

    def test_price_lookup(self, store):
        assert store.get_item_price(2) == 200
        assert store.get_item_price(99) is None

    def test_range_before_and_after_removal(self, store):
        assert self.ids(store.get_items_in_price_range(100, 200)) == {1, 2, 3}
        assert store.remove_item(3) is True
        assert self.ids(store.get_items_in_price_range(100, 200)) == {1, 2}
        assert store.count_items_in_price_range(100, 200) == 2

    def test_cheaper_than_item_is_strict(self, store):
        assert self.ids(store.get_all_items_cheaper_than_item(2)) == {1, 3, 4}
        store.remove_item(3)
        assert self.ids(store.get_all_items_cheaper_than_item(2)) == {1, 4}

    def test_more_expensive_than_item_is_strict(self, store):
        assert self.ids(store.get_all_items_more_expensive_than_item(1)) == {2, 3}
        assert store.get_all_items_more_expensive_than_item(99) == {}

    def test_price_bound_queries(self, store):
        assert list(store.get_all_items_cheaper_than(150)) == [50, 100]
        assert list(store.get_all_items_more_expensive_than(150)) == [200]

    def test_extremes(self, store):
        assert store.get_most_expensive_item() == Bucket(200, (2,))
        assert store.get_least_expensive_item() == Bucket(50, (4,))

    def test_just_cheaper_and_more_expensive(self, store):
        store.remove_item(3)
        assert store.get_item_just_cheaper_than(170) == Bucket(100, (1,))
        assert store.get_item_just_more_expensive_than(170) == Bucket(200, (2,))
        assert store.get_item_just_cheaper_than(50) is EMPTY_BUCKET

    def test_next_higher_price(self, store):
        assert store.get_next_higher_price(150) == 200
        assert store.get_next_higher_price(200) is None

    def test_reprice(self, store):
        store.add_item(4, 250)
        assert store.get_most_expensive_item().ids == (4,)
        assert store.get_least_expensive_item().ids == (1,)
        assert len(store) == 4

    def test_empty_store(self):
        store = StoreInventory()
        assert store.get_most_expensive_item() is EMPTY_BUCKET
        assert store.remove_item(1) is False


# =============================================================================
# Grade book
# =============================================================================


class TestGradeBook:
    @pytest.fixture
    def grades(self):
        grades = GradeBook()
        for name, grade in [("Alice", 95), ("Bob", 89), ("Charlie", 72), ("Dave", 88)]:
            grades.add_student(name, grade)
        return grades

    def test_lookup(self, grades):
        assert grades.get_grade("Alice") == 95
        assert grades.get_grade("Eve") is None

    def test_top_and_lowest(self, grades):
        assert grades.get_top_student() == Bucket(95, ("Alice",))
        assert grades.get_lowest_student() == Bucket(72, ("Charlie",))

    def test_grade_range(self, grades):
        got = grades.get_students_in_grade_range(80, 95)
        assert [(b.key, b.ids) for b in got] == [(88, ("Dave",)), (89, ("Bob",)), (95, ("Alice",))]

    def test_regrade_moves_student(self, grades):
        grades.add_student("Charlie", 99)
        assert grades.get_top_student().ids == ("Charlie",)
        assert grades.get_lowest_student().ids == ("Dave",)

    def test_remove(self, grades):
        assert grades.remove_student("Alice") is True
        assert grades.get_top_student().ids == ("Bob",)
        assert grades.remove_student("Alice") is False

    def test_percentile_rank(self, grades):
        assert grades.percentile_rank("Alice") == 100.0
        assert grades.percentile_rank("Charlie") == 25.0
        assert grades.percentile_rank("Eve") is None

    def test_empty(self):
        assert GradeBook().get_top_student() is EMPTY_BUCKET


# =============================================================================
# Stock price history
# =============================================================================


class TestStockPriceHistory:
    @pytest.fixture
    def history(self):
        history = StockPriceHistory()
        for ts, price in [(1, 100), (2, 150), (4, 200), (5, 250)]:
            history.add_stock_price(ts, price)
        return history

    def test_point_lookup(self, history):
        assert history.get_stock_price_at(2) == 150
        assert history.get_stock_price_at(3) is None

    def test_nearest_earlier(self, history):
        assert history.get_nearest_earlier_stock_price(3) == 150
        assert history.get_nearest_earlier_stock_price(4) == 200
        assert history.get_nearest_earlier_stock_price(6) == 250
        assert history.get_nearest_earlier_stock_price(0) is None

    def test_nearest_later(self, history):
        assert history.get_nearest_later_stock_price(3) == 200
        assert history.get_nearest_later_stock_price(6) is None

    def test_replace_price(self, history):
        history.add_stock_price(2, 175)
        assert history.get_stock_price_at(2) == 175
        assert len(history) == 4

    def test_same_price_at_two_timestamps(self, history):
        history.add_stock_price(6, 250)
        assert history.prices_between(5, 6) == [(5, 250), (6, 250)]

    def test_latest(self, history):
        assert history.latest() == (5, 250)
        assert StockPriceHistory().latest() is None
