#!/usr/bin/env python3
"""
rankmap Demo: the console programs the library grew out of, one per feature.

Features:
  L: Leaderboard              B: Booking calendar
  I: Store inventory          C: Course scheduler
  G: Grade book               E: Event calendar
  S: Stock price history

Usage:
    python demo/rankmap_demo.py [--feature=X] [--list] [--verbose] [--export-json=PATH]

Options:
    --feature=X         Run only feature X (e.g., L)
    --list              List all features and exit
    --verbose           Show rankmap debug logging
    --export-json=PATH  Export every feature's results to a JSON file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable

# Add parent directory to path for rankmap import
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from rankmap import (  # noqa: E402
    BookingCalendar,
    CourseScheduler,
    EventCalendar,
    GradeBook,
    Leaderboard,
    StockPriceHistory,
    StoreInventory,
)

# =============================================================================
# Feature registry
# =============================================================================

FEATURES: dict[str, dict] = {}


def feature(code: str, name: str):
    """Decorator to register a demo feature."""

    def decorator(func: Callable):
        FEATURES[code] = {"code": code, "name": name, "func": func}
        return func

    return decorator


def list_features() -> None:
    print("=" * 60)
    print("RANKMAP DEMO - FEATURE LIST")
    print("=" * 60)
    for code, f in FEATURES.items():
        print(f"  {code}: {f['name']}")
    print()
    print(f"Total: {len(FEATURES)} features")


def _show(label: str, value) -> None:
    print(f"  {label:<44} {value}")


# =============================================================================
# Ranked collections
# =============================================================================


@feature("L", "Leaderboard")
def demo_leaderboard() -> dict:
    board = Leaderboard()
    board.add_points("Alice", 100)
    board.add_points("Bob", 200)
    board.add_points("Charlie", 150)
    top2 = board.get_top_players(2)
    _show("Top 2 players:", top2)

    board.add_points("Alice", 70)
    alice_rank = board.get_rank("Alice")
    _show("Alice's rank after +70:", alice_rank)

    board.remove_player("Bob")
    top10 = board.get_top_players(10)
    _show("Top players after removing Bob:", top10)
    return {"top2": top2, "alice_rank": alice_rank, "top_after_remove": top10}


@feature("I", "Store inventory")
def demo_inventory() -> dict:
    store = StoreInventory()
    store.add_item(1, 100)
    store.add_item(2, 200)
    store.add_item(3, 150)
    in_range = store.get_items_in_price_range(100, 200)
    _show("Items priced 100..200:", in_range)

    store.remove_item(3)
    after = store.get_items_in_price_range(100, 200)
    _show("Items priced 100..200 after removing #3:", after)

    most = store.get_most_expensive_item()
    least = store.get_least_expensive_item()
    _show("Most expensive:", most)
    _show("Least expensive:", least)
    _show("Just cheaper than 170:", store.get_item_just_cheaper_than(170))
    _show("Just more expensive than 170:", store.get_item_just_more_expensive_than(170))
    _show("Next price above 100:", store.get_next_higher_price(100))
    _show("Cheaper than item #2:", store.get_all_items_cheaper_than_item(2))
    return {
        "in_range": {str(k): list(v) for k, v in in_range.items()},
        "after_remove": {str(k): list(v) for k, v in after.items()},
        "most_expensive": most.key,
        "least_expensive": least.key,
    }


@feature("G", "Grade book")
def demo_grades() -> dict:
    grades = GradeBook()
    for name, grade in [("Alice", 95), ("Bob", 89), ("Charlie", 72), ("Dave", 88)]:
        grades.add_student(name, grade)
    top = grades.get_top_student()
    low = grades.get_lowest_student()
    band = grades.get_students_in_grade_range(80, 90)
    _show("Top student:", top)
    _show("Lowest student:", low)
    _show("Students graded 80..90:", band)
    _show("Bob's percentile:", grades.percentile_rank("Bob"))
    return {"top": list(top.ids), "lowest": list(low.ids), "band": [list(b.ids) for b in band]}


@feature("S", "Stock price history")
def demo_stock() -> dict:
    history = StockPriceHistory()
    for ts, price in [(1, 100), (2, 150), (4, 200), (5, 250)]:
        history.add_stock_price(ts, price)
    answers = {
        "at_2": history.get_stock_price_at(2),
        "floor_3": history.get_nearest_earlier_stock_price(3),
        "floor_4": history.get_nearest_earlier_stock_price(4),
        "floor_6": history.get_nearest_earlier_stock_price(6),
    }
    _show("Price at t=2:", answers["at_2"])
    _show("Nearest earlier price for t=3:", answers["floor_3"])
    _show("Nearest earlier price for t=4:", answers["floor_4"])
    _show("Nearest earlier price for t=6:", answers["floor_6"])
    return answers


# =============================================================================
# Interval checkers
# =============================================================================


@feature("B", "Booking calendar")
def demo_booking() -> dict:
    cal = BookingCalendar()
    for start, end in [(10, 12), (13, 15), (15, 18), (8, 10)]:
        cal.add_booking(start, end)
    gap = cal.can_book(12, 13)
    clash = cal.can_book(11, 14)
    _show("Can book 12-13:", gap)
    _show("Can book 11-14:", clash)
    return {"12-13": gap, "11-14": clash}


@feature("C", "Course scheduler")
def demo_courses() -> dict:
    sched = CourseScheduler()
    added = {
        f"{s}-{e}": sched.add_course(s, e)
        for s, e in [(9, 11), (13, 15), (10, 12), (11, 13), (14, 16)]
    }
    for slot, ok in added.items():
        _show(f"Add course {slot}:", ok)
    in_range = sched.courses_in_range(9, 15)
    _show("Courses starting 9..15:", in_range)
    enroll = {f"{s}-{e}": sched.can_enroll(s, e) for s, e in [(12, 14), (14, 15), (15, 17)]}
    for slot, ok in enroll.items():
        _show(f"Enroll {slot}:", ok)
    return {"added": added, "in_range": in_range, "enroll": enroll}


@feature("E", "Event calendar")
def demo_events() -> dict:
    events = EventCalendar()
    for start, end in [(10, 15), (5, 12), (14, 20), (8, 18)]:
        events.add_event(start, end)
    found = events.find_overlapping(6, 16)
    _show("Events overlapping 6-16:", found)
    return {"overlapping": found}


# =============================================================================
# CLI
# =============================================================================


def run(codes: list[str]) -> dict:
    results = {}
    for code in codes:
        f = FEATURES[code]
        print(f"\n[{code}] {f['name']}")
        print("-" * 60)
        results[code] = f["func"]()
    return results


def main() -> int:
    parser = argparse.ArgumentParser(
        description="rankmap Demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--feature", type=str, help="Run only feature X (e.g., L)")
    parser.add_argument("--list", action="store_true", help="List all features and exit")
    parser.add_argument("--verbose", action="store_true", help="Show rankmap debug logging")
    parser.add_argument("--export-json", type=str, help="Export results to JSON file")
    args = parser.parse_args()

    if args.list:
        list_features()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.feature:
        code = args.feature.upper()
        if code not in FEATURES:
            parser.error(f"unknown feature {args.feature!r}; use --list")
        codes = [code]
    else:
        codes = list(FEATURES)

    results = run(codes)

    if args.export_json:
        path = Path(args.export_json)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(results, indent=2, default=str) + "\n", encoding="utf-8")
        print(f"\nResults written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
