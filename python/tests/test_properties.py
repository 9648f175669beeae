"""
Randomized tests of RankedIndex against the executable reference model.

Each test drives both implementations with the same seeded operation
stream and compares every observable answer.
"""

import random
import sys
from pathlib import Path

import pytest

from rankmap import OrderedMultimap, Outcome, RankedIndex

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT / "formal"))

from reference_model import ReferenceModel  # noqa: E402


def as_pair(bucket):
    return bucket.key, bucket.ids


def churn(seed, steps, identities, key_space):
    """Apply the same random upsert/remove stream to both sides."""
    rng = random.Random(seed)
    index = RankedIndex()
    model = ReferenceModel()
    for _ in range(steps):
        ident = rng.randrange(identities)
        if rng.random() < 0.2:
            assert index.remove(ident).value == model.remove(ident)
        else:
            key = rng.randrange(key_space)
            assert index.upsert(ident, key).value == model.upsert(ident, key)
    return rng, index, model


# =============================================================================
# Category 1: Write outcomes and structure
# =============================================================================


class TestChurn:
    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_outcomes_and_sizes_match(self, seed):
        _, index, model = churn(seed, steps=2000, identities=300, key_space=50)
        index.validate()
        assert len(index) == len(model)
        assert list(index._tree.keys()) == model.keys()

    def test_buckets_keep_insertion_order(self):
        _, index, model = churn(7, steps=3000, identities=200, key_space=20)
        for key in model.keys():
            assert index.at(key).ids == model.bucket(key)

    def test_identity_lookups(self):
        _, index, model = churn(11, steps=1500, identities=250, key_space=100)
        for ident in range(250):
            assert index.get(ident) == model.get(ident)
            assert (ident in index) == (model.get(ident) is not None)

    def test_large_tree_stays_balanced(self):
        rng = random.Random(42)
        tree = OrderedMultimap()
        for i in range(10_000):
            tree.insert(rng.randrange(1_000_000), i)
        tree.validate()
        # AVL bound for 10^4 nodes is about 19.
        assert tree.height <= 20


# =============================================================================
# Category 2: Queries
# =============================================================================


class TestQueries:
    @pytest.fixture(scope="class")
    def pair(self):
        rng, index, model = churn(1234, steps=4000, identities=1000, key_space=400)
        return rng, index, model

    def test_nearest(self, pair):
        rng, index, model = pair
        for _ in range(200):
            k = rng.randrange(-10, 410)
            assert as_pair(index.floor(k)) == model.floor(k)
            assert as_pair(index.lower(k)) == model.lower(k)
            assert as_pair(index.ceiling(k)) == model.ceiling(k)
            assert as_pair(index.higher(k)) == model.higher(k)

    def test_rank_and_count_below(self, pair):
        rng, index, model = pair
        for _ in range(200):
            k = rng.randrange(-10, 410)
            assert index.rank(k) == model.rank(k)
            assert index.count_below(k) == model.count_below(k)

    def test_select_matches_sorted_entries(self, pair):
        rng, index, model = pair
        for _ in range(200):
            i = rng.randrange(len(model))
            assert index.select(i) == model.select(i)

    def test_ranges(self, pair):
        rng, index, model = pair
        for _ in range(100):
            lo = rng.randrange(0, 400)
            hi = lo + rng.randrange(0, 60)
            got = [as_pair(b) for b in index.range_inclusive(lo, hi)]
            assert got == model.range_inclusive(lo, hi)
            assert index.count_range(lo, hi) == sum(len(ids) for _, ids in got)

    @pytest.mark.parametrize("descending", [False, True])
    def test_top_k(self, pair, descending):
        _, index, model = pair
        for n in (0, 1, 5, 50, len(model) + 3):
            assert index.top_k(n, descending=descending) == model.top_k(n, descending=descending)

    def test_position(self, pair):
        _, index, model = pair
        for ident in range(0, 1000, 7):
            assert index.position(ident) == model.position(ident)


# =============================================================================
# Category 3: Idempotence
# =============================================================================


class TestIdempotence:
    def test_repeated_upserts_are_unchanged(self):
        _, index, _ = churn(99, steps=500, identities=100, key_space=30)
        snapshot = list(index.items())
        for ident, key in snapshot:
            assert index.upsert(ident, key) is Outcome.UNCHANGED
        assert list(index.items()) == snapshot
        index.validate()
