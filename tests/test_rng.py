"""
Seeded random source tests.
"""

import numpy as np
import pytest

from core.rng import MASK53, SeededRandom, splitmix64, sub_seed


class TestStream:
    """Sequential draws."""

    def test_same_seed_same_sequence(self):
        """Two sources with one seed produce identical streams."""
        a, b = SeededRandom(1337), SeededRandom(1337)
        assert [a.next() for _ in range(100)] == [b.next() for _ in range(100)]

    def test_different_seeds_differ(self):
        a, b = SeededRandom(1), SeededRandom(2)
        assert [a.next() for _ in range(10)] != [b.next() for _ in range(10)]

    def test_values_in_unit_interval(self):
        rng = SeededRandom(7)
        values = [rng.next() for _ in range(5000)]
        assert min(values) >= 0.0
        assert max(values) < 1.0
        # Roughly uniform
        assert 0.45 < np.mean(values) < 0.55

    def test_restart_rewinds(self):
        """restart() replays the sequence from the beginning."""
        rng = SeededRandom(99)
        first = [rng.next() for _ in range(20)]
        assert rng.drawn == 20
        rng.restart()
        assert rng.drawn == 0
        assert [rng.next() for _ in range(20)] == first

    def test_index_in_range(self):
        rng = SeededRandom(3)
        assert all(0 <= rng.index(10) < 10 for _ in range(1000))

    def test_splitmix_known_value(self):
        """Reference value of splitmix64 for a zero state."""
        assert splitmix64(0) == 0xE220A8397B1DCDAF


class TestSubSeed:
    """Hierarchical seeds."""

    def test_fits_53_bits(self):
        for i in range(100):
            assert 0 <= sub_seed(1337, i) <= MASK53

    def test_deterministic_and_distinct(self):
        seeds = {sub_seed(1337, i) for i in range(1000)}
        assert len(seeds) == 1000
        assert sub_seed(1337, 42) == sub_seed(1337, 42)

    def test_fork_matches_sub_seed(self):
        rng = SeededRandom(1337)
        child = rng.fork(42)
        assert child.seed == sub_seed(1337, 42)
        assert child.next() == SeededRandom(sub_seed(1337, 42)).next()


class TestField:
    """Counter-based per-body draws."""

    def test_prefix_independent_of_count(self):
        """Body i's draw does not depend on how many bodies are drawn."""
        rng = SeededRandom(1337)
        np.testing.assert_array_equal(rng.field(5, 100), rng.field(5, 1000)[:100])

    def test_indices_match_full_field(self):
        rng = SeededRandom(1337)
        full = rng.field(9, 500)
        idx = [0, 42, 499]
        np.testing.assert_array_equal(rng.field(9, indices=idx), full[idx])

    def test_scalar_matches_vector(self):
        rng = SeededRandom(2024)
        full = rng.field(3, 64)
        for i in (0, 1, 17, 63):
            assert rng.field_value(3, i) == full[i]

    def test_slots_are_independent(self):
        rng = SeededRandom(1337)
        assert not np.array_equal(rng.field(1, 50), rng.field(2, 50))

    def test_field_does_not_touch_stream(self):
        rng = SeededRandom(5)
        rng.field(1, 10)
        assert rng.drawn == 0

    def test_requires_count_or_indices(self):
        with pytest.raises(ValueError):
            SeededRandom(1).field(1)
