"""
Tests for the in-memory counter cache.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from redirector.services.counter_cache import CounterCache


class TestCounterCache:
    """Seeding, incrementing and reading the cache."""

    def test_initialize_then_get_returns_seed(self):
        cache = CounterCache()
        cache.initialize_from(41)
        assert cache.get() == 41
        assert cache.initialized

    def test_increment_and_get_is_sequential(self):
        cache = CounterCache()
        cache.initialize_from(10)
        assert [cache.increment_and_get() for _ in range(3)] == [11, 12, 13]
        assert cache.get() == 13

    def test_get_does_not_mutate(self):
        cache = CounterCache()
        cache.initialize_from(5)
        cache.get()
        cache.get()
        assert cache.increment_and_get() == 6

    def test_seed_zero(self):
        cache = CounterCache()
        cache.initialize_from(0)
        assert cache.increment_and_get() == 1

    def test_increment_before_initialize_raises(self):
        cache = CounterCache()
        assert not cache.initialized
        with pytest.raises(RuntimeError):
            cache.increment_and_get()

    def test_initialize_twice_raises(self):
        cache = CounterCache()
        cache.initialize_from(1)
        with pytest.raises(RuntimeError):
            cache.initialize_from(2)
        assert cache.get() == 1

    def test_negative_seed_rejected(self):
        cache = CounterCache()
        with pytest.raises(ValueError):
            cache.initialize_from(-1)


def test_threaded_increments_are_unique_and_gapless():
    """Values handed to concurrent threads never repeat and never skip."""
    cache = CounterCache()
    cache.initialize_from(100)

    def take(_):
        return [cache.increment_and_get() for _ in range(500)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        batches = list(pool.map(take, range(8)))

    values = [value for batch in batches for value in batch]
    assert len(values) == 4000
    assert set(values) == set(range(101, 4101))
    for batch in batches:
        assert batch == sorted(batch)


def test_get_after_threaded_increments():
    """Across threads get() may lag, but never leaves the issued range and resyncs."""
    cache = CounterCache()
    cache.initialize_from(0)

    def take(_):
        return [cache.increment_and_get() for _ in range(250)]

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(take, range(4)))

    assert 1 <= cache.get() <= 1000
    assert cache.increment_and_get() == 1001
    assert cache.get() == 1001
