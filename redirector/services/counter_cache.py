"""
Counter Cache

In-process mirror of the durable redirect counter. The value it hands out
is what goes into the redirect URL, so it is authoritative for responses;
the durable copy catches up through detached writes.

Design Decisions:
- No lock on the hot path. Values come from an itertools.count, whose
  next() is a single C-level step, so no two callers ever receive the
  same value, even from different threads.
- increment_and_get() has no await point. Under the event loop every
  redirect handler runs it to completion before another request can,
  which keeps get() exactly in step with the values issued.
- Across threads only uniqueness holds. Two threads can store their
  values out of order, so get() can lag behind the highest value issued
  until the next increment made while no other thread is incrementing.
- Owned by the application state, seeded once at startup. No module
  globals.
"""

import itertools
from typing import Iterator, Optional


class CounterCache:
    """Atomically incremented in-memory counter."""

    def __init__(self) -> None:
        self._sequence: Optional[Iterator[int]] = None
        self._value = 0

    @property
    def initialized(self) -> bool:
        return self._sequence is not None

    def initialize_from(self, durable_value: int) -> None:
        """
        Seed the cache from the durable counter.

        Args:
            durable_value: Value read from the store at startup

        Raises:
            ValueError: If the value is negative
            RuntimeError: If the cache was already seeded
        """
        if durable_value < 0:
            raise ValueError(f"Counter value must be non-negative, got {durable_value}")
        if self._sequence is not None:
            raise RuntimeError("Counter cache is already initialized")

        self._value = durable_value
        self._sequence = itertools.count(durable_value + 1)

    def increment_and_get(self) -> int:
        """
        Increment the counter and return the new value.

        Raises:
            RuntimeError: If called before initialize_from()
        """
        if self._sequence is None:
            raise RuntimeError("Counter cache used before initialize_from()")

        value = next(self._sequence)
        self._value = value
        return value

    def get(self) -> int:
        """Last value issued (exact when all increments run on one thread)."""
        return self._value
