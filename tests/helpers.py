"""Shared constants and helpers for the test suite."""

import asyncio

TARGET_URL = "https://example.com/calendar"
STARTED_AT = "2024-12-03 00:30"


def run_async(coro):
    """Run a coroutine from a synchronous test (TestClient runs its own loop)."""
    return asyncio.run(coro)
