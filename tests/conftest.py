"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

from typing import Callable, Iterator, List

import pytest

import ttl_cache.cache.store as store_module
import ttl_cache.cli as cli_module
from ttl_cache.cache.store import Cache

NANOS_PER_SECOND = 1_000_000_000


# ============================================================================
# Clock Fixtures
# ============================================================================

class FakeClock:
    """
    Stand-in for the ``time`` module used by the cache store.

    Only time_ns() is provided; the clock moves only when advance() is
    called.
    """

    def __init__(self, start_ns: int = 1_700_000_000 * NANOS_PER_SECOND):
        self.now_ns = start_ns

    def time_ns(self) -> int:
        return self.now_ns

    def advance(self, seconds: float) -> None:
        self.now_ns += int(seconds * NANOS_PER_SECOND)

    def advance_ns(self, nanos: int) -> None:
        self.now_ns += nanos


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    """Freeze the clock of the cache and the snapshot tool; move it with clock.advance()."""
    fake = FakeClock()
    monkeypatch.setattr(store_module, "time", fake)
    monkeypatch.setattr(cli_module, "time", fake)
    return fake


# ============================================================================
# Cache Fixtures
# ============================================================================

@pytest.fixture
def make_cache() -> Iterator[Callable[..., Cache]]:
    """
    Factory fixture creating caches whose sweep is stopped after the test.

    Usage:
        def test_something(make_cache):
            cache = make_cache(default_ttl=10, sweep_interval=0)
    """
    created: List[Cache] = []

    def factory(default_ttl=0, sweep_interval=0) -> Cache:
        cache = Cache(default_ttl=default_ttl, sweep_interval=sweep_interval)
        created.append(cache)
        return cache

    yield factory

    for cache in created:
        if cache.sweeping:
            cache.stop_sweep()
        cache._sweeper.join(timeout=1.0)


@pytest.fixture
def cache(make_cache) -> Cache:
    """A cache with no default expiration and no background sweep."""
    return make_cache()


@pytest.fixture
def expiring_cache(make_cache) -> Cache:
    """A cache whose default TTL is 10 seconds, with no background sweep."""
    return make_cache(default_ttl=10)


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
