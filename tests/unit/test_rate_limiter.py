"""
Unit tests for RateLimiter and the in-memory counter store.
"""

import logging
from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import InMemoryRateLimitStore
from src.domain.exceptions import StoreUnavailable
from src.domain.rate_limit import RateLimiter
from tests.helpers import FakeClock


@pytest.fixture
def limiter(rate_limit_store: InMemoryRateLimitStore) -> RateLimiter:
    return RateLimiter(store=rate_limit_store)


class TestFixedWindow:
    """Tests for admission within and across windows."""

    def test_ceiling_admits_exactly_n(self, limiter: RateLimiter) -> None:
        decisions = [limiter.admit("10.0.0.1", "signups", 5, 3600) for _ in range(7)]
        assert decisions == [True] * 5 + [False] * 2

    def test_remaining_counts_down(self, limiter: RateLimiter) -> None:
        remaining = [limiter.check("10.0.0.1", "signups", 3, 3600).remaining for _ in range(4)]
        assert remaining == [2, 1, 0, 0]

    def test_denied_decision(self, limiter: RateLimiter) -> None:
        limiter.admit("10.0.0.1", "signups", 1, 3600)
        decision = limiter.check("10.0.0.1", "signups", 1, 3600)
        assert decision.allowed is False
        assert decision.remaining == 0

    def test_window_reset_after_elapse(self, limiter: RateLimiter, clock: FakeClock) -> None:
        for _ in range(5):
            limiter.admit("10.0.0.1", "signups", 5, 3600)
        assert not limiter.admit("10.0.0.1", "signups", 5, 3600)

        clock.advance(seconds=3601)

        assert limiter.admit("10.0.0.1", "signups", 5, 3600)

    def test_still_denied_before_window_elapses(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        for _ in range(5):
            limiter.admit("10.0.0.1", "signups", 5, 3600)

        clock.advance(seconds=3599)

        assert not limiter.admit("10.0.0.1", "signups", 5, 3600)

    def test_rejected_requests_do_not_extend_window(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        for _ in range(5):
            limiter.admit("10.0.0.1", "signups", 5, 3600)
        for _ in range(20):
            clock.advance(seconds=60)
            limiter.admit("10.0.0.1", "signups", 5, 3600)

        clock.advance(seconds=2401)

        assert limiter.admit("10.0.0.1", "signups", 5, 3600)


class TestIsolation:
    """Counters are keyed by source address and endpoint."""

    def test_sources_are_independent(self, limiter: RateLimiter) -> None:
        for _ in range(5):
            limiter.admit("10.0.0.1", "signups", 5, 3600)

        assert not limiter.admit("10.0.0.1", "signups", 5, 3600)
        assert limiter.admit("10.0.0.2", "signups", 5, 3600)

    def test_endpoints_are_independent(self, limiter: RateLimiter) -> None:
        for _ in range(5):
            limiter.admit("10.0.0.1", "signups", 5, 3600)

        assert limiter.admit("10.0.0.1", "activations", 5, 3600)


class TestFailOpen:
    """The limiter admits when its store is unreachable."""

    def test_store_unavailable_admits(self, caplog: pytest.LogCaptureFixture) -> None:
        store = Mock()
        store.hit.side_effect = StoreUnavailable("down")
        limiter = RateLimiter(store=store)

        with caplog.at_level(logging.ERROR):
            decision = limiter.check("10.0.0.1", "signups", 5, 3600)

        assert decision.allowed is True
        assert decision.remaining is None
        assert "unavailable" in caplog.text


class TestPurge:
    """Tests for purging stale counters."""

    def test_purges_only_old_windows(
        self,
        limiter: RateLimiter,
        rate_limit_store: InMemoryRateLimitStore,
        clock: FakeClock,
    ) -> None:
        limiter.admit("10.0.0.1", "signups", 5, 3600)
        clock.advance(hours=2)
        limiter.admit("10.0.0.2", "signups", 5, 3600)

        removed = limiter.purge_stale(3600)

        assert removed == 1
        # The surviving counter keeps its count
        assert rate_limit_store.hit("10.0.0.2", "signups", 5, 3600) == 2
        assert rate_limit_store.hit("10.0.0.1", "signups", 5, 3600) == 1

    def test_purge_nothing(self, limiter: RateLimiter) -> None:
        assert limiter.purge_stale(3600) == 0
