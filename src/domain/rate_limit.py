"""
Rate limiter - fixed-window admission control per source and endpoint.

Counting happens in the RateLimitStore as one atomic operation per
request. Windows are discrete: a window starts with the first request
after the previous one has aged window_seconds, so a client can send up to
twice the ceiling across a boundary. That looseness is accepted; this is
not a sliding window.

If the store is unavailable the limiter fails open: the request is
admitted and the error is logged, keeping signup available while
throttling is degraded.
"""

import logging
from dataclasses import dataclass

from .exceptions import StoreUnavailable
from .ports import RateLimitDecision, RateLimitStore

logger = logging.getLogger(__name__)


@dataclass
class RateLimiter:
    """Admission policy on top of a RateLimitStore."""

    store: RateLimitStore

    def admit(
        self, source_address: str, endpoint: str, ceiling: int, window_seconds: int
    ) -> bool:
        """Return True if the request may proceed."""
        return self.check(source_address, endpoint, ceiling, window_seconds).allowed

    def check(
        self, source_address: str, endpoint: str, ceiling: int, window_seconds: int
    ) -> RateLimitDecision:
        """
        Count a request and report whether it is admitted.

        Args:
            source_address: Client network address
            endpoint: Logical endpoint identity (e.g. "signups")
            ceiling: Maximum admitted requests per window
            window_seconds: Window length

        Returns:
            RateLimitDecision with the requests left in the current window
            (None when the store could not be consulted)
        """
        try:
            count = self.store.hit(source_address, endpoint, ceiling, window_seconds)
        except StoreUnavailable:
            logger.error(
                "Rate limit store unavailable, admitting %s on %s",
                source_address,
                endpoint,
                exc_info=True,
            )
            return RateLimitDecision(allowed=True)

        if count is None:
            logger.warning("Rate limit exceeded for %s on %s", source_address, endpoint)
            return RateLimitDecision(allowed=False, remaining=0)
        return RateLimitDecision(allowed=True, remaining=max(0, ceiling - count))

    def purge_stale(self, older_than_seconds: int) -> int:
        """Drop counters older than the longest window. Optimization only."""
        removed = self.store.purge_stale(older_than_seconds)
        if removed:
            logger.info("Purged %d stale rate limit counters", removed)
        return removed
