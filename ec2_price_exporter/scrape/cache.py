"""TTL gate deciding whether a poll triggers a new scrape."""

from typing import Optional
import time


class CacheGate:
    """
    Time-to-live gate around scrape cycles.

    A scrape is due when no scrape has run yet or when the TTL since the last one
    has elapsed. A TTL of 0 makes every poll due. Errors during a scrape do not
    affect eligibility.
    """

    def __init__(self, ttl_seconds: float = 0, clock=time.monotonic):
        """
        Initialize cache gate.

        Args:
            ttl_seconds: Minimum interval between scrapes; 0 disables caching
            clock: Time source returning seconds
        """
        if ttl_seconds < 0:
            raise ValueError("Cache TTL must be >= 0")
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.next_eligible: Optional[float] = None  # None: immediately eligible

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def now(self) -> float:
        return self.clock()

    def is_due(self, now: Optional[float] = None) -> bool:
        if not self.enabled or self.next_eligible is None:
            return True
        now = self.now() if now is None else now
        return now >= self.next_eligible

    def mark_scraped(self, now: Optional[float] = None) -> None:
        """Open a new cache window starting at ``now``."""
        now = self.now() if now is None else now
        self.next_eligible = now + self.ttl_seconds
