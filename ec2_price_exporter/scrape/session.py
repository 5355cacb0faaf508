"""Per-scrape health state: error accounting and timing."""

from enum import Enum
from typing import Dict, Optional
import threading
import time


class ErrorKind(Enum):
    """Non-fatal error categories recorded during a scrape."""

    SESSION = "session"
    TRANSPORT = "transport"
    PARSE = "parse"


class ScrapeSession:
    """
    Health state of the most recent scrape cycle.

    Reset at the start of every triggered scrape and finalized at its end.
    Error recording is safe to call from any worker thread.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self.error_count = 0
        self.errors_by_kind: Dict[ErrorKind, int] = {}
        self.records = 0
        self.started_at: Optional[float] = None
        self.last_scrape_timestamp: Optional[float] = None
        self.duration_seconds = 0.0

    def start(self) -> None:
        """Reset counters for a new scrape cycle."""
        with self._lock:
            self.error_count = 0
            self.errors_by_kind = {}
            self.records = 0
        self.started_at = self._clock()

    def record_error(self, kind: ErrorKind) -> None:
        with self._lock:
            self.error_count += 1
            self.errors_by_kind[kind] = self.errors_by_kind.get(kind, 0) + 1

    def record_delivered(self, count: int = 1) -> None:
        with self._lock:
            self.records += count

    def finish(self) -> None:
        """Finalize duration and timestamp of the cycle."""
        now = self._clock()
        self.duration_seconds = now - self.started_at if self.started_at is not None else 0.0
        self.last_scrape_timestamp = now

    def summary(self) -> Dict[str, object]:
        """Return a dict suitable for structured log ``extra``."""
        with self._lock:
            return {
                "duration_seconds": round(self.duration_seconds, 3),
                "errors": self.error_count,
                "errors_by_kind": {kind.value: count for kind, count in self.errors_by_kind.items()},
                "records": self.records,
            }
