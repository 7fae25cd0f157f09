"""
Rate limiting for LLM Translator.

A sliding one-minute window plus a daily counter that resets at the UTC day
boundary. The limiter only answers whether a single attempt is admissible
right now; it never queues or waits on the caller's behalf.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Deque, Optional

from loguru import logger

from .errors import DailyLimitError, MinuteLimitError

WINDOW_SECONDS = 60.0


def utc_today() -> date:
    """Current UTC calendar date."""
    return datetime.now(timezone.utc).date()


@dataclass
class RateLimiterStats:
    """Snapshot of the limiter state."""

    requests_last_minute: int
    max_per_minute: int
    daily_count: int
    max_per_day: int
    last_reset: date

    @property
    def remaining_minute(self) -> int:
        return max(0, self.max_per_minute - self.requests_last_minute)

    @property
    def remaining_today(self) -> int:
        return max(0, self.max_per_day - self.daily_count)


class RateLimiter:
    """Per-minute sliding window and daily request cap.

    The minute window uses a monotonic clock so wall-clock adjustments cannot
    shorten it; the daily counter follows the UTC calendar date and resets
    lazily on the first check after midnight.
    """

    def __init__(
        self,
        max_per_minute: int = 30,
        max_per_day: int = 500,
        clock: Optional[Callable[[], float]] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self._max_per_minute = max_per_minute
        self._max_per_day = max_per_day
        self._clock = clock or time.monotonic
        self._today = today or utc_today
        self._lock = threading.Lock()

        self._timestamps: Deque[float] = deque()
        self._daily_count = 0
        self._last_reset = self._today()

    @property
    def max_per_minute(self) -> int:
        return self._max_per_minute

    @property
    def max_per_day(self) -> int:
        return self._max_per_day

    @property
    def daily_count(self) -> int:
        with self._lock:
            self._rollover_day()
            return self._daily_count

    def _rollover_day(self) -> None:
        today = self._today()
        if today != self._last_reset:
            logger.info(f"Daily request counter reset ({self._daily_count} requests on {self._last_reset})")
            self._daily_count = 0
            self._last_reset = today

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= WINDOW_SECONDS:
            self._timestamps.popleft()

    def check_and_update(self) -> None:
        """Admit one request or raise.

        Raises:
            MinuteLimitError: Per-minute cap reached; carries the exact wait time.
            DailyLimitError: Daily cap reached.
        """
        with self._lock:
            self._rollover_day()
            now = self._clock()
            self._prune(now)

            if len(self._timestamps) >= self._max_per_minute:
                wait_time = max(0.0, WINDOW_SECONDS - (now - self._timestamps[0]))
                logger.warning(f"Per-minute rate limit reached, next slot in {wait_time:.2f}s")
                raise MinuteLimitError(wait_time)

            if self._daily_count >= self._max_per_day:
                logger.warning(f"Daily rate limit reached ({self._daily_count}/{self._max_per_day})")
                raise DailyLimitError(self._daily_count, self._max_per_day)

            self._timestamps.append(now)
            self._daily_count += 1

    def remaining_this_minute(self) -> int:
        with self._lock:
            self._prune(self._clock())
            return max(0, self._max_per_minute - len(self._timestamps))

    def remaining_today(self) -> int:
        with self._lock:
            self._rollover_day()
            return max(0, self._max_per_day - self._daily_count)

    def next_available(self) -> float:
        """Seconds until the next request would pass the minute window (0 if now)."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._timestamps) < self._max_per_minute:
                return 0.0
            return max(0.0, WINDOW_SECONDS - (now - self._timestamps[0]))

    def reset(self) -> None:
        """Forget all recorded requests."""
        with self._lock:
            self._timestamps.clear()
            self._daily_count = 0
            self._last_reset = self._today()
        logger.debug("Rate limiter reset")

    def update_limits(self, max_per_minute: int, max_per_day: int) -> None:
        with self._lock:
            self._max_per_minute = max_per_minute
            self._max_per_day = max_per_day
        logger.info(f"Rate limits updated: {max_per_minute}/min, {max_per_day}/day")

    def get_stats(self) -> RateLimiterStats:
        with self._lock:
            self._rollover_day()
            self._prune(self._clock())
            return RateLimiterStats(
                requests_last_minute=len(self._timestamps),
                max_per_minute=self._max_per_minute,
                daily_count=self._daily_count,
                max_per_day=self._max_per_day,
                last_reset=self._last_reset,
            )


__all__ = ["RateLimiter", "RateLimiterStats", "utc_today"]
