"""
Type definitions for the LLM client package.

This module contains core data types used by the translation client:
- APIUsage: request and token statistics
- CancellationToken: cooperative cancellation signal
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..errors import TranslationCancelledError


@dataclass
class APIUsage:
    """API usage statistics."""

    requests_count: int = 0
    tokens_used: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    retried_attempts: int = 0
    last_request_time: Optional[datetime] = None
    rate_limit_hits: int = 0


class CancellationToken:
    """Cooperative cancellation flag shared by a request and its waiters.

    Setting the token never interrupts an in-flight network call; it is
    observed at queue dequeue, before each attempt and while waiting between
    attempts.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TranslationCancelledError()

    async def sleep(self, seconds: float) -> None:
        """Sleep for `seconds` unless cancelled first.

        Raises:
            TranslationCancelledError: The token was cancelled during the wait.
        """
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise TranslationCancelledError()


__all__ = ["APIUsage", "CancellationToken"]
