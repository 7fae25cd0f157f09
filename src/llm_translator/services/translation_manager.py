"""
Translation Manager for LLM Translator.

Top-level orchestrator of the translation pipeline: fingerprints requests,
answers repeats from an in-memory cache, attaches concurrent duplicates to
the request already in flight, validates and rate-limits new text, and feeds
a bounded priority queue drained by worker tasks.

All cache, queue and in-flight bookkeeping lives on the event loop and is
only touched between awaits, so each admission sequence is atomic.
"""

import asyncio
import hashlib
import itertools
import re
import time
import unicodedata
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from loguru import logger

from ..core.errors import (
    InvalidTextError,
    QueueFullError,
    TranslationCancelledError,
    UnknownPromptError,
)
from ..core.llm_client import CancellationToken, TranslationClient
from ..core.rate_limiter import RateLimiter
from ..core.text_validator import TextValidator, Valid


class RequestPriority(IntEnum):
    """Queue priority; lower values are served first."""

    HIGH = 0
    NORMAL = 1
    LOW = 2


_HORIZONTAL_WHITESPACE = re.compile(r"[ \t\u00a0]+")


def normalize_text(text: str) -> str:
    """Normalize text for fingerprinting.

    Unicode NFC, unified line endings, collapsed runs of spaces and tabs,
    stripped ends.
    """
    text = unicodedata.normalize("NFC", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _HORIZONTAL_WHITESPACE.sub(" ", text)
    return text.strip()


def compute_fingerprint(text: str, prompt_id: str, model: str) -> str:
    """Deterministic identifier of a translation request."""
    content = f"{normalize_text(text)}\x00{prompt_id}\x00{model}"
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass
class TranslationRequest:
    """A queued translation and the future its callers wait on."""

    fingerprint: str
    text: str
    prompt_id: str
    system_prompt: str
    model: str
    priority: RequestPriority
    future: "asyncio.Future[str]"
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    created_at: float = field(default_factory=time.monotonic)
    waiters: int = 1


@dataclass
class QueueStats:
    """Snapshot of the manager state."""

    queued: int
    active: int
    in_flight: int
    cached: int
    remaining_minute: int
    remaining_today: int


class TranslationCache:
    """In-memory, session-only LRU cache with a time-to-live."""

    def __init__(self, max_size: int = 100, ttl_seconds: float = 300.0, clock: Optional[Callable[[], float]] = None):
        self._cache: "OrderedDict[str, Tuple[str, float]]" = OrderedDict()
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock or time.monotonic

    def _evict_oldest(self):
        """Remove least recently used entries when max size is reached."""
        while len(self._cache) > self._max_size:
            key, _ = self._cache.popitem(last=False)
            logger.debug(f"Evicted old cache entry: {key[:12]}")

    def get(self, fingerprint: str) -> Optional[str]:
        """Get cached translation result, dropping it if expired."""
        entry = self._cache.get(fingerprint)
        if entry is None:
            return None

        translated, stored_at = entry
        if self._clock() - stored_at >= self._ttl:
            del self._cache[fingerprint]
            logger.debug(f"Cache entry expired: {fingerprint[:12]}")
            return None

        self._cache.move_to_end(fingerprint)
        logger.debug(f"Cache hit: {fingerprint[:12]}")
        return translated

    def put(self, fingerprint: str, translated_text: str):
        """Store translation result in cache."""
        self._cache[fingerprint] = (translated_text, self._clock())
        self._cache.move_to_end(fingerprint)
        self._evict_oldest()

    def clear(self):
        """Clear all cache entries."""
        self._cache.clear()
        logger.info("Translation cache cleared")

    def size(self) -> int:
        """Get current cache size."""
        return len(self._cache)


class PendingQueue:
    """Bounded priority queue, FIFO within a priority class.

    A full queue rejects the newest request with QueueFullError.
    """

    def __init__(self, maxsize: int = 16):
        self._queue: "asyncio.PriorityQueue[Tuple[int, int, TranslationRequest]]" = asyncio.PriorityQueue(maxsize)
        self._sequence = itertools.count()

    def put(self, request: TranslationRequest) -> None:
        try:
            self._queue.put_nowait((int(request.priority), next(self._sequence), request))
        except asyncio.QueueFull as e:
            raise QueueFullError(f"Translation queue is full ({self._queue.maxsize} pending)") from e

    async def get(self) -> TranslationRequest:
        _, _, request = await self._queue.get()
        return request

    def get_nowait(self) -> TranslationRequest:
        _, _, request = self._queue.get_nowait()
        return request

    def task_done(self) -> None:
        self._queue.task_done()

    def full(self) -> bool:
        return self._queue.full()

    def empty(self) -> bool:
        return self._queue.empty()

    def __len__(self) -> int:
        return self._queue.qsize()


class TranslationManager:
    """Deduplicating, caching, rate-limited front of the translation client."""

    def __init__(
        self,
        client: TranslationClient,
        rate_limiter: RateLimiter,
        prompts: Mapping[str, str],
        *,
        default_prompt: str,
        default_model: str,
        validator: Optional[TextValidator] = None,
        max_text_length: int = 5000,
        max_tokens_estimate: int = 1250,
        cache: Optional[TranslationCache] = None,
        cache_enabled: bool = True,
        queue_size: int = 16,
        short_text_threshold: int = 500,
        workers: int = 2,
    ):
        if default_prompt not in prompts:
            raise UnknownPromptError(default_prompt)

        self._client = client
        self._rate_limiter = rate_limiter
        self._prompts: Dict[str, str] = dict(prompts)
        self._default_prompt = default_prompt
        self._default_model = default_model
        self._validator = validator or TextValidator(max_text_length, max_tokens_estimate)
        self._max_text_length = max_text_length
        self._max_tokens_estimate = max_tokens_estimate
        self._cache = cache or TranslationCache()
        self._cache_enabled = cache_enabled
        self._queue_size = queue_size
        self._short_text_threshold = short_text_threshold
        self._worker_count = max(1, workers)

        self._queue: Optional[PendingQueue] = None
        self._in_flight: Dict[str, TranslationRequest] = {}
        self._workers: List["asyncio.Task[None]"] = []
        self._active = 0

    @classmethod
    def from_settings(cls, settings, client: TranslationClient, rate_limiter: RateLimiter) -> "TranslationManager":
        if settings.auto_split_long_text:
            # Long text is split by the client instead of being rejected
            max_length = settings.max_split_text_length
            max_tokens = settings.max_split_text_length // 4
        else:
            max_length = settings.max_text_length
            max_tokens = settings.max_tokens_estimate

        return cls(
            client,
            rate_limiter,
            settings.prompt_map(),
            default_prompt=settings.active_prompt,
            default_model=settings.model,
            max_text_length=max_length,
            max_tokens_estimate=max_tokens,
            cache=TranslationCache(settings.max_cache_size, settings.cache_ttl),
            cache_enabled=settings.cache_enabled,
            queue_size=settings.queue_max_size,
            short_text_threshold=settings.short_text_threshold,
            workers=settings.max_concurrent_requests,
        )

    # Lifecycle

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Start the queue-drain workers on the running event loop."""
        if self._workers:
            return
        if self._queue is None:
            self._queue = PendingQueue(self._queue_size)
        self._workers = [
            asyncio.create_task(self._worker(), name=f"translation-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info(f"Translation manager started with {self._worker_count} workers")

    async def shutdown(self) -> None:
        """Stop the workers and fail every pending request as cancelled."""
        self.cancel_all()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        if self._queue is not None:
            while not self._queue.empty():
                request = self._queue.get_nowait()
                self._queue.task_done()
                self._finish(request, error=TranslationCancelledError())
        for request in list(self._in_flight.values()):
            self._finish(request, error=TranslationCancelledError())
        logger.info("Translation manager stopped")

    # Submission

    def fingerprint(self, text: str, prompt_id: Optional[str] = None, model: Optional[str] = None) -> str:
        return compute_fingerprint(text, prompt_id or self._default_prompt, model or self._default_model)

    def _classify_priority(self, text: str) -> RequestPriority:
        return RequestPriority.HIGH if len(text) <= self._short_text_threshold else RequestPriority.NORMAL

    async def submit(
        self,
        text: str,
        prompt_id: Optional[str] = None,
        model: Optional[str] = None,
        priority: Optional[RequestPriority] = None,
    ) -> str:
        """Translate text, reusing cached or in-flight results.

        Args:
            text: Text to translate.
            prompt_id: Prompt preset id, defaults to the active preset.
            model: Model name, defaults to the configured model.
            priority: Queue priority, derived from text length when omitted.

        Returns:
            str: Translated text.

        Raises:
            UnknownPromptError: prompt_id is not a known preset.
            InvalidTextError: Text failed validation; carries the verdict.
            MinuteLimitError, DailyLimitError: Request not admitted.
            QueueFullError: Too many pending translations.
            ClientError: Translation failed; shared by every attached caller.
        """
        prompt_id = prompt_id or self._default_prompt
        model = model or self._default_model
        if prompt_id not in self._prompts:
            raise UnknownPromptError(prompt_id)

        fingerprint = compute_fingerprint(text, prompt_id, model)

        if self._cache_enabled:
            cached = self._cache.get(fingerprint)
            if cached is not None:
                logger.info("Translation served from cache")
                return cached

        in_flight = self._in_flight.get(fingerprint)
        if in_flight is not None:
            in_flight.waiters += 1
            logger.debug(f"Attached to in-flight translation {fingerprint[:12]} ({in_flight.waiters} waiters)")
            return await asyncio.shield(in_flight.future)

        verdict = self._validator.validate(text, self._max_text_length, self._max_tokens_estimate)
        if not isinstance(verdict, Valid):
            logger.info(f"Text rejected: {verdict}")
            raise InvalidTextError(verdict)

        self.start()
        if self._queue.full():
            raise QueueFullError(f"Translation queue is full ({self._queue_size} pending)")

        self._rate_limiter.check_and_update()

        request = TranslationRequest(
            fingerprint=fingerprint,
            text=text,
            prompt_id=prompt_id,
            system_prompt=self._prompts[prompt_id],
            model=model,
            priority=priority if priority is not None else self._classify_priority(text),
            future=asyncio.get_running_loop().create_future(),
        )
        self._queue.put(request)
        self._in_flight[fingerprint] = request
        logger.debug(
            f"Queued translation {fingerprint[:12]}: {len(text)} chars, priority={request.priority.name}, "
            f"queued={len(self._queue)}"
        )

        return await asyncio.shield(request.future)

    # Cancellation

    def cancel(self, fingerprint: str) -> bool:
        """Cancel the in-flight request with this fingerprint."""
        request = self._in_flight.get(fingerprint)
        if request is None:
            return False
        request.cancellation.cancel()
        logger.info(f"Translation {fingerprint[:12]} cancelled")
        return True

    def cancel_all(self) -> int:
        """Cancel every in-flight request, returning how many were cancelled."""
        requests = list(self._in_flight.values())
        for request in requests:
            request.cancellation.cancel()
        if requests:
            logger.info(f"Cancelled {len(requests)} pending translations")
        return len(requests)

    # Workers

    async def _worker(self) -> None:
        while True:
            request = await self._queue.get()
            try:
                if request.cancellation.is_cancelled:
                    logger.debug(f"Skipping cancelled translation {request.fingerprint[:12]}")
                    self._finish(request, error=TranslationCancelledError())
                    continue
                await self._process(request)
            finally:
                self._queue.task_done()

    async def _process(self, request: TranslationRequest) -> None:
        self._active += 1
        started = time.monotonic()
        try:
            translated = await self._client.translate(
                request.text, request.system_prompt, request.model, request.cancellation
            )
        except asyncio.CancelledError:
            self._finish(request, error=TranslationCancelledError())
            raise
        except Exception as e:
            logger.warning(f"Translation {request.fingerprint[:12]} failed: {e}")
            self._finish(request, error=e)
        else:
            if self._cache_enabled:
                self._cache.put(request.fingerprint, translated)
            logger.info(
                f"Translation {request.fingerprint[:12]} completed in {time.monotonic() - started:.2f}s "
                f"({request.waiters} waiters)"
            )
            self._finish(request, result=translated)
        finally:
            self._active -= 1

    def _finish(self, request: TranslationRequest, result: Optional[str] = None, error: Optional[BaseException] = None):
        if self._in_flight.get(request.fingerprint) is request:
            del self._in_flight[request.fingerprint]
        if request.future.done():
            return
        if error is not None:
            request.future.set_exception(error)
        else:
            request.future.set_result(result)

    # Introspection

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_stats(self) -> QueueStats:
        return QueueStats(
            queued=len(self._queue) if self._queue is not None else 0,
            active=self._active,
            in_flight=len(self._in_flight),
            cached=self._cache.size(),
            remaining_minute=self._rate_limiter.remaining_this_minute(),
            remaining_today=self._rate_limiter.remaining_today(),
        )


__all__ = [
    "RequestPriority",
    "TranslationRequest",
    "TranslationCache",
    "PendingQueue",
    "QueueStats",
    "TranslationManager",
    "normalize_text",
    "compute_fingerprint",
]
