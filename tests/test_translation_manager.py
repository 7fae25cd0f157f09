"""
Tests for TranslationManager in services.translation_manager module.

This module tests:
- Fingerprinting and text normalization
- Cache hits, TTL and LRU eviction
- Deduplication of concurrent identical requests
- Admission order: validation, queue capacity, rate limiting
- Failure fan-out and cancellation
"""

import asyncio

import pytest

from llm_translator.core.errors import (
    InvalidTextError,
    MinuteLimitError,
    QueueFullError,
    ServerError,
    TranslationCancelledError,
    UnknownPromptError,
)
from llm_translator.core.rate_limiter import RateLimiter
from llm_translator.core.text_validator import TooLong
from llm_translator.services.translation_manager import (
    PendingQueue,
    RequestPriority,
    TranslationCache,
    TranslationManager,
    TranslationRequest,
    compute_fingerprint,
    normalize_text,
)

PROMPTS = {"general": "Translate.", "formal": "Translate formally."}


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def gate():
    return asyncio.Event()


@pytest.fixture
def client(mocker):
    """Translation client returning an uppercase rendition of the text."""
    fake = mocker.Mock()

    async def translate(text, prompt, model, cancellation=None):
        await asyncio.sleep(0)
        return text.upper()

    fake.translate = mocker.AsyncMock(side_effect=translate)
    return fake


def make_manager(client, limiter=None, **kwargs):
    kwargs.setdefault("default_prompt", "general")
    kwargs.setdefault("default_model", "gpt-4.1-nano")
    return TranslationManager(client, limiter or RateLimiter(30, 500), PROMPTS, **kwargs)


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestFingerprint:
    """Tests for normalization and fingerprints."""

    def test_normalization(self):
        """Test that line endings and horizontal whitespace are normalized."""
        assert normalize_text("  Hello \t  world\r\nbye\r ") == "Hello world\nbye"

    def test_equivalent_text_shares_fingerprint(self):
        """Test that texts equal after normalization have the same fingerprint."""
        assert compute_fingerprint("Hello  world\r\n", "general", "m") == compute_fingerprint("Hello world", "general", "m")

    def test_composed_and_decomposed_unicode_match(self):
        """Test that NFC normalization unifies composed characters."""
        assert compute_fingerprint("cafe\u0301", "general", "m") == compute_fingerprint("caf\u00e9", "general", "m")

    def test_prompt_and_model_are_part_of_identity(self):
        """Test that prompt and model change the fingerprint."""
        base = compute_fingerprint("Hello", "general", "m")
        assert compute_fingerprint("Hello", "formal", "m") != base
        assert compute_fingerprint("Hello", "general", "other") != base


class TestTranslationCache:
    """Tests for the TTL LRU cache."""

    def test_entry_expires_after_ttl(self):
        """Test that entries older than the TTL are dropped."""
        # Arrange
        clock = FakeClock()
        cache = TranslationCache(max_size=10, ttl_seconds=300, clock=clock)
        cache.put("fp", "Hola")

        # Act
        clock.now += 299
        fresh = cache.get("fp")
        clock.now += 1
        expired = cache.get("fp")

        # Assert
        assert fresh == "Hola"
        assert expired is None
        assert cache.size() == 0

    def test_least_recently_used_is_evicted(self):
        """Test that the least recently used entry is evicted first."""
        # Arrange
        cache = TranslationCache(max_size=2, ttl_seconds=300, clock=FakeClock())
        cache.put("a", "1")
        cache.put("b", "2")
        cache.get("a")

        # Act
        cache.put("c", "3")

        # Assert
        assert cache.get("b") is None
        assert cache.get("a") == "1"
        assert cache.get("c") == "3"


class TestPendingQueue:
    """Tests for the bounded priority queue."""

    @pytest.mark.asyncio
    async def test_priority_then_fifo(self):
        """Test that higher priority is served first and ties are FIFO."""
        # Arrange
        loop = asyncio.get_running_loop()
        queue = PendingQueue(maxsize=4)

        def request(name, priority):
            return TranslationRequest(name, name, "general", "p", "m", priority, loop.create_future())

        for name, priority in [
            ("low", RequestPriority.LOW),
            ("normal-1", RequestPriority.NORMAL),
            ("high", RequestPriority.HIGH),
            ("normal-2", RequestPriority.NORMAL),
        ]:
            queue.put(request(name, priority))

        # Act
        order = [(await queue.get()).text for _ in range(4)]

        # Assert
        assert order == ["high", "normal-1", "normal-2", "low"]

    @pytest.mark.asyncio
    async def test_full_queue_rejects(self):
        """Test that putting into a full queue raises QueueFullError."""
        # Arrange
        loop = asyncio.get_running_loop()
        queue = PendingQueue(maxsize=1)
        queue.put(TranslationRequest("a", "a", "general", "p", "m", RequestPriority.NORMAL, loop.create_future()))

        # Act / Assert
        with pytest.raises(QueueFullError):
            queue.put(TranslationRequest("b", "b", "general", "p", "m", RequestPriority.HIGH, loop.create_future()))
        assert len(queue) == 1


class TestSubmit:
    """Tests for TranslationManager.submit."""

    @pytest.mark.asyncio
    async def test_translates_text(self, client):
        """Test that a new request is translated by the client."""
        # Arrange
        manager = make_manager(client)

        # Act
        result = await manager.submit("hello")
        await manager.shutdown()

        # Assert
        assert result == "HELLO"
        client.translate.assert_awaited_once()
        args = client.translate.await_args.args
        assert args[:3] == ("hello", "Translate.", "gpt-4.1-nano")

    @pytest.mark.asyncio
    async def test_unknown_prompt_is_rejected(self, client):
        """Test that an unknown prompt preset is rejected before anything else."""
        manager = make_manager(client)
        with pytest.raises(UnknownPromptError):
            await manager.submit("hello", prompt_id="pirate")

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_share_one_call(self, client):
        """Test that two concurrent identical submissions cause one client call."""
        # Arrange
        limiter = RateLimiter(30, 500)
        manager = make_manager(client, limiter)

        # Act
        first, second = await asyncio.gather(manager.submit("hello"), manager.submit("hello  "))
        await manager.shutdown()

        # Assert
        assert first == second == "HELLO"
        assert client.translate.await_count == 1
        assert limiter.daily_count == 1

    @pytest.mark.asyncio
    async def test_repeat_is_served_from_cache(self, client):
        """Test that a completed translation is reused without contacting the client or limiter."""
        # Arrange
        limiter = RateLimiter(30, 500)
        manager = make_manager(client, limiter)
        first = await manager.submit("hello")

        # Act
        second = await manager.submit("hello")
        await manager.shutdown()

        # Assert
        assert second == first
        assert client.translate.await_count == 1
        assert limiter.daily_count == 1

    @pytest.mark.asyncio
    async def test_cache_can_be_disabled(self, client):
        """Test that with caching disabled every request reaches the client."""
        # Arrange
        manager = make_manager(client, cache_enabled=False)

        # Act
        await manager.submit("hello")
        await manager.submit("hello")
        await manager.shutdown()

        # Assert
        assert client.translate.await_count == 2

    @pytest.mark.asyncio
    async def test_invalid_text_is_rejected_with_verdict(self, client):
        """Test that validation failures carry the verdict and consume no quota."""
        # Arrange
        limiter = RateLimiter(30, 500)
        manager = make_manager(client, limiter, max_text_length=10)

        # Act
        with pytest.raises(InvalidTextError) as exc_info:
            await manager.submit("x" * 11)

        # Assert
        assert exc_info.value.verdict == TooLong(length=11, max=10)
        client.translate.assert_not_awaited()
        assert limiter.daily_count == 0

    @pytest.mark.asyncio
    async def test_minute_limit_is_propagated(self, client):
        """Test that a rate limit rejection reaches the caller."""
        # Arrange
        manager = make_manager(client, RateLimiter(max_per_minute=1, max_per_day=500))
        await manager.submit("first")

        # Act / Assert
        with pytest.raises(MinuteLimitError):
            await manager.submit("second")
        await manager.shutdown()
        assert client.translate.await_count == 1

    @pytest.mark.asyncio
    async def test_full_queue_rejects_without_consuming_quota(self, client, gate):
        """Test that a full queue rejects new work before the rate limiter."""
        # Arrange
        async def blocked(text, prompt, model, cancellation=None):
            await gate.wait()
            return text

        client.translate.side_effect = blocked
        limiter = RateLimiter(30, 500)
        manager = make_manager(client, limiter, queue_size=1, workers=1)
        active = asyncio.ensure_future(manager.submit("one"))
        await settle()
        queued = asyncio.ensure_future(manager.submit("two"))
        await settle()

        # Act
        with pytest.raises(QueueFullError):
            await manager.submit("three")

        # Assert
        assert limiter.daily_count == 2
        stats = manager.get_stats()
        assert stats.active == 1
        assert stats.queued == 1

        gate.set()
        assert await active == "one"
        assert await queued == "two"
        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_failure_is_shared_and_not_cached(self, client, gate):
        """Test that every attached caller receives the same failure and nothing is cached."""
        # Arrange
        error = ServerError("upstream down", status_code=503)

        async def failing(text, prompt, model, cancellation=None):
            await gate.wait()
            raise error

        client.translate.side_effect = failing
        manager = make_manager(client)
        first = asyncio.ensure_future(manager.submit("hello"))
        second = asyncio.ensure_future(manager.submit("hello"))
        await settle()

        # Act
        gate.set()
        results = await asyncio.gather(first, second, return_exceptions=True)

        # Assert
        assert results == [error, error]
        stats = manager.get_stats()
        assert stats.in_flight == 0
        assert stats.cached == 0
        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_waiter_cancellation_does_not_cancel_shared_request(self, client, gate):
        """Test that cancelling one waiting task leaves the others served."""
        # Arrange
        async def blocked(text, prompt, model, cancellation=None):
            await gate.wait()
            return text.upper()

        client.translate.side_effect = blocked
        manager = make_manager(client)
        first = asyncio.ensure_future(manager.submit("hello"))
        second = asyncio.ensure_future(manager.submit("hello"))
        await settle()

        # Act
        first.cancel()
        gate.set()

        # Assert
        assert await second == "HELLO"
        await manager.shutdown()


class TestCancel:
    """Tests for cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_running_request(self, client):
        """Test that cancelling a fingerprint fails its waiters as cancelled."""
        # Arrange
        async def slow(text, prompt, model, cancellation=None):
            await cancellation.sleep(10)
            return text

        client.translate.side_effect = slow
        manager = make_manager(client)
        task = asyncio.ensure_future(manager.submit("hello"))
        await settle()

        # Act
        cancelled = manager.cancel(manager.fingerprint("hello"))

        # Assert
        assert cancelled is True
        with pytest.raises(TranslationCancelledError):
            await asyncio.wait_for(task, timeout=1)
        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_cancelled_queued_request_is_skipped(self, client, gate):
        """Test that a request cancelled while queued never reaches the client."""
        # Arrange
        async def blocked(text, prompt, model, cancellation=None):
            await gate.wait()
            return text

        client.translate.side_effect = blocked
        manager = make_manager(client, workers=1)
        running = asyncio.ensure_future(manager.submit("one"))
        await settle()
        waiting = asyncio.ensure_future(manager.submit("two"))
        await settle()

        # Act
        manager.cancel(manager.fingerprint("two"))
        gate.set()

        # Assert
        assert await running == "one"
        with pytest.raises(TranslationCancelledError):
            await waiting
        assert client.translate.await_count == 1
        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_cancel_unknown_fingerprint(self, client):
        """Test that cancelling an unknown fingerprint reports False."""
        assert make_manager(client).cancel("missing") is False

    @pytest.mark.asyncio
    async def test_shutdown_fails_pending(self, client, gate):
        """Test that shutdown fails pending requests as cancelled."""
        # Arrange
        async def blocked(text, prompt, model, cancellation=None):
            await gate.wait()
            return text

        client.translate.side_effect = blocked
        manager = make_manager(client)
        task = asyncio.ensure_future(manager.submit("hello"))
        await settle()

        # Act
        await manager.shutdown()

        # Assert
        with pytest.raises(TranslationCancelledError):
            await task
        assert not manager.is_running


class TestConstruction:
    """Tests for manager construction."""

    def test_unknown_default_prompt(self, client):
        """Test that the default prompt must exist."""
        with pytest.raises(UnknownPromptError):
            make_manager(client, default_prompt="missing")

    def test_from_settings_uses_split_limit(self, client, settings):
        """Test that auto-split raises the accepted text length."""
        # Arrange
        settings.auto_split_long_text = True

        # Act
        manager = TranslationManager.from_settings(settings, client, RateLimiter())

        # Assert
        assert manager._max_text_length == settings.max_split_text_length
