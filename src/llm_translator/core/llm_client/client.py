"""
Translation client for LLM Translator.

Sends translation requests to an OpenAI-compatible chat completion endpoint,
retrying transient failures with exponential backoff and jitter, and splitting
oversized text into chunks that are translated independently.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from ..errors import MalformedResponseError, RequestRejectedError, TransportError
from ..text_splitter import TextChunk, merge_translations, split_text
from .errors import APIErrorType, classify_error, to_client_error
from .requests import RequestBuilder
from .types import APIUsage, CancellationToken

# Upper bound for a server supplied Retry-After, in seconds
MAX_RETRY_AFTER = 60.0


class TranslationClient:
    """Talks to the remote LLM endpoint.

    The adapter must expose ``chat.completions.create(**params)`` as a
    coroutine, as ``openai.AsyncOpenAI`` and
    :class:`~llm_translator.providers.openai_adapter.OpenAIChatClientAdapter` do.
    """

    def __init__(
        self,
        adapter: Any,
        *,
        request_builder: Optional[RequestBuilder] = None,
        max_attempts: int = 3,
        base_delay: float = 0.1,
        max_delay: float = 10.0,
        jitter: float = 0.1,
        auto_split: bool = False,
        chunk_size: int = 2000,
        chunk_concurrency: int = 1,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if chunk_concurrency < 1:
            raise ValueError("chunk_concurrency must be at least 1")

        self._adapter = adapter
        self._request_builder = request_builder or RequestBuilder()
        self._max_attempts = max_attempts
        self._backoff = wait_exponential(multiplier=base_delay, max=max_delay) + wait_random(0, jitter)
        self.auto_split = auto_split
        self.chunk_size = chunk_size
        self._chunk_concurrency = chunk_concurrency
        self._usage = APIUsage()

    @classmethod
    def from_settings(cls, settings, adapter: Any) -> "TranslationClient":
        return cls(
            adapter,
            request_builder=RequestBuilder(temperature=settings.temperature),
            max_attempts=settings.max_retries,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            jitter=settings.retry_jitter,
            auto_split=settings.auto_split_long_text,
            chunk_size=settings.chunk_size,
            chunk_concurrency=settings.chunk_concurrency,
        )

    async def translate(
        self,
        text: str,
        prompt: str,
        model: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> str:
        """Translate text with the given system prompt and model.

        Args:
            text: Text to translate.
            prompt: System prompt sent with the request.
            model: Model name.
            cancellation: Optional token; once cancelled, no further attempt starts.

        Returns:
            str: Translated text.

        Raises:
            TransportError: Transient failure persisted through every attempt.
            RequestRejectedError: The text is blank, nothing is sent.
            ProtocolError: Permanent failure, not retried.
            TranslationCancelledError: The token was cancelled.
        """
        cancellation = cancellation or CancellationToken()

        if not text.strip():
            raise RequestRejectedError("Text is blank, nothing to translate")

        if self.auto_split and len(text) > self.chunk_size:
            chunks = split_text(text, self.chunk_size)
            logger.info(f"Text of {len(text)} characters split into {len(chunks)} chunks")
            return await self._translate_chunks(chunks, prompt, model, cancellation)

        return await self._translate_single(text, prompt, model, cancellation)

    async def _translate_chunks(
        self,
        chunks: List[TextChunk],
        prompt: str,
        model: str,
        cancellation: CancellationToken,
    ) -> str:
        semaphore = asyncio.Semaphore(self._chunk_concurrency)

        async def translate_chunk(chunk: TextChunk) -> str:
            async with semaphore:
                logger.debug(f"Translating chunk {chunk.index + 1}/{len(chunks)} ({len(chunk.text)} chars)")
                return await self._translate_single(chunk.text, prompt, model, cancellation)

        tasks = [asyncio.ensure_future(translate_chunk(chunk)) for chunk in chunks]
        try:
            translations = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning("Chunked translation aborted, no partial result returned")
            raise

        return merge_translations(chunks, translations)

    async def _translate_single(
        self,
        text: str,
        prompt: str,
        model: str,
        cancellation: CancellationToken,
    ) -> str:
        params = self._request_builder.build_params(model=model, system_prompt=prompt, text=text)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(TransportError),
            sleep=cancellation.sleep,
            before_sleep=self._before_sleep,
            reraise=True,
        )

        result = ""
        async for attempt in retrying:
            with attempt:
                cancellation.raise_if_cancelled()
                result = await self._send(params)
        return result

    def _wait(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = getattr(error, "retry_after", None)
        if retry_after is not None:
            return min(float(retry_after), MAX_RETRY_AFTER)
        return self._backoff(retry_state)

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        self._usage.retried_attempts += 1
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{self._max_attempts} failed ({error}), retrying in {delay:.2f}s"
        )

    async def _send(self, params: Dict[str, Any]) -> str:
        self._usage.requests_count += 1
        self._usage.last_request_time = datetime.now()

        try:
            response = await self._adapter.chat.completions.create(**params)
        except Exception as e:
            self._usage.failed_requests += 1
            api_error = classify_error(e)
            if api_error.error_type is APIErrorType.RATE_LIMIT:
                self._usage.rate_limit_hits += 1
            logger.debug(f"Request failed: {api_error.error_type.value} (status={api_error.status_code}): {e}")
            raise to_client_error(api_error) from e

        try:
            text = self.extract_text_from_response(response)
        except MalformedResponseError:
            self._usage.failed_requests += 1
            raise

        self._usage.successful_requests += 1
        tokens = getattr(getattr(response, "usage", None), "total_tokens", None)
        if isinstance(tokens, int):
            self._usage.tokens_used += tokens
        return text

    @staticmethod
    def extract_text_from_response(response: Any) -> str:
        """Extract the message text from a chat completion response.

        Raises:
            MalformedResponseError: Response has an unexpected shape or no text.
        """
        try:
            if isinstance(response, dict):
                content = response["choices"][0]["message"]["content"]
            else:
                content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise MalformedResponseError(f"Unexpected response shape: {e}") from e

        if not isinstance(content, str) or not content.strip():
            raise MalformedResponseError("Response contains no translated text")
        return content.strip()

    def get_usage_stats(self) -> Dict[str, Any]:
        usage = self._usage
        return {
            "requests_count": usage.requests_count,
            "successful_requests": usage.successful_requests,
            "failed_requests": usage.failed_requests,
            "retried_attempts": usage.retried_attempts,
            "tokens_used": usage.tokens_used,
            "rate_limit_hits": usage.rate_limit_hits,
            "last_request_time": usage.last_request_time,
        }


__all__ = ["TranslationClient", "MAX_RETRY_AFTER"]
