"""
OpenAI chat client adapter for LLM Translator.

Provides an OpenAI-compatible interface that wraps the native async OpenAI
SDK. SDK-level retries are disabled; retrying is the translation client's job.
"""

from types import SimpleNamespace
from typing import Any, List, Optional

import openai
from loguru import logger
from openai.types.chat import ChatCompletionMessageParam

__all__ = ["OpenAIChatClientAdapter", "DEFAULT_BASE_URL"]

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAIChatClientAdapter:
    """
    Adapter for the OpenAI Chat API with an OpenAI-compatible interface.

    Exposes:
      - chat.completions.create(...) (coroutine)
    """

    def __init__(self, api_key: str, base_url: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize the OpenAI adapter.

        Args:
            api_key: OpenAI API key.
            base_url: Endpoint base URL for OpenAI-compatible services.
            timeout: Optional timeout for API requests in seconds.
        """
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or DEFAULT_BASE_URL,
            timeout=timeout,
            max_retries=0,
        )
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))
        self._timeout = timeout

    async def _create(
        self,
        model: str,
        messages: List[ChatCompletionMessageParam],
        temperature: float = 1.0,
        **kwargs: Any,
    ) -> Any:
        """
        Send a chat completion request.

        Args:
            model: Model name to use.
            messages: List of message dictionaries with role and content.
            temperature: Sampling temperature.
            **kwargs: Additional SDK parameters.

        Returns:
            OpenAI API response object.
        """
        if model.startswith("gpt-5"):
            kwargs.setdefault("extra_body", {"reasoning_effort": "minimal", "verbosity": "low"})
            logger.debug("Using OpenAI GPT-5 optimizations: reasoning_effort=minimal, verbosity=low")

        api_params = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            **kwargs,
        }

        logger.debug(f"OpenAI request: model={model}, temperature={temperature}, messages={len(messages)}")
        return await self._client.chat.completions.create(**api_params)

    async def close(self) -> None:
        await self._client.close()
