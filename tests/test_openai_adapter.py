"""
Unit tests for OpenAIChatClientAdapter.
"""

from types import SimpleNamespace

import pytest

from llm_translator.providers.openai_adapter import DEFAULT_BASE_URL, OpenAIChatClientAdapter


@pytest.fixture
def async_openai(mocker):
    """Patch the AsyncOpenAI client class."""
    client_cls = mocker.patch("llm_translator.providers.openai_adapter.openai.AsyncOpenAI")
    client_cls.return_value.chat.completions.create = mocker.AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="Hello from OpenAI"))])
    )
    client_cls.return_value.close = mocker.AsyncMock()
    return client_cls


class TestOpenAIChatClientAdapter:
    """Tests for the async chat adapter."""

    def test_sdk_retries_are_disabled(self, async_openai):
        """Test that the SDK client is built without its own retries."""
        # Act
        OpenAIChatClientAdapter(api_key="sk-fake-key", timeout=30)

        # Assert
        kwargs = async_openai.call_args.kwargs
        assert kwargs["max_retries"] == 0
        assert kwargs["base_url"] == DEFAULT_BASE_URL
        assert kwargs["timeout"] == 30

    @pytest.mark.asyncio
    async def test_create_forwards_params(self, async_openai):
        """Test that create forwards model, messages and temperature."""
        # Arrange
        adapter = OpenAIChatClientAdapter(api_key="sk-fake-key", base_url="http://localhost:8080/v1")
        messages = [{"role": "user", "content": "Hi"}]

        # Act
        response = await adapter.chat.completions.create(model="gpt-4.1-nano", messages=messages, temperature=0.3)

        # Assert
        assert response.choices[0].message.content == "Hello from OpenAI"
        create = async_openai.return_value.chat.completions.create
        create.assert_awaited_once_with(model="gpt-4.1-nano", messages=messages, temperature=0.3)

    @pytest.mark.asyncio
    async def test_gpt5_gets_reasoning_options(self, async_openai):
        """Test that GPT-5 requests get minimal reasoning effort."""
        # Arrange
        adapter = OpenAIChatClientAdapter(api_key="sk-fake-key")

        # Act
        await adapter.chat.completions.create(model="gpt-5-nano", messages=[], temperature=1.0)

        # Assert
        kwargs = async_openai.return_value.chat.completions.create.await_args.kwargs
        assert kwargs["extra_body"] == {"reasoning_effort": "minimal", "verbosity": "low"}

    @pytest.mark.asyncio
    async def test_close(self, async_openai):
        """Test that close closes the SDK client."""
        adapter = OpenAIChatClientAdapter(api_key="sk-fake-key")
        await adapter.close()
        async_openai.return_value.close.assert_awaited_once()
