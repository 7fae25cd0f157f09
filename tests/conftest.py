"""
Pytest configuration for LLM Translator test suite.

This file provides common fixtures for all tests.
"""

import logging
from typing import List, Optional

import pytest
from loguru import logger

from llm_translator.core.config import Settings


@pytest.fixture
def loguru_caplog(caplog):
    """Fixture to bridge loguru to pytest caplog with proper cleanup."""
    # Remove all handlers to avoid duplicate logs or side effects
    logger.remove()

    # Add caplog handler
    handler_id = logger.add(caplog.handler, format="{message}")
    caplog.set_level(logging.DEBUG)

    yield caplog

    # Cleanup: remove caplog handler
    try:
        logger.remove(handler_id)
    except ValueError:
        # Handler already removed
        pass


# ============================================================================
# Fakes for external collaborators
# ============================================================================


class FakeClipboard:
    """In-memory clipboard with the ClipboardService interface."""

    def __init__(self, content: Optional[str] = ""):
        self.content = content
        self.writes: List[str] = []

    def get_clipboard_text(self) -> Optional[str]:
        return self.content

    def copy_text(self, text: str) -> None:
        self.writes.append(text)
        self.content = text


class FakeSimulator:
    """Key simulator that puts a prepared selection on the clipboard."""

    def __init__(self, clipboard: FakeClipboard, selection: Optional[str] = None, fail: bool = False):
        self.clipboard = clipboard
        self.selection = selection
        self.fail = fail
        self.copies = 0
        self.pastes = 0

    def copy(self) -> None:
        self.copies += 1
        if self.fail:
            raise OSError("input injection not permitted")
        if self.selection is not None:
            self.clipboard.content = self.selection

    def paste(self) -> None:
        self.pastes += 1


@pytest.fixture
def fake_clipboard():
    return FakeClipboard("original clipboard")


@pytest.fixture
def make_clipboard():
    """Factory for in-memory clipboards with given content."""
    return FakeClipboard


@pytest.fixture
def make_simulator():
    """Factory for key simulators bound to a clipboard."""
    return FakeSimulator


@pytest.fixture
def settings():
    """Settings with defaults, isolated from the environment and .env files."""
    return Settings(_env_file=None, openai_api_key="sk-test0000000000000000000000")


# ============================================================================
# Chat completion fakes
# ============================================================================


@pytest.fixture
def make_response(mocker):
    """Build a chat completion response mock with the given content."""

    def _make(content: str = "Translated text", total_tokens: int = 50):
        response = mocker.Mock()
        response.choices = [mocker.Mock()]
        response.choices[0].message.content = content
        response.usage = mocker.Mock(total_tokens=total_tokens)
        return response

    return _make


@pytest.fixture
def mock_adapter(mocker, make_response):
    """Chat adapter whose create() coroutine returns a standard response."""
    adapter = mocker.Mock()
    adapter.chat.completions.create = mocker.AsyncMock(return_value=make_response())
    return adapter
