"""
Clipboard Service for LLM Translator.

This module provides clipboard access using pyperclip. A locked or
temporarily unavailable clipboard is retried a bounded number of times
before giving up.
"""

import threading
from typing import Optional

import pyperclip
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..core.errors import ClipboardError, ClipboardLockedError

# Bounded retry for a locked clipboard
CLIPBOARD_RETRY_ATTEMPTS = 5
CLIPBOARD_RETRY_DELAY = 0.1

_clipboard_retry = retry(
    stop=stop_after_attempt(CLIPBOARD_RETRY_ATTEMPTS),
    wait=wait_fixed(CLIPBOARD_RETRY_DELAY),
    retry=retry_if_exception_type(ClipboardLockedError),
    reraise=True,
)


class ClipboardService:
    """Service for reading and writing clipboard text using pyperclip."""

    def __init__(self):
        self._lock = threading.RLock()
        logger.debug("ClipboardService initialized")

    @_clipboard_retry
    def _paste(self) -> str:
        try:
            return pyperclip.paste() or ""
        except pyperclip.PyperclipException as e:
            raise ClipboardLockedError(f"Clipboard unavailable: {e}") from e

    @_clipboard_retry
    def _copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardLockedError(f"Clipboard unavailable: {e}") from e

    def get_clipboard_text(self) -> Optional[str]:
        """Get text from clipboard.

        Returns:
            Optional[str]: Clipboard text, or None if the clipboard stayed
            unavailable through every retry
        """
        with self._lock:
            try:
                return self._paste()
            except ClipboardLockedError as e:
                logger.warning(f"Failed to read clipboard after {CLIPBOARD_RETRY_ATTEMPTS} attempts: {e}")
                return None

    def copy_text(self, text: str) -> None:
        """Copy text to clipboard.

        Raises:
            ClipboardError: The clipboard stayed unavailable through every retry
        """
        with self._lock:
            try:
                self._copy(text)
            except ClipboardLockedError as e:
                logger.error(f"Failed to write clipboard after {CLIPBOARD_RETRY_ATTEMPTS} attempts: {e}")
                raise ClipboardError(str(e)) from e
        logger.debug(f"Text copied to clipboard: {len(text)} characters")


_clipboard_service: Optional[ClipboardService] = None
_clipboard_lock = threading.Lock()


def get_clipboard_service() -> ClipboardService:
    """Get the global clipboard service instance."""
    global _clipboard_service
    if _clipboard_service is None:
        with _clipboard_lock:
            if _clipboard_service is None:
                _clipboard_service = ClipboardService()
    return _clipboard_service


__all__ = ["ClipboardService", "get_clipboard_service", "CLIPBOARD_RETRY_ATTEMPTS", "CLIPBOARD_RETRY_DELAY"]
