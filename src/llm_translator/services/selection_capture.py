"""
Selection capture for LLM Translator.

Captures the current text selection by simulating the platform copy shortcut
and polling the clipboard until its content changes. There is no portable
clipboard change notification, so detection is a bounded poll against a
deadline.
"""

import asyncio
from typing import Optional

from loguru import logger

from ..core.errors import (
    BusyError,
    ClipboardError,
    ClipboardTimeoutError,
    EmptySelectionError,
    NoSelectionError,
    OnlyWhitespaceError,
)
from ..utils.keyboard_utils import KeyboardUtils
from .clipboard_service import ClipboardService

DEFAULT_POLL_INTERVAL = 0.01
# Time for the target application to read the clipboard after a simulated paste
PASTE_SETTLE_DELAY = 0.1


def _sample(text: str, limit: int = 40) -> str:
    return text[:limit] + ("…" if len(text) > limit else "")


class KeySimulator:
    """Sends the copy and paste shortcuts through pynput."""

    def __init__(self, platform: Optional[str] = None):
        self._platform = platform or KeyboardUtils.get_platform()
        self._controller = None

    def _get_controller(self):
        if self._controller is None:
            # Imported lazily: pynput needs a display server on Linux
            from pynput.keyboard import Controller

            self._controller = Controller()
        return self._controller

    def _press_shortcut(self, char: str) -> None:
        from pynput.keyboard import Key

        controller = self._get_controller()
        modifier = Key.cmd if KeyboardUtils.get_copy_modifier(self._platform) == "cmd" else Key.ctrl
        controller.press(modifier)
        try:
            controller.press(char)
            controller.release(char)
        finally:
            controller.release(modifier)

    def copy(self) -> None:
        self._press_shortcut("c")

    def paste(self) -> None:
        self._press_shortcut("v")


class SelectionCapture:
    """Captures selected text through the clipboard.

    The clipboard content seen before the copy is kept so it can be put back
    with restore_original(); restoring is always an explicit step.
    """

    def __init__(
        self,
        clipboard: ClipboardService,
        simulator: Optional[KeySimulator] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        paste_settle_delay: float = PASTE_SETTLE_DELAY,
    ):
        self._clipboard = clipboard
        self._simulator = simulator or KeySimulator()
        self._poll_interval = poll_interval
        self._paste_settle_delay = paste_settle_delay
        self._original: Optional[str] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings, clipboard: ClipboardService, simulator: Optional[KeySimulator] = None):
        return cls(clipboard, simulator, poll_interval=settings.clipboard_poll_interval_ms / 1000.0)

    @property
    def original(self) -> Optional[str]:
        """Clipboard content recorded by the last capture, None if unreadable."""
        return self._original

    async def _read(self) -> Optional[str]:
        return await asyncio.to_thread(self._clipboard.get_clipboard_text)

    async def get_selection(self, timeout: float) -> str:
        """Copy the current selection and return it.

        Args:
            timeout: Seconds to wait for the clipboard to change.

        Returns:
            str: Selected text, never empty or whitespace-only.

        Raises:
            BusyError: Another capture is in progress.
            NoSelectionError: The copy shortcut could not be sent.
            EmptySelectionError: The clipboard was cleared instead of filled.
            OnlyWhitespaceError: The selection contains only whitespace.
            ClipboardTimeoutError: The clipboard did not change in time.
        """
        if self._lock.locked():
            raise BusyError("Selection capture already in progress")

        async with self._lock:
            return await self._capture(timeout)

    async def _capture(self, timeout: float) -> str:
        loop = asyncio.get_running_loop()

        self._original = await self._read()
        baseline = self._original or ""

        try:
            await asyncio.to_thread(self._simulator.copy)
        except Exception as e:
            logger.error(f"Copy simulation failed: {e}")
            raise NoSelectionError(f"Copy simulation failed: {e}") from e

        poll_start = loop.time()
        deadline = poll_start + timeout
        attempts = 0
        cleared = False

        while True:
            attempts += 1
            current = await self._read()

            if current is not None and current != baseline:
                if current:
                    break
                cleared = True

            if loop.time() >= deadline:
                timeout_ms = int(timeout * 1000)
                logger.info(f"No new clipboard text after {attempts} polls ({timeout_ms}ms)")
                if cleared:
                    raise EmptySelectionError()
                raise ClipboardTimeoutError(timeout_ms)

            await asyncio.sleep(self._poll_interval)

        elapsed = loop.time() - poll_start
        logger.debug(
            "Clipboard changed after {} polls in {:.3f}s: new_len={} new_sample={!r}",
            attempts,
            elapsed,
            len(current),
            _sample(current),
        )

        if not current.strip():
            raise OnlyWhitespaceError()

        return current

    async def write_back(self, text: str, paste: bool = False) -> None:
        """Put text on the clipboard and optionally paste it over the selection.

        Raises:
            ClipboardError: Clipboard write or paste simulation failed.
        """
        await asyncio.to_thread(self._clipboard.copy_text, text)
        if not paste:
            return

        try:
            await asyncio.to_thread(self._simulator.paste)
        except Exception as e:
            logger.error(f"Paste simulation failed: {e}")
            raise ClipboardError(f"Paste simulation failed: {e}") from e
        await asyncio.sleep(self._paste_settle_delay)

    async def restore_original(self) -> bool:
        """Put the clipboard content recorded before the last capture back.

        Returns:
            bool: True if content was restored, False if there was nothing to restore.
        """
        if self._original is None:
            logger.debug("No original clipboard content to restore")
            return False

        try:
            await asyncio.to_thread(self._clipboard.copy_text, self._original)
        except ClipboardError as e:
            logger.warning(f"Failed to restore original clipboard content: {e}")
            return False

        logger.debug(f"Original clipboard content restored ({len(self._original)} characters)")
        return True


__all__ = ["SelectionCapture", "KeySimulator", "DEFAULT_POLL_INTERVAL"]
