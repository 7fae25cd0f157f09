"""
Copy-Translate Service

Handles the translate hotkey: captures the current selection through the
clipboard, submits it to the translation manager, writes the translation back
(pasting it over the selection when enabled) and restores the user's
clipboard. Only one run may be in progress at a time; a second trigger is
rejected as busy rather than starting a competing clipboard capture.
"""

import asyncio
import time
from typing import Optional

from loguru import logger

from ..core.errors import BusyError, TranslatorError
from .notification_service import NotificationService, get_notification_service
from .selection_capture import SelectionCapture
from .translation_manager import TranslationManager


class CopyTranslateService:
    """Selection to translation pipeline."""

    def __init__(
        self,
        capture: SelectionCapture,
        manager: TranslationManager,
        notifications: Optional[NotificationService] = None,
        *,
        timeout_ms: int = 500,
        preserve_clipboard: bool = True,
        paste_result: bool = True,
        prompt_id: Optional[str] = None,
        model: Optional[str] = None,
    ):
        self.capture = capture
        self.manager = manager
        self.notifications = notifications or get_notification_service()
        self.timeout_ms = timeout_ms
        self.preserve_clipboard = preserve_clipboard
        self.paste_result = paste_result
        self.prompt_id = prompt_id
        self.model = model
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings,
        capture: SelectionCapture,
        manager: TranslationManager,
        notifications: Optional[NotificationService] = None,
    ) -> "CopyTranslateService":
        return cls(
            capture,
            manager,
            notifications,
            timeout_ms=settings.clipboard_timeout_ms,
            preserve_clipboard=settings.preserve_clipboard,
            paste_result=settings.paste_result,
        )

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    async def run(self) -> Optional[str]:
        """Run the pipeline once.

        Returns:
            Optional[str]: The translation, or None if the run failed. Failures
            are reported through the notification service and never raised.
        """
        if self._lock.locked():
            logger.info("Copy-translate already in progress, trigger rejected")
            self.notifications.report_error(BusyError())
            return None

        async with self._lock:
            return await self._run()

    async def _run(self) -> Optional[str]:
        logger.info("Copy-translate triggered")
        t_start = time.perf_counter()
        t_captured = t_start
        t_translated = t_start
        # Any simulated copy may have replaced the clipboard content
        restore_needed = self.preserve_clipboard

        try:
            text = await self.capture.get_selection(self.timeout_ms / 1000.0)
            t_captured = time.perf_counter()
            logger.info(f"Captured selection: {len(text)} characters")

            translated = await self.manager.submit(text, self.prompt_id, self.model)
            t_translated = time.perf_counter()

            await self.capture.write_back(translated, paste=self.paste_result)
            # Without pasting, the translation stays on the clipboard for the user
            restore_needed = self.preserve_clipboard and self.paste_result

            self.notifications.success("Translation ready" if not self.paste_result else "Selection translated")
            return translated

        except TranslatorError as e:
            logger.warning(f"Copy-translate failed: {type(e).__name__}: {e}")
            self.notifications.report_error(e)
            return None
        except Exception as e:
            logger.opt(exception=e).error(f"Unexpected copy-translate failure: {e}")
            self.notifications.error(f"Translation failed: {e}")
            return None
        finally:
            if restore_needed:
                await self.capture.restore_original()
            t_end = time.perf_counter()
            logger.info(
                f"Copy-translate performance: clipboard={(t_captured - t_start) * 1000:.0f}ms, "
                f"translation={max(0.0, t_translated - t_captured) * 1000:.0f}ms, "
                f"total={(t_end - t_start) * 1000:.0f}ms"
            )

    def cancel(self) -> int:
        """Cancel every pending translation."""
        return self.manager.cancel_all()


__all__ = ["CopyTranslateService"]
