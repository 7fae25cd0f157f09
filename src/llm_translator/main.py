"""
Application entry point for LLM Translator.

Wires the components together from Settings, registers the global hotkeys and
runs the asyncio event loop until interrupted.
"""

import asyncio
import sys
from typing import Optional, Set

from loguru import logger

from .core.config import Settings, get_settings
from .core.errors import HotkeyConflictError
from .core.hotkey_validator import HotkeyValidator
from .core.llm_client import TranslationClient
from .core.logger import setup_logging
from .core.rate_limiter import RateLimiter
from .core.version import get_version
from .providers.openai_adapter import OpenAIChatClientAdapter
from .services.clipboard_service import get_clipboard_service
from .services.copy_translate_service import CopyTranslateService
from .services.hotkey_service import HotkeyService
from .services.notification_service import NotificationService
from .services.selection_capture import SelectionCapture
from .services.translation_manager import TranslationManager


class TranslatorApp:
    """Owns every component and the hotkey to event loop bridge."""

    def __init__(
        self,
        settings: Settings,
        *,
        adapter=None,
        notifications: Optional[NotificationService] = None,
        capture: Optional[SelectionCapture] = None,
        hotkeys: Optional[HotkeyService] = None,
    ):
        self.settings = settings
        self.notifications = notifications or NotificationService()
        if not settings.show_notifications:
            self.notifications.disable()

        self._owns_adapter = adapter is None
        self.adapter = adapter or OpenAIChatClientAdapter(
            api_key=settings.openai_api_key,
            base_url=settings.api_endpoint,
            timeout=settings.api_timeout,
        )
        self.client = TranslationClient.from_settings(settings, self.adapter)
        self.rate_limiter = RateLimiter(settings.requests_per_minute, settings.requests_per_day)
        self.manager = TranslationManager.from_settings(settings, self.client, self.rate_limiter)
        self.capture = capture or SelectionCapture.from_settings(settings, get_clipboard_service())
        self.pipeline = CopyTranslateService.from_settings(settings, self.capture, self.manager, self.notifications)
        self.hotkeys = hotkeys or HotkeyService(
            HotkeyValidator(fallbacks=settings.hotkey_alternatives),
            notifications=self.notifications,
        )

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._tasks: Set[asyncio.Task] = set()

    # Hotkey callbacks run on the listener thread

    def _on_translate_hotkey(self):
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._spawn_translation)

    def _on_cancel_hotkey(self):
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.pipeline.cancel)

    def _spawn_translation(self):
        task = asyncio.create_task(self.pipeline.run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def register_hotkeys(self):
        self.hotkeys.register(
            "translate", self.settings.translate_hotkey, self._on_translate_hotkey, "Translate selection"
        )
        try:
            self.hotkeys.register(
                "cancel", self.settings.cancel_hotkey, self._on_cancel_hotkey, "Cancel pending translations"
            )
        except HotkeyConflictError as e:
            logger.warning(f"Cancel hotkey disabled: {e}")

    async def run(self):
        """Run until stop() is called or the task is cancelled."""
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()

        self.manager.start()
        try:
            # Listener runs first so a combo refused by the OS fails at register time
            self.hotkeys.start()
            self.register_hotkeys()

            translate = self.hotkeys.get_hotkey("translate")
            if translate is not None:
                self.notifications.info(f"Ready, press {translate.combo.display()} to translate the selection")

            await self._stop_event.wait()
        finally:
            await self.shutdown()

    def stop(self):
        if self._loop is not None and self._stop_event is not None:
            self._loop.call_soon_threadsafe(self._stop_event.set)

    async def shutdown(self):
        logger.info("Shutting down...")
        self.hotkeys.stop()
        self.hotkeys.unregister_all()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.manager.shutdown()
        if self._owns_adapter:
            await self.adapter.close()
        logger.info("Shutdown complete")


def main() -> int:
    settings = get_settings()
    setup_logging(settings)
    logger.info(f"Starting LLM Translator {get_version()}")

    if not settings.openai_api_key:
        logger.error("No API key configured. Store one in the system keyring or set LLM_TRANSLATOR_OPENAI_API_KEY.")
        return 1

    try:
        app = TranslatorApp(settings)
        asyncio.run(app.run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except HotkeyConflictError as e:
        logger.error(f"Cannot register the translate hotkey: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
