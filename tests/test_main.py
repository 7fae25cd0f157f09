"""
Tests for TranslatorApp wiring in main module.
"""

import asyncio

import pytest

from llm_translator.core.hotkey_validator import HotkeyValidator, KeyCombo
from llm_translator.main import TranslatorApp
from llm_translator.services.hotkey_service import HotkeyService, PynputHotkeyBackend
from llm_translator.services.notification_service import NotificationService
from llm_translator.services.selection_capture import SelectionCapture


class RecordingBackend:
    def __init__(self):
        self.bindings = {}

    def register(self, combo, callback):
        self.bindings[combo] = callback

    def unregister(self, combo):
        self.bindings.pop(combo, None)

    def start(self):
        pass

    def stop(self):
        pass


class RefusingPynputBackend(PynputHotkeyBackend):
    """pynput backend whose listener fails whenever a refused combo is bound."""

    def __init__(self, refuse=()):
        super().__init__()
        self.refuse = {KeyCombo.parse(hotkey) for hotkey in refuse}
        self.active = {}

    def _restart(self):
        if self.refuse & set(self._bindings):
            raise RuntimeError("combo refused by OS")
        self.active = dict(self._bindings)


@pytest.fixture
def app(settings, mock_adapter, fake_clipboard, make_simulator, make_response):
    mock_adapter.chat.completions.create.return_value = make_response("Hello world")
    settings.paste_result = False
    backend = RecordingBackend()
    notifications = NotificationService()
    capture = SelectionCapture(
        fake_clipboard, make_simulator(fake_clipboard, selection="Hallo Welt"), poll_interval=0.001
    )
    hotkeys = HotkeyService(HotkeyValidator(platform="windows"), backend=backend, notifications=notifications)
    return TranslatorApp(
        settings, adapter=mock_adapter, notifications=notifications, capture=capture, hotkeys=hotkeys
    )


class TestTranslatorApp:
    """Tests for application wiring."""

    def test_register_hotkeys(self, app):
        """Test that the translate and cancel hotkeys are registered."""
        # Act
        app.register_hotkeys()

        # Assert
        assert app.hotkeys.get_hotkey("translate").combo == KeyCombo.parse("ctrl+shift+t")
        assert app.hotkeys.get_hotkey("cancel").combo == KeyCombo.parse("ctrl+shift+x")

    @pytest.mark.asyncio
    async def test_hotkey_triggers_translation(self, app, fake_clipboard):
        """Test that the hotkey callback runs the pipeline on the event loop."""
        # Arrange
        run_task = asyncio.ensure_future(app.run())
        await asyncio.sleep(0.01)
        callback = app.hotkeys.get_hotkey("translate").callback

        # Act
        callback()
        for _ in range(100):
            await asyncio.sleep(0.01)
            if fake_clipboard.content == "Hello world":
                break
        app.stop()
        await asyncio.wait_for(run_task, timeout=1)

        # Assert
        assert fake_clipboard.content == "Hello world"
        assert not app.manager.is_running

    @pytest.mark.asyncio
    async def test_run_falls_back_when_pynput_refuses(self, settings, mock_adapter, fake_clipboard, make_simulator):
        """Test that a translate hotkey refused by the listener is replaced while the app runs."""
        # Arrange
        backend = RefusingPynputBackend(refuse=["ctrl+shift+t"])
        notifications = NotificationService()
        hotkeys = HotkeyService(HotkeyValidator(platform="windows"), backend=backend, notifications=notifications)
        capture = SelectionCapture(fake_clipboard, make_simulator(fake_clipboard), poll_interval=0.001)
        app = TranslatorApp(
            settings, adapter=mock_adapter, notifications=notifications, capture=capture, hotkeys=hotkeys
        )

        # Act
        run_task = asyncio.ensure_future(app.run())
        await asyncio.sleep(0.01)
        translate = app.hotkeys.get_hotkey("translate")
        active = set(backend.active)
        app.stop()
        await asyncio.wait_for(run_task, timeout=1)

        # Assert
        assert translate.combo == KeyCombo.parse("ctrl+alt+t")
        assert active == {KeyCombo.parse("ctrl+alt+t"), KeyCombo.parse("ctrl+shift+x")}
