"""
Hotkey Service for LLM Translator.

This module provides global hotkey registration using pynput. Every
combination is checked by HotkeyValidator first; when it is reserved, already
taken or refused by the backend, the service falls back to the validator's
suggested alternative and reports the substitution.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Set

from loguru import logger

from ..core.errors import HotkeyConflictError, HotkeyRegistrationError
from ..core.hotkey_validator import HotkeyValidator, HotkeyVerdict, KeyCombo
from .notification_service import NotificationAction, NotificationService, NotificationType


@dataclass
class HotkeyInfo:
    """Information about a registered hotkey."""

    name: str
    combo: KeyCombo
    callback: Callable[[], None]
    requested: str
    description: str = ""


class PynputHotkeyBackend:
    """Global hotkey backend built on pynput.keyboard.GlobalHotKeys.

    GlobalHotKeys takes its whole mapping at construction, so every change
    restarts the listener. Bindings added before start() are only handed to
    pynput by start(); register after start() to get refusals reported as
    HotkeyRegistrationError.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._bindings: Dict[KeyCombo, Callable[[], None]] = {}
        self._listener = None
        self._running = False

    def register(self, combo: KeyCombo, callback: Callable[[], None]) -> None:
        """Bind a combination.

        Raises:
            HotkeyRegistrationError: pynput rejected the combination.
        """
        with self._lock:
            self._bindings[combo] = callback
            if self._running:
                try:
                    self._restart()
                except Exception as e:
                    del self._bindings[combo]
                    try:
                        self._restart()
                    except Exception as restore_error:
                        logger.error(f"Failed to restore hotkey listener: {restore_error}")
                    raise HotkeyRegistrationError(combo, message=f"Failed to register {combo}: {e}") from e

    def unregister(self, combo: KeyCombo) -> None:
        with self._lock:
            if self._bindings.pop(combo, None) is not None and self._running:
                self._restart()

    def start(self) -> None:
        with self._lock:
            self._running = True
            self._restart()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            self._stop_listener()

    def _stop_listener(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

    def _restart(self) -> None:
        # Imported lazily: pynput needs a display server on Linux
        from pynput import keyboard

        self._stop_listener()
        if not self._bindings:
            return
        mapping = {combo.to_pynput(): callback for combo, callback in self._bindings.items()}
        self._listener = keyboard.GlobalHotKeys(mapping)
        self._listener.start()
        logger.debug(f"Hotkey listener (re)started with {len(mapping)} hotkeys")


class HotkeyService:
    """Service for managing global hotkeys."""

    def __init__(
        self,
        validator: Optional[HotkeyValidator] = None,
        backend: Optional[PynputHotkeyBackend] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self.validator = validator or HotkeyValidator()
        self._backend = backend or PynputHotkeyBackend()
        self._notifications = notifications
        self._lock = threading.RLock()
        self._hotkeys: Dict[str, HotkeyInfo] = {}
        self._running = False

        logger.info(f"HotkeyService initialized (platform: {self.validator.platform})")

    def start(self) -> None:
        """Start the hotkey service."""
        with self._lock:
            if self._running:
                logger.warning("Hotkey service already running")
                return
            self._backend.start()
            self._running = True
            logger.info(f"Hotkey service started with {len(self._hotkeys)} hotkeys")

    def stop(self) -> None:
        """Stop the hotkey service."""
        with self._lock:
            if not self._running:
                return
            self._backend.stop()
            self._running = False
            logger.info("Hotkey service stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def get_hotkey(self, name: str) -> Optional[HotkeyInfo]:
        return self._hotkeys.get(name)

    def register(self, name: str, hotkey: str, callback: Callable[[], None], description: str = "") -> KeyCombo:
        """Register a hotkey, substituting a fallback if it is unavailable.

        Args:
            name: Identifier of the action, e.g. 'translate'
            hotkey: Preferred combination, e.g. 'ctrl+shift+t'
            callback: Called from the listener thread when pressed
            description: Human readable description

        Returns:
            KeyCombo: The combination actually registered

        Raises:
            ValueError: The hotkey string cannot be parsed
            HotkeyConflictError: Neither the hotkey nor any fallback is available
        """
        requested = KeyCombo.parse(hotkey)

        with self._lock:
            if name in self._hotkeys:
                self.unregister(name)

            tried: Set[KeyCombo] = set()
            candidate: Optional[KeyCombo] = requested
            last_verdict: Optional[HotkeyVerdict] = None
            last_reason = ""

            while candidate is not None:
                tried.add(candidate)
                verdict = self.validator.validate(candidate)
                if verdict is HotkeyVerdict.VALID:
                    try:
                        self._backend.register(candidate, callback)
                    except HotkeyRegistrationError as e:
                        logger.warning(f"Backend refused hotkey {candidate}: {e}")
                        last_reason = "taken by another application"
                    else:
                        self.validator.register(candidate)
                        self._hotkeys[name] = HotkeyInfo(name, candidate, callback, hotkey, description)
                        if candidate != requested:
                            self._report_substitution(name, requested, candidate, last_reason)
                        logger.info(f"Registered hotkey '{name}': {candidate.display(self.validator.platform)}")
                        return candidate
                else:
                    logger.warning(f"Hotkey {candidate} for '{name}' unavailable: {verdict.value}")
                    last_verdict = verdict
                    last_reason = verdict.value.replace("_", " ")

                candidate = self.validator.suggest_alternative(requested, exclude=tried)

        error = HotkeyConflictError(requested, last_verdict, f"No available hotkey for '{name}' (requested {requested})")
        if self._notifications is not None:
            self._notifications.report_error(error)
        raise error

    def unregister(self, name: str) -> bool:
        with self._lock:
            info = self._hotkeys.pop(name, None)
            if info is None:
                return False
            self._backend.unregister(info.combo)
            self.validator.unregister(info.combo)
            logger.info(f"Unregistered hotkey '{name}': {info.combo}")
            return True

    def unregister_all(self) -> None:
        with self._lock:
            for name in list(self._hotkeys):
                self.unregister(name)

    def _report_substitution(
        self, name: str, requested: KeyCombo, used: KeyCombo, reason: str
    ) -> None:
        display = used.display(self.validator.platform)
        message = (
            f"Hotkey {requested.display(self.validator.platform)} is unavailable ({reason}), "
            f"using {display} for {name}"
        )
        logger.warning(message)
        if self._notifications is not None:
            self._notifications.show(
                message,
                notification_type=NotificationType.WARNING,
                action=NotificationAction.USE_SUGGESTED_HOTKEY,
                detail=str(used),
            )


__all__ = ["HotkeyService", "HotkeyInfo", "PynputHotkeyBackend"]
