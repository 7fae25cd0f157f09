"""
Notification Service for LLM Translator.

Classifies pipeline outcomes into notifications (type, message, optional
remedial action) and hands them to a presenter supplied by the host
application. Rendering is not done here.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from ..core.errors import (
    AuthenticationError,
    BusyError,
    ClipboardError,
    ClipboardTimeoutError,
    DailyLimitError,
    EmptySelectionError,
    ErrorCategory,
    HotkeyConflictError,
    InvalidTextError,
    MinuteLimitError,
    NoSelectionError,
    OnlyWhitespaceError,
    ProtocolError,
    QueueFullError,
    RemoteRateLimitError,
    TransportError,
    TranslationCancelledError,
    TranslatorError,
)
from ..core.text_validator import ContainsBinaryData, TooLong, TooManyTokensEstimate

APP_TITLE = "LLM Translator"


class NotificationType(Enum):
    """Enumeration of notification types."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class NotificationAction(Enum):
    """Remedial actions a presenter may offer."""
    OPEN_SETTINGS = "open_settings"
    USE_SUGGESTED_HOTKEY = "use_suggested_hotkey"
    RETRY = "retry"
    SPLIT_TEXT = "split_text"


@dataclass(frozen=True)
class Notification:
    """A classified outcome ready for presentation."""

    notification_type: NotificationType
    message: str
    title: str = APP_TITLE
    action: Optional[NotificationAction] = None
    detail: Optional[str] = None


NotificationSink = Callable[[Notification], None]

# Type and action for failures without a specific message
CATEGORY_DEFAULTS = {
    ErrorCategory.CAPTURE: (NotificationType.WARNING, NotificationAction.RETRY),
    ErrorCategory.VALIDATION: (NotificationType.WARNING, None),
    ErrorCategory.ADMISSION: (NotificationType.WARNING, NotificationAction.RETRY),
    ErrorCategory.TRANSPORT: (NotificationType.ERROR, NotificationAction.RETRY),
    ErrorCategory.PROTOCOL: (NotificationType.ERROR, None),
    ErrorCategory.CONFLICT: (NotificationType.ERROR, NotificationAction.OPEN_SETTINGS),
    ErrorCategory.CAPACITY: (NotificationType.WARNING, None),
    ErrorCategory.CANCELLED: (NotificationType.INFO, None),
}


def notification_for_error(error: TranslatorError) -> Notification:
    """Classify a pipeline failure into a notification."""
    warning, failure = NotificationType.WARNING, NotificationType.ERROR

    if isinstance(error, OnlyWhitespaceError):
        return Notification(warning, "Selected text contains only whitespace", action=NotificationAction.RETRY)
    if isinstance(error, EmptySelectionError):
        return Notification(warning, "No text selected", action=NotificationAction.RETRY)
    if isinstance(error, NoSelectionError):
        return Notification(failure, f"Could not copy the selection: {error}", action=NotificationAction.RETRY)
    if isinstance(error, ClipboardTimeoutError):
        return Notification(
            warning,
            f"No text detected on the clipboard within {error.timeout_ms}ms",
            action=NotificationAction.RETRY,
        )
    if isinstance(error, ClipboardError):
        return Notification(failure, f"Clipboard error: {error}", action=NotificationAction.RETRY)

    if isinstance(error, InvalidTextError):
        verdict = error.verdict
        if isinstance(verdict, TooLong):
            return Notification(
                warning,
                f"Text is too long: {verdict.length} characters (max: {verdict.max})",
                action=NotificationAction.SPLIT_TEXT,
            )
        if isinstance(verdict, TooManyTokensEstimate):
            return Notification(
                warning,
                f"Text is too large: ~{verdict.estimated} tokens (max: {verdict.max})",
                action=NotificationAction.SPLIT_TEXT,
            )
        if isinstance(verdict, ContainsBinaryData):
            return Notification(warning, "Selection contains binary data and cannot be translated")
        return Notification(warning, str(error))

    if isinstance(error, MinuteLimitError):
        return Notification(
            warning,
            f"Rate limit reached, try again in {error.wait_time:.0f}s",
            action=NotificationAction.RETRY,
        )
    if isinstance(error, DailyLimitError):
        return Notification(warning, f"Daily limit reached ({error.used}/{error.max}), try again tomorrow")

    if isinstance(error, AuthenticationError):
        return Notification(
            failure, "Invalid or missing API key, check your settings", action=NotificationAction.OPEN_SETTINGS
        )
    if isinstance(error, RemoteRateLimitError):
        return Notification(failure, "The translation service is rate limiting requests", action=NotificationAction.RETRY)
    if isinstance(error, TransportError):
        return Notification(failure, f"Translation service unavailable: {error}", action=NotificationAction.RETRY)
    if isinstance(error, ProtocolError):
        return Notification(failure, f"Translation failed: {error}")

    if isinstance(error, TranslationCancelledError):
        return Notification(NotificationType.INFO, "Translation cancelled")
    if isinstance(error, (QueueFullError, BusyError)):
        return Notification(warning, "Busy, a translation is already in progress")
    if isinstance(error, HotkeyConflictError):
        return Notification(failure, f"Hotkey unavailable: {error}", action=NotificationAction.OPEN_SETTINGS)

    notification_type, action = CATEGORY_DEFAULTS.get(getattr(error, "category", None), (failure, None))
    return Notification(notification_type, str(error), action=action)


class NotificationService:
    """Centralized service for emitting notifications."""

    def __init__(self, sink: Optional[NotificationSink] = None):
        """
        Initialize the notification service.

        Args:
            sink: Optional presenter receiving every enabled notification
        """
        self._sink = sink
        self._enabled = True
        self._lock = threading.Lock()

    def set_sink(self, sink: Optional[NotificationSink]):
        self._sink = sink

    def enable(self):
        """Enable notifications."""
        self._enabled = True
        logger.debug("Notification service enabled")

    def disable(self):
        """Disable notifications."""
        self._enabled = False
        logger.debug("Notification service disabled")

    @property
    def enabled(self) -> bool:
        return self._enabled

    def emit(self, notification: Notification):
        """Log a notification and pass it to the sink."""
        level = {
            NotificationType.ERROR: "ERROR",
            NotificationType.WARNING: "WARNING",
        }.get(notification.notification_type, "INFO")
        logger.log(level, f"[{notification.notification_type.value}] {notification.title}: {notification.message}")

        if not self._enabled:
            logger.debug("Notification suppressed (disabled)")
            return
        if self._sink is None:
            return

        with self._lock:
            try:
                self._sink(notification)
            except Exception as e:
                logger.error(f"Notification sink failed: {e}")

    def show(
        self,
        message: str,
        title: str = APP_TITLE,
        notification_type: NotificationType = NotificationType.INFO,
        action: Optional[NotificationAction] = None,
        detail: Optional[str] = None,
    ):
        self.emit(Notification(notification_type, message, title, action, detail))

    def info(self, message: str, title: str = APP_TITLE):
        self.show(message, title, NotificationType.INFO)

    def success(self, message: str, title: str = APP_TITLE):
        self.show(message, title, NotificationType.SUCCESS)

    def warning(self, message: str, title: str = APP_TITLE, action: Optional[NotificationAction] = None):
        self.show(message, title, NotificationType.WARNING, action)

    def error(self, message: str, title: str = APP_TITLE, action: Optional[NotificationAction] = None):
        self.show(message, title, NotificationType.ERROR, action)

    def report_error(self, error: TranslatorError):
        """Classify a failure and emit the matching notification."""
        self.emit(notification_for_error(error))


_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """Get the global notification service instance."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service


__all__ = [
    "NotificationType",
    "NotificationAction",
    "Notification",
    "NotificationService",
    "notification_for_error",
    "get_notification_service",
]
