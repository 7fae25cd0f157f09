"""
Error taxonomy for LLM Translator.

Every failure raised by the pipeline derives from TranslatorError and carries
an ErrorCategory. The notification service maps known failures to specific
messages and falls back to the category for everything else.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Broad failure classes used for reporting and recovery."""

    CAPTURE = "capture"
    VALIDATION = "validation"
    ADMISSION = "admission"
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    CONFLICT = "conflict"
    CAPACITY = "capacity"
    CANCELLED = "cancelled"


class TranslatorError(Exception):
    """Base class for all pipeline failures."""

    category: ErrorCategory = ErrorCategory.PROTOCOL

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)
        self.message = str(self)


# Capture


class SelectionError(TranslatorError):
    """Selection could not be captured."""

    category = ErrorCategory.CAPTURE


class NoSelectionError(SelectionError):
    """Copy could not be simulated, no selection was attempted."""


class EmptySelectionError(SelectionError):
    """Nothing was selected."""


class OnlyWhitespaceError(SelectionError):
    """Selected text contains only whitespace."""


class ClipboardTimeoutError(SelectionError):
    """Clipboard did not change before the deadline."""

    def __init__(self, timeout_ms: int):
        super().__init__(f"Clipboard did not change within {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class ClipboardError(SelectionError):
    """Clipboard could not be accessed."""


class ClipboardLockedError(ClipboardError):
    """Clipboard is locked or temporarily unavailable."""


# Validation


class InvalidTextError(TranslatorError):
    """Text was rejected by validation."""

    category = ErrorCategory.VALIDATION

    def __init__(self, verdict: Any):
        super().__init__(f"Text rejected: {verdict}")
        self.verdict = verdict


class UnknownPromptError(TranslatorError):
    """Requested prompt preset does not exist."""

    category = ErrorCategory.VALIDATION

    def __init__(self, prompt_id: str):
        super().__init__(f"Unknown prompt preset: {prompt_id}")
        self.prompt_id = prompt_id


# Admission


class RateLimitError(TranslatorError):
    """Request was not admitted by the rate limiter."""

    category = ErrorCategory.ADMISSION


class MinuteLimitError(RateLimitError):
    def __init__(self, wait_time: float):
        super().__init__(f"Per-minute limit reached, retry in {wait_time:.1f}s")
        self.wait_time = wait_time


class DailyLimitError(RateLimitError):
    def __init__(self, used: int, max: int):
        super().__init__(f"Daily limit reached ({used}/{max})")
        self.used = used
        self.max = max


# Translation client


class ClientError(TranslatorError):
    """Base class for translation endpoint failures."""

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(ClientError):
    """Transient failure; the request may be retried."""

    category = ErrorCategory.TRANSPORT
    retry_after: Optional[float] = None


class RequestTimeoutError(TransportError):
    """Request timed out."""


class ConnectionFailedError(TransportError):
    """Could not connect to the translation endpoint."""


class ServerError(TransportError):
    """Translation endpoint returned a server error."""


class RemoteRateLimitError(TransportError):
    """Translation endpoint is rate limiting requests."""

    def __init__(self, message: str = "", status_code: Optional[int] = 429, retry_after: Optional[float] = None):
        super().__init__(message, status_code)
        self.retry_after = retry_after


class ProtocolError(ClientError):
    """Permanent failure; retrying will not help."""

    category = ErrorCategory.PROTOCOL


class AuthenticationError(ProtocolError):
    """API key is missing, invalid or lacks permission."""


class MalformedResponseError(ProtocolError):
    """Response did not have the expected shape."""


class RequestRejectedError(ProtocolError):
    """Request was rejected by the endpoint."""


class TranslationCancelledError(ClientError):
    """Translation was cancelled."""

    category = ErrorCategory.CANCELLED


# Hotkeys


class HotkeyConflictError(TranslatorError):
    """Hotkey could not be registered."""

    category = ErrorCategory.CONFLICT

    def __init__(self, combo: Any, verdict: Any = None, message: str = ""):
        super().__init__(message or f"Hotkey {combo} is unavailable ({verdict})")
        self.combo = combo
        self.verdict = verdict


class HotkeyRegistrationError(HotkeyConflictError):
    """Hotkey backend refused the registration."""


# Capacity


class QueueFullError(TranslatorError):
    """Pending queue is full."""

    category = ErrorCategory.CAPACITY


class BusyError(TranslatorError):
    """A translation is already in progress."""

    category = ErrorCategory.CAPACITY


__all__ = [
    "ErrorCategory",
    "TranslatorError",
    "SelectionError",
    "NoSelectionError",
    "EmptySelectionError",
    "OnlyWhitespaceError",
    "ClipboardTimeoutError",
    "ClipboardError",
    "ClipboardLockedError",
    "InvalidTextError",
    "UnknownPromptError",
    "RateLimitError",
    "MinuteLimitError",
    "DailyLimitError",
    "ClientError",
    "TransportError",
    "RequestTimeoutError",
    "ConnectionFailedError",
    "ServerError",
    "RemoteRateLimitError",
    "ProtocolError",
    "AuthenticationError",
    "MalformedResponseError",
    "RequestRejectedError",
    "TranslationCancelledError",
    "HotkeyConflictError",
    "HotkeyRegistrationError",
    "QueueFullError",
    "BusyError",
]
