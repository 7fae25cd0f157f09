"""
Tests for NotificationService in services.notification_service module.
"""

import pytest

from llm_translator.core.errors import (
    AuthenticationError,
    BusyError,
    ClipboardTimeoutError,
    DailyLimitError,
    HotkeyConflictError,
    InvalidTextError,
    MinuteLimitError,
    OnlyWhitespaceError,
    QueueFullError,
    SelectionError,
    ServerError,
    TranslationCancelledError,
    UnknownPromptError,
)
from llm_translator.core.text_validator import ContainsBinaryData, TooLong, TooManyTokensEstimate
from llm_translator.services.notification_service import (
    Notification,
    NotificationAction,
    NotificationService,
    NotificationType,
    notification_for_error,
)


class TestNotificationForError:
    """Tests for the error to notification mapping."""

    def test_too_long_suggests_splitting(self):
        """Test that an overlong selection reports its length and the limit."""
        # Act
        notification = notification_for_error(InvalidTextError(TooLong(length=6000, max=5000)))

        # Assert
        assert notification.notification_type is NotificationType.WARNING
        assert notification.message == "Text is too long: 6000 characters (max: 5000)"
        assert notification.action is NotificationAction.SPLIT_TEXT

    def test_whitespace_warns(self):
        """Test that a whitespace-only selection is a warning."""
        notification = notification_for_error(OnlyWhitespaceError())
        assert notification.notification_type is NotificationType.WARNING
        assert "whitespace" in notification.message

    def test_authentication_opens_settings(self):
        """Test that an auth failure offers to open settings."""
        notification = notification_for_error(AuthenticationError("bad key", status_code=401))
        assert notification.notification_type is NotificationType.ERROR
        assert notification.action is NotificationAction.OPEN_SETTINGS

    @pytest.mark.parametrize(
        "error, fragment",
        [
            (ClipboardTimeoutError(500), "500ms"),
            (InvalidTextError(TooManyTokensEstimate(estimated=2000, max=1250)), "2000"),
            (InvalidTextError(ContainsBinaryData()), "binary"),
            (MinuteLimitError(12.3), "12s"),
            (DailyLimitError(500, 500), "500/500"),
            (ServerError("boom", status_code=502), "unavailable"),
            (BusyError(), "Busy"),
            (QueueFullError(), "Busy"),
            (HotkeyConflictError("alt+tab", "system_conflict"), "Hotkey"),
        ],
    )
    def test_messages(self, error, fragment):
        """Test that messages name the relevant detail."""
        assert fragment in notification_for_error(error).message

    def test_cancelled_is_info(self):
        """Test that cancellation is informational."""
        assert notification_for_error(TranslationCancelledError()).notification_type is NotificationType.INFO

    @pytest.mark.parametrize(
        "error, notification_type, action",
        [
            (SelectionError("capture failed"), NotificationType.WARNING, NotificationAction.RETRY),
            (UnknownPromptError("pirate"), NotificationType.WARNING, None),
        ],
    )
    def test_unlisted_errors_use_category(self, error, notification_type, action):
        """Test that failures without a specific message are classified by their category."""
        # Act
        notification = notification_for_error(error)

        # Assert
        assert notification.notification_type is notification_type
        assert notification.action is action
        assert notification.message == str(error)


class TestNotificationService:
    """Tests for notification emission."""

    def test_sink_receives_notifications(self, mocker):
        """Test that emitted notifications reach the sink."""
        # Arrange
        sink = mocker.Mock()
        service = NotificationService(sink)

        # Act
        service.warning("Careful", action=NotificationAction.RETRY)

        # Assert
        sink.assert_called_once_with(
            Notification(NotificationType.WARNING, "Careful", action=NotificationAction.RETRY)
        )

    def test_disabled_service_only_logs(self, mocker, loguru_caplog):
        """Test that a disabled service logs but does not call the sink."""
        # Arrange
        sink = mocker.Mock()
        service = NotificationService(sink)
        service.disable()

        # Act
        service.error("Broken")

        # Assert
        sink.assert_not_called()
        assert "Broken" in loguru_caplog.text

    def test_report_error_classifies(self, mocker):
        """Test that report_error emits the classified notification."""
        # Arrange
        sink = mocker.Mock()
        service = NotificationService(sink)

        # Act
        service.report_error(InvalidTextError(TooLong(length=10, max=5)))

        # Assert
        notification = sink.call_args.args[0]
        assert notification.action is NotificationAction.SPLIT_TEXT

    def test_sink_failure_is_logged(self, mocker, loguru_caplog):
        """Test that a failing sink does not propagate."""
        # Arrange
        service = NotificationService(mocker.Mock(side_effect=RuntimeError("presenter gone")))

        # Act
        service.info("Hello")

        # Assert
        assert "presenter gone" in loguru_caplog.text
