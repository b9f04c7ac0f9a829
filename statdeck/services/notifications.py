"""
User notification channel.

The core only needs "deliver this message to the user". Notifier keeps the
list of pending notifications in an Observable so any presentation layer
can render them as toasts, and mirrors warnings and errors to the log.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from statdeck.models.deck import new_id
from statdeck.services.observable import Observable

logger = logging.getLogger(__name__)

MAX_PENDING_NOTIFICATIONS = 50


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    LOADING = "loading"


@dataclass(frozen=True, slots=True)
class Notification:
    """
    One user-facing message.

    Attributes:
        id: Handle used to dismiss or replace the message
        level: Severity, which also decides presentation
        message: Plain text shown to the user
        timeout_ms: Auto-dismiss delay; 0 means the user dismisses it
        dismissible: Whether the user may close it
    """

    id: str
    level: NotificationLevel
    message: str
    timeout_ms: int = 5000
    dismissible: bool = True


class Notifier:
    """
    Toast-style notification channel.

    At most max_pending notifications are kept; the oldest are dropped first.
    """

    def __init__(self, max_pending: int = MAX_PENDING_NOTIFICATIONS) -> None:
        self.max_pending = max_pending
        self.pending: Observable[tuple[Notification, ...]] = Observable(())

    def notify(
        self,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        timeout_ms: int = 5000,
        dismissible: bool = True,
    ) -> str:
        """Queue a notification and return its id."""
        notification = Notification(
            id=new_id(),
            level=level,
            message=message,
            timeout_ms=timeout_ms,
            dismissible=dismissible,
        )

        if level is NotificationLevel.ERROR:
            logger.error("Notification: %s", message)
        elif level is NotificationLevel.WARNING:
            logger.warning("Notification: %s", message)
        else:
            logger.debug("Notification (%s): %s", level.value, message)

        self.pending.set((*self.pending.get(), notification)[-self.max_pending :])
        return notification.id

    def success(self, message: str, timeout_ms: int = 5000) -> str:
        return self.notify(message, NotificationLevel.SUCCESS, timeout_ms)

    def info(self, message: str, timeout_ms: int = 5000) -> str:
        return self.notify(message, NotificationLevel.INFO, timeout_ms)

    # Warnings and errors stay until dismissed
    def warning(self, message: str) -> str:
        return self.notify(message, NotificationLevel.WARNING, timeout_ms=0)

    def error(self, message: str) -> str:
        return self.notify(message, NotificationLevel.ERROR, timeout_ms=0)

    def loading(self, message: str) -> str:
        return self.notify(message, NotificationLevel.LOADING, timeout_ms=0, dismissible=False)

    def dismiss(self, notification_id: str) -> None:
        self.pending.set(tuple(n for n in self.pending.get() if n.id != notification_id))

    def clear(self) -> None:
        self.pending.set(())

    def messages(self, level: NotificationLevel | None = None) -> list[str]:
        """Pending messages, optionally filtered by level."""
        return [n.message for n in self.pending.get() if level is None or n.level is level]
