"""Process-wide publish/subscribe for transient user-facing messages."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    """One message on the bus."""

    id: str
    message: str
    severity: Severity = Severity.INFO


Listener = Callable[[tuple[Notification, ...]], None]


class NotificationBus:
    """Observable list of active notifications.

    Listeners receive the full snapshot on subscribe and after every change.
    Each notification is dismissed ``timeout`` seconds after it is shown,
    provided an event loop is running; pass ``timeout=None`` to keep them
    until dismissed.
    """

    def __init__(self, timeout: float | None = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self._notifications: list[Notification] = []
        self._listeners: list[Listener] = []
        self._timers: dict[str, asyncio.TimerHandle] = {}

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and call it with the current snapshot. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        listener(self.notifications)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self.notifications
        for listener in list(self._listeners):
            listener(snapshot)

    def show(self, message: str, severity: Severity = Severity.INFO) -> Notification:
        notification = Notification(uuid.uuid4().hex[:8], message, Severity(severity))
        self._notifications.append(notification)
        if notification.severity is Severity.ERROR:
            logger.info("error notification: %s", message)
        self._publish()
        self._schedule_dismiss(notification.id)
        return notification

    def success(self, message: str) -> Notification:
        return self.show(message, Severity.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, Severity.ERROR)

    def info(self, message: str) -> Notification:
        return self.show(message, Severity.INFO)

    def _schedule_dismiss(self, notification_id: str) -> None:
        if self.timeout is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timers[notification_id] = loop.call_later(self.timeout, self.dismiss, notification_id)

    def dismiss(self, notification_id: str) -> None:
        """Remove a notification. Unknown ids are ignored."""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        remaining = [n for n in self._notifications if n.id != notification_id]
        if len(remaining) == len(self._notifications):
            return
        self._notifications = remaining
        self._publish()

    def clear(self) -> None:
        """Dismiss everything and cancel pending timers."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        if self._notifications:
            self._notifications = []
            self._publish()
