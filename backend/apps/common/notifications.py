from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol

from .logger import get_logger

logger = get_logger(__name__).bind(component="common", layer="notifications")


class Severity(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    severity: Severity = Severity.INFO


class NotificationSinkProtocol(Protocol):
    def notify(
        self, title: str, message: str, severity: Severity = Severity.INFO
    ) -> None:
        ...


class LoggingNotificationSink:
    """Writes shopper-facing notifications to the application log."""

    def __init__(self):
        self.logger = logger.bind(sink=self.__class__.__name__)

    def notify(
        self, title: str, message: str, severity: Severity = Severity.INFO
    ) -> None:
        severity = Severity(severity)
        log = self.logger.warning if severity is Severity.ERROR else self.logger.info
        log("Notification emitted", title=title, text=message, severity=severity)


class CollectingNotificationSink(LoggingNotificationSink):
    """Buffers notifications so a request handler can return them to the shopper."""

    def __init__(self):
        super().__init__()
        self._pending: List[Notification] = []

    def notify(
        self, title: str, message: str, severity: Severity = Severity.INFO
    ) -> None:
        super().notify(title, message, severity)
        self._pending.append(Notification(title, message, Severity(severity)))

    @property
    def pending(self) -> List[Notification]:
        return list(self._pending)

    def drain(self) -> List[Notification]:
        drained, self._pending = self._pending, []
        return drained
