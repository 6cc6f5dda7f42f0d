"""Notification collaborators used to surface notices out-of-band."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..ui.events import NoticePosted
from ..ui.models.chat_models import Notice, Severity

if TYPE_CHECKING:  # pragma: no cover
    from ..ui.events import EventBus

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget sink for user-facing notices."""

    def notify(self, notice: Notice) -> None:
        ...


class EventBusNotifier:
    """Publishes notices as :class:`NoticePosted` events for the toast layer."""

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus

    def notify(self, notice: Notice) -> None:
        self._bus.publish(NoticePosted(notice=notice))


class LoggingNotifier:
    """Writes notices to the log; useful headless or as a default sink."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER

    def notify(self, notice: Notice) -> None:
        level = logging.WARNING if notice.severity is Severity.DESTRUCTIVE else logging.INFO
        self._logger.log(level, "%s: %s", notice.title, notice.description)


class RecordingNotifier:
    """Keeps every notice in memory (handy for previews and tests)."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)


__all__ = ["EventBusNotifier", "LoggingNotifier", "Notifier", "RecordingNotifier"]
