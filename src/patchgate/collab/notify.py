from __future__ import annotations

from typing import List, Tuple

from patchgate.logger import logger
from .base import NotifyLevel


_LOG_METHODS = {
    NotifyLevel.success: "info",
    NotifyLevel.info: "info",
    NotifyLevel.warning: "warning",
    NotifyLevel.error: "error",
}


class LoggingNotifier:
    """Sends notifications to the structlog logger and keeps them for inspection."""

    def __init__(self) -> None:
        self.messages: List[Tuple[NotifyLevel, str]] = []

    def notify(self, message: str, level: NotifyLevel = NotifyLevel.info) -> None:
        level = NotifyLevel(level)
        self.messages.append((level, message))
        log = getattr(logger, _LOG_METHODS[level])
        log(message, notify_level=level.value)
