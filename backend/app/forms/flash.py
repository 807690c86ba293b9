from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from app.forms.debounce import STATUS_MESSAGE_TTL, Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class FlashLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(eq=False)
class FlashMessage:
    level: FlashLevel
    text: str
    visible: bool = True
    _timer: TimerHandle | None = field(default=None, repr=False)


class FlashMessages:
    """User-visible status messages shared by the form controllers."""

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self.scheduler = scheduler
        self.messages: list[FlashMessage] = []

    def show(
        self, text: str, level: FlashLevel = FlashLevel.INFO, *, transient: bool = False
    ) -> FlashMessage:
        message = FlashMessage(level=level, text=text)
        self.messages.append(message)
        logger.debug("Flash %s: %s", level.value, text)
        if transient and self.scheduler is not None:
            message._timer = self.scheduler.call_later(
                STATUS_MESSAGE_TTL, self.dismiss, message
            )
        return message

    def show_error(self, text: str) -> FlashMessage:
        return self.show(text, FlashLevel.ERROR)

    def show_success(self, text: str) -> FlashMessage:
        return self.show(text, FlashLevel.SUCCESS, transient=True)

    def show_info(self, text: str) -> FlashMessage:
        return self.show(text, FlashLevel.INFO, transient=True)

    def dismiss(self, message: FlashMessage) -> None:
        message.visible = False
        if message._timer is not None:
            message._timer.cancel()
            message._timer = None

    def visible_messages(self, level: FlashLevel | None = None) -> list[str]:
        return [
            message.text
            for message in self.messages
            if message.visible and (level is None or message.level == level)
        ]
