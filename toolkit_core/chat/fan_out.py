"""Delivers decoded chat traffic to registered listeners."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any

from ..config.model import ChannelSettings
from ..errors.handling import log_error
from .listener import ChatListener
from .messages import ChatCommand, ChatMessage, WhisperCommand, WhisperMessage


class MessageCategory(Enum):
    CHAT_MESSAGE = "parse_message"
    WHISPER = "parse_whisper"
    CHAT_COMMAND = "parse_chat_command"
    WHISPER_COMMAND = "parse_whisper_command"

    @property
    def is_whisper(self) -> bool:
        return self in (MessageCategory.WHISPER, MessageCategory.WHISPER_COMMAND)


class EventFanOut:
    """Calls the matching ``parse_*`` method on every registered listener.

    Listeners run in registration order. Each call is isolated: an error is
    logged with the listener name and delivery continues with the next one.

    Policy is read from ``settings`` on every delivery:
      * whisper categories are dropped when ``allow_whispers`` is off;
      * chat commands are dropped when ``force_whispers`` is on.
    """

    def __init__(self, settings: ChannelSettings) -> None:
        self.settings = settings
        self._listeners: list[ChatListener] = []
        self._lock = threading.Lock()

    @property
    def listeners(self) -> list[ChatListener]:
        with self._lock:
            return list(self._listeners)

    def register_listener(self, listener: ChatListener) -> bool:
        """Add ``listener`` at the end; False if it is already registered."""
        with self._lock:
            if any(existing is listener for existing in self._listeners):
                return False
            self._listeners.append(listener)
        logging.debug(f"🎧 Listener registered name={listener.name}")
        return True

    def unregister_listener(self, listener: ChatListener) -> bool:
        with self._lock:
            for index, existing in enumerate(self._listeners):
                if existing is listener:
                    del self._listeners[index]
                    logging.debug(f"🎧 Listener unregistered name={listener.name}")
                    return True
        return False

    def allows(self, category: MessageCategory) -> bool:
        if category.is_whisper and not self.settings.allow_whispers:
            return False
        if category is MessageCategory.CHAT_COMMAND and self.settings.force_whispers:
            return False
        return True

    def deliver(self, category: MessageCategory, payload: Any) -> int:
        """Fan ``payload`` out to every listener.

        Returns:
            Number of listeners that handled it without raising; 0 when the
            category is suppressed by policy.
        """
        if not self.allows(category):
            logging.debug(f"🔇 Delivery suppressed by settings category={category.name}")
            return 0
        delivered = 0
        for listener in self.listeners:
            try:
                getattr(listener, category.value)(payload)
                delivered += 1
            except Exception as e:  # noqa: BLE001
                log_error(
                    "Listener failed",
                    e,
                    context={"listener": listener.name, "category": category.name},
                )
        return delivered

    def deliver_chat_message(self, message: ChatMessage) -> int:
        return self.deliver(MessageCategory.CHAT_MESSAGE, message)

    def deliver_whisper(self, whisper: WhisperMessage) -> int:
        return self.deliver(MessageCategory.WHISPER, whisper)

    def deliver_chat_command(self, command: ChatCommand) -> int:
        return self.deliver(MessageCategory.CHAT_COMMAND, command)

    def deliver_whisper_command(self, command: WhisperCommand) -> int:
        return self.deliver(MessageCategory.WHISPER_COMMAND, command)
