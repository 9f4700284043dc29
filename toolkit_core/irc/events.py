"""Transport event names and a small thread-safe emitter."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from ..errors.handling import log_error

EventHandler = Callable[[Any], Any]


class TransportEvent(str, Enum):
    CONNECTED = "connected"
    JOINED_CHANNEL = "joined_channel"
    MESSAGE_RECEIVED = "message_received"
    WHISPER_RECEIVED = "whisper_received"
    CHAT_COMMAND_RECEIVED = "chat_command_received"
    WHISPER_COMMAND_RECEIVED = "whisper_command_received"
    CONNECTION_ERROR = "connection_error"
    DISCONNECTED = "disconnected"
    INCORRECT_LOGIN = "incorrect_login"
    USER_BANNED = "user_banned"
    NEW_SUBSCRIBER = "new_subscriber"
    RE_SUBSCRIBER = "re_subscriber"
    GIFTED_SUBSCRIPTION = "gifted_subscription"
    RAID_NOTIFICATION = "raid_notification"
    USER_JOINED = "user_joined"
    USER_LEFT = "user_left"


class EventEmitter:
    """Per-event handler lists safe to mutate from any thread.

    ``emit`` snapshots the handler list under the lock and calls handlers
    outside it, so a handler may unsubscribe itself. A failing handler is
    logged and does not stop the remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[TransportEvent, list[EventHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event: TransportEvent, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.setdefault(event, []).append(handler)

    def unsubscribe(self, event: TransportEvent, handler: EventHandler) -> bool:
        """Remove one registration of ``handler``; False if it was not subscribed."""
        with self._lock:
            handlers = self._handlers.get(event)
            if not handlers or handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def handler_count(self, event: TransportEvent | None = None) -> int:
        with self._lock:
            if event is not None:
                return len(self._handlers.get(event, ()))
            return sum(len(h) for h in self._handlers.values())

    def emit(self, event: TransportEvent, payload: Any = None) -> int:
        """Call every handler for ``event`` with ``payload``.

        Returns:
            Number of handlers that completed without raising.
        """
        with self._lock:
            handlers = list(self._handlers.get(event, ()))
        if not handlers:
            logging.debug(f"📭 No handlers for event={event.value}")
        delivered = 0
        for handler in handlers:
            try:
                handler(payload)
                delivered += 1
            except Exception as e:  # noqa: BLE001
                log_error(
                    "Transport event handler failed",
                    e,
                    context={"event": event.value, "handler": getattr(handler, "__qualname__", repr(handler))},
                )
        return delivered
