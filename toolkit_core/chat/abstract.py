"""Chat transport abstraction.

The connection manager talks to the network only through this interface,
so tests and hosts can supply their own transport:

    initialize(credentials, channel)   configure before connecting
    connect() -> None                  start connecting, returns immediately
    disconnect() -> None               stop and close; safe to repeat
    is_connected -> bool
    send_message(channel, text)        fire-and-forget PRIVMSG
    get_joined_channel(name)           joined channel name or None
    events                             EventEmitter raising TransportEvent

Events may be emitted on any thread.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from ..config.model import ConnectionCredentials
from ..irc.events import EventEmitter


class ChatTransport(ABC):
    """Abstract chat transport."""

    def __init__(self) -> None:
        self.events = EventEmitter()

    @abstractmethod
    def initialize(
        self, credentials: ConnectionCredentials, channel: str
    ) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def connect(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def disconnect(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @property
    @abstractmethod
    def is_connected(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def send_message(self, channel: str, text: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def get_joined_channel(self, name: str) -> str | None:  # pragma: no cover - interface
        raise NotImplementedError


TransportFactory = Callable[[], ChatTransport]
