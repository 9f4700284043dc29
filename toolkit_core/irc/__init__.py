"""Twitch IRC subsystem: parsing, dispatch and transport events.

The WebSocket transport lives in ``toolkit_core.irc.client`` and is imported
from there directly, since it depends on the chat transport interface.
"""

from .dispatcher import IRCDispatcher  # noqa: F401
from .events import EventEmitter, TransportEvent  # noqa: F401
from .models import ConnectionState  # noqa: F401
from .parser import IRCMessage, parse_irc_message  # noqa: F401

__all__ = [
    "ConnectionState",
    "EventEmitter",
    "IRCDispatcher",
    "IRCMessage",
    "TransportEvent",
    "parse_irc_message",
]
