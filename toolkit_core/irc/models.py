"""Shared IRC data models."""

from __future__ import annotations

from enum import Enum, auto


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    AUTHENTICATING = auto()
    CONNECTED = auto()
    JOINED = auto()
    CLOSING = auto()

    @property
    def is_online(self) -> bool:
        return self in (ConnectionState.CONNECTED, ConnectionState.JOINED)


# NOTICE texts Twitch sends when PASS/NICK are rejected
LOGIN_FAILURE_NOTICES = (
    "login authentication failed",
    "improperly formatted auth",
    "invalid nick",
)
