"""Internal error hierarchy.

Expected validation outcomes (bad credentials, unknown commands, duplicate
viewers) are reported through booleans and result values. These exceptions
are for failures crossing an I/O boundary, where the caller decides whether
to log, retry or give up.

Classes:
  ToolkitError         – Base for all toolkit errors, carries structured data.
  ConfigurationError   – Missing or malformed settings/credentials.
  TransportError       – Connection failures and unexpected disconnects (retryable).
  AuthenticationError  – Login rejected by the chat server (not retryable).
  PersistenceError     – Settings or viewer files could not be read or written.
"""

from __future__ import annotations

from collections.abc import Mapping


class ToolkitError(Exception):
    """Base class for toolkit errors with structured context.

    Attributes:
        data: Copy of the context mapping supplied by the raiser.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy so later mutation by the caller does not leak in.
        self.data = dict(data) if data else {}


class ConfigurationError(ToolkitError):
    """Settings or credentials are unusable; detected before any network I/O."""


class TransportError(ToolkitError):
    """Network level failure talking to the chat server.

    Raised for refused connections, timeouts and dropped sockets. The
    transport retries these before reporting a connection error.
    """


class AuthenticationError(ToolkitError):
    """The chat server rejected the supplied credentials.

    Retrying with the same token cannot succeed, so retry policies must
    not catch this.
    """


class PersistenceError(ToolkitError):
    """Reading or writing a persisted JSON document failed."""


__all__ = [
    "ToolkitError",
    "ConfigurationError",
    "TransportError",
    "AuthenticationError",
    "PersistenceError",
]
