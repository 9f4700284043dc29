"""Error hierarchy and logging helpers for the toolkit core."""

from .internal import (
    AuthenticationError,
    ConfigurationError,
    PersistenceError,
    ToolkitError,
    TransportError,
)

__all__ = [
    "ToolkitError",
    "ConfigurationError",
    "TransportError",
    "AuthenticationError",
    "PersistenceError",
]
