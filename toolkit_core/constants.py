"""
Runtime constants for the toolkit core.

Every constant can be overridden by setting an environment variable with the
same name (e.g. ``CHAT_MIN_SEND_DELAY_SECONDS=0.25``).
"""

import logging
import os


def _get_env_int(name: str, default: int) -> int:
    """Read an integer from the environment.

    Args:
        name: Environment variable name.
        default: Value returned when the variable is unset or unparsable.

    Returns:
        The parsed integer, or ``default``.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logging.warning(
                f"⚠️ Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Read a float from the environment.

    Args:
        name: Environment variable name.
        default: Value returned when the variable is unset or unparsable.

    Returns:
        The parsed float, or ``default``.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            logging.warning(
                f"⚠️ Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Outbound chat throttling
CHAT_MIN_SEND_DELAY_SECONDS = _get_env_float(
    "CHAT_MIN_SEND_DELAY_SECONDS", 0.1
)  # Minimum gap between two outbound chat messages
CHAT_MAX_MESSAGE_LENGTH = _get_env_int(
    "CHAT_MAX_MESSAGE_LENGTH", 500
)  # Twitch rejects PRIVMSG bodies longer than this
CHAT_TRUNCATION_MARKER = "..."

# Credentials
OAUTH_TOKEN_PREFIX = "oauth:"
MIN_OAUTH_TOKEN_LENGTH = _get_env_int(
    "MIN_OAUTH_TOKEN_LENGTH", 20
)  # Tokens must be longer than this, oauth: prefix included

# Message log capacities (display only, not persisted)
CHAT_LOG_CAPACITY = _get_env_int("CHAT_LOG_CAPACITY", 10)
WHISPER_LOG_CAPACITY = _get_env_int("WHISPER_LOG_CAPACITY", 5)

# Transport
TWITCH_IRC_WS_URL = os.getenv("TWITCH_IRC_WS_URL", "wss://irc-ws.chat.twitch.tv:443")
TRANSPORT_CONNECT_TIMEOUT_SECONDS = _get_env_float(
    "TRANSPORT_CONNECT_TIMEOUT_SECONDS", 15.0
)
TRANSPORT_CONNECT_MAX_ATTEMPTS = _get_env_int(
    "TRANSPORT_CONNECT_MAX_ATTEMPTS", 3
)  # Attempts per connect() call before reporting a connection error
TRANSPORT_RETRY_MAX_BACKOFF_SECONDS = _get_env_int(
    "TRANSPORT_RETRY_MAX_BACKOFF_SECONDS", 30
)
TRANSPORT_STOP_TIMEOUT_SECONDS = _get_env_float(
    "TRANSPORT_STOP_TIMEOUT_SECONDS", 5.0
)  # How long disconnect() waits for the network thread to wind down

# Main loop pump
MAIN_LOOP_TICK_SECONDS = _get_env_float(
    "MAIN_LOOP_TICK_SECONDS", 0.05
)  # Interval between dispatch queue drains when running standalone

# Persistence
CONFIG_BACKUP_RETENTION = _get_env_int("CONFIG_BACKUP_RETENTION", 3)

# Default file locations
DEFAULT_SETTINGS_FILE = "toolkit_core.conf"
DEFAULT_VIEWERS_FILE = "toolkit_viewers.json"
