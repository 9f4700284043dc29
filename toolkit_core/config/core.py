"""Settings loading with environment overrides."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from ..constants import DEFAULT_SETTINGS_FILE
from .model import ChannelSettings
from .repository import SettingsRepository

# environment variable -> settings field
ENV_OVERRIDES: dict[str, str] = {
    "TWITCH_CHANNEL": "channel_username",
    "TWITCH_BOT_USERNAME": "bot_username",
    "TWITCH_OAUTH_TOKEN": "oauth_token",
    "TWITCH_CONNECT_ON_STARTUP": "connect_on_startup",
    "TWITCH_ALLOW_WHISPERS": "allow_whispers",
    "TWITCH_FORCE_WHISPERS": "force_whispers",
    "TWITCH_SEND_MESSAGE_ON_JOIN": "send_message_on_join",
    "DEBUG": "debug_logging",
}


def resolve_settings_path(path: str | None = None) -> str:
    """Return ``path``, else ``TOOLKIT_CONF_FILE``, else the default file name."""
    return path or os.environ.get("TOOLKIT_CONF_FILE", DEFAULT_SETTINGS_FILE)


def collect_env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for env_name, field in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        overrides[field] = value
    return overrides


def load_settings(
    path: str | None = None, environ: Mapping[str, str] | None = None
) -> ChannelSettings:
    """Load settings from ``path`` and apply environment overrides.

    Args:
        path: Settings file; see ``resolve_settings_path``.
        environ: Environment mapping, ``os.environ`` when omitted.

    Returns:
        The merged settings. A missing or unreadable file yields defaults.
    """
    repository = SettingsRepository(resolve_settings_path(path))
    raw = repository.load_raw()
    overrides = collect_env_overrides(environ)
    if overrides:
        logging.debug(f"🔧 Environment overrides applied fields={sorted(overrides)}")
    merged = {**raw, **overrides}
    try:
        return ChannelSettings.from_dict(merged)
    except ValueError as e:
        logging.error(f"💥 Invalid settings, falling back to file values: {e}")
        return repository.load()


def save_settings(settings: ChannelSettings, path: str | None = None) -> bool:
    return SettingsRepository(resolve_settings_path(path)).save(settings)
