"""Settings model, persistence and file watching."""

from .core import load_settings, save_settings
from .model import ChannelSettings, ConnectionCredentials
from .repository import SettingsRepository
from .watcher import SettingsWatcher

__all__ = [
    "ChannelSettings",
    "ConnectionCredentials",
    "SettingsRepository",
    "SettingsWatcher",
    "load_settings",
    "save_settings",
]
